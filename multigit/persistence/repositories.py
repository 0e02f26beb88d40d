"""
Repository pattern implementations for data access.
"""

import threading
from abc import abstractmethod
from typing import Any, Dict, List, Optional, TypeVar, Generic

from ..core.entities import (
    AbstractEntity, Account, User, Course, TeamSet, Team, Assessment, Result, JiraBoard
)
from ..core.interfaces import Repository, DocumentStore

T = TypeVar('T', bound=AbstractEntity)


class BaseRepository(Repository[T], Generic[T]):
    """Base repository implementation with common functionality."""

    def __init__(self, database: DocumentStore, collection: str):
        self._database = database
        self._collection = collection
        self._lock = threading.RLock()

    @property
    def collection(self) -> str:
        return self._collection

    def save(self, entity: T) -> T:
        """Save an entity."""
        with self._lock:
            self._database.save(self._collection, entity.to_dict())
            return entity

    def find_by_id(self, entity_id: Optional[str]) -> Optional[T]:
        """Find entity by ID."""
        if not entity_id:
            return None
        data = self._database.find_by_id(self._collection, entity_id)
        return self._entity_from_dict(data) if data else None

    def find_by_ids(self, entity_ids: List[str]) -> List[T]:
        """Find entities by ID, keeping the order of ``entity_ids`` and skipping missing ones."""
        entities = []
        for entity_id in entity_ids:
            entity = self.find_by_id(entity_id)
            if entity is not None:
                entities.append(entity)
        return entities

    def find_all(self, filters: Optional[Dict[str, Any]] = None) -> List[T]:
        """Find all entities matching filters."""
        return [self._entity_from_dict(data) for data in self._database.find(self._collection, filters)]

    def find_one(self, filters: Dict[str, Any]) -> Optional[T]:
        """Find the first entity matching filters."""
        results = self.find_all(filters)
        return results[0] if results else None

    def delete(self, entity_id: str) -> bool:
        """Delete an entity by ID."""
        with self._lock:
            return self._database.delete(self._collection, entity_id)

    def delete_many(self, filters: Dict[str, Any]) -> int:
        """Delete all entities matching filters."""
        with self._lock:
            return self._database.delete_many(self._collection, filters)

    def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        """Count entities matching filters."""
        return self._database.count(self._collection, filters)

    @abstractmethod
    def _entity_from_dict(self, data: Dict[str, Any]) -> T:
        """Convert dictionary to entity instance."""
        pass


class AccountRepository(BaseRepository[Account]):
    """Repository for Account documents."""

    def __init__(self, database: DocumentStore):
        super().__init__(database, "accounts")

    def _entity_from_dict(self, data: Dict[str, Any]) -> Account:
        return Account.from_dict(data)

    def find_by_user(self, user_id: str) -> Optional[Account]:
        return self.find_one({"user": user_id})

    def find_by_email(self, email: str) -> Optional[Account]:
        return self.find_one({"email": email})

    def find_pending(self) -> List[Account]:
        return self.find_all({"isApproved": False})


class UserRepository(BaseRepository[User]):
    """Repository for User documents."""

    def __init__(self, database: DocumentStore):
        super().__init__(database, "users")

    def _entity_from_dict(self, data: Dict[str, Any]) -> User:
        return User.from_dict(data)

    def find_by_identifier(self, identifier: str) -> Optional[User]:
        return self.find_one({"identifier": identifier})

    def find_by_enrolled_course(self, course_id: str) -> List[User]:
        return self.find_all({"enrolledCourses": course_id})


class CourseRepository(BaseRepository[Course]):
    """Repository for Course documents."""

    def __init__(self, database: DocumentStore):
        super().__init__(database, "courses")

    def _entity_from_dict(self, data: Dict[str, Any]) -> Course:
        return Course.from_dict(data)

    def find_by_member(self, user_id: str) -> List[Course]:
        """Courses listing the user as student, TA or faculty."""
        return self.find_all({"$or": [{"students": user_id}, {"TAs": user_id}, {"faculty": user_id}]})


class TeamSetRepository(BaseRepository[TeamSet]):
    """Repository for TeamSet documents."""

    def __init__(self, database: DocumentStore):
        super().__init__(database, "teamsets")

    def _entity_from_dict(self, data: Dict[str, Any]) -> TeamSet:
        return TeamSet.from_dict(data)

    def find_by_course(self, course_id: str) -> List[TeamSet]:
        return self.find_all({"course": course_id})

    def find_by_course_and_name(self, course_id: str, name: str) -> Optional[TeamSet]:
        return self.find_one({"course": course_id, "name": name})


class TeamRepository(BaseRepository[Team]):
    """Repository for Team documents."""

    def __init__(self, database: DocumentStore):
        super().__init__(database, "teams")

    def _entity_from_dict(self, data: Dict[str, Any]) -> Team:
        return Team.from_dict(data)

    def find_by_team_set(self, team_set_id: str) -> List[Team]:
        return self.find_all({"teamSet": team_set_id})

    def find_by_team_set_and_number(self, team_set_id: str, number: int) -> Optional[Team]:
        return self.find_one({"teamSet": team_set_id, "number": number})

    def find_by_member(self, user_id: str) -> List[Team]:
        return self.find_all({"members": user_id})


class AssessmentRepository(BaseRepository[Assessment]):
    """Repository for Assessment documents."""

    def __init__(self, database: DocumentStore):
        super().__init__(database, "assessments")

    def _entity_from_dict(self, data: Dict[str, Any]) -> Assessment:
        return Assessment.from_dict(data)

    def find_by_course(self, course_id: str) -> List[Assessment]:
        return self.find_all({"course": course_id})

    def find_by_course_and_type(self, course_id: str, assessment_type: str) -> Optional[Assessment]:
        return self.find_one({"course": course_id, "assessmentType": assessment_type})


class ResultRepository(BaseRepository[Result]):
    """Repository for assessment Result documents."""

    def __init__(self, database: DocumentStore):
        super().__init__(database, "results")

    def _entity_from_dict(self, data: Dict[str, Any]) -> Result:
        return Result.from_dict(data)

    def find_by_assessment(self, assessment_id: str) -> List[Result]:
        return self.find_all({"assessment": assessment_id})


class JiraBoardRepository(BaseRepository[JiraBoard]):
    """Repository for JiraBoard documents."""

    def __init__(self, database: DocumentStore):
        super().__init__(database, "jiraboards")

    def _entity_from_dict(self, data: Dict[str, Any]) -> JiraBoard:
        return JiraBoard.from_dict(data)
