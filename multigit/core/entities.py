"""
Core entities for the multigit backend.

Every entity serialises to the document shape the dashboard frontend
consumes: camelCase keys and an ``_id`` string primary key. References to
other documents are stored as ``_id`` strings.
"""

import uuid
from abc import ABC
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .enums import Role, Granularity


def _parse_timestamp(value: Optional[str]) -> datetime:
    if not value:
        return datetime.now(timezone.utc)
    return datetime.fromisoformat(value)


class AbstractEntity(ABC):
    """Base abstract entity with universal ID, lifecycle, and versioning."""

    def __init__(self, entity_id: Optional[str] = None):
        self._id = entity_id or str(uuid.uuid4())
        self._created_at = datetime.now(timezone.utc)
        self._updated_at = self._created_at
        self._version = 1

    @property
    def id(self) -> str:
        """Get the entity ID."""
        return self._id

    @property
    def created_at(self) -> datetime:
        """Get creation timestamp."""
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        """Get last update timestamp."""
        return self._updated_at

    @property
    def version(self) -> int:
        """Get current version."""
        return self._version

    def touch(self) -> None:
        """Mark the entity as modified."""
        self._updated_at = datetime.now(timezone.utc)
        self._version += 1

    def restore_metadata(self, data: Dict[str, Any]) -> None:
        """Restore timestamps and version from a stored document."""
        self._created_at = _parse_timestamp(data.get('createdAt'))
        self._updated_at = _parse_timestamp(data.get('updatedAt'))
        self._version = data.get('version', 1)

    def to_dict(self) -> Dict[str, Any]:
        """Convert entity to dictionary."""
        return {
            '_id': self._id,
            'createdAt': self._created_at.isoformat(),
            'updatedAt': self._updated_at.isoformat(),
            'version': self._version,
        }

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(id={self._id})"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self._id}, version={self._version})"


class Account(AbstractEntity):
    """Login identity holding the role and approval state of a User."""

    def __init__(self, email: str, role: Role, user: str, is_approved: bool = False, **kwargs):
        super().__init__(**kwargs)
        self.email = email
        self.role = role
        self.user = user
        self.is_approved = is_approved

    def approve(self) -> None:
        self.is_approved = True
        self.touch()

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            'email': self.email,
            'role': self.role.value,
            'isApproved': self.is_approved,
            'user': self.user,
        })
        return base_dict

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Account':
        account = cls(
            email=data['email'],
            role=Role(data['role']),
            user=data['user'],
            is_approved=data.get('isApproved', False),
            entity_id=data['_id'],
        )
        account.restore_metadata(data)
        return account


class User(AbstractEntity):
    """A person known to the dashboard, identified by an institution identifier."""

    def __init__(self, identifier: str, name: str, git_handle: Optional[str] = None,
                 enrolled_courses: Optional[List[str]] = None, **kwargs):
        super().__init__(**kwargs)
        self.identifier = identifier
        self.name = name
        self.git_handle = git_handle
        self.enrolled_courses: List[str] = list(enrolled_courses or [])

    def enroll(self, course_id: str) -> None:
        """Add a course reference if not already present."""
        if course_id not in self.enrolled_courses:
            self.enrolled_courses.append(course_id)
            self.touch()

    def unenroll(self, course_id: str) -> None:
        """Drop every reference to a course."""
        if course_id in self.enrolled_courses:
            self.enrolled_courses = [c for c in self.enrolled_courses if c != course_id]
            self.touch()

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            'identifier': self.identifier,
            'name': self.name,
            'gitHandle': self.git_handle,
            'enrolledCourses': list(self.enrolled_courses),
        })
        return base_dict

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        user = cls(
            identifier=data['identifier'],
            name=data['name'],
            git_handle=data.get('gitHandle'),
            enrolled_courses=data.get('enrolledCourses', []),
            entity_id=data['_id'],
        )
        user.restore_metadata(data)
        return user


@dataclass
class Milestone:
    """Timeline entry embedded in a course."""
    number: int
    dateline: str
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {'number': self.number, 'dateline': self.dateline, 'description': self.description}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Milestone':
        return cls(number=data['number'], dateline=data['dateline'], description=data.get('description', ""))


@dataclass
class Sprint:
    """Sprint entry embedded in a course."""
    number: int
    start_date: str
    end_date: str
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'number': self.number,
            'startDate': self.start_date,
            'endDate': self.end_date,
            'description': self.description,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Sprint':
        return cls(
            number=data['number'],
            start_date=data['startDate'],
            end_date=data['endDate'],
            description=data.get('description', ""),
        )


class Course(AbstractEntity):
    """Course with its roster, team-sets, assessments and timeline."""

    # roster attribute per role
    ROSTER_FIELDS = {
        Role.STUDENT: 'students',
        Role.TA: 'tas',
        Role.FACULTY: 'faculty',
    }

    def __init__(self, name: str, code: str, semester: str = "", start_date: Optional[str] = None,
                 duration_weeks: Optional[int] = None, **kwargs):
        super().__init__(**kwargs)
        self.name = name
        self.code = code
        self.semester = semester
        self.start_date = start_date
        self.duration_weeks = duration_weeks
        self.faculty: List[str] = []
        self.tas: List[str] = []
        self.students: List[str] = []
        self.team_sets: List[str] = []
        self.assessments: List[str] = []
        self.milestones: List[Milestone] = []
        self.sprints: List[Sprint] = []

    def roster(self, role: Role) -> List[str]:
        return getattr(self, self.ROSTER_FIELDS[role])

    def add_to_roster(self, role: Role, user_id: str) -> None:
        roster = self.roster(role)
        if user_id not in roster:
            roster.append(user_id)
            self.touch()

    def remove_from_roster(self, role: Role, user_id: str) -> None:
        field_name = self.ROSTER_FIELDS[role]
        setattr(self, field_name, [u for u in getattr(self, field_name) if u != user_id])
        self.touch()

    def has_member(self, user_id: str) -> bool:
        return user_id in self.faculty or user_id in self.tas or user_id in self.students

    def add_team_set(self, team_set_id: str) -> None:
        if team_set_id not in self.team_sets:
            self.team_sets.append(team_set_id)
            self.touch()

    def remove_team_set(self, team_set_id: str) -> None:
        self.team_sets = [t for t in self.team_sets if t != team_set_id]
        self.touch()

    def add_assessment(self, assessment_id: str) -> None:
        if assessment_id not in self.assessments:
            self.assessments.append(assessment_id)
            self.touch()

    def add_milestone(self, milestone: Milestone) -> None:
        self.milestones.append(milestone)
        self.touch()

    def add_sprint(self, sprint: Sprint) -> None:
        self.sprints.append(sprint)
        self.touch()

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            'name': self.name,
            'code': self.code,
            'semester': self.semester,
            'startDate': self.start_date,
            'durationWeeks': self.duration_weeks,
            'faculty': list(self.faculty),
            'TAs': list(self.tas),
            'students': list(self.students),
            'teamSets': list(self.team_sets),
            'assessments': list(self.assessments),
            'milestones': [m.to_dict() for m in self.milestones],
            'sprints': [s.to_dict() for s in self.sprints],
        })
        return base_dict

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Course':
        course = cls(
            name=data['name'],
            code=data['code'],
            semester=data.get('semester', ""),
            start_date=data.get('startDate'),
            duration_weeks=data.get('durationWeeks'),
            entity_id=data['_id'],
        )
        course.faculty = list(data.get('faculty', []))
        course.tas = list(data.get('TAs', []))
        course.students = list(data.get('students', []))
        course.team_sets = list(data.get('teamSets', []))
        course.assessments = list(data.get('assessments', []))
        course.milestones = [Milestone.from_dict(m) for m in data.get('milestones', [])]
        course.sprints = [Sprint.from_dict(s) for s in data.get('sprints', [])]
        course.restore_metadata(data)
        return course


class TeamSet(AbstractEntity):
    """Named grouping of teams within a course."""

    def __init__(self, name: str, course: str, teams: Optional[List[str]] = None, **kwargs):
        super().__init__(**kwargs)
        self.name = name
        self.course = course
        self.teams: List[str] = list(teams or [])

    def add_team(self, team_id: str) -> None:
        if team_id not in self.teams:
            self.teams.append(team_id)
            self.touch()

    def remove_team(self, team_id: str) -> None:
        self.teams = [t for t in self.teams if t != team_id]
        self.touch()

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({'name': self.name, 'course': self.course, 'teams': list(self.teams)})
        return base_dict

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TeamSet':
        team_set = cls(name=data['name'], course=data['course'], teams=data.get('teams', []),
                       entity_id=data['_id'])
        team_set.restore_metadata(data)
        return team_set


class Team(AbstractEntity):
    """Numbered team of users inside a team-set, optionally supervised by a TA."""

    def __init__(self, number: int, team_set: str, members: Optional[List[str]] = None,
                 ta: Optional[str] = None, team_data: Optional[str] = None,
                 board: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self.number = number
        self.team_set = team_set
        self.members: List[str] = list(members or [])
        self.ta = ta
        self.team_data = team_data
        self.board = board

    def add_member(self, user_id: str) -> None:
        if user_id not in self.members:
            self.members.append(user_id)
            self.touch()

    def remove_member(self, user_id: str) -> None:
        self.members = [m for m in self.members if m != user_id]
        self.touch()

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            'number': self.number,
            'teamSet': self.team_set,
            'members': list(self.members),
            'TA': self.ta,
            'teamData': self.team_data,
            'board': self.board,
        })
        return base_dict

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Team':
        team = cls(
            number=data['number'],
            team_set=data['teamSet'],
            members=data.get('members', []),
            ta=data.get('TA'),
            team_data=data.get('teamData'),
            board=data.get('board'),
            entity_id=data['_id'],
        )
        team.restore_metadata(data)
        return team


class Assessment(AbstractEntity):
    """Assessment attached to a course, with one result per team or per student."""

    def __init__(self, course: str, assessment_type: str, mark_type: str, frequency: str,
                 granularity: Granularity, team_set: Optional[str] = None,
                 form_link: Optional[str] = None, results: Optional[List[str]] = None, **kwargs):
        super().__init__(**kwargs)
        self.course = course
        self.assessment_type = assessment_type
        self.mark_type = mark_type
        self.frequency = frequency
        self.granularity = granularity
        self.team_set = team_set
        self.form_link = form_link
        self.results: List[str] = list(results or [])

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            'course': self.course,
            'assessmentType': self.assessment_type,
            'markType': self.mark_type,
            'frequency': self.frequency,
            'granularity': self.granularity.value,
            'teamSet': self.team_set,
            'formLink': self.form_link,
            'results': list(self.results),
        })
        return base_dict

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Assessment':
        assessment = cls(
            course=data['course'],
            assessment_type=data['assessmentType'],
            mark_type=data['markType'],
            frequency=data.get('frequency', ""),
            granularity=Granularity(data['granularity']),
            team_set=data.get('teamSet'),
            form_link=data.get('formLink'),
            results=data.get('results', []),
            entity_id=data['_id'],
        )
        assessment.restore_metadata(data)
        return assessment


class Result(AbstractEntity):
    """Marks for one team or one student within an assessment."""

    def __init__(self, assessment: str, marks: Optional[List[Dict[str, Any]]] = None,
                 team: Optional[str] = None, marker: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self.assessment = assessment
        self.team = team
        self.marker = marker
        # each mark: {'user': identifier, 'name': ..., 'mark': number}
        self.marks: List[Dict[str, Any]] = [dict(m) for m in (marks or [])]

    def set_mark(self, identifier: str, mark: float) -> bool:
        """Set the mark of a student; returns whether the student is in this result."""
        updated = False
        for entry in self.marks:
            if entry['user'] == identifier:
                entry['mark'] = mark
                updated = True
        if updated:
            self.touch()
        return updated

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            'assessment': self.assessment,
            'team': self.team,
            'marker': self.marker,
            'marks': [dict(m) for m in self.marks],
        })
        return base_dict

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Result':
        result = cls(
            assessment=data['assessment'],
            marks=data.get('marks', []),
            team=data.get('team'),
            marker=data.get('marker'),
            entity_id=data['_id'],
        )
        result.restore_metadata(data)
        return result


class JiraBoard(AbstractEntity):
    """Snapshot of a team's Jira board: columns and sprints with their issues."""

    def __init__(self, project_name: str, columns: Optional[List[Dict[str, Any]]] = None,
                 sprints: Optional[List[Dict[str, Any]]] = None, **kwargs):
        super().__init__(**kwargs)
        self.project_name = project_name
        self.columns: List[Dict[str, Any]] = list(columns or [])
        self.sprints: List[Dict[str, Any]] = list(sprints or [])

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            'jiraLocation': {'projectName': self.project_name},
            'columns': list(self.columns),
            'jiraSprints': list(self.sprints),
        })
        return base_dict

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'JiraBoard':
        board = cls(
            project_name=data.get('jiraLocation', {}).get('projectName', ""),
            columns=data.get('columns', []),
            sprints=data.get('jiraSprints', []),
            entity_id=data['_id'],
        )
        board.restore_metadata(data)
        return board
