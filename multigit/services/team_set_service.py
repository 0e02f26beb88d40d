"""
Team-set service.
"""

import logging

from ..core.entities import TeamSet
from ..core.exceptions import NotFoundError, BadRequestError
from ..core.interfaces import DocumentStore
from ..persistence.repositories import CourseRepository, TeamSetRepository, TeamRepository, JiraBoardRepository


logger = logging.getLogger(__name__)


class TeamSetService:
    """Creates and removes team-sets of a course."""

    def __init__(self, database: DocumentStore):
        self._course_repo = CourseRepository(database)
        self._team_set_repo = TeamSetRepository(database)
        self._team_repo = TeamRepository(database)
        self._board_repo = JiraBoardRepository(database)

    def create_team_set(self, course_id: str, name: str) -> TeamSet:
        course = self._course_repo.find_by_id(course_id)
        if not course:
            raise NotFoundError('Course not found')
        if not name:
            raise BadRequestError('Team set name is required')
        if self._team_set_repo.find_by_course_and_name(course.id, name):
            raise BadRequestError('Team set with the same name already exists')

        team_set = TeamSet(name=name, course=course.id)
        self._team_set_repo.save(team_set)
        course.add_team_set(team_set.id)
        self._course_repo.save(course)
        logger.info("Created team set %r in course %s", name, course.id)
        return team_set

    def delete_team_set(self, team_set_id: str) -> None:
        """Delete a team-set, its teams, and its reference in the course."""
        team_set = self._team_set_repo.find_by_id(team_set_id)
        if not team_set:
            raise NotFoundError('TeamSet not found')
        teams = self._team_repo.find_by_team_set(team_set.id)
        self._board_repo.delete_many({'_id': {'$in': [team.board for team in teams if team.board]}})
        self._team_repo.delete_many({'teamSet': team_set.id})
        self._team_set_repo.delete(team_set.id)

        course = self._course_repo.find_by_id(team_set.course)
        if course:
            course.remove_team_set(team_set.id)
            self._course_repo.save(course)
        logger.info("Deleted team set %s", team_set.id)
