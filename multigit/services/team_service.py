"""
Team service: team membership, TA assignment and Jira board attachment.
"""

import logging
from typing import Any, Dict, List

from ..core.entities import Course, Team, JiraBoard
from ..core.exceptions import NotFoundError, BadRequestError
from ..core.interfaces import DocumentStore
from ..persistence.repositories import (
    CourseRepository, UserRepository, TeamSetRepository, TeamRepository, JiraBoardRepository
)


logger = logging.getLogger(__name__)


class TeamService:
    """Service for teams within team-sets."""

    def __init__(self, database: DocumentStore):
        self._course_repo = CourseRepository(database)
        self._user_repo = UserRepository(database)
        self._team_set_repo = TeamSetRepository(database)
        self._team_repo = TeamRepository(database)
        self._board_repo = JiraBoardRepository(database)

    def _get_course(self, course_id: str) -> Course:
        course = self._course_repo.find_by_id(course_id)
        if not course:
            raise NotFoundError('Course not found')
        return course

    def _get_team(self, team_id: str) -> Team:
        team = self._team_repo.find_by_id(team_id)
        if not team:
            raise NotFoundError('Team not found')
        return team

    def _resolve_team(self, course: Course, record: Dict[str, Any]) -> Team:
        """Find the team named by a record, creating it inside its team-set if needed."""
        team_set = self._team_set_repo.find_by_course_and_name(course.id, record['teamSet'])
        if not team_set:
            raise BadRequestError('Invalid team set')
        team = self._team_repo.find_by_team_set_and_number(team_set.id, record['teamNumber'])
        if team is None:
            team = Team(number=record['teamNumber'], team_set=team_set.id)
            self._team_repo.save(team)
            team_set.add_team(team.id)
            self._team_set_repo.save(team_set)
        return team

    def _leave_other_teams(self, team_set_id: str, user_id: str, keep: Team) -> None:
        for other in self._team_repo.find_by_team_set(team_set_id):
            if other.id != keep.id and user_id in other.members:
                other.remove_member(user_id)
                self._team_repo.save(other)

    def add_students_to_team(self, course_id: str, records: List[Dict[str, Any]]) -> None:
        """Place each student in the numbered team of a team-set.

        A student belongs to at most one team per team-set; placing them
        again moves them.
        """
        course = self._get_course(course_id)
        for record in records:
            student = self._user_repo.find_by_identifier(record['identifier'])
            if not student or student.id not in course.students:
                raise BadRequestError('Invalid student')
            team = self._resolve_team(course, record)
            self._leave_other_teams(team.team_set, student.id, keep=team)
            team.add_member(student.id)
            self._team_repo.save(team)

    def add_tas_to_team(self, course_id: str, records: List[Dict[str, Any]]) -> None:
        """Assign a course TA to the numbered team of a team-set."""
        course = self._get_course(course_id)
        for record in records:
            ta = self._user_repo.find_by_identifier(record['identifier'])
            if not ta or ta.id not in course.tas:
                raise BadRequestError('Invalid TA')
            team = self._resolve_team(course, record)
            team.ta = ta.id
            team.touch()
            self._team_repo.save(team)

    def delete_team_by_id(self, team_id: str) -> None:
        team = self._get_team(team_id)
        team_set = self._team_set_repo.find_by_id(team.team_set)
        if team_set:
            team_set.remove_team(team.id)
            self._team_set_repo.save(team_set)
        if team.board:
            self._board_repo.delete(team.board)
        self._team_repo.delete(team.id)
        logger.info("Deleted team %s", team.id)

    def remove_member_by_id(self, team_id: str, user_id: str) -> None:
        team = self._get_team(team_id)
        if user_id not in team.members:
            raise NotFoundError('Member not found')
        team.remove_member(user_id)
        self._team_repo.save(team)

    def set_jira_board(self, team_id: str, board_data: Dict[str, Any]) -> JiraBoard:
        """Store the team's Jira board snapshot, replacing any previous one."""
        team = self._get_team(team_id)
        board = self._board_repo.find_by_id(team.board)
        project_name = (board_data.get('jiraLocation') or {}).get('projectName', "")
        if board is None:
            board = JiraBoard(project_name=project_name)
            team.board = board.id
            team.touch()
            self._team_repo.save(team)
        board.project_name = project_name
        board.columns = list(board_data.get('columns') or [])
        board.sprints = list(board_data.get('jiraSprints') or [])
        board.touch()
        return self._board_repo.save(board)
