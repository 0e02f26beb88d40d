"""
Course aggregate service.

Composes course, user, team-set, team and assessment documents into the
nested course view, keeps roster membership consistent in both directions
and applies role-scoped visibility.
"""

import logging
from typing import Any, Dict, List

from ..core.entities import Account, User, Course, Milestone, Sprint
from ..core.enums import Role
from ..core.exceptions import NotFoundError, BadRequestError
from ..core.interfaces import DocumentStore
from ..persistence.repositories import (
    AccountRepository, UserRepository, CourseRepository, TeamSetRepository,
    TeamRepository, AssessmentRepository, ResultRepository, JiraBoardRepository
)
from .populate import DocumentPopulator, sort_by_name


logger = logging.getLogger(__name__)


def _by_number(entry: Dict[str, Any]) -> int:
    return entry['number']


class CourseService:
    """Service for courses, their rosters, team-sets and timeline."""

    # request key -> Course attribute
    UPDATABLE_FIELDS = {
        'name': 'name',
        'code': 'code',
        'semester': 'semester',
        'startDate': 'start_date',
        'durationWeeks': 'duration_weeks',
    }

    def __init__(self, database: DocumentStore):
        self._account_repo = AccountRepository(database)
        self._user_repo = UserRepository(database)
        self._course_repo = CourseRepository(database)
        self._team_set_repo = TeamSetRepository(database)
        self._team_repo = TeamRepository(database)
        self._assessment_repo = AssessmentRepository(database)
        self._result_repo = ResultRepository(database)
        self._board_repo = JiraBoardRepository(database)
        self._populator = DocumentPopulator(database)

    def _get_account(self, account_id: str) -> Account:
        account = self._account_repo.find_by_id(account_id)
        if not account:
            raise NotFoundError('Account not found')
        return account

    def _get_course(self, course_id: str) -> Course:
        course = self._course_repo.find_by_id(course_id)
        if not course:
            raise NotFoundError('Course not found')
        return course

    # Course

    def create_new_course(self, course_data: Dict[str, Any], account_id: str) -> Course:
        """Create a course with the account's user as its first faculty member."""
        account = self._get_account(account_id)
        user = self._user_repo.find_by_id(account.user)
        if not user:
            raise NotFoundError('User not found')
        if not course_data.get('name') or not course_data.get('code'):
            raise BadRequestError('Course name and code are required')

        course = Course(
            name=course_data['name'],
            code=course_data['code'],
            semester=course_data.get('semester') or "",
            start_date=course_data.get('startDate'),
            duration_weeks=course_data.get('durationWeeks'),
        )
        course.add_to_roster(Role.FACULTY, user.id)
        self._course_repo.save(course)

        user.enroll(course.id)
        self._user_repo.save(user)
        logger.info("Created course %s (%s) for user %s", course.code, course.id, user.identifier)
        return course

    def get_courses_for_user(self, account_id: str) -> List[Dict[str, Any]]:
        """Courses in which the account's user is faculty, TA or student."""
        account = self._get_account(account_id)
        return [course.to_dict() for course in self._course_repo.find_by_member(account.user)]

    def get_course_by_id(self, course_id: str, account_id: str) -> Dict[str, Any]:
        """Fully populated course as seen by the given account.

        Teaching assistants only see the teams they are assigned to.
        """
        account = self._get_account(account_id)
        course = self._get_course(course_id)

        data = course.to_dict()
        data['faculty'] = sort_by_name(self._populator.users(course.faculty))
        data['TAs'] = sort_by_name(self._populator.users(course.tas))
        data['students'] = sort_by_name(self._populator.users(course.students))

        team_sets = self._populated_team_sets(course)
        if account.role == Role.TA:
            for team_set in team_sets:
                team_set['teams'] = [
                    team for team in team_set['teams']
                    if team['TA'] is not None and team['TA']['_id'] == account.user
                ]
        data['teamSets'] = team_sets

        data['assessments'] = [
            self._populator.assessment(assessment)
            for assessment in self._assessment_repo.find_by_ids(course.assessments)
        ]
        data['milestones'] = sorted(data['milestones'], key=_by_number)
        data['sprints'] = sorted(data['sprints'], key=_by_number)
        return data

    def update_course_by_id(self, course_id: str, update_data: Dict[str, Any]) -> Course:
        """Apply field updates; unknown keys are ignored."""
        course = self._get_course(course_id)
        for key, attribute in self.UPDATABLE_FIELDS.items():
            if key in update_data and update_data[key] is not None:
                setattr(course, attribute, update_data[key])
        course.touch()
        return self._course_repo.save(course)

    def delete_course_by_id(self, course_id: str) -> None:
        """Delete a course with its team-sets, teams, Jira boards and assessments.

        The steps are independent writes; a failure part-way leaves the
        steps already done in place.
        """
        course = self._get_course(course_id)
        self._course_repo.delete(course.id)

        team_set_ids = set(course.team_sets)
        team_set_ids.update(team_set.id for team_set in self._team_set_repo.find_by_course(course.id))
        team_set_ids = list(team_set_ids)
        teams = self._team_repo.find_all({'teamSet': {'$in': team_set_ids}})
        self._board_repo.delete_many({'_id': {'$in': [team.board for team in teams if team.board]}})
        teams_deleted = self._team_repo.delete_many({'teamSet': {'$in': team_set_ids}})
        self._team_set_repo.delete_many({'_id': {'$in': team_set_ids}})

        assessment_ids = [a.id for a in self._assessment_repo.find_by_course(course.id)]
        self._result_repo.delete_many({'assessment': {'$in': assessment_ids}})
        self._assessment_repo.delete_many({'_id': {'$in': assessment_ids}})

        for user in self._user_repo.find_by_enrolled_course(course.id):
            user.unenroll(course.id)
            self._user_repo.save(user)
        logger.info("Deleted course %s with %d team-sets and %d teams",
                    course.id, len(team_set_ids), teams_deleted)

    def get_course_code_by_id(self, course_id: str) -> str:
        """Code of the course, e.g. for page titles."""
        return self._get_course(course_id).code

    # Roster

    def _add_people_to_course(self, course_id: str, records: List[Dict[str, Any]], role: Role) -> None:
        """Resolve or create each user and link them to the course under ``role``.

        A record whose identifier already belongs to a user with another
        role, another name or another account email is skipped.
        """
        course = self._get_course(course_id)
        for record in records:
            identifier = record['identifier']
            user = self._user_repo.find_by_identifier(identifier)
            if user is None:
                user = User(identifier=identifier, name=record['name'], git_handle=record.get('gitHandle'))
                self._user_repo.save(user)
                self._account_repo.save(Account(email=record['email'], role=role, user=user.id))
            else:
                account = self._account_repo.find_by_user(user.id)
                if (account is None or account.role != role
                        or record['name'] != user.name or record['email'] != account.email):
                    logger.debug("Skipping %s %s: conflicts with existing user", role.value, identifier)
                    continue
                if record.get('gitHandle') is not None:
                    user.git_handle = record['gitHandle']
            user.enroll(course.id)
            self._user_repo.save(user)
            course.add_to_roster(role, user.id)
        self._course_repo.save(course)

    def _remove_person_from_course(self, course_id: str, user_id: str, role: Role, missing: str) -> None:
        course = self._get_course(course_id)
        user = self._user_repo.find_by_id(user_id)
        if not user:
            raise NotFoundError(missing)
        course.remove_from_roster(role, user.id)
        self._course_repo.save(course)
        user.unenroll(course.id)
        self._user_repo.save(user)

    def add_students_to_course(self, course_id: str, records: List[Dict[str, Any]]) -> None:
        """Add students to the course roster, creating unknown users."""
        self._add_people_to_course(course_id, records, Role.STUDENT)

    def remove_students_from_course(self, course_id: str, student_id: str) -> None:
        """Remove a student from the course roster."""
        self._remove_person_from_course(course_id, student_id, Role.STUDENT, 'Student not found')

    def add_tas_to_course(self, course_id: str, records: List[Dict[str, Any]]) -> None:
        """Add teaching assistants to the course roster, creating unknown users."""
        self._add_people_to_course(course_id, records, Role.TA)

    def remove_tas_from_course(self, course_id: str, ta_id: str) -> None:
        """Remove a teaching assistant from the course roster."""
        self._remove_person_from_course(course_id, ta_id, Role.TA, 'TA not found')

    def add_faculty_to_course(self, course_id: str, records: List[Dict[str, Any]]) -> None:
        """Add faculty members to the course roster, creating unknown users."""
        self._add_people_to_course(course_id, records, Role.FACULTY)

    def remove_faculty_from_course(self, course_id: str, faculty_id: str) -> None:
        """Remove a faculty member from the course roster."""
        self._remove_person_from_course(course_id, faculty_id, Role.FACULTY, 'Faculty Member not found')

    def get_course_teaching_team(self, course_id: str) -> List[Dict[str, Any]]:
        """Faculty followed by TAs."""
        course = self._get_course(course_id)
        return self._populator.users(course.faculty) + self._populator.users(course.tas)

    def get_people_from_course(self, course_id: str) -> Dict[str, List[Dict[str, Any]]]:
        """Faculty, TAs and students of the course, each sorted by name."""
        course = self._get_course(course_id)
        return {
            'faculty': sort_by_name(self._populator.users(course.faculty)),
            'TAs': sort_by_name(self._populator.users(course.tas)),
            'students': sort_by_name(self._populator.users(course.students)),
        }

    # Team-sets

    def _populated_team_sets(self, course: Course) -> List[Dict[str, Any]]:
        team_sets = [self._populator.team_set(ts) for ts in self._team_set_repo.find_by_ids(course.team_sets)]
        for team_set in team_sets:
            team_set['teams'].sort(key=_by_number)
        return team_sets

    def get_team_sets_from_course(self, course_id: str) -> List[Dict[str, Any]]:
        return self._populated_team_sets(self._get_course(course_id))

    def get_team_set_names_from_course(self, course_id: str) -> List[str]:
        course = self._get_course(course_id)
        return [team_set.name for team_set in self._team_set_repo.find_by_ids(course.team_sets)]

    # Timeline

    def add_milestone_to_course(self, course_id: str, milestone_data: Dict[str, Any]) -> None:
        course = self._get_course(course_id)
        course.add_milestone(Milestone.from_dict(milestone_data))
        self._course_repo.save(course)

    def add_sprint_to_course(self, course_id: str, sprint_data: Dict[str, Any]) -> None:
        course = self._get_course(course_id)
        course.add_sprint(Sprint.from_dict(sprint_data))
        self._course_repo.save(course)

    # Assessments

    def get_assessments_from_course(self, course_id: str) -> List[Dict[str, Any]]:
        course = self._get_course(course_id)
        return [
            self._populator.assessment(assessment)
            for assessment in self._assessment_repo.find_by_ids(course.assessments)
        ]
