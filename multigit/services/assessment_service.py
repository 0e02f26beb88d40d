"""
Assessment service: creation from course data, result upload and marker assignment.
"""

import logging
from typing import Any, Dict, List, Optional

from ..core.entities import Assessment, Course, Result, TeamSet
from ..core.enums import Granularity, Role
from ..core.exceptions import NotFoundError, BadRequestError
from ..core.interfaces import DocumentStore
from ..persistence.repositories import (
    AccountRepository, UserRepository, CourseRepository, TeamSetRepository,
    TeamRepository, AssessmentRepository, ResultRepository
)
from .populate import DocumentPopulator


logger = logging.getLogger(__name__)


class AssessmentService:
    """Service for course assessments and their results."""

    def __init__(self, database: DocumentStore):
        self._account_repo = AccountRepository(database)
        self._user_repo = UserRepository(database)
        self._course_repo = CourseRepository(database)
        self._team_set_repo = TeamSetRepository(database)
        self._team_repo = TeamRepository(database)
        self._assessment_repo = AssessmentRepository(database)
        self._result_repo = ResultRepository(database)
        self._populator = DocumentPopulator(database)

    def _get_assessment(self, assessment_id: str) -> Assessment:
        assessment = self._assessment_repo.find_by_id(assessment_id)
        if not assessment:
            raise NotFoundError('Assessment not found')
        return assessment

    def get_assessment_by_id(self, assessment_id: str, account_id: Optional[str] = None) -> Dict[str, Any]:
        """Populated assessment; a TA caller only sees the results they mark."""
        assessment = self._get_assessment(assessment_id)
        data = self._populator.assessment(assessment, with_results=True)
        if account_id:
            account = self._account_repo.find_by_id(account_id)
            if not account:
                raise NotFoundError('Account not found')
            if account.role == Role.TA:
                data['results'] = [
                    result for result in data['results']
                    if result['marker'] is not None and result['marker']['_id'] == account.user
                ]
        return data

    def add_assessments_to_course(self, course_id: str, records: List[Dict[str, Any]]) -> List[Assessment]:
        """Create assessments with an empty result per team or per student."""
        course = self._course_repo.find_by_id(course_id)
        if not course:
            raise NotFoundError('Course not found')

        created = []
        for record in records:
            assessment_type = record.get('assessmentType')
            if not assessment_type or not record.get('markType'):
                raise BadRequestError('Invalid assessment data')
            try:
                granularity = Granularity(record.get('granularity'))
            except ValueError:
                raise BadRequestError('Invalid assessment granularity')
            if self._assessment_repo.find_by_course_and_type(course.id, assessment_type):
                raise BadRequestError(f'Assessment {assessment_type} already exists')

            team_set = None
            if record.get('teamSetName'):
                team_set = self._team_set_repo.find_by_course_and_name(course.id, record['teamSetName'])
                if not team_set:
                    raise BadRequestError('Invalid team set')
            elif granularity == Granularity.TEAM:
                raise BadRequestError('Team assessments require a team set')

            assessment = Assessment(
                course=course.id,
                assessment_type=assessment_type,
                mark_type=record['markType'],
                frequency=record.get('frequency') or "",
                granularity=granularity,
                team_set=team_set.id if team_set else None,
                form_link=record.get('formLink'),
            )
            for result in self._build_results(assessment, course, team_set):
                self._result_repo.save(result)
                assessment.results.append(result.id)
            self._assessment_repo.save(assessment)
            course.add_assessment(assessment.id)
            created.append(assessment)
            logger.info("Created assessment %r with %d results in course %s",
                        assessment_type, len(assessment.results), course.id)

        self._course_repo.save(course)
        return created

    def _build_results(self, assessment: Assessment, course: Course,
                       team_set: Optional[TeamSet]) -> List[Result]:
        teams = self._team_repo.find_by_ids(team_set.teams) if team_set else []

        if assessment.granularity == Granularity.TEAM:
            results = []
            for team in teams:
                marks = [
                    {'user': user.identifier, 'name': user.name, 'mark': 0}
                    for user in self._user_repo.find_by_ids(team.members)
                ]
                results.append(Result(assessment=assessment.id, team=team.id, marker=team.ta, marks=marks))
            return results

        results = []
        for student in self._user_repo.find_by_ids(course.students):
            team = next((t for t in teams if student.id in t.members), None)
            results.append(Result(
                assessment=assessment.id,
                team=team.id if team else None,
                marker=team.ta if team else None,
                marks=[{'user': student.identifier, 'name': student.name, 'mark': 0}],
            ))
        return results

    def upload_assessment_results_by_id(self, assessment_id: str, items: List[Dict[str, Any]]) -> None:
        """Write marks keyed by student identifier; unknown students are ignored."""
        assessment = self._get_assessment(assessment_id)
        marks = {item['studentId']: item['mark'] for item in items}
        for result in self._result_repo.find_by_ids(assessment.results):
            changed = False
            for entry in result.marks:
                if entry['user'] in marks:
                    changed = result.set_mark(entry['user'], marks[entry['user']]) or changed
            if changed:
                self._result_repo.save(result)

    def update_assessment_result_marker_by_id(self, assessment_id: str, result_id: str, marker_id: str) -> None:
        assessment = self._get_assessment(assessment_id)
        result = self._result_repo.find_by_id(result_id)
        if not result or result.assessment != assessment.id:
            raise NotFoundError('Result not found')
        marker = self._user_repo.find_by_id(marker_id)
        if not marker:
            raise NotFoundError('Marker not found')
        result.marker = marker.id
        result.touch()
        self._result_repo.save(result)
