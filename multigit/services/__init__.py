"""
Services module containing the application use cases.
"""

from .course_service import CourseService
from .team_set_service import TeamSetService
from .team_service import TeamService
from .assessment_service import AssessmentService
from .account_service import AccountService
from .project_management import ProjectManagementService

__all__ = [
    "CourseService",
    "TeamSetService",
    "TeamService",
    "AssessmentService",
    "AccountService",
    "ProjectManagementService",
]
