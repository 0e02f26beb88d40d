"""
REST API implementation for the multigit backend using FastAPI.

Handlers translate requests into service calls and service outcomes into
status codes: ``NotFoundError`` becomes 404, ``BadRequestError`` and body
validation failures become 400, anything else is logged and becomes 500
with a generic message.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from fastapi import FastAPI, Body, Header, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .. import __version__
from ..core.enums import Role
from ..core.exceptions import NotFoundError, BadRequestError
from ..core.interfaces import DocumentStore
from ..services import (
    CourseService, TeamSetService, TeamService, AssessmentService,
    AccountService, ProjectManagementService
)
from .schemas import (
    CourseCreate, CourseUpdate, PersonList, TeamSetCreate, TeamMemberList,
    MilestoneCreate, SprintCreate, AssessmentList, ResultList, MarkerUpdate,
    AccountCreate, ApproveRequest, JiraBoardPayload
)


logger = logging.getLogger(__name__)


def _dump(model) -> Dict[str, Any]:
    return model.model_dump(by_alias=True, mode="json")


def _items(model) -> list:
    return [_dump(item) for item in model.items]


def _describe_errors(errors, prefix=()) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in (*prefix, *error['loc']))}: {error['msg']}" for error in errors
    )


def _validate_body(model_class, body: Optional[Dict[str, Any]]):
    """Validate a raw request body inside a handler, after the caller checks."""
    try:
        return model_class.model_validate(body or {})
    except ValidationError as e:
        raise BadRequestError(f"Invalid request: {_describe_errors(e.errors(), ('body',))}")


class MultigitRestAPI:
    """REST API implementation for the course dashboard."""

    def __init__(self, database: DocumentStore, cors_origin: str = "http://localhost:3000"):
        self._database = database

        self._course_service = CourseService(database)
        self._team_set_service = TeamSetService(database)
        self._team_service = TeamService(database)
        self._assessment_service = AssessmentService(database)
        self._account_service = AccountService(database)
        self._project_management_service = ProjectManagementService(database)

        self.app = FastAPI(
            title="Multi-Git Dashboard API",
            description="Course, roster, team and assessment management for teaching staff",
            version=__version__,
            docs_url="/docs",
            redoc_url="/redoc"
        )

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=[cors_origin],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        self._setup_error_handlers()
        self._setup_routes()
        self._setup_course_routes()
        self._setup_assessment_routes()
        self._setup_team_routes()
        self._setup_account_routes()

    @staticmethod
    def _require_account(authorization: Optional[str]) -> str:
        if not authorization:
            raise BadRequestError('Missing authorization')
        return authorization

    @staticmethod
    def _error_response(error: Exception, failure_message: str) -> JSONResponse:
        """Map a service error to a JSON error response."""
        if isinstance(error, NotFoundError):
            return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": error.message})
        if isinstance(error, BadRequestError):
            return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": error.message})
        logger.error("%s: %s", failure_message, error, exc_info=error)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": failure_message})

    def _setup_error_handlers(self):
        @self.app.exception_handler(RequestValidationError)
        async def validation_error(request: Request, exc: RequestValidationError):
            problems = _describe_errors(exc.errors())
            return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": f"Invalid request: {problems}"})

    def _setup_routes(self):
        """Setup service routes."""

        @self.app.get("/", response_model=Dict[str, str])
        def root():
            """Root endpoint."""
            return {
                "message": "Multi-Git Dashboard API",
                "version": __version__,
                "docs": "/docs"
            }

        @self.app.get("/health", response_model=Dict[str, str])
        def health_check():
            """Health check endpoint."""
            return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}

    def _setup_course_routes(self):
        """Setup /api/courses routes."""

        @self.app.post("/api/courses", status_code=status.HTTP_201_CREATED)
        def create_course(course_data: Optional[Dict[str, Any]] = Body(None),
                          authorization: Optional[str] = Header(None)):
            """Create a course with the caller as faculty."""
            try:
                account_id = self._require_account(authorization)
                course = self._course_service.create_new_course(
                    _dump(_validate_body(CourseCreate, course_data)), account_id
                )
                return {"message": "Course created successfully", "_id": course.id}
            except Exception as e:
                return self._error_response(e, "Failed to create course")

        @self.app.get("/api/courses")
        def get_courses(authorization: Optional[str] = Header(None)):
            """List the caller's courses."""
            try:
                account_id = self._require_account(authorization)
                return self._course_service.get_courses_for_user(account_id)
            except Exception as e:
                return self._error_response(e, "Failed to fetch courses")

        @self.app.get("/api/courses/{course_id}")
        def get_course(course_id: str, authorization: Optional[str] = Header(None)):
            """Get a fully populated course, scoped to the caller's role."""
            try:
                account_id = self._require_account(authorization)
                return self._course_service.get_course_by_id(course_id, account_id)
            except Exception as e:
                return self._error_response(e, "Failed to fetch course")

        @self.app.put("/api/courses/{course_id}")
        def update_course(course_id: str, update_data: CourseUpdate):
            try:
                self._course_service.update_course_by_id(course_id, _dump(update_data))
                return {"message": "Course updated successfully"}
            except Exception as e:
                return self._error_response(e, "Failed to update course")

        @self.app.delete("/api/courses/{course_id}")
        def delete_course(course_id: str):
            try:
                self._course_service.delete_course_by_id(course_id)
                return {"message": "Course deleted successfully"}
            except Exception as e:
                return self._error_response(e, "Failed to delete course")

        @self.app.get("/api/courses/{course_id}/code")
        def get_course_code(course_id: str):
            try:
                return self._course_service.get_course_code_by_id(course_id)
            except Exception as e:
                return self._error_response(e, "Failed to fetch course code")

        # Roster

        @self.app.post("/api/courses/{course_id}/students")
        def add_students(course_id: str, students: PersonList):
            try:
                self._course_service.add_students_to_course(course_id, _items(students))
                return {"message": "Students added to the course successfully"}
            except Exception as e:
                return self._error_response(e, "Failed to add students")

        @self.app.delete("/api/courses/{course_id}/students/{student_id}")
        def remove_student(course_id: str, student_id: str):
            try:
                self._course_service.remove_students_from_course(course_id, student_id)
                return {"message": "Student removed from the course successfully"}
            except Exception as e:
                return self._error_response(e, "Failed to remove student")

        @self.app.post("/api/courses/{course_id}/tas")
        def add_tas(course_id: str, tas: PersonList):
            try:
                self._course_service.add_tas_to_course(course_id, _items(tas))
                return {"message": "TAs added to the course successfully"}
            except Exception as e:
                return self._error_response(e, "Failed to add TAs")

        @self.app.delete("/api/courses/{course_id}/tas/{ta_id}")
        def remove_ta(course_id: str, ta_id: str):
            try:
                self._course_service.remove_tas_from_course(course_id, ta_id)
                return {"message": "TA removed from the course successfully"}
            except Exception as e:
                return self._error_response(e, "Failed to remove TA")

        @self.app.post("/api/courses/{course_id}/faculty")
        def add_faculty(course_id: str, faculty: PersonList):
            try:
                self._course_service.add_faculty_to_course(course_id, _items(faculty))
                return {"message": "Faculty added to the course successfully"}
            except Exception as e:
                return self._error_response(e, "Failed to add faculty")

        @self.app.delete("/api/courses/{course_id}/faculty/{faculty_id}")
        def remove_faculty(course_id: str, faculty_id: str):
            try:
                self._course_service.remove_faculty_from_course(course_id, faculty_id)
                return {"message": "Faculty removed from the course successfully"}
            except Exception as e:
                return self._error_response(e, "Failed to remove faculty")

        @self.app.get("/api/courses/{course_id}/teachingteam")
        def get_teaching_team(course_id: str):
            try:
                return self._course_service.get_course_teaching_team(course_id)
            except Exception as e:
                return self._error_response(e, "Failed to retrieve teaching team")

        @self.app.get("/api/courses/{course_id}/people")
        def get_people(course_id: str):
            try:
                return self._course_service.get_people_from_course(course_id)
            except Exception as e:
                return self._error_response(e, "Failed to retrieve people")

        # Team-sets and teams

        @self.app.get("/api/courses/{course_id}/teamsets")
        def get_team_sets(course_id: str):
            try:
                return self._course_service.get_team_sets_from_course(course_id)
            except Exception as e:
                return self._error_response(e, "Failed to fetch team sets")

        @self.app.get("/api/courses/{course_id}/teamsetnames")
        def get_team_set_names(course_id: str):
            try:
                return self._course_service.get_team_set_names_from_course(course_id)
            except Exception as e:
                return self._error_response(e, "Failed to fetch team set names")

        @self.app.post("/api/courses/{course_id}/teamsets", status_code=status.HTTP_201_CREATED)
        def add_team_set(course_id: str, team_set: TeamSetCreate):
            try:
                self._team_set_service.create_team_set(course_id, team_set.name)
                return {"message": "Team set created successfully"}
            except Exception as e:
                return self._error_response(e, "Failed to create team set")

        @self.app.post("/api/courses/{course_id}/teams/students")
        def add_students_to_teams(course_id: str, records: TeamMemberList):
            try:
                self._team_service.add_students_to_team(course_id, _items(records))
                return {"message": "Students added to teams successfully"}
            except Exception as e:
                return self._error_response(e, "Failed to add students to teams")

        @self.app.post("/api/courses/{course_id}/teams/tas")
        def add_tas_to_teams(course_id: str, records: TeamMemberList):
            try:
                self._team_service.add_tas_to_team(course_id, _items(records))
                return {"message": "TAs added to teams successfully"}
            except Exception as e:
                return self._error_response(e, "Failed to add TAs to teams")

        # Timeline

        @self.app.post("/api/courses/{course_id}/milestones", status_code=status.HTTP_201_CREATED)
        def add_milestone(course_id: str, milestone: MilestoneCreate):
            try:
                self._course_service.add_milestone_to_course(course_id, _dump(milestone))
                return {"message": "Milestone added successfully"}
            except Exception as e:
                return self._error_response(e, "Failed to add milestone")

        @self.app.post("/api/courses/{course_id}/sprints", status_code=status.HTTP_201_CREATED)
        def add_sprint(course_id: str, sprint: SprintCreate):
            try:
                self._course_service.add_sprint_to_course(course_id, _dump(sprint))
                return {"message": "Sprint added successfully"}
            except Exception as e:
                return self._error_response(e, "Failed to add sprint")

        # Assessments

        @self.app.get("/api/courses/{course_id}/assessments")
        def get_assessments(course_id: str):
            try:
                return self._course_service.get_assessments_from_course(course_id)
            except Exception as e:
                return self._error_response(e, "Failed to fetch assessments")

        @self.app.post("/api/courses/{course_id}/assessments", status_code=status.HTTP_201_CREATED)
        def add_assessments(course_id: str, assessments: AssessmentList):
            try:
                self._assessment_service.add_assessments_to_course(course_id, _items(assessments))
                return {"message": "Assessments added successfully"}
            except Exception as e:
                return self._error_response(e, "Failed to add assessments")

    def _setup_assessment_routes(self):
        """Setup /api/assessments routes."""

        @self.app.get("/api/assessments/{assessment_id}")
        def get_assessment(assessment_id: str, authorization: Optional[str] = Header(None)):
            try:
                return self._assessment_service.get_assessment_by_id(assessment_id, authorization)
            except Exception as e:
                return self._error_response(e, "Failed to retrieve assessment")

        @self.app.post("/api/assessments/{assessment_id}/results")
        def upload_results(assessment_id: str, results: ResultList):
            try:
                self._assessment_service.upload_assessment_results_by_id(assessment_id, _items(results))
                return {"message": "Results uploaded successfully"}
            except Exception as e:
                return self._error_response(e, "Failed to upload results")

        @self.app.patch("/api/assessments/{assessment_id}/results/{result_id}/marker")
        def update_result_marker(assessment_id: str, result_id: str, marker: MarkerUpdate):
            try:
                self._assessment_service.update_assessment_result_marker_by_id(
                    assessment_id, result_id, marker.marker_id
                )
                return {"message": "Marker updated successfully"}
            except Exception as e:
                return self._error_response(e, "Failed to update marker")

    def _setup_team_routes(self):
        """Setup /api/teamsets and /api/teams routes."""

        @self.app.delete("/api/teamsets/{team_set_id}")
        def delete_team_set(team_set_id: str):
            try:
                self._team_set_service.delete_team_set(team_set_id)
                return {"message": "Team set deleted successfully"}
            except Exception as e:
                return self._error_response(e, "Failed to delete team set")

        @self.app.delete("/api/teams/{team_id}")
        def delete_team(team_id: str):
            try:
                self._team_service.delete_team_by_id(team_id)
                return {"message": "Team deleted successfully"}
            except Exception as e:
                return self._error_response(e, "Failed to delete team")

        @self.app.delete("/api/teams/{team_id}/members/{user_id}")
        def remove_team_member(team_id: str, user_id: str):
            try:
                self._team_service.remove_member_by_id(team_id, user_id)
                return {"message": "Member removed from team successfully"}
            except Exception as e:
                return self._error_response(e, "Failed to remove team member")

        @self.app.put("/api/teams/{team_id}/jira")
        def set_jira_board(team_id: str, board: JiraBoardPayload):
            try:
                saved = self._team_service.set_jira_board(team_id, _dump(board))
                return {"message": "Jira board saved successfully", "_id": saved.id}
            except Exception as e:
                return self._error_response(e, "Failed to save Jira board")

        @self.app.get("/api/teams/{team_id}/project-management")
        def get_project_management(
            team_id: str,
            hours_per_story_point: int = Query(4, ge=1, alias="hoursPerStoryPoint"),
        ):
            """Jira-derived sprint board, assignee statistics and velocity of a team."""
            try:
                return self._project_management_service.get_team_summary(team_id, hours_per_story_point)
            except Exception as e:
                return self._error_response(e, "Failed to fetch project management data")

    def _setup_account_routes(self):
        """Setup /api/accounts routes."""

        @self.app.post("/api/accounts", status_code=status.HTTP_201_CREATED)
        def register_account(account_data: AccountCreate):
            try:
                account = self._account_service.register_account(
                    account_data.identifier, account_data.name, account_data.email, Role(account_data.role)
                )
                return {"message": "Account created successfully", "_id": account.id, "user": account.user}
            except Exception as e:
                return self._error_response(e, "Failed to create account")

        @self.app.get("/api/accounts/pending")
        def get_pending_accounts():
            try:
                return self._account_service.get_pending_accounts()
            except Exception as e:
                return self._error_response(e, "Failed to fetch pending accounts")

        @self.app.patch("/api/accounts/approve")
        def approve_accounts(request: ApproveRequest):
            try:
                self._account_service.approve_accounts(request.ids)
                return {"message": "Accounts approved successfully"}
            except Exception as e:
                return self._error_response(e, "Failed to approve accounts")
