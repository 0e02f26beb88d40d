"""
Request bodies accepted by the REST API.

Field aliases follow the camelCase names the dashboard frontend sends;
services receive ``model_dump(by_alias=True, mode="json")`` dicts.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


EMAIL_PATTERN = r'^[^@]+@[^@]+\.[^@]+$'


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Read unzoned timestamps as UTC so mixed inputs stay comparable."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CourseCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    code: str = Field(..., min_length=1, max_length=20)
    semester: str = Field("", max_length=50)
    start_date: Optional[datetime] = Field(None, alias="startDate")
    duration_weeks: Optional[int] = Field(None, ge=1, le=52, alias="durationWeeks")


class CourseUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    code: Optional[str] = Field(None, min_length=1, max_length=20)
    semester: Optional[str] = Field(None, max_length=50)
    start_date: Optional[datetime] = Field(None, alias="startDate")
    duration_weeks: Optional[int] = Field(None, ge=1, le=52, alias="durationWeeks")


class PersonRecord(CamelModel):
    identifier: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    email: str = Field(..., pattern=EMAIL_PATTERN)
    git_handle: Optional[str] = Field(None, alias="gitHandle")


class PersonList(CamelModel):
    items: List[PersonRecord]


class TeamSetCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)


class TeamMemberRecord(CamelModel):
    identifier: str = Field(..., min_length=1)
    team_set: str = Field(..., min_length=1, alias="teamSet")
    team_number: int = Field(..., ge=1, alias="teamNumber")


class TeamMemberList(CamelModel):
    items: List[TeamMemberRecord]


class MilestoneCreate(CamelModel):
    number: int = Field(..., ge=1)
    dateline: datetime
    description: str = ""


class SprintCreate(CamelModel):
    number: int = Field(..., ge=1)
    start_date: datetime = Field(..., alias="startDate")
    end_date: datetime = Field(..., alias="endDate")
    description: str = ""

    @field_validator("start_date", "end_date")
    @classmethod
    def utc_dates(cls, value: datetime) -> datetime:
        return as_utc(value)

    @model_validator(mode="after")
    def check_dates(self) -> "SprintCreate":
        if self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self


class AssessmentRecord(CamelModel):
    assessment_type: str = Field(..., min_length=1, alias="assessmentType")
    mark_type: str = Field(..., min_length=1, alias="markType")
    frequency: str = ""
    granularity: Literal["individual", "team"]
    team_set_name: Optional[str] = Field(None, alias="teamSetName")
    form_link: Optional[str] = Field(None, alias="formLink")


class AssessmentList(CamelModel):
    items: List[AssessmentRecord]


class ResultItem(CamelModel):
    student_id: str = Field(..., min_length=1, alias="studentId")
    mark: float


class ResultList(CamelModel):
    items: List[ResultItem]


class MarkerUpdate(CamelModel):
    marker_id: str = Field(..., min_length=1, alias="markerId")


class AccountCreate(CamelModel):
    identifier: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    email: str = Field(..., pattern=EMAIL_PATTERN)
    role: Literal["Student", "Teaching assistant", "Faculty member", "admin"]


class ApproveRequest(CamelModel):
    ids: List[str] = Field(..., min_length=1)


class JiraLocation(CamelModel):
    project_name: str = Field(..., alias="projectName")


class JiraColumn(CamelModel):
    name: str


class JiraSprint(CamelModel):
    name: str
    state: Literal["active", "closed", "future"]
    start_date: Optional[datetime] = Field(None, alias="startDate")
    end_date: Optional[datetime] = Field(None, alias="endDate")
    jira_issues: List[Dict[str, Any]] = Field(default_factory=list, alias="jiraIssues")

    @field_validator("start_date", "end_date")
    @classmethod
    def utc_dates(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)


class JiraBoardPayload(CamelModel):
    jira_location: JiraLocation = Field(..., alias="jiraLocation")
    columns: List[JiraColumn] = Field(default_factory=list)
    jira_sprints: List[JiraSprint] = Field(default_factory=list, alias="jiraSprints")
