"""
Enumerations and constants for the multigit backend.
"""

from enum import Enum


class Role(Enum):
    """Account roles."""
    STUDENT = "Student"
    TA = "Teaching assistant"
    FACULTY = "Faculty member"
    ADMIN = "admin"


class Granularity(Enum):
    """Whether an assessment is marked per student or per team."""
    INDIVIDUAL = "individual"
    TEAM = "team"


class SprintState(Enum):
    """Jira sprint states."""
    ACTIVE = "active"
    CLOSED = "closed"
    FUTURE = "future"
