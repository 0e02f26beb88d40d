"""
Core module containing the domain model and base classes.
"""

from .entities import *
from .interfaces import *
from .exceptions import *
from .enums import *

__all__ = [
    # Entities
    "AbstractEntity",
    "Account",
    "User",
    "Course",
    "Milestone",
    "Sprint",
    "TeamSet",
    "Team",
    "Assessment",
    "Result",
    "JiraBoard",

    # Interfaces
    "Repository",
    "DocumentStore",

    # Enums
    "Role",
    "Granularity",
    "SprintState",

    # Exceptions
    "MultigitException",
    "NotFoundError",
    "BadRequestError",
    "PersistenceError",
    "ConfigurationError",
]
