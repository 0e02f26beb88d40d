"""
Persistence module for document storage and repositories.
"""

from .database import DatabaseFactory, SQLiteDocumentStore, MongoDocumentStore, document_matches
from .repositories import (
    AccountRepository, UserRepository, CourseRepository, TeamSetRepository,
    TeamRepository, AssessmentRepository, ResultRepository, JiraBoardRepository
)

__all__ = [
    "DatabaseFactory",
    "SQLiteDocumentStore",
    "MongoDocumentStore",
    "document_matches",
    "AccountRepository",
    "UserRepository",
    "CourseRepository",
    "TeamSetRepository",
    "TeamRepository",
    "AssessmentRepository",
    "ResultRepository",
    "JiraBoardRepository",
]
