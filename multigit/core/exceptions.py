"""
Custom exceptions for the multigit backend.
"""

from typing import Optional, Any, Dict


class MultigitException(Exception):
    """Base exception for all multigit-related errors."""

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class NotFoundError(MultigitException):
    """Raised when a referenced document does not exist."""
    pass


class BadRequestError(MultigitException):
    """Raised when request input is missing or malformed."""
    pass


class PersistenceError(MultigitException):
    """Raised when document store operations fail."""
    pass


class ConfigurationError(MultigitException):
    """Raised when configuration is invalid."""
    pass
