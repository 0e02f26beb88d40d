"""
API module for the REST implementation.
"""

from .rest_api import MultigitRestAPI

__all__ = [
    "MultigitRestAPI",
]
