"""
Core interfaces and abstract base classes for the multigit backend.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, TypeVar, Generic


T = TypeVar('T')


class Repository(ABC, Generic[T]):
    """Abstract base class for repositories."""

    @abstractmethod
    def save(self, entity: T) -> T:
        """Save an entity."""
        pass

    @abstractmethod
    def find_by_id(self, entity_id: str) -> Optional[T]:
        """Find entity by ID."""
        pass

    @abstractmethod
    def find_all(self, filters: Optional[Dict[str, Any]] = None) -> List[T]:
        """Find all entities matching filters."""
        pass

    @abstractmethod
    def delete(self, entity_id: str) -> bool:
        """Delete an entity by ID."""
        pass


class DocumentStore(ABC):
    """Abstract base class for document stores.

    Documents are plain dicts keyed by ``_id``. Filters use the subset of
    MongoDB query syntax the repositories need: field equality (a list
    field matches when it contains the value), ``$in`` and ``$or``.
    """

    @abstractmethod
    def save(self, collection: str, document: Dict[str, Any]) -> None:
        """Insert or replace a document by its ``_id``."""
        pass

    @abstractmethod
    def find_by_id(self, collection: str, document_id: str) -> Optional[Dict[str, Any]]:
        """Get a document by ``_id``."""
        pass

    @abstractmethod
    def find(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Get all documents matching filters, in insertion order."""
        pass

    @abstractmethod
    def delete(self, collection: str, document_id: str) -> bool:
        """Delete a document by ``_id``."""
        pass

    @abstractmethod
    def delete_many(self, collection: str, filters: Dict[str, Any]) -> int:
        """Delete all documents matching filters and return how many."""
        pass

    @abstractmethod
    def count(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> int:
        """Count documents matching filters."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Release connections."""
        pass
