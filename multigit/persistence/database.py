"""
Document store backends and connection handling.

Two backends share the ``DocumentStore`` interface: MongoDB for deployments
and a SQLite table of JSON documents for local development and tests.
"""

import json
import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pymongo import MongoClient
from pymongo.errors import PyMongoError

from ..core.interfaces import DocumentStore
from ..core.exceptions import PersistenceError, ConfigurationError


logger = logging.getLogger(__name__)


def document_matches(document: Dict[str, Any], filters: Optional[Dict[str, Any]]) -> bool:
    """Evaluate a MongoDB-style filter against a document.

    Supports field equality (array fields match on containment), ``$in``
    and ``$or``, which is what the repositories issue.
    """
    if not filters:
        return True
    for key, condition in filters.items():
        if key == "$or":
            if not any(document_matches(document, sub) for sub in condition):
                return False
            continue
        value = document.get(key)
        if isinstance(condition, dict) and "$in" in condition:
            candidates = condition["$in"]
            if isinstance(value, list):
                if not any(v in candidates for v in value):
                    return False
            elif value not in candidates:
                return False
        elif isinstance(value, list):
            if condition not in value:
                return False
        elif value != condition:
            return False
    return True


class SQLiteDocumentStore(DocumentStore):
    """SQLite implementation storing each document as a JSON row."""

    def __init__(self, database_path: str = "multigit.db"):
        self._database_path = database_path
        self._lock = threading.RLock()
        self._initialize_database()

    def _initialize_database(self) -> None:
        """Create the documents table."""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS documents (
                    id TEXT NOT NULL,
                    collection TEXT NOT NULL,
                    data TEXT NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (collection, id)
                )
            """)
            conn.commit()

    @contextmanager
    def _get_connection(self):
        """Get database connection with proper cleanup."""
        conn = None
        try:
            conn = sqlite3.connect(self._database_path, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            yield conn
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            raise PersistenceError(f"Database error: {str(e)}")
        finally:
            if conn:
                conn.close()

    def save(self, collection: str, document: Dict[str, Any]) -> None:
        """Insert or replace a document by its ``_id``."""
        now = datetime.now(timezone.utc).isoformat()
        data = json.dumps(document)
        with self._lock, self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE documents SET data = ?, updated_at = ? WHERE collection = ? AND id = ?",
                (data, now, collection, document["_id"]),
            )
            if cursor.rowcount == 0:
                cursor.execute(
                    "INSERT INTO documents (id, collection, data, created_at, updated_at) VALUES (?, ?, ?, ?, ?)",
                    (document["_id"], collection, data, now, now),
                )
            conn.commit()

    def find_by_id(self, collection: str, document_id: str) -> Optional[Dict[str, Any]]:
        """Get a document by ``_id``."""
        with self._lock, self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT data FROM documents WHERE collection = ? AND id = ?",
                (collection, document_id),
            )
            row = cursor.fetchone()
            return json.loads(row["data"]) if row else None

    def find(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Get all documents matching filters, in insertion order."""
        with self._lock, self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT data FROM documents WHERE collection = ? ORDER BY rowid",
                (collection,),
            )
            documents = [json.loads(row["data"]) for row in cursor.fetchall()]
        return [doc for doc in documents if document_matches(doc, filters)]

    def delete(self, collection: str, document_id: str) -> bool:
        """Delete a document by ``_id``."""
        with self._lock, self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "DELETE FROM documents WHERE collection = ? AND id = ?",
                (collection, document_id),
            )
            conn.commit()
            return cursor.rowcount > 0

    def delete_many(self, collection: str, filters: Dict[str, Any]) -> int:
        """Delete all documents matching filters and return how many."""
        with self._lock:
            ids = [doc["_id"] for doc in self.find(collection, filters)]
            if not ids:
                return 0
            with self._get_connection() as conn:
                cursor = conn.cursor()
                cursor.executemany(
                    "DELETE FROM documents WHERE collection = ? AND id = ?",
                    [(collection, document_id) for document_id in ids],
                )
                conn.commit()
            return len(ids)

    def count(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> int:
        """Count documents matching filters."""
        return len(self.find(collection, filters))

    def close(self) -> None:
        """Connections are per operation; nothing to release."""
        pass


class MongoDocumentStore(DocumentStore):
    """MongoDB implementation backed by a shared ``MongoClient``."""

    def __init__(self, uri: str, database_name: str = "multigit", client: Optional[MongoClient] = None):
        if not uri and client is None:
            raise ConfigurationError("MONGODB_URI is required for the mongodb backend")
        self._client = client or MongoClient(uri)
        self._db = self._client[database_name]
        self._ensure_indexes()

    def _ensure_indexes(self) -> None:
        try:
            self._db["users"].create_index("identifier", unique=True)
            self._db["accounts"].create_index("user")
        except PyMongoError as e:
            raise PersistenceError(f"Failed to create indexes: {str(e)}")

    def save(self, collection: str, document: Dict[str, Any]) -> None:
        try:
            self._db[collection].replace_one({"_id": document["_id"]}, document, upsert=True)
        except PyMongoError as e:
            raise PersistenceError(f"Failed to save to {collection}: {str(e)}")

    def find_by_id(self, collection: str, document_id: str) -> Optional[Dict[str, Any]]:
        try:
            return self._db[collection].find_one({"_id": document_id})
        except PyMongoError as e:
            raise PersistenceError(f"Failed to read from {collection}: {str(e)}")

    def find(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        try:
            return list(self._db[collection].find(filters or {}))
        except PyMongoError as e:
            raise PersistenceError(f"Failed to query {collection}: {str(e)}")

    def delete(self, collection: str, document_id: str) -> bool:
        try:
            return self._db[collection].delete_one({"_id": document_id}).deleted_count > 0
        except PyMongoError as e:
            raise PersistenceError(f"Failed to delete from {collection}: {str(e)}")

    def delete_many(self, collection: str, filters: Dict[str, Any]) -> int:
        try:
            return self._db[collection].delete_many(filters).deleted_count
        except PyMongoError as e:
            raise PersistenceError(f"Failed to delete from {collection}: {str(e)}")

    def count(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> int:
        try:
            return self._db[collection].count_documents(filters or {})
        except PyMongoError as e:
            raise PersistenceError(f"Failed to count {collection}: {str(e)}")

    def close(self) -> None:
        self._client.close()


class DatabaseFactory:
    """Factory for creating document store instances."""

    @staticmethod
    def create_database(database_type: str, **kwargs) -> DocumentStore:
        """Create a document store based on type."""
        if database_type.lower() == "sqlite":
            logger.info("Using SQLite document store at %s", kwargs.get("database_path", "multigit.db"))
            return SQLiteDocumentStore(**kwargs)
        elif database_type.lower() == "mongodb":
            logger.info("Using MongoDB document store, database %s", kwargs.get("database_name", "multigit"))
            return MongoDocumentStore(**kwargs)
        else:
            raise ConfigurationError(f"Unsupported database type: {database_type}")
