"""
Abstract Record Store Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Run on Cloud Datastore in production
2. Use in-memory storage for tests and local development
3. Keep repositories and aggregators decoupled from the backend

The interface is intentionally generic: five operations over named
collections ("kinds") of schemaless rows. A row is a plain dict holding
`id` (string) plus the stored properties; no backend key objects or
other store metadata ever appear in it.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


Row = dict[str, Any]


class RecordStoreInterface(ABC):
    """
    Abstract interface for the document store.

    Any storage implementation must implement these methods.
    Identifiers are store-assigned numeric ids, handed out as strings.
    """

    #: Short backend name reported by the health check
    backend_name: str = "unknown"

    @abstractmethod
    async def list(self, kind: str, order_by: str = "created_at") -> list[Row]:
        """
        List every row of a kind.

        Args:
            kind: Collection name
            order_by: Property to sort on, descending

        Returns:
            Rows, newest first by convention

        Raises:
            StorageError: If the query fails
        """
        pass

    @abstractmethod
    async def get(self, kind: str, record_id: str) -> Optional[Row]:
        """
        Retrieve one row by id.

        Returns:
            The row if found, None otherwise (including non-numeric ids)
        """
        pass

    @abstractmethod
    async def create(self, kind: str, data: dict[str, Any]) -> Row:
        """
        Insert a new row.

        Stamps `created_at` (ISO-8601, UTC) and assigns the id.

        Returns:
            The stored row including `id` and `created_at`

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def update(self, kind: str, record_id: str, data: dict[str, Any]) -> None:
        """
        Replace the properties of an existing row.

        Raises:
            NotFoundError: If no row has this id
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete(self, kind: str, record_id: str) -> None:
        """
        Delete a row. Deleting a missing row is not an error.

        Raises:
            StorageError: If the write fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


def parse_numeric_id(record_id: Any) -> Optional[int]:
    """Store ids are positive integers; anything else names no record."""
    try:
        value = int(str(record_id).strip())
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None
