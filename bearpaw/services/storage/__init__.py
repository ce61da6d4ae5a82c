"""
Storage Services Package

Provides the abstract record store interface and its implementations:
Cloud Datastore for production and an in-memory store for tests and
local development.
"""

from bearpaw.services.storage.interface import (
    ConnectionError,
    NotFoundError,
    RecordStoreInterface,
    Row,
    StorageError,
)
from bearpaw.services.storage.memory import InMemoryRecordStore
from bearpaw.services.storage.datastore import (
    DatastoreClient,
    DatastoreRecordStore,
    entity_to_row,
)

__all__ = [
    # Interface
    "RecordStoreInterface",
    "Row",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "DatastoreClient",
    "DatastoreRecordStore",
    "InMemoryRecordStore",
    "entity_to_row",
]
