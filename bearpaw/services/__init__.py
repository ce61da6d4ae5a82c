"""Services package."""

from bearpaw.services.storage import (
    ConnectionError,
    DatastoreClient,
    DatastoreRecordStore,
    InMemoryRecordStore,
    NotFoundError,
    RecordStoreInterface,
    StorageError,
)

__all__ = [
    "ConnectionError",
    "DatastoreClient",
    "DatastoreRecordStore",
    "InMemoryRecordStore",
    "NotFoundError",
    "RecordStoreInterface",
    "StorageError",
]
