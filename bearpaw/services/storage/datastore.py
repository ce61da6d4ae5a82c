"""
Cloud Datastore Storage Implementation

DESIGN DECISION: Cloud Datastore is the production backend because:
1. It is schemaless; each collection is just a "kind"
2. It assigns numeric ids, which is the identity the API exposes
3. It is free at cabin scale and needs no server to babysit

TRADEOFFS:
- No transactions across kinds (read skew between collections is accepted)
- Queries are simple; all filtering happens in Python
- The client library is blocking, so every call is moved off the event
  loop with asyncio.to_thread

The implementation follows the abstract interface, so repositories and
aggregators never see a Datastore key or entity.
"""

import asyncio
import os
from datetime import datetime, timezone
from typing import Any, Optional

from google.auth.credentials import AnonymousCredentials, Credentials
from google.cloud import datastore
from google.oauth2 import service_account
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from bearpaw.config import DatastoreSettings, get_settings
from bearpaw.services.storage.interface import (
    ConnectionError,
    NotFoundError,
    RecordStoreInterface,
    Row,
    StorageError,
    parse_numeric_id,
)


DATASTORE_SCOPES = ["https://www.googleapis.com/auth/datastore"]

# Writes are retried; a missing record is an answer, not a fault
_write_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_not_exception_type(NotFoundError),
    reraise=True,
)


def entity_to_row(entity: datastore.Entity) -> Row:
    """
    Convert a Datastore entity into a plain row.

    The key is reduced to its id (or name, for hand-made keys) and
    nothing else of it survives.
    """
    key = entity.key
    identifier = key.id if key.id is not None else key.name
    row = dict(entity.items())
    row["id"] = str(identifier)
    return row


class DatastoreClient:
    """
    Low-level Datastore client wrapper.

    Handles authentication and provides retry logic for connecting.
    """

    def __init__(self, settings: Optional[DatastoreSettings] = None):
        self._client: Optional[datastore.Client] = None
        self._settings = settings or get_settings().datastore

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> datastore.Client:
        """
        Establish the Datastore client.

        Uses, in order: the emulator (anonymous), an explicit service
        account file, or the ambient application default credentials.
        """
        if self._client is None:
            try:
                self._client = datastore.Client(
                    project=self._settings.project_id,
                    namespace=self._settings.namespace,
                    credentials=self._load_credentials(),
                )
            except FileNotFoundError:
                raise ConnectionError(
                    f"Datastore credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Datastore: {e}") from e

        return self._client

    def _load_credentials(self) -> Optional[Credentials]:
        if self._settings.emulator_host:
            os.environ.setdefault("DATASTORE_EMULATOR_HOST", self._settings.emulator_host)
            return AnonymousCredentials()
        if self._settings.credentials_path:
            return service_account.Credentials.from_service_account_file(
                self._settings.credentials_path,
                scopes=DATASTORE_SCOPES,
            )
        return None


class DatastoreRecordStore(RecordStoreInterface):
    """
    Datastore implementation of the record store.

    One kind per collection, one entity per record, numeric ids
    allocated by Datastore.
    """

    backend_name = "datastore"

    def __init__(self, client: Optional[DatastoreClient] = None):
        self._client = client or DatastoreClient()

    def _key(self, kind: str, record_id: Any) -> Optional[datastore.Key]:
        numeric_id = parse_numeric_id(record_id)
        if numeric_id is None:
            return None
        return self._client.connect().key(kind, numeric_id)

    # -- blocking operations (run in a worker thread) -------------------------

    def _list_sync(self, kind: str, order_by: str) -> list[Row]:
        query = self._client.connect().query(kind=kind)
        query.order = [f"-{order_by}"]
        return [entity_to_row(entity) for entity in query.fetch()]

    def _get_sync(self, kind: str, record_id: str) -> Optional[Row]:
        key = self._key(kind, record_id)
        if key is None:
            return None
        entity = self._client.connect().get(key)
        return entity_to_row(entity) if entity is not None else None

    @_write_retry
    def _put_sync(self, key: datastore.Key, data: dict[str, Any]) -> None:
        entity = datastore.Entity(key=key)
        entity.update(data)
        self._client.connect().put(entity)

    def _create_sync(self, kind: str, data: dict[str, Any]) -> Row:
        client = self._client.connect()
        # Allocating first gives a complete key, so a retried put cannot
        # create a second entity
        key = client.allocate_ids(client.key(kind), 1)[0]
        record = {**data, "created_at": datetime.now(timezone.utc).isoformat()}
        self._put_sync(key, record)
        return {"id": str(key.id), **record}

    def _update_sync(self, kind: str, record_id: str, data: dict[str, Any]) -> None:
        key = self._key(kind, record_id)
        if key is None or self._client.connect().get(key) is None:
            raise NotFoundError(f"{kind} record not found: {record_id}")
        stored = dict(data)
        stored.pop("id", None)
        self._put_sync(key, stored)

    @_write_retry
    def _delete_sync(self, kind: str, record_id: str) -> None:
        key = self._key(kind, record_id)
        if key is not None:
            self._client.connect().delete(key)

    # -- interface --------------------------------------------------------------

    async def list(self, kind: str, order_by: str = "created_at") -> list[Row]:
        """List every entity of a kind, newest first."""
        try:
            return await asyncio.to_thread(self._list_sync, kind, order_by)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list {kind}: {e}") from e

    async def get(self, kind: str, record_id: str) -> Optional[Row]:
        """Retrieve an entity by id."""
        try:
            return await asyncio.to_thread(self._get_sync, kind, record_id)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to get {kind} {record_id}: {e}") from e

    async def create(self, kind: str, data: dict[str, Any]) -> Row:
        """Insert a new entity with a Datastore-allocated id."""
        try:
            return await asyncio.to_thread(self._create_sync, kind, data)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to create {kind}: {e}") from e

    async def update(self, kind: str, record_id: str, data: dict[str, Any]) -> None:
        """Replace an existing entity's properties."""
        try:
            await asyncio.to_thread(self._update_sync, kind, record_id, data)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update {kind} {record_id}: {e}") from e

    async def delete(self, kind: str, record_id: str) -> None:
        """Delete an entity; missing entities are ignored."""
        try:
            await asyncio.to_thread(self._delete_sync, kind, record_id)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete {kind} {record_id}: {e}") from e
