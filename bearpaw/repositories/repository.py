"""
Resource Repositories

A repository binds one collection of the record store to its pydantic
models. It is the validation boundary in both directions:

- Writes are validated against the collection's `Fields` model, so
  nothing untyped reaches the store.
- Reads are validated against the collection's record model, so
  nothing untyped reaches the aggregators. Rows that cannot be read are
  skipped and logged rather than failing the whole list.

Store errors are logged and re-raised unchanged; there is no retry at
this layer.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Generic, Mapping, Optional, TypeVar, Union

from pydantic import ValidationError

from bearpaw.audit import AuditLogger
from bearpaw.models.items import (
    COLLECTION_MODELS,
    BudgetItem,
    Collection,
    IdeasItem,
    InventoryItem,
    ItemFields,
    MovieGameItem,
    NeedsItem,
    StoredRecord,
    ToolItem,
)
from bearpaw.services.storage import (
    NotFoundError,
    RecordStoreInterface,
    Row,
    StorageError,
)


RecordT = TypeVar("RecordT", bound=StoredRecord)

# Fields a client can never set directly
_SERVER_FIELDS = frozenset({"id", "created_at"})

_STAND_IN_DATE = date(2000, 1, 1)


class Repository(Generic[RecordT]):
    """
    Typed CRUD access to one collection.

    `list()` returns records newest first, as the store orders them;
    callers that need another order must sort for themselves.
    """

    def __init__(
        self,
        store: RecordStoreInterface,
        collection: Collection,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._collection = Collection(collection)
        self._record_model, self._fields_model = COLLECTION_MODELS[self._collection]
        self._audit = audit_logger or AuditLogger()

    @property
    def kind(self) -> str:
        return self._collection.value

    @property
    def fields_model(self) -> type[ItemFields]:
        return self._fields_model

    @property
    def record_model(self) -> type[StoredRecord]:
        return self._record_model

    def _to_record(self, row: Row) -> Optional[RecordT]:
        """Validate a stored row, or log and drop it."""
        try:
            return self._record_model.model_validate(row)
        except ValidationError as e:
            self._audit.log_record_rejected(
                kind=self.kind,
                record_id=str(row.get("id")) if row.get("id") is not None else None,
                error_message=str(e),
            )
            return None

    def _validate_fields(self, data: Union[ItemFields, Mapping[str, Any]]) -> ItemFields:
        if isinstance(data, self._fields_model):
            return data
        if isinstance(data, ItemFields):
            data = data.model_dump()
        payload = {k: v for k, v in dict(data).items() if k not in _SERVER_FIELDS}
        return self._fields_model.model_validate(payload)

    async def list(self) -> "list[RecordT]":
        """
        List every readable record of this collection.

        Raises:
            StorageError: If the store query fails
        """
        try:
            rows = await self._store.list(self.kind)
        except StorageError as e:
            self._audit.log_storage_error("list", self.kind, str(e))
            raise

        records = []
        for row in rows:
            record = self._to_record(row)
            if record is not None:
                records.append(record)
        return records

    async def get(self, record_id: str) -> Optional[RecordT]:
        """Return the record, or None if it is missing or unreadable."""
        try:
            row = await self._store.get(self.kind, record_id)
        except StorageError as e:
            self._audit.log_storage_error("get", self.kind, str(e), record_id=record_id)
            raise

        if row is None:
            return None
        return self._to_record(row)

    async def create(self, data: Union[ItemFields, Mapping[str, Any]]) -> RecordT:
        """
        Validate and insert a new record.

        Returns:
            The stored record, with its assigned id and created_at

        Raises:
            ValidationError: If the payload has the wrong types
            StorageError: If the write fails
        """
        fields = self._validate_fields(data)
        try:
            row = await self._store.create(self.kind, fields.to_store())
        except StorageError as e:
            self._audit.log_storage_error("create", self.kind, str(e))
            raise

        record = self._record_model.model_validate(row)
        self._audit.log_record_created(self.kind, record.id)
        return record

    async def update(self, record_id: str, changes: Mapping[str, Any]) -> None:
        """
        Merge `changes` into an existing record.

        The stored record is read, the changes overlaid, and the result
        re-validated as a whole before it is written back with its
        original created_at. A stored date that never parsed keeps its
        raw text unless the change sets that field or normalisation
        clears it.

        Raises:
            NotFoundError: If the record does not exist
            ValidationError: If the merged record has the wrong types
            StorageError: If the write fails
        """
        try:
            row = await self._store.get(self.kind, record_id)
        except StorageError as e:
            self._audit.log_storage_error("get", self.kind, str(e), record_id=record_id)
            raise
        if row is None:
            raise NotFoundError(f"{self.kind} record not found: {record_id}")

        writable = set(self._fields_model.model_fields)
        malformed: dict[str, str] = {}
        try:
            # Through the record model, so stored garbage dates do not
            # block an unrelated edit
            stored_record = self._record_model.model_validate(row)
            current = stored_record.model_dump(include=writable)
            malformed = stored_record.malformed_fields
        except ValidationError:
            current = {name: row[name] for name in writable if name in row}

        changed = sorted(name for name in changes if name in writable)
        merged = {**current, **{name: changes[name] for name in changed}}

        # Untouched unparseable dates are written back as their raw text.
        # A stand-in date shows whether normalisation still keeps the field.
        untouched = [name for name in malformed if name not in changed]
        merged.update({name: _STAND_IN_DATE for name in untouched})
        fields = self._fields_model.model_validate(merged)
        properties = fields.to_store()
        for name in untouched:
            properties[name] = row.get(name) if properties.get(name) is not None else None

        try:
            await self._store.update(
                self.kind,
                record_id,
                {**properties, "created_at": row.get("created_at")},
            )
        except NotFoundError:
            raise
        except StorageError as e:
            self._audit.log_storage_error("update", self.kind, str(e), record_id=record_id)
            raise

        self._audit.log_record_updated(self.kind, record_id, changed)

    async def delete(self, record_id: str) -> None:
        """Delete a record. Missing records are not an error."""
        try:
            await self._store.delete(self.kind, record_id)
        except StorageError as e:
            self._audit.log_storage_error("delete", self.kind, str(e), record_id=record_id)
            raise

        self._audit.log_record_deleted(self.kind, record_id)


@dataclass
class RecordRepositories:
    """One repository per collection, sharing a store and audit logger."""

    budget: Repository[BudgetItem]
    ideas: Repository[IdeasItem]
    inventory: Repository[InventoryItem]
    movies_games: Repository[MovieGameItem]
    needs: Repository[NeedsItem]
    tools: Repository[ToolItem]

    @classmethod
    def build(
        cls,
        store: RecordStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
    ) -> "RecordRepositories":
        audit_logger = audit_logger or AuditLogger()
        return cls(
            budget=Repository(store, Collection.BUDGET_ITEMS, audit_logger),
            ideas=Repository(store, Collection.IDEAS_ITEMS, audit_logger),
            inventory=Repository(store, Collection.INVENTORY_ITEMS, audit_logger),
            movies_games=Repository(store, Collection.MOVIES_GAMES, audit_logger),
            needs=Repository(store, Collection.NEEDS_ITEMS, audit_logger),
            tools=Repository(store, Collection.TOOLS, audit_logger),
        )

    def for_collection(self, collection: Union[Collection, str]) -> Repository:
        """
        Look up the repository serving a collection name.

        Raises:
            ValueError: If the name is not a known collection
        """
        return {
            Collection.BUDGET_ITEMS: self.budget,
            Collection.IDEAS_ITEMS: self.ideas,
            Collection.INVENTORY_ITEMS: self.inventory,
            Collection.MOVIES_GAMES: self.movies_games,
            Collection.NEEDS_ITEMS: self.needs,
            Collection.TOOLS: self.tools,
        }[Collection(collection)]
