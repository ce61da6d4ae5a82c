"""
In-Memory Record Store

Same contract as the Datastore adapter, held in dictionaries.
Used by the test suite and for running the app locally without
cloud credentials (STORE_BACKEND=memory).
"""

import copy
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from bearpaw.services.storage.interface import (
    NotFoundError,
    RecordStoreInterface,
    Row,
    parse_numeric_id,
)


class InMemoryRecordStore(RecordStoreInterface):
    """
    Dictionary-backed store with per-kind incrementing ids.

    Rows are deep-copied on the way in and out, so callers can never
    mutate stored state through a returned row.
    """

    backend_name = "memory"

    def __init__(self, seed: Optional[dict[str, Iterable[Row]]] = None):
        self._rows: dict[str, dict[int, dict[str, Any]]] = defaultdict(dict)
        self._sequences: dict[str, int] = defaultdict(int)
        for kind, rows in (seed or {}).items():
            for row in rows:
                self._load(kind, row)

    def _load(self, kind: str, row: Row) -> None:
        """Insert a pre-built row as-is (keeps its id and created_at)."""
        data = dict(row)
        numeric_id = parse_numeric_id(data.pop("id", None))
        if numeric_id is None:
            self._sequences[kind] += 1
            numeric_id = self._sequences[kind]
        self._sequences[kind] = max(self._sequences[kind], numeric_id)
        self._rows[kind][numeric_id] = copy.deepcopy(data)

    @staticmethod
    def _to_row(numeric_id: int, data: dict[str, Any]) -> Row:
        return {"id": str(numeric_id), **copy.deepcopy(data)}

    async def list(self, kind: str, order_by: str = "created_at") -> list[Row]:
        rows = [
            self._to_row(numeric_id, data)
            for numeric_id, data in self._rows[kind].items()
        ]
        # Rows missing the sort property go last
        rows.sort(
            key=lambda row: (row.get(order_by) is not None, str(row.get(order_by) or "")),
            reverse=True,
        )
        return rows

    async def get(self, kind: str, record_id: str) -> Optional[Row]:
        numeric_id = parse_numeric_id(record_id)
        if numeric_id is None or numeric_id not in self._rows[kind]:
            return None
        return self._to_row(numeric_id, self._rows[kind][numeric_id])

    async def create(self, kind: str, data: dict[str, Any]) -> Row:
        record = {
            **copy.deepcopy(data),
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        self._sequences[kind] += 1
        numeric_id = self._sequences[kind]
        self._rows[kind][numeric_id] = record
        return self._to_row(numeric_id, record)

    async def update(self, kind: str, record_id: str, data: dict[str, Any]) -> None:
        numeric_id = parse_numeric_id(record_id)
        if numeric_id is None or numeric_id not in self._rows[kind]:
            raise NotFoundError(f"{kind} record not found: {record_id}")
        stored = copy.deepcopy(data)
        stored.pop("id", None)
        self._rows[kind][numeric_id] = stored

    async def delete(self, kind: str, record_id: str) -> None:
        numeric_id = parse_numeric_id(record_id)
        if numeric_id is not None:
            self._rows[kind].pop(numeric_id, None)
