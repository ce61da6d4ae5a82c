"""
Projection Aggregator

Merges four collections into one forward-planning timeline:

    needs                       -> "Needs"
    inventory (consumable)      -> "Consumable Inventory"
    tools (consumable)          -> "Consumable Tools"
    budget (one-time, future)   -> "Future One-Time Budget"

DESIGN DECISION: Loading and merging are separate.
`ProjectionAggregator.project()` fetches the four collections
concurrently and fails as a whole if any fetch fails. `build_projection()`
is a pure function over the fetched snapshots, so it can be tested
without a store and is deterministic for a given `now`.

The four reads are not atomic: a write landing mid-fetch may or may not
be reflected. That skew is accepted for a planning view.
"""

import asyncio
from collections import Counter
from datetime import datetime
from typing import Iterable, Optional

from bearpaw.audit import AuditLogger
from bearpaw.models.items import (
    BudgetItem,
    BudgetType,
    Collection,
    InventoryItem,
    InventoryType,
    NeedsItem,
    StoredRecord,
    ToolItem,
)
from bearpaw.models.projection import ProjectedItem, ProjectionSource
from bearpaw.models.types import as_utc_instant, utc_now
from bearpaw.repositories import RecordRepositories, Repository
from bearpaw.services.storage import StorageError


class ProjectionError(Exception):
    """A source collection could not be loaded; no projection was built."""
    pass


def _report_malformed(
    audit: AuditLogger,
    collection: Collection,
    record: StoredRecord,
    field: str,
) -> None:
    raw_value = record.malformed_fields.get(field)
    if raw_value is not None:
        audit.log_malformed_date(collection.value, record.id, field, raw_value)


def build_projection(
    needs: Iterable[NeedsItem],
    inventory: Iterable[InventoryItem],
    tools: Iterable[ToolItem],
    budget: Iterable[BudgetItem],
    now: Optional[datetime] = None,
    audit_logger: Optional[AuditLogger] = None,
) -> list[ProjectedItem]:
    """
    Merge the four collections into one time-ordered list.

    Items sort ascending by `date` when they have one and by
    `created_at` otherwise, both read as UTC instants. The sort is
    stable, so ties keep the needs/inventory/tools/budget input order.

    A one-time budget item is "future" only if its payment date is
    strictly after `now`. A record whose date could not be parsed is
    kept with no date (so it sorts by created_at) and logged.

    Args:
        needs, inventory, tools, budget: Snapshots of each collection
        now: Evaluation instant; defaults to the current time
        audit_logger: Where malformed-date warnings go
    """
    now = as_utc_instant(now) if now is not None else utc_now()
    audit = audit_logger or AuditLogger()
    items: list[ProjectedItem] = []

    for need in needs:
        items.append(
            ProjectedItem(
                id=need.id,
                source=ProjectionSource.NEEDS,
                description=need.description,
                quantity=need.quantity,
                cost=need.price,
                date=None,
                created_at=need.created_at,
            )
        )

    for stock in inventory:
        if stock.type != InventoryType.CONSUMABLE:
            continue
        _report_malformed(audit, Collection.INVENTORY_ITEMS, stock, "replacement_date")
        items.append(
            ProjectedItem(
                id=stock.id,
                source=ProjectionSource.CONSUMABLE_INVENTORY,
                description=stock.name,
                quantity=stock.quantity,
                cost=None,
                date=stock.replacement_date,
                created_at=stock.created_at,
            )
        )

    for tool in tools:
        if not tool.consumable:
            continue
        items.append(
            ProjectedItem(
                id=tool.id,
                source=ProjectionSource.CONSUMABLE_TOOLS,
                description=tool.name,
                quantity=tool.quantity,
                cost=None,
                date=None,
                created_at=tool.created_at,
            )
        )

    for expense in budget:
        if expense.type != BudgetType.ONE_TIME:
            continue
        if "payment_date" in expense.malformed_fields:
            _report_malformed(audit, Collection.BUDGET_ITEMS, expense, "payment_date")
        elif expense.payment_date is None or as_utc_instant(expense.payment_date) <= now:
            continue
        items.append(
            ProjectedItem(
                id=expense.id,
                source=ProjectionSource.FUTURE_ONE_TIME_BUDGET,
                description=expense.name,
                quantity=None,
                cost=expense.cost,
                date=expense.payment_date,
                created_at=expense.created_at,
            )
        )

    items.sort(key=lambda item: item.effective_instant)

    audit.log_projection_built(
        item_count=len(items),
        source_counts=dict(Counter(item.source.value for item in items)),
    )
    return items


class ProjectionAggregator:
    """
    Loads the four source collections and builds the projection.

    Each call re-reads the store; nothing is cached.
    """

    def __init__(
        self,
        needs: Repository[NeedsItem],
        inventory: Repository[InventoryItem],
        tools: Repository[ToolItem],
        budget: Repository[BudgetItem],
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._needs = needs
        self._inventory = inventory
        self._tools = tools
        self._budget = budget
        self._audit = audit_logger or AuditLogger()

    @classmethod
    def from_repositories(
        cls,
        repositories: RecordRepositories,
        audit_logger: Optional[AuditLogger] = None,
    ) -> "ProjectionAggregator":
        return cls(
            needs=repositories.needs,
            inventory=repositories.inventory,
            tools=repositories.tools,
            budget=repositories.budget,
            audit_logger=audit_logger,
        )

    async def load_sources(
        self,
    ) -> tuple[list[NeedsItem], list[InventoryItem], list[ToolItem], list[BudgetItem]]:
        """
        Fetch all four collections concurrently.

        Raises:
            ProjectionError: If any one of the fetches fails
        """
        try:
            needs, inventory, tools, budget = await asyncio.gather(
                self._needs.list(),
                self._inventory.list(),
                self._tools.list(),
                self._budget.list(),
            )
        except StorageError as e:
            self._audit.log_projection_failed(str(e))
            raise ProjectionError(f"Could not load projected items: {e}") from e
        return needs, inventory, tools, budget

    async def project(self, now: Optional[datetime] = None) -> list[ProjectedItem]:
        """Build the projection from the current state of the store."""
        needs, inventory, tools, budget = await self.load_sources()
        return build_projection(
            needs,
            inventory,
            tools,
            budget,
            now=now,
            audit_logger=self._audit,
        )
