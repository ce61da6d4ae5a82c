"""
Tests for the Projection Aggregator.

build_projection() is pure, so most tests feed it typed records directly
with a fixed `now`. ProjectionAggregator is exercised over the in-memory
store.
"""

import asyncio
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from bearpaw.models.audit import AuditEventType
from bearpaw.models.items import BudgetItem, InventoryItem, NeedsItem, ToolItem
from bearpaw.models.projection import ProjectionSource
from bearpaw.projections import ProjectionAggregator, ProjectionError, build_projection
from bearpaw.repositories import RecordRepositories
from bearpaw.services.storage import InMemoryRecordStore, StorageError


NOW = datetime(2025, 3, 15, 12, 0, tzinfo=timezone.utc)


def created(day: int) -> str:
    return f"2025-01-{day:02d}T00:00:00+00:00"


def need(id, description="Roof repair", price=4000, quantity=1, day=1):
    return NeedsItem.model_validate({
        "id": id, "description": description, "price": price,
        "quantity": quantity, "created_at": created(day),
    })


def stock(id, name, type="consumable", replacement_date=None, quantity=None, day=1):
    return InventoryItem.model_validate({
        "id": id, "name": name, "type": type, "quantity": quantity,
        "replacement_date": replacement_date, "created_at": created(day),
    })


def tool(id, name, consumable=True, quantity=1, day=1):
    return ToolItem.model_validate({
        "id": id, "name": name, "consumable": consumable,
        "quantity": quantity, "created_at": created(day),
    })


def expense(id, name, payment_date=None, type="one-time", cost=1200, day=1):
    return BudgetItem.model_validate({
        "id": id, "name": name, "type": type, "cost": cost,
        "payment_date": payment_date, "created_at": created(day),
    })


class TestBuildProjection:
    """Properties of the pure merge."""

    def test_empty_inputs_give_empty_projection(self):
        """Test that empty inputs give an empty projection."""
        assert build_projection([], [], [], [], now=NOW) == []

    def test_needs_scenario(self):
        """Test a single need."""
        [item] = build_projection([need("1")], [], [], [], now=NOW)
        assert item.source == ProjectionSource.NEEDS
        assert item.description == "Roof repair"
        assert item.cost == Decimal("4000")
        assert item.quantity == 1
        assert item.date is None

    def test_needs_never_carry_a_date(self):
        """Test that needs never have a date."""
        needs = [need(str(i), day=i) for i in range(1, 6)]
        items = build_projection(needs, [], [], [], now=NOW)
        assert all(i.source == ProjectionSource.NEEDS and i.date is None for i in items)

    def test_future_one_time_budget_included(self):
        """Test that a future one-time item is included."""
        [item] = build_projection([], [], [], [expense("1", "Deck", "2099-01-01")], now=NOW)
        assert item.source == ProjectionSource.FUTURE_ONE_TIME_BUDGET
        assert item.date == date(2099, 1, 1)
        assert item.cost == Decimal("1200")
        assert item.quantity is None

    def test_past_one_time_budget_excluded(self):
        """Test that a past one-time item is excluded."""
        assert build_projection([], [], [], [expense("1", "Deck", "2000-01-01")], now=NOW) == []

    def test_future_is_exclusive_of_now(self):
        """Test that an item due exactly now is excluded."""
        midnight = datetime(2025, 6, 1, tzinfo=timezone.utc)
        budget = [expense("1", "Deck", "2025-06-01")]
        assert build_projection([], [], [], budget, now=midnight) == []

    def test_monthly_budget_excluded(self):
        """Test that monthly items are excluded."""
        budget = [expense("1", "Internet", "2099-01-01", type="monthly")]
        assert build_projection([], [], [], budget, now=NOW) == []

    def test_undated_one_time_budget_excluded(self):
        """Test that undated one-time items are excluded."""
        assert build_projection([], [], [], [expense("1", "Deck")], now=NOW) == []

    def test_only_consumable_inventory(self):
        """Test that only consumable inventory appears."""
        inventory = [
            stock("1", "Propane", quantity=2, replacement_date="2025-06-01"),
            stock("2", "Couch", type="non-consumable"),
        ]
        [item] = build_projection([], inventory, [], [], now=NOW)
        assert item.description == "Propane"
        assert item.source == ProjectionSource.CONSUMABLE_INVENTORY
        assert item.quantity == 2
        assert item.date == date(2025, 6, 1)
        assert item.cost is None

    def test_only_consumable_tools(self):
        """Test that only consumable tools appear."""
        tools = [tool("1", "Saw blades", quantity=4), tool("2", "Hammer", consumable=False)]
        [item] = build_projection([], [], tools, [], now=NOW)
        assert item.source == ProjectionSource.CONSUMABLE_TOOLS
        assert item.description == "Saw blades"
        assert item.quantity == 4
        assert item.date is None

    def test_malformed_date_does_not_raise(self, audit_logger):
        """Test that an unparseable payment date sorts by created_at."""
        budget = [
            expense("1", "Deck", "not-a-date", day=10),
            expense("2", "Dock", "2099-01-01", day=1),
        ]
        needs = [need("3", day=5), need("4", day=20)]

        items = build_projection(needs, [], [], budget, now=NOW, audit_logger=audit_logger)

        assert [i.id for i in items] == ["3", "1", "4", "2"]
        assert items[1].date is None
        [warning] = audit_logger.of_type(AuditEventType.MALFORMED_DATE)
        assert warning.record_id == "1"
        assert warning.details["raw_value"] == "not-a-date"

    def test_malformed_inventory_date_sorts_by_created_at(self, audit_logger):
        """Test an unparseable replacement date."""
        inventory = [stock("1", "Filters", replacement_date="??", day=2)]
        items = build_projection([need("2", day=3)], inventory, [], [], now=NOW,
                                 audit_logger=audit_logger)
        assert [i.id for i in items] == ["1", "2"]
        assert len(audit_logger.of_type(AuditEventType.MALFORMED_DATE)) == 1

    def test_ordering_is_non_decreasing(self):
        """Test ordering by effective instant."""
        needs = [need("n1", day=20), need("n2", day=3)]
        inventory = [
            stock("i1", "Propane", replacement_date="2025-01-10"),
            stock("i2", "Filters", replacement_date="2024-12-01"),
        ]
        tools = [tool("t1", "Blades", day=15)]
        budget = [expense("b1", "Deck", "2025-04-01"), expense("b2", "Roof", "2026-01-01")]

        items = build_projection(needs, inventory, tools, budget, now=NOW)

        instants = [i.effective_instant for i in items]
        assert instants == sorted(instants)
        assert [i.id for i in items] == ["i2", "n2", "i1", "t1", "n1", "b1", "b2"]

    def test_ties_keep_source_order(self):
        """Test that ties keep source order."""
        items = build_projection(
            [need("n", day=4)], [], [tool("t", "Blades", day=4)], [], now=NOW
        )
        assert [i.source for i in items] == [
            ProjectionSource.NEEDS, ProjectionSource.CONSUMABLE_TOOLS,
        ]

    def test_idempotent(self):
        """Test that the merge is idempotent."""
        args = (
            [need("1"), need("2", day=4)],
            [stock("3", "Propane", replacement_date="2025-05-01")],
            [tool("4", "Blades")],
            [expense("5", "Deck", "2099-01-01"), expense("6", "Dock", "oops")],
        )
        assert build_projection(*args, now=NOW) == build_projection(*args, now=NOW)

    def test_naive_now_taken_as_utc(self):
        """Test a naive evaluation instant."""
        budget = [expense("1", "Deck", "2025-03-16")]
        assert len(build_projection([], [], [], budget, now=datetime(2025, 3, 15, 23, 59))) == 1

    def test_logs_projection_built(self, audit_logger):
        """Test the projection_built audit event."""
        build_projection([need("1")], [], [], [], now=NOW, audit_logger=audit_logger)
        [event] = audit_logger.of_type(AuditEventType.PROJECTION_BUILT)
        assert event.details["source_counts"] == {"Needs": 1}


class RendezvousStore(InMemoryRecordStore):
    """Every list call waits until all four source lists have started."""

    def __init__(self, expected: int = 4):
        super().__init__()
        self.expected = expected
        self.started: list[str] = []
        self.all_started = asyncio.Event()

    async def list(self, kind, order_by="created_at"):
        self.started.append(kind)
        if len(self.started) == self.expected:
            self.all_started.set()
        await asyncio.wait_for(self.all_started.wait(), timeout=2)
        return await super().list(kind, order_by)


class BrokenBudgetStore(InMemoryRecordStore):
    async def list(self, kind, order_by="created_at"):
        if kind == "budget_items":
            raise StorageError("budget_items unreachable")
        return await super().list(kind, order_by)


class TestProjectionAggregator:
    """Loading the four sources through the repositories."""

    def test_project_from_store(self, repositories, audit_logger):
        """Test projecting from a populated store."""
        asyncio.run(repositories.needs.create({"description": "Matches", "price": 3}))
        asyncio.run(repositories.inventory.create(
            {"name": "Propane", "type": "consumable", "quantity": 2, "replacement_date": "2099-06-01"}
        ))
        asyncio.run(repositories.inventory.create({"name": "Couch", "type": "non-consumable"}))
        asyncio.run(repositories.tools.create({"name": "Blades", "consumable": True}))
        asyncio.run(repositories.budget.create(
            {"name": "Deck", "type": "one-time", "cost": 1200, "payment_date": "2099-01-01"}
        ))
        asyncio.run(repositories.budget.create({"name": "Internet", "type": "monthly", "cost": 80}))

        aggregator = ProjectionAggregator.from_repositories(repositories, audit_logger)
        items = asyncio.run(aggregator.project())

        assert [i.description for i in items] == ["Matches", "Blades", "Deck", "Propane"]

    def test_one_failed_source_fails_the_projection(self, audit_logger):
        """Test that one failed source fails the projection."""
        repos = RecordRepositories.build(BrokenBudgetStore(), audit_logger)
        aggregator = ProjectionAggregator.from_repositories(repos, audit_logger)

        with pytest.raises(ProjectionError, match="budget_items unreachable"):
            asyncio.run(aggregator.project())

        assert len(audit_logger.of_type(AuditEventType.PROJECTION_FAILED)) == 1
        assert audit_logger.of_type(AuditEventType.PROJECTION_BUILT) == []

    def test_sources_are_fetched_concurrently(self, audit_logger):
        """Test that all four lists are in flight before any one completes."""
        store = RendezvousStore()
        repos = RecordRepositories.build(store, audit_logger)
        aggregator = ProjectionAggregator.from_repositories(repos, audit_logger)

        assert asyncio.run(aggregator.project()) == []
        assert sorted(store.started) == [
            "budget_items", "inventory_items", "needs_items", "tools",
        ]
