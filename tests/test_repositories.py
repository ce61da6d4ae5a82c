"""Tests for the typed repositories."""

import asyncio
from decimal import Decimal

import pytest
from pydantic import ValidationError

from bearpaw.models.audit import AuditEventType
from bearpaw.models.items import Collection, MovieGameItem, NeedsItemFields
from bearpaw.projections import ProjectionAggregator
from bearpaw.repositories import RecordRepositories
from bearpaw.services.storage import InMemoryRecordStore, NotFoundError, StorageError


CREATED = "2025-01-01T10:00:00+00:00"


class FailingStore(InMemoryRecordStore):
    async def list(self, kind, order_by="created_at"):
        raise StorageError("store unavailable")


class TestRepository:
    """Tests for Repository CRUD over the in-memory store."""

    def test_create_returns_typed_record(self, repositories, audit_logger):
        """Test that create returns a typed record."""
        record = asyncio.run(repositories.needs.create({"description": "Soap", "price": "3.5"}))
        assert record.id == "1"
        assert record.quantity == 1
        assert record.created_at.tzinfo is not None
        assert len(audit_logger.of_type(AuditEventType.RECORD_CREATED)) == 1

    def test_create_accepts_fields_model(self, repositories):
        """Test create with a fields model."""
        record = asyncio.run(repositories.needs.create(NeedsItemFields(description="Soap")))
        assert record.description == "Soap"

    def test_create_ignores_client_id_and_created_at(self, repositories):
        """Test that clients cannot set id or created_at."""
        record = asyncio.run(repositories.tools.create({
            "id": "500", "created_at": "1999-01-01T00:00:00Z", "name": "Saw",
        }))
        assert record.id == "1"
        assert record.created_at.year != 1999

    def test_create_normalises_players(self, repositories):
        """Test players normalisation on create."""
        record = asyncio.run(repositories.movies_games.create(
            {"name": "Jaws", "type": "DVD", "players": "2"}
        ))
        assert isinstance(record, MovieGameItem)
        assert record.players is None

    def test_create_rejects_bad_types(self, repositories):
        """Test that mistyped payloads are rejected."""
        with pytest.raises(ValidationError):
            asyncio.run(repositories.budget.create({"name": "x", "type": "monthly", "cost": "abc"}))

    def test_list_skips_unreadable_rows(self, audit_logger):
        """Test that unreadable rows are skipped and logged."""
        store = InMemoryRecordStore(seed={"budget_items": [
            {"id": "1", "name": "Internet", "type": "monthly", "cost": 80, "created_at": CREATED},
            {"id": "2", "name": "Broken", "type": "weekly", "cost": 10, "created_at": CREATED},
            {"id": "3", "name": "No timestamp", "type": "monthly", "cost": 10},
        ]})
        repos = RecordRepositories.build(store, audit_logger)

        records = asyncio.run(repos.budget.list())

        assert [r.id for r in records] == ["1"]
        rejected = audit_logger.of_type(AuditEventType.RECORD_REJECTED)
        assert {e.record_id for e in rejected} == {"2", "3"}

    def test_list_keeps_malformed_date_records(self, audit_logger):
        """Test that malformed dates do not drop records."""
        store = InMemoryRecordStore(seed={"inventory_items": [{
            "id": "1", "name": "Filters", "type": "consumable",
            "replacement_date": "soon", "created_at": CREATED,
        }]})
        repos = RecordRepositories.build(store, audit_logger)

        [record] = asyncio.run(repos.inventory.list())

        assert record.replacement_date is None
        assert record.malformed_fields["replacement_date"] == "soon"

    def test_get_missing_is_none(self, repositories):
        """Test getting a missing record."""
        assert asyncio.run(repositories.tools.get("42")) is None

    def test_update_merges_and_keeps_created_at(self, repositories, audit_logger):
        """Test merge update."""
        created = asyncio.run(repositories.tools.create({"name": "Saw", "quantity": 1}))

        asyncio.run(repositories.tools.update(created.id, {"quantity": 3, "id": "99"}))

        updated = asyncio.run(repositories.tools.get(created.id))
        assert updated.name == "Saw"
        assert updated.quantity == 3
        assert updated.created_at == created.created_at
        [event] = audit_logger.of_type(AuditEventType.RECORD_UPDATED)
        assert event.details["changed_fields"] == ["quantity"]

    def test_update_renormalises_merged_record(self, repositories):
        """Test that the merged record is normalised again."""
        created = asyncio.run(repositories.movies_games.create(
            {"name": "Catan", "type": "Game", "players": "3-4"}
        ))
        asyncio.run(repositories.movies_games.update(created.id, {"type": "DVD"}))
        assert asyncio.run(repositories.movies_games.get(created.id)).players is None

    def test_update_accepts_edit_form_values(self, repositories):
        """Test an edit that sends string money and clears a date."""
        created = asyncio.run(repositories.budget.create({
            "name": "Deck", "type": "one-time", "cost": 1200, "payment_date": "2099-01-01",
        }))
        asyncio.run(repositories.budget.update(created.id, {"cost": "1350.5", "payment_date": None}))

        updated = asyncio.run(repositories.budget.get(created.id))
        assert updated.name == "Deck"
        assert updated.cost == Decimal("1350.5")
        assert updated.payment_date is None

    def test_update_keeps_untouched_malformed_date(self, audit_logger):
        """Test that renaming a record leaves its unparseable date text in place."""
        store = InMemoryRecordStore(seed={"budget_items": [{
            "id": "1", "name": "Deck", "type": "one-time", "cost": 1200,
            "payment_date": "not-a-date", "created_at": CREATED,
        }]})
        repos = RecordRepositories.build(store, audit_logger)
        aggregator = ProjectionAggregator.from_repositories(repos, audit_logger)

        asyncio.run(repos.budget.update("1", {"name": "Deck stain"}))

        row = asyncio.run(store.get("budget_items", "1"))
        assert row["name"] == "Deck stain"
        assert row["payment_date"] == "not-a-date"
        assert [i.description for i in asyncio.run(aggregator.project())] == ["Deck stain"]

    def test_update_replaces_malformed_date_when_given(self, audit_logger):
        """Test that an explicit new date overwrites the unparseable one."""
        store = InMemoryRecordStore(seed={"budget_items": [{
            "id": "1", "name": "Deck", "type": "one-time", "cost": 1200,
            "payment_date": "not-a-date", "created_at": CREATED,
        }]})
        repos = RecordRepositories.build(store, audit_logger)

        asyncio.run(repos.budget.update("1", {"payment_date": "2099-01-01"}))

        assert asyncio.run(store.get("budget_items", "1"))["payment_date"] == "2099-01-01"

    def test_update_still_clears_malformed_date_on_type_change(self, audit_logger):
        """Test that switching to non-consumable drops the replacement date, raw or not."""
        store = InMemoryRecordStore(seed={"inventory_items": [{
            "id": "1", "name": "Filters", "type": "consumable", "quantity": 2,
            "replacement_date": "soon", "created_at": CREATED,
        }]})
        repos = RecordRepositories.build(store, audit_logger)

        asyncio.run(repos.inventory.update("1", {"type": "non-consumable", "state": "Good"}))

        row = asyncio.run(store.get("inventory_items", "1"))
        assert row["replacement_date"] is None
        assert row["quantity"] is None

    def test_update_missing_raises(self, repositories):
        """Test updating a missing record."""
        with pytest.raises(NotFoundError):
            asyncio.run(repositories.tools.update("8", {"quantity": 2}))

    def test_update_with_bad_type_is_rejected(self, repositories):
        """Test that a mistyped change is rejected."""
        created = asyncio.run(repositories.tools.create({"name": "Saw"}))
        with pytest.raises(ValidationError):
            asyncio.run(repositories.tools.update(created.id, {"quantity": "many"}))

    def test_delete(self, repositories, audit_logger):
        """Test idempotent delete."""
        created = asyncio.run(repositories.ideas.create({"description": "Sauna"}))
        asyncio.run(repositories.ideas.delete(created.id))
        asyncio.run(repositories.ideas.delete(created.id))
        assert asyncio.run(repositories.ideas.get(created.id)) is None
        assert len(audit_logger.of_type(AuditEventType.RECORD_DELETED)) == 2

    def test_storage_error_logged_and_raised(self, audit_logger):
        """Test that store errors are logged and re-raised."""
        repos = RecordRepositories.build(FailingStore(), audit_logger)
        with pytest.raises(StorageError):
            asyncio.run(repos.tools.list())
        [event] = audit_logger.of_type(AuditEventType.STORAGE_ERROR)
        assert event.kind == "tools"


class TestRecordRepositories:
    """Tests for the repository registry."""

    def test_for_collection_by_enum_and_name(self, repositories):
        """Test lookup by enum and by name."""
        assert repositories.for_collection(Collection.TOOLS) is repositories.tools
        assert repositories.for_collection("budget_items") is repositories.budget

    def test_for_collection_unknown(self, repositories):
        """Test lookup of an unknown collection."""
        with pytest.raises(ValueError):
            repositories.for_collection("boats")
