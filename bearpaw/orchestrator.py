"""
Main Orchestrator for Bearpaw Cabin Manager

Ties the components together:

    record store -> repositories -> projection aggregator -> chart service

DESIGN DECISION: Nothing here is a module-level singleton.
The store is built once per process and handed down explicitly, so the
API, the Streamlit app, the CLI and the tests each choose their own
backend (tests pass an InMemoryRecordStore).
"""

from dataclasses import dataclass
from typing import Optional

from bearpaw.audit import AuditLogger
from bearpaw.config import AppSettings, StoreBackend, get_settings
from bearpaw.projections import ChartService, ProjectionAggregator
from bearpaw.repositories import RecordRepositories
from bearpaw.services.storage import (
    DatastoreRecordStore,
    InMemoryRecordStore,
    RecordStoreInterface,
)


@dataclass
class AppComponents:
    """Everything a request handler or page needs."""

    store: RecordStoreInterface
    repositories: RecordRepositories
    aggregator: ProjectionAggregator
    charts: ChartService
    audit_logger: AuditLogger


def build_store(backend: StoreBackend) -> RecordStoreInterface:
    """Create the record store for the configured backend."""
    if backend == StoreBackend.MEMORY:
        return InMemoryRecordStore()
    return DatastoreRecordStore()


def create_app_components(
    store: Optional[RecordStoreInterface] = None,
    app_settings: Optional[AppSettings] = None,
    audit_logger: Optional[AuditLogger] = None,
) -> AppComponents:
    """
    Wire up the application.

    Args:
        store: Record store to use; built from settings when omitted
        app_settings: Settings override (defaults to environment)
        audit_logger: Shared audit logger

    Returns:
        The wired components
    """
    app_settings = app_settings or get_settings().app
    audit_logger = audit_logger or AuditLogger()
    store = store or build_store(app_settings.store_backend)

    repositories = RecordRepositories.build(store, audit_logger)
    aggregator = ProjectionAggregator.from_repositories(repositories, audit_logger)
    charts = ChartService(
        budget=repositories.budget,
        aggregator=aggregator,
        default_window=app_settings.chart_window,
        audit_logger=audit_logger,
    )

    return AppComponents(
        store=store,
        repositories=repositories,
        aggregator=aggregator,
        charts=charts,
        audit_logger=audit_logger,
    )
