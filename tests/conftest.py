"""
Shared fixtures.

No test touches the network: the record store is the in-memory
implementation, and audit events are captured in a list.
"""

import pytest

from bearpaw.audit import AuditLogger
from bearpaw.models.audit import AuditEvent, AuditEventType
from bearpaw.orchestrator import create_app_components
from bearpaw.repositories import RecordRepositories
from bearpaw.services.storage import InMemoryRecordStore


class RecordingAuditLogger(AuditLogger):
    """Audit logger that keeps every event it is given."""

    def __init__(self):
        super().__init__()
        self.events: list[AuditEvent] = []

    def log(self, event: AuditEvent) -> AuditEvent:
        self.events.append(event)
        return super().log(event)

    def of_type(self, event_type: AuditEventType) -> list[AuditEvent]:
        return [e for e in self.events if e.event_type == event_type]


@pytest.fixture
def audit_logger():
    return RecordingAuditLogger()


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def repositories(store, audit_logger):
    return RecordRepositories.build(store, audit_logger)


@pytest.fixture
def components(store, audit_logger):
    return create_app_components(store=store, audit_logger=audit_logger)
