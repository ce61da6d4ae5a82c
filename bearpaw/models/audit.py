"""
Audit Models for Bearpaw Cabin Manager

Every write and every derived-view build is logged as a typed event.
This provides:
1. Traceability of who-changed-what in a store with no history
2. A visible trail for data the read boundary had to reject or repair
3. Debugging information when a projection fails

DESIGN DECISION: Events are emitted to the structured log only.
The store has no transactions, so an audit kind written next to the
data could disagree with it anyway.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Record lifecycle
    RECORD_CREATED = "record_created"
    RECORD_UPDATED = "record_updated"
    RECORD_DELETED = "record_deleted"

    # Read boundary
    RECORD_REJECTED = "record_rejected"
    MALFORMED_DATE = "malformed_date"

    # Derived views
    PROJECTION_BUILT = "projection_built"
    PROJECTION_FAILED = "projection_failed"

    # System events
    STORAGE_ERROR = "storage_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    `kind` and `record_id` identify the record involved, when there is one.
    """

    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    kind: Optional[str] = Field(
        default=None,
        description="Collection the record belongs to"
    )
    record_id: Optional[str] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "kind": self.kind,
            "record_id": self.record_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.record_created(kind="tools", record_id="12")
    """

    @staticmethod
    def record_created(kind: str, record_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_CREATED,
            kind=kind,
            record_id=record_id,
            description=f"Created {kind} record {record_id}",
        )

    @staticmethod
    def record_updated(
        kind: str,
        record_id: str,
        changed_fields: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_UPDATED,
            kind=kind,
            record_id=record_id,
            description=f"Updated {kind} record {record_id}",
            details={"changed_fields": changed_fields},
        )

    @staticmethod
    def record_deleted(kind: str, record_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_DELETED,
            kind=kind,
            record_id=record_id,
            description=f"Deleted {kind} record {record_id}",
        )

    @staticmethod
    def record_rejected(
        kind: str,
        record_id: Optional[str],
        error_message: str,
    ) -> AuditEvent:
        """A stored row that could not be read as a typed record."""
        return AuditEvent(
            event_type=AuditEventType.RECORD_REJECTED,
            severity=AuditSeverity.WARNING,
            kind=kind,
            record_id=record_id,
            description=f"Skipped unreadable {kind} row",
            error_message=error_message,
        )

    @staticmethod
    def malformed_date(
        kind: str,
        record_id: str,
        field: str,
        raw_value: str,
    ) -> AuditEvent:
        """A date that would not parse; the record falls back to created_at."""
        return AuditEvent(
            event_type=AuditEventType.MALFORMED_DATE,
            severity=AuditSeverity.WARNING,
            kind=kind,
            record_id=record_id,
            description=f"Unparseable {field} on {kind} record {record_id}",
            details={"field": field, "raw_value": raw_value},
        )

    @staticmethod
    def projection_built(item_count: int, source_counts: dict[str, int]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROJECTION_BUILT,
            severity=AuditSeverity.DEBUG,
            description=f"Projection built with {item_count} items",
            details={"item_count": item_count, "source_counts": source_counts},
        )

    @staticmethod
    def projection_failed(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROJECTION_FAILED,
            severity=AuditSeverity.ERROR,
            description="Projection could not load its sources",
            error_message=error_message,
        )

    @staticmethod
    def storage_error(
        operation: str,
        kind: str,
        error_message: str,
        record_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            kind=kind,
            record_id=record_id,
            description=f"Store {operation} failed for {kind}",
            error_message=error_message,
        )
