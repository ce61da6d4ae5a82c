"""
Audit Logger

DESIGN DECISION: Every significant action in the system is logged.
This provides:
1. Traceability for a store that keeps no history of its own
2. A record of rows the read boundary had to reject or repair
3. Debugging capability for failed projections

The audit logger:
- Is synchronous so the pure projection merge can report through it
- Never raises; a logging failure must not break a request
- Writes JSON lines through structlog
"""

import logging
from typing import Optional

import structlog

from bearpaw.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """
    Route structlog output to stderr at the given level.

    structlog renders the JSON itself, so the stdlib handler prints the
    message verbatim.
    """
    logging.basicConfig(format="%(message)s", level=level.upper())
    logging.getLogger("bearpaw").setLevel(level.upper())


def get_logger(name: str = "bearpaw") -> structlog.stdlib.BoundLogger:
    """Return a structlog logger for ad-hoc (non-audit) messages."""
    return structlog.get_logger(name)


class AuditLogger:
    """
    Central audit logging service.

    Maps each event's severity onto the matching log level and emits
    the event's fields as structured key/values.
    """

    def __init__(self, logger: Optional[structlog.stdlib.BoundLogger] = None):
        self._logger = logger or get_logger("bearpaw.audit")

    def log(self, event: AuditEvent) -> AuditEvent:
        """
        Log an audit event.

        Returns the event so callers can collect what was reported.
        """
        log_dict = event.to_log_dict()

        try:
            if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # Logging must never take a request down with it
            logging.getLogger("bearpaw.audit").error(
                "audit logging failed: %s", e
            )

        return event

    def log_record_created(self, kind: str, record_id: str) -> None:
        self.log(AuditEventBuilder.record_created(kind, record_id))

    def log_record_updated(
        self,
        kind: str,
        record_id: str,
        changed_fields: list[str],
    ) -> None:
        self.log(AuditEventBuilder.record_updated(kind, record_id, changed_fields))

    def log_record_deleted(self, kind: str, record_id: str) -> None:
        self.log(AuditEventBuilder.record_deleted(kind, record_id))

    def log_record_rejected(
        self,
        kind: str,
        record_id: Optional[str],
        error_message: str,
    ) -> None:
        """Log a stored row that failed validation and was skipped."""
        self.log(AuditEventBuilder.record_rejected(kind, record_id, error_message))

    def log_malformed_date(
        self,
        kind: str,
        record_id: str,
        field: str,
        raw_value: str,
    ) -> None:
        self.log(AuditEventBuilder.malformed_date(kind, record_id, field, raw_value))

    def log_projection_built(
        self,
        item_count: int,
        source_counts: dict[str, int],
    ) -> None:
        self.log(AuditEventBuilder.projection_built(item_count, source_counts))

    def log_projection_failed(self, error_message: str) -> None:
        self.log(AuditEventBuilder.projection_failed(error_message))

    def log_storage_error(
        self,
        operation: str,
        kind: str,
        error_message: str,
        record_id: Optional[str] = None,
    ) -> None:
        self.log(
            AuditEventBuilder.storage_error(
                operation=operation,
                kind=kind,
                error_message=error_message,
                record_id=record_id,
            )
        )
