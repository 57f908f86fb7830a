"""
Audit Logger

DESIGN DECISION: Every ledger mutation and reconciliation tick is logged.
This provides:
1. Traceability of why an entry is (or isn't) in a collection
2. Visibility into persistence failures, which never raise
3. Correlation IDs to tie together the events of one operation

The audit logger never raises: logging must not break a ledger operation.
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

import structlog

from budget_ledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


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
    """Route stdlib logging (and so structlog) to stderr at ``level``. Call once from entry points."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper(), logging.INFO))


class AuditLogger:
    """
    Central audit logging service.

    Emits one structured ``audit_event`` record per AuditEvent.
    """

    def __init__(self, name: str = "budget_ledger.audit"):
        self._logger = structlog.get_logger(name)

    def log(self, event: AuditEvent) -> None:
        """Log an audit event at the level its severity implies."""
        log_dict = event.to_log_dict()

        if event.severity is AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity is AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity is AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

    def log_entry_added(
        self,
        entry_id: UUID,
        recurrence: str,
        committed: int,
        pending: int,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.entry_added(
            entry_id=entry_id,
            recurrence=recurrence,
            committed=committed,
            pending=pending,
            correlation_id=correlation_id,
        ))

    def log_entry_updated(self, entry_id: UUID, collection: str, correlation_id: UUID) -> None:
        self.log(AuditEventBuilder.entry_updated(entry_id, collection, correlation_id))

    def log_entry_deleted(self, entry_id: UUID, collection: str, correlation_id: UUID) -> None:
        self.log(AuditEventBuilder.entry_deleted(entry_id, collection, correlation_id))

    def log_series_cancelled(
        self,
        entry_id: UUID,
        from_date: datetime,
        committed_removed: int,
        pending_removed: int,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.series_cancelled(
            entry_id=entry_id,
            from_date=from_date,
            committed_removed=committed_removed,
            pending_removed=pending_removed,
            correlation_id=correlation_id,
        ))

    def log_entry_rejected(self, issues: list[dict], correlation_id: UUID) -> None:
        self.log(AuditEventBuilder.entry_rejected(issues, correlation_id))

    def log_ledger_cleared(self, removed: int, correlation_id: UUID) -> None:
        self.log(AuditEventBuilder.ledger_cleared(removed, correlation_id))

    def log_entries_imported(
        self,
        imported: int,
        rejected_rows: list[int],
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.entries_imported(imported, rejected_rows, correlation_id))

    def log_entries_promoted(self, count: int, now: datetime, correlation_id: UUID) -> None:
        self.log(AuditEventBuilder.entries_promoted(count, now, correlation_id))

    def log_pending_expired(self, count: int, now: datetime, correlation_id: UUID) -> None:
        self.log(AuditEventBuilder.pending_expired(count, now, correlation_id))

    def log_pending_regenerated(
        self,
        series: int,
        discarded: int,
        created: int,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.pending_regenerated(series, discarded, created, correlation_id))

    def log_reconciliation_tick(
        self,
        promoted: int,
        created: int,
        duration_ms: float,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.reconciliation_tick(promoted, created, duration_ms, correlation_id))

    def log_scheduler_state(self, started: bool, interval_seconds: float) -> None:
        self.log(AuditEventBuilder.scheduler_state(started, interval_seconds))

    def log_ledger_loaded(self, committed: int, pending: int, dropped: int) -> None:
        self.log(AuditEventBuilder.ledger_loaded(committed, pending, dropped))

    def log_flush_failed(
        self,
        collection: str,
        error_message: str,
        version: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.flush_failed(collection, error_message, version, correlation_id))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a ledger operation and pass it through
    every event that operation emits.
    """
    return uuid4()
