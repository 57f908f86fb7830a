"""
Audit Models for the Budget Ledger

Every ledger mutation, reconciliation tick and persistence failure is
recorded as an AuditEvent. This provides:
1. Traceability of how an entry got into (or out of) a collection
2. Debugging information when a flush fails
3. A correlation id linking all events of one operation

DESIGN DECISION: Audit events are emitted, never edited.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # User-driven ledger operations
    ENTRY_ADDED = "entry_added"
    ENTRY_UPDATED = "entry_updated"
    ENTRY_DELETED = "entry_deleted"
    SERIES_CANCELLED = "series_cancelled"
    ENTRY_REJECTED = "entry_rejected"
    LEDGER_CLEARED = "ledger_cleared"
    ENTRIES_IMPORTED = "entries_imported"

    # Reconciliation
    ENTRIES_PROMOTED = "entries_promoted"
    PENDING_EXPIRED = "pending_expired"
    PENDING_REGENERATED = "pending_regenerated"
    RECONCILIATION_TICK = "reconciliation_tick"
    SCHEDULER_STARTED = "scheduler_started"
    SCHEDULER_STOPPED = "scheduler_stopped"

    # Persistence
    LEDGER_LOADED = "ledger_loaded"
    FLUSH_FAILED = "flush_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event was recorded"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'entry', 'series', 'collection')"
    )
    entity_id: Optional[UUID] = None

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID shared by all events of one ledger operation"
    )

    description: str = Field(
        ...,
        max_length=500,
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action rather than the scheduler?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.entry_added(entry_id, created, correlation_id)
        event = AuditEventBuilder.flush_failed("pending", error, correlation_id)
    """

    @staticmethod
    def entry_added(
        entry_id: UUID,
        recurrence: str,
        committed: int,
        pending: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_ADDED,
            entity_type="entry",
            entity_id=entry_id,
            correlation_id=correlation_id,
            description=f"Entry added ({recurrence}): {committed} committed, {pending} pending",
            details={
                "recurrence": recurrence,
                "committed_created": committed,
                "pending_created": pending,
            },
            is_user_action=True,
        )

    @staticmethod
    def entry_updated(entry_id: UUID, collection: str, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_UPDATED,
            entity_type="entry",
            entity_id=entry_id,
            correlation_id=correlation_id,
            description=f"Entry updated in {collection}",
            details={"collection": collection},
            is_user_action=True,
        )

    @staticmethod
    def entry_deleted(entry_id: UUID, collection: str, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_DELETED,
            entity_type="entry",
            entity_id=entry_id,
            correlation_id=correlation_id,
            description=f"Entry deleted from {collection}",
            details={"collection": collection},
            is_user_action=True,
        )

    @staticmethod
    def series_cancelled(
        entry_id: UUID,
        from_date: datetime,
        committed_removed: int,
        pending_removed: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SERIES_CANCELLED,
            entity_type="series",
            entity_id=entry_id,
            correlation_id=correlation_id,
            description=f"Series cancelled from {from_date.isoformat()}",
            details={
                "from_date": from_date.isoformat(),
                "committed_removed": committed_removed,
                "pending_removed": pending_removed,
            },
            is_user_action=True,
        )

    @staticmethod
    def entry_rejected(issues: list[dict], correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="draft",
            correlation_id=correlation_id,
            description=f"Entry rejected with {len(issues)} issues",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def ledger_cleared(removed: int, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_CLEARED,
            severity=AuditSeverity.WARNING,
            entity_type="collection",
            correlation_id=correlation_id,
            description=f"Ledger cleared: {removed} entries removed",
            details={"removed": removed},
            is_user_action=True,
        )

    @staticmethod
    def entries_imported(
        imported: int,
        rejected_rows: list[int],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRIES_IMPORTED,
            severity=AuditSeverity.WARNING if rejected_rows else AuditSeverity.INFO,
            entity_type="collection",
            correlation_id=correlation_id,
            description=f"Imported {imported} entries, {len(rejected_rows)} rows rejected",
            details={"imported": imported, "rejected_rows": rejected_rows},
            is_user_action=True,
        )

    @staticmethod
    def entries_promoted(count: int, now: datetime, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRIES_PROMOTED,
            entity_type="collection",
            correlation_id=correlation_id,
            description=f"Promoted {count} pending entries to committed",
            details={"count": count, "now": now.isoformat()},
        )

    @staticmethod
    def pending_expired(count: int, now: datetime, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PENDING_EXPIRED,
            entity_type="collection",
            correlation_id=correlation_id,
            description=f"Evicted {count} stale pending entries",
            details={"count": count, "now": now.isoformat()},
        )

    @staticmethod
    def pending_regenerated(
        series: int,
        discarded: int,
        created: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PENDING_REGENERATED,
            entity_type="collection",
            correlation_id=correlation_id,
            description=f"Regenerated {series} series: {created} created, {discarded} replaced",
            details={
                "series": series,
                "discarded": discarded,
                "created": created,
            },
        )

    @staticmethod
    def reconciliation_tick(
        promoted: int,
        created: int,
        duration_ms: float,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECONCILIATION_TICK,
            severity=AuditSeverity.DEBUG,
            entity_type="scheduler",
            correlation_id=correlation_id,
            description=f"Reconciliation tick: {promoted} promoted, {created} created",
            details={
                "promoted": promoted,
                "created": created,
                "duration_ms": round(duration_ms, 2),
            },
        )

    @staticmethod
    def scheduler_state(started: bool, interval_seconds: float) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.SCHEDULER_STARTED
                if started
                else AuditEventType.SCHEDULER_STOPPED
            ),
            entity_type="scheduler",
            description=f"Scheduler {'started' if started else 'stopped'}",
            details={"interval_seconds": interval_seconds},
        )

    @staticmethod
    def ledger_loaded(committed: int, pending: int, dropped: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_LOADED,
            severity=AuditSeverity.WARNING if dropped else AuditSeverity.INFO,
            entity_type="collection",
            description=f"Ledger loaded: {committed} committed, {pending} pending",
            details={
                "committed": committed,
                "pending": pending,
                "duplicates_dropped": dropped,
            },
        )

    @staticmethod
    def flush_failed(
        collection: str,
        error_message: str,
        version: int,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FLUSH_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="collection",
            correlation_id=correlation_id,
            description=f"Failed to persist {collection} collection",
            error_message=error_message,
            details={"collection": collection, "version": version},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
