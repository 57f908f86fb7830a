"""
Data Models Package

This package contains all Pydantic models used by the budget ledger.
Every entry flowing through the ledger must conform to these schemas.
"""

from budget_ledger.models.entry import (
    Entry,
    EntryDraft,
    EntryType,
    ReceiptSuggestion,
    Recurrence,
    SeriesIdentity,
    ValidationIssue,
    ValidationResult,
    series_key,
)
from budget_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Entry models
    "Entry",
    "EntryDraft",
    "EntryType",
    "ReceiptSuggestion",
    "Recurrence",
    "SeriesIdentity",
    "ValidationIssue",
    "ValidationResult",
    "series_key",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
