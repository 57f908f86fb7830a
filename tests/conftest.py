"""
Shared test fixtures.

Time is driven by FixedClock so every test is deterministic; storage is
in-memory unless a test is about a specific backend.
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from budget_ledger.audit import AuditLogger
from budget_ledger.config import LedgerSettings
from budget_ledger.ledger import Ledger
from budget_ledger.models import AuditEvent, Entry, EntryType, Recurrence
from budget_ledger.services.storage import InMemoryLedgerStorage


NOW = datetime(2024, 3, 4, 9, 0)


class FixedClock:
    """A clock that only moves when told to."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class RecordingAuditLogger(AuditLogger):
    """Keeps every event it is asked to log."""

    def __init__(self):
        super().__init__("budget_ledger.tests")
        self.events: list[AuditEvent] = []

    def log(self, event: AuditEvent) -> None:
        self.events.append(event)
        super().log(event)

    def of_type(self, event_type) -> list[AuditEvent]:
        return [e for e in self.events if e.event_type == event_type]


def make_entry(
    amount: str = "20",
    category: str = "Allowance",
    type: EntryType = EntryType.INCOME,
    date: datetime = NOW,
    recurrence: Recurrence = Recurrence.ONE_TIME,
    **fields,
) -> Entry:
    return Entry(
        amount=Decimal(amount),
        category=category,
        type=type,
        date=date,
        recurrence=recurrence,
        **fields,
    )


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def storage() -> InMemoryLedgerStorage:
    return InMemoryLedgerStorage()


@pytest.fixture
def audit_logger() -> RecordingAuditLogger:
    return RecordingAuditLogger()


@pytest.fixture
def settings() -> LedgerSettings:
    return LedgerSettings(
        storage_backend="memory",
        flush_retry_attempts=1,
        flush_retry_max_wait_seconds=0,
    )


@pytest.fixture
def ledger(storage, settings, clock, audit_logger) -> Ledger:
    return Ledger(storage, settings=settings, clock=clock, audit_logger=audit_logger)
