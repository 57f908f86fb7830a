"""
Recurrence Policy Table

Maps each recurrence frequency to how far ahead its Pending occurrences are
generated (visibility window) and how long before an occurrence a reminder
would fire (pre-notification lead).

The table is pure data, built once at import and exposed read-only.
Reminder *delivery* is not handled here; ``reminders_due`` only reports
which entries are inside their lead time.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from budget_ledger.models.entry import Entry, Recurrence


@dataclass(frozen=True)
class RecurrencePolicy:
    visibility_window: timedelta
    pre_notification_lead: timedelta

    def horizon(self, now: datetime) -> datetime:
        """Latest date an occurrence may have and still be generated."""
        return now + self.visibility_window

    def reminder_at(self, when: datetime) -> Optional[datetime]:
        if not self.pre_notification_lead:
            return None
        return when - self.pre_notification_lead


POLICIES: Mapping[Recurrence, RecurrencePolicy] = MappingProxyType({
    Recurrence.DAILY: RecurrencePolicy(timedelta(days=7), timedelta(days=1)),
    Recurrence.WEEKLY: RecurrencePolicy(timedelta(weeks=2), timedelta(days=3)),
    Recurrence.BI_WEEKLY: RecurrencePolicy(timedelta(weeks=4), timedelta(days=3)),
    Recurrence.MONTHLY: RecurrencePolicy(timedelta(days=31), timedelta(days=7)),
    Recurrence.QUARTERLY: RecurrencePolicy(timedelta(days=93), timedelta(days=7)),
    # Annual entries only surface a month ahead
    Recurrence.ANNUAL: RecurrencePolicy(timedelta(days=31), timedelta(days=7)),
    Recurrence.ONE_TIME: RecurrencePolicy(timedelta(days=365), timedelta(0)),
})


def policy_for(recurrence: Recurrence) -> RecurrencePolicy:
    return POLICIES[recurrence]


def reminders_due(pending: Iterable[Entry], now: datetime) -> list[Entry]:
    """Pending entries whose reminder time has passed but whose date has not."""
    due = []
    for entry in pending:
        remind = policy_for(entry.recurrence).reminder_at(entry.date)
        if remind is not None and remind <= now < entry.date:
            due.append(entry)
    return sorted(due, key=lambda e: e.date)
