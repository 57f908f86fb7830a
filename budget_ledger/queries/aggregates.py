"""
Derived Aggregates

Read-only sums and views over entries, for the presentation layer.

DESIGN DECISION: These are plain functions over a sequence of entries.
They never see the ledger's lists, only the snapshots it hands out, so
nothing here can mutate a collection.
"""

from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from itertools import chain
from typing import Iterable, Optional

from budget_ledger.models.entry import Entry, EntryType


ZERO = Decimal("0")


def totals_by_type(entries: Iterable[Entry]) -> dict[EntryType, Decimal]:
    """Sum of amounts per entry type; every type is present, zero if unused."""
    totals = {entry_type: ZERO for entry_type in EntryType}
    for entry in entries:
        totals[entry.type] += entry.amount
    return totals


def total_for_type(entries: Iterable[Entry], entry_type: EntryType) -> Decimal:
    return sum((e.amount for e in entries if e.type is entry_type), ZERO)


def total_for_category(
    entries: Iterable[Entry],
    category: str,
    entry_type: EntryType,
) -> Decimal:
    return sum(
        (e.amount for e in entries if e.category == category and e.type is entry_type),
        ZERO,
    )


def totals_by_category(entries: Iterable[Entry], entry_type: EntryType) -> dict[str, Decimal]:
    """Sum of amounts per category, for one entry type."""
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for entry in entries:
        if entry.type is entry_type:
            totals[entry.category] += entry.amount
    return dict(totals)


def balance(entries: Iterable[Entry]) -> Decimal:
    """Income minus expenses. Investments and savings don't count either way."""
    totals = totals_by_type(entries)
    return totals[EntryType.INCOME] - totals[EntryType.EXPENSE]


def timeline(committed: Iterable[Entry], pending: Iterable[Entry]) -> list[Entry]:
    """Both collections as one list, oldest first."""
    return sorted(chain(committed, pending), key=lambda e: e.date)


def upcoming(
    entries: Iterable[Entry],
    now: datetime,
    entry_type: Optional[EntryType] = None,
) -> list[Entry]:
    """Entries dated after ``now``, soonest first, optionally of one type."""
    future = [
        e for e in entries
        if e.date > now and (entry_type is None or e.type is entry_type)
    ]
    return sorted(future, key=lambda e: e.date)
