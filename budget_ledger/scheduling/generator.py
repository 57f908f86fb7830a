"""
Occurrence Generator

Expands a recurring seed entry into the dated occurrences of its series,
from the next unseen date up to the visibility horizon.

The generator is pure: it reads the seed, "now" and the entries that
already exist, and returns new Entry values. It does not route them into
collections and does not discard anything; the Ledger does both.
"""

from datetime import datetime
from typing import Collection, Iterable, Iterator, Mapping, Optional
from uuid import UUID

from dateutil.relativedelta import relativedelta

from budget_ledger.models.entry import Entry, Recurrence, SeriesIdentity, series_key
from budget_ledger.policy import policy_for


STEPS: Mapping[Recurrence, relativedelta] = {
    Recurrence.DAILY: relativedelta(days=1),
    Recurrence.WEEKLY: relativedelta(weeks=1),
    Recurrence.BI_WEEKLY: relativedelta(weeks=2),
    Recurrence.MONTHLY: relativedelta(months=1),
    Recurrence.QUARTERLY: relativedelta(months=3),
    Recurrence.ANNUAL: relativedelta(years=1),
}

# Fields every occurrence inherits from its seed
INHERITED_FIELDS = ("amount", "category", "type", "recurrence", "notes", "icon", "series_id")


def next_occurrence(when: datetime, recurrence: Recurrence) -> datetime:
    """
    Advance one step. Month-based steps clamp to the end of short months
    (Jan 31 -> Feb 28), and the next step continues from the clamped date.
    """
    if recurrence is Recurrence.ONE_TIME:
        raise ValueError("one-time entries have no next occurrence")
    return when + STEPS[recurrence]


def occurrence_dates(start: datetime, recurrence: Recurrence, horizon: datetime) -> Iterator[datetime]:
    """Yield start, start+step, ... while the date is <= horizon."""
    current = start
    while current <= horizon:
        yield current
        current = next_occurrence(current, recurrence)


def start_date(
    seed: Entry,
    existing: Iterable[Entry],
    strategy: SeriesIdentity,
) -> datetime:
    """
    Where the series resumes: the step after the latest existing occurrence,
    or the seed's own date if the series has no occurrences yet.
    """
    key = series_key(seed, strategy)
    latest: Optional[datetime] = None
    for entry in existing:
        if series_key(entry, strategy) == key and (latest is None or entry.date > latest):
            latest = entry.date
    if latest is None:
        return seed.date
    return next_occurrence(latest, seed.recurrence)


def expand(
    seed: Entry,
    now: datetime,
    existing: Iterable[Entry] = (),
    *,
    strategy: SeriesIdentity = SeriesIdentity.SERIES_ID,
    carried_ids: Optional[Mapping[datetime, UUID]] = None,
    skipped: Collection[datetime] = (),
) -> list[Entry]:
    """
    Generate the occurrences of ``seed``'s series that don't exist yet.

    Args:
        seed: Template for the series (amount, category, type, ...)
        now: Current time; the horizon is now + visibility window
        existing: Entries already in the ledger (Committed and surviving Pending)
        strategy: Series identity strategy used to match ``existing``
        carried_ids: Ids of occurrences replaced in this pass, keyed by date.
            An occurrence landing on one of these dates keeps that id.
        skipped: Dates removed from this series by the user. None of them
            is generated, and those on or before ``now`` count as
            occurrences when finding where the series resumes.

    Returns:
        New entries in date order. Empty for one-time seeds.
    """
    if seed.recurrence is Recurrence.ONE_TIME:
        return []

    carried_ids = carried_ids or {}
    horizon = policy_for(seed.recurrence).horizon(now)
    template = {name: getattr(seed, name) for name in INHERITED_FIELDS}

    start = start_date(seed, existing, strategy)
    passed = [when for when in skipped if when <= now]
    if passed:
        start = max(start, next_occurrence(max(passed), seed.recurrence))

    occurrences = []
    for when in occurrence_dates(start, seed.recurrence, horizon):
        if when in skipped:
            continue
        fields = dict(template, date=when)
        if when in carried_ids:
            fields["id"] = carried_ids[when]
        occurrences.append(Entry(**fields))
    return occurrences
