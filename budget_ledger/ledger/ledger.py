"""
Ledger

Owns the two collections, Committed (occurred) and Pending (scheduled,
not yet due), and is the only thing allowed to mutate them.

CONCURRENCY: every public operation runs as one critical section under a
single asyncio.Lock, so a regeneration never observes a half-applied add
and vice versa. The lock is released before persistence I/O; the state
to persist is snapshotted (with a version number) while the lock is held
and handed to the per-collection flushers.

FAILURES: no operation fails on logical grounds. Unknown ids are silent
no-ops. A failed flush is logged and leaves memory untouched; memory is
authoritative and the next mutation flushes again.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from itertools import chain
from typing import Callable, Optional
from uuid import UUID, uuid4

from budget_ledger.audit import AuditLogger, create_correlation_id
from budget_ledger.config import LedgerSettings, get_settings
from budget_ledger.ledger.flush import CollectionFlusher
from budget_ledger.models.entry import Entry, SeriesIdentity, series_key
from budget_ledger.scheduling.generator import expand
from budget_ledger.services.storage import LedgerStorageInterface


Clock = Callable[[], datetime]


class DeleteScope(str, Enum):
    """How much of a recurring series a delete removes."""
    THIS_ONLY = "this_only"
    THIS_AND_FUTURE = "this_and_future"


@dataclass(frozen=True)
class RegenerationReport:
    """What one regenerate_all pass did."""
    series: int = 0
    evicted: int = 0
    discarded: int = 0
    created: int = 0
    changed: bool = False


@dataclass(frozen=True)
class _Snapshot:
    committed: tuple[Entry, ...]
    pending: tuple[Entry, ...]
    version: int


class Ledger:
    """
    The recurring-entry ledger.

    Usage:
        ledger = Ledger(JsonFileLedgerStorage())
        await ledger.load()
        await ledger.add(entry)
        await ledger.promote_due()
        await ledger.regenerate_all()
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        *,
        settings: Optional[LedgerSettings] = None,
        clock: Optional[Clock] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._settings = settings or get_settings().ledger
        self._clock = clock or datetime.now
        self._audit_logger = audit_logger or AuditLogger()

        self._committed: list[Entry] = []
        self._pending: list[Entry] = []
        self._lock = asyncio.Lock()
        self._version = 0
        # Series keys cut by delete_series_from; regeneration skips them
        self._cancelled: set = set()
        # Series key -> dates of occurrences the user deleted or edited
        self._skipped: dict = {}
        # Occurrences edited by the user; they stop following their series' template
        self._edited: set[UUID] = set()

        flush_options = dict(
            audit_logger=self._audit_logger,
            retry_attempts=self._settings.flush_retry_attempts,
            retry_max_wait=self._settings.flush_retry_max_wait_seconds,
        )
        self._committed_flusher = CollectionFlusher("committed", storage.save_committed, **flush_options)
        self._pending_flusher = CollectionFlusher("pending", storage.save_pending, **flush_options)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def committed(self) -> tuple[Entry, ...]:
        return tuple(self._committed)

    @property
    def pending(self) -> tuple[Entry, ...]:
        return tuple(self._pending)

    @property
    def all_entries(self) -> list[Entry]:
        """Committed and Pending together, oldest first."""
        return sorted(chain(self._committed, self._pending), key=lambda e: e.date)

    @property
    def series_identity(self) -> SeriesIdentity:
        return self._settings.series_identity

    @property
    def last_flush_ok(self) -> bool:
        """Whether both collections are persisted as of the latest mutation."""
        return (
            self._committed_flusher.written_version >= self._version
            and self._pending_flusher.written_version >= self._version
        )

    def now(self) -> datetime:
        return self._clock()

    def find(self, entry_id: UUID) -> Optional[Entry]:
        for entry in chain(self._committed, self._pending):
            if entry.id == entry_id:
                return entry
        return None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(self) -> None:
        """
        Replace in-memory state with what the gateway holds.

        Raises:
            StorageError: If either collection cannot be read. We never
                continue with an empty ledger that would later be flushed
                over the unreadable data.
        """
        committed = await self._storage.load_committed()
        pending = await self._storage.load_pending()

        async with self._lock:
            seen = {entry.id for entry in committed}
            kept_pending = []
            for entry in pending:
                if entry.id in seen:
                    continue
                seen.add(entry.id)
                kept_pending.append(entry)
            self._committed = list(committed)
            self._pending = kept_pending
            self._cancelled.clear()
            self._skipped.clear()
            self._edited.clear()

        self._audit_logger.log_ledger_loaded(
            committed=len(committed),
            pending=len(kept_pending),
            dropped=len(pending) - len(kept_pending),
        )

    # ------------------------------------------------------------------
    # User operations
    # ------------------------------------------------------------------

    async def add(self, entry: Entry) -> list[Entry]:
        """
        Add a one-time entry, or start a new recurring series seeded by ``entry``.

        One-time entries go to Committed if due, else Pending. A recurring
        entry gets a fresh series_id and is expanded up to its visibility
        horizon; the occurrence on the seed's own date keeps the seed's id.

        Returns:
            The entries created (empty if ``entry.id`` is already in the ledger)
        """
        correlation_id = create_correlation_id()
        async with self._lock:
            if self._locate(entry.id) is not None:
                return []
            now = self._clock()
            if entry.is_recurring:
                seed = entry.model_copy(update={"series_id": uuid4()})
                self._forget_markers(series_key(seed, self.series_identity))
                _, created = self._apply_series(seed, now, seed_id=entry.id)
            else:
                self._route(entry, now)
                created = [entry]
            snapshot = self._snapshot()

        due = sum(1 for e in created if e.date <= now)
        self._audit_logger.log_entry_added(
            entry_id=entry.id,
            recurrence=entry.recurrence.value,
            committed=due,
            pending=len(created) - due,
            correlation_id=correlation_id,
        )
        await self._flush(snapshot, correlation_id)
        return created

    async def update(self, entry: Entry) -> bool:
        """
        Replace the stored entry with the same id, in place.

        The entry stays in its collection even if its new date crosses
        "now"; no occurrences are regenerated. An edited occurrence of a
        recurring series is kept as the user left it: regeneration neither
        replaces it nor recreates it on its old date.
        """
        correlation_id = create_correlation_id()
        async with self._lock:
            located = self._locate(entry.id)
            if located is None:
                return False
            collection, index = located
            previous = collection[index]
            if previous.is_recurring and entry != previous and previous.id not in self._edited:
                self._skip(previous)
                self._edited.add(entry.id)
            collection[index] = entry
            name = self._name_of(collection)
            snapshot = self._snapshot()

        self._audit_logger.log_entry_updated(entry.id, name, correlation_id)
        await self._flush(snapshot, correlation_id)
        return True

    async def delete(self, entry: Entry) -> bool:
        """
        Remove a single entry by id from whichever collection holds it.

        Deleting an occurrence of a recurring series, Committed or Pending,
        also keeps later regeneration passes from recreating that date.
        """
        correlation_id = create_correlation_id()
        async with self._lock:
            located = self._locate(entry.id)
            if located is None:
                return False
            collection, index = located
            removed = collection[index]
            if removed.is_recurring and removed.id not in self._edited:
                self._skip(removed)
            self._edited.discard(removed.id)
            del collection[index]
            name = self._name_of(collection)
            snapshot = self._snapshot()

        self._audit_logger.log_entry_deleted(entry.id, name, correlation_id)
        await self._flush(snapshot, correlation_id)
        return True

    async def delete_series_from(self, entry: Entry, scope: DeleteScope) -> bool:
        """
        Delete one occurrence, or this occurrence and every later one of its series.

        THIS_AND_FUTURE removes matching entries dated on or after
        ``entry.date`` from both collections. Later regeneration passes
        skip the series, so its future occurrences stay gone until a new
        seed is added. That marker is kept in memory and is not persisted.
        One-time entries are only ever deleted singly.
        """
        if scope is DeleteScope.THIS_ONLY or not entry.is_recurring:
            return await self.delete(entry)

        correlation_id = create_correlation_id()
        key = series_key(entry, self.series_identity)

        def doomed(candidate: Entry) -> bool:
            return (
                candidate.date >= entry.date
                and series_key(candidate, self.series_identity) == key
            )

        async with self._lock:
            committed = [e for e in self._committed if not doomed(e)]
            pending = [e for e in self._pending if not doomed(e)]
            committed_removed = len(self._committed) - len(committed)
            pending_removed = len(self._pending) - len(pending)
            if not (committed_removed or pending_removed):
                return False
            self._committed, self._pending = committed, pending
            self._cancelled.add(key)
            snapshot = self._snapshot()

        self._audit_logger.log_series_cancelled(
            entry_id=entry.id,
            from_date=entry.date,
            committed_removed=committed_removed,
            pending_removed=pending_removed,
            correlation_id=correlation_id,
        )
        await self._flush(snapshot, correlation_id)
        return True

    async def clear(self) -> int:
        """
        Remove every entry from both collections and forget all series markers.

        Returns:
            The number of entries removed (0 leaves storage untouched)
        """
        correlation_id = create_correlation_id()
        async with self._lock:
            removed = len(self._committed) + len(self._pending)
            if not removed:
                return 0
            self._committed, self._pending = [], []
            self._cancelled.clear()
            self._skipped.clear()
            self._edited.clear()
            snapshot = self._snapshot()

        self._audit_logger.log_ledger_cleared(removed, correlation_id)
        await self._flush(snapshot, correlation_id)
        return removed

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    async def promote_due(self, now: Optional[datetime] = None) -> list[Entry]:
        """
        Move every Pending entry dated on or before ``now`` into Committed,
        keeping their relative order. A second call with the same ``now``
        finds nothing and does nothing.
        """
        correlation_id = create_correlation_id()
        async with self._lock:
            now = now or self._clock()
            due = [e for e in self._pending if e.date <= now]
            if not due:
                return []
            self._pending = [e for e in self._pending if e.date > now]
            self._committed.extend(due)
            snapshot = self._snapshot()

        self._audit_logger.log_entries_promoted(len(due), now, correlation_id)
        await self._flush(snapshot, correlation_id)
        return due

    async def regenerate_all(self, now: Optional[datetime] = None) -> RegenerationReport:
        """
        Refill every series' Pending window.

        Evicts stale Pending entries (dated before ``now``), then uses the most
        recent Committed occurrence of each recurring series as the seed for
        a fresh expansion. Occurrences that already exist keep their ids, so
        calling this twice with the same ``now`` leaves Pending identical
        and the second call flushes nothing. Cancelled series, removed
        dates and edited occurrences are left alone.
        """
        correlation_id = create_correlation_id()
        async with self._lock:
            now = now or self._clock()
            before = (tuple(self._committed), tuple(self._pending))
            fresh = [e for e in self._pending if e.date >= now]
            evicted = len(self._pending) - len(fresh)
            self._pending = fresh

            seeds: dict = {}
            for entry in self._committed:
                if not entry.is_recurring or entry.id in self._edited:
                    continue
                key = series_key(entry, self.series_identity)
                if key in self._cancelled:
                    continue
                if key not in seeds or entry.date > seeds[key].date:
                    seeds[key] = entry

            discarded = created = 0
            for seed in seeds.values():
                replaced, occurrences = self._apply_series(seed, now)
                discarded += replaced
                created += len(occurrences)
            self._prune_markers(now)

            report = RegenerationReport(
                series=len(seeds),
                evicted=evicted,
                discarded=discarded,
                created=created,
                changed=(tuple(self._committed), tuple(self._pending)) != before,
            )
            snapshot = self._snapshot() if report.changed else None

        if evicted:
            self._audit_logger.log_pending_expired(evicted, now, correlation_id)
        if seeds:
            self._audit_logger.log_pending_regenerated(
                series=len(seeds),
                discarded=discarded,
                created=created,
                correlation_id=correlation_id,
            )
        if snapshot is not None:
            await self._flush(snapshot, correlation_id)
        return report

    # ------------------------------------------------------------------
    # Internals (call with the lock held)
    # ------------------------------------------------------------------

    def _apply_series(
        self,
        seed: Entry,
        now: datetime,
        seed_id: Optional[UUID] = None,
    ) -> tuple[int, list[Entry]]:
        """
        Replace the forward-looking Pending tail of ``seed``'s series.

        Returns:
            (number of Pending entries replaced, entries created)
        """
        key = series_key(seed, self.series_identity)
        tail = [
            e for e in self._pending
            if e.date > now
            and e.id not in self._edited
            and series_key(e, self.series_identity) == key
        ]
        if tail:
            tail_ids = {e.id for e in tail}
            self._pending = [e for e in self._pending if e.id not in tail_ids]

        # The tail holds only unedited occurrences, so each sits on its own date
        carried = {e.date: e.id for e in tail}
        if seed_id is not None:
            carried.setdefault(seed.date, seed_id)

        occurrences = expand(
            seed,
            now,
            (e for e in chain(self._committed, self._pending) if e.id not in self._edited),
            strategy=self.series_identity,
            carried_ids=carried,
            skipped=self._skipped.get(key, ()),
        )
        for occurrence in occurrences:
            self._route(occurrence, now)
        return len(tail), occurrences

    def _skip(self, occurrence: Entry) -> None:
        key = series_key(occurrence, self.series_identity)
        self._skipped.setdefault(key, set()).add(occurrence.date)

    def _forget_markers(self, key) -> None:
        self._cancelled.discard(key)
        self._skipped.pop(key, None)

    def _prune_markers(self, now: datetime) -> None:
        """
        Drop markers that can no longer change what regeneration produces.

        A removed date on or before ``now`` only steers regeneration while
        no later Committed occurrence of its series exists, and then only
        the latest such date matters.
        """
        latest: dict = {}
        for entry in self._committed:
            if entry.is_recurring and entry.id not in self._edited:
                key = series_key(entry, self.series_identity)
                if key not in latest or entry.date > latest[key]:
                    latest[key] = entry.date

        for key in list(self._skipped):
            kept = {when for when in self._skipped[key] if when > now}
            passed = [
                when for when in self._skipped[key]
                if when <= now and key in latest and when > latest[key]
            ]
            if passed:
                kept.add(max(passed))
            if kept:
                self._skipped[key] = kept
            else:
                del self._skipped[key]

        remaining = {
            series_key(e, self.series_identity)
            for e in chain(self._committed, self._pending)
            if e.is_recurring
        }
        self._cancelled &= remaining
        present = {e.id for e in chain(self._committed, self._pending)}
        self._edited &= present

    def _route(self, entry: Entry, now: datetime) -> None:
        if entry.date <= now:
            self._committed.append(entry)
        else:
            self._pending.append(entry)

    def _locate(self, entry_id: UUID) -> Optional[tuple[list[Entry], int]]:
        for collection in (self._committed, self._pending):
            for index, candidate in enumerate(collection):
                if candidate.id == entry_id:
                    return collection, index
        return None

    def _name_of(self, collection: list[Entry]) -> str:
        return "committed" if collection is self._committed else "pending"

    def _snapshot(self) -> _Snapshot:
        self._version += 1
        return _Snapshot(tuple(self._committed), tuple(self._pending), self._version)

    async def _flush(self, snapshot: _Snapshot, correlation_id: UUID) -> bool:
        results = await asyncio.gather(
            self._committed_flusher.flush(snapshot.committed, snapshot.version, correlation_id),
            self._pending_flusher.flush(snapshot.pending, snapshot.version, correlation_id),
        )
        return all(results)
