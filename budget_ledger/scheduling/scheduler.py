"""
Reconciliation Scheduler

Drives the ledger forward in time. Each tick:
1. promote_due(now): Pending entries whose date arrived move to Committed
2. regenerate_all(now): every series' Pending window is refilled

The order matters: regeneration seeds from the most recent Committed
occurrence, so entries that just became due must be Committed first.

The scheduler owns one cancellable asyncio task that ticks on a fixed
cadence, independent of user activity. On start it loads the ledger and
runs one catch-up tick for the time that passed while nothing was running.
"""

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from budget_ledger.audit import AuditLogger, create_correlation_id
from budget_ledger.config import get_settings
from budget_ledger.ledger import Ledger, RegenerationReport
from budget_ledger.models.entry import Entry


@dataclass(frozen=True)
class TickReport:
    """Outcome of one reconciliation tick."""
    now: datetime
    promoted: tuple[Entry, ...]
    regeneration: RegenerationReport


class ReconciliationScheduler:
    """
    Periodic promote-then-regenerate driver for a Ledger.

    Usage:
        scheduler = ReconciliationScheduler(ledger)
        await scheduler.start()   # load + catch-up tick + background task
        ...
        await scheduler.stop()
    """

    def __init__(
        self,
        ledger: Ledger,
        *,
        interval_seconds: Optional[float] = None,
        clock: Optional[Callable[[], datetime]] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._ledger = ledger
        self._interval = (
            interval_seconds
            if interval_seconds is not None
            else get_settings().ledger.refresh_interval_seconds
        )
        self._clock = clock or ledger.now
        self._audit_logger = audit_logger or AuditLogger()
        self._task: Optional[asyncio.Task] = None
        self._ticks = 0

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def tick_count(self) -> int:
        return self._ticks

    async def tick(self, now: Optional[datetime] = None) -> TickReport:
        """Run one reconciliation pass; both steps see the same ``now``."""
        correlation_id = create_correlation_id()
        started = time.perf_counter()
        now = now or self._clock()

        promoted = await self._ledger.promote_due(now)
        regeneration = await self._ledger.regenerate_all(now)
        self._ticks += 1

        self._audit_logger.log_reconciliation_tick(
            promoted=len(promoted),
            created=regeneration.created,
            duration_ms=(time.perf_counter() - started) * 1000,
            correlation_id=correlation_id,
        )
        return TickReport(now=now, promoted=tuple(promoted), regeneration=regeneration)

    async def start(self, load: bool = True) -> TickReport:
        """
        Restart recovery: load both collections, catch up once, then tick periodically.

        Raises:
            RuntimeError: If the scheduler is already running
            StorageError: If the ledger cannot be loaded
        """
        if self.running:
            raise RuntimeError("Reconciliation scheduler is already running")
        if load:
            await self._ledger.load()
        report = await self.tick()
        self._task = asyncio.create_task(self._run(), name="ledger-reconciliation")
        self._audit_logger.log_scheduler_state(started=True, interval_seconds=self._interval)
        return report

    async def stop(self) -> None:
        """Cancel the periodic task and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        self._audit_logger.log_scheduler_state(started=False, interval_seconds=self._interval)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.tick()
            except Exception as e:
                # Keep ticking; the next cadence retries from fresh state
                self._audit_logger.log_error(
                    error_type="reconciliation_tick",
                    error_message=str(e),
                    details={"exception": type(e).__name__},
                )
