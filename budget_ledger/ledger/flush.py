"""
Serialized Collection Flushing

Each collection gets one CollectionFlusher. Saves of that collection run
one at a time, in the order they were requested, and a snapshot older than
the last one written is skipped. A flush requested by a user edit and one
requested by a scheduler tick can therefore never overwrite newer state
with older state.

Failures are retried with tenacity, then logged and reported as False.
They never raise: the in-memory ledger stays authoritative and the next
mutation flushes again.
"""

import asyncio
from typing import Awaitable, Callable, Optional, Sequence
from uuid import UUID

from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential

from budget_ledger.audit import AuditLogger
from budget_ledger.models.entry import Entry


SaveFn = Callable[[Sequence[Entry]], Awaitable[None]]


class CollectionFlusher:
    """Single-writer queue for one persisted collection."""

    def __init__(
        self,
        name: str,
        save: SaveFn,
        audit_logger: AuditLogger,
        retry_attempts: int = 3,
        retry_max_wait: float = 4.0,
    ):
        self.name = name
        self._save = save
        self._audit_logger = audit_logger
        self._retry_attempts = retry_attempts
        self._retry_max_wait = retry_max_wait
        self._lock = asyncio.Lock()
        self._written_version = 0

    @property
    def written_version(self) -> int:
        """Version of the newest snapshot successfully persisted."""
        return self._written_version

    async def flush(
        self,
        snapshot: Sequence[Entry],
        version: int,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Persist ``snapshot`` taken at ledger state ``version``.

        Returns:
            True if this snapshot (or a newer one) is now persisted
        """
        async with self._lock:
            if version <= self._written_version:
                return True
            try:
                async for attempt in AsyncRetrying(
                    stop=stop_after_attempt(self._retry_attempts),
                    wait=wait_exponential(multiplier=0.5, max=self._retry_max_wait),
                    reraise=True,
                ):
                    with attempt:
                        await self._save(snapshot)
            except Exception as e:
                self._audit_logger.log_flush_failed(
                    collection=self.name,
                    error_message=str(e),
                    version=version,
                    correlation_id=correlation_id,
                )
                return False
            self._written_version = version
            return True
