"""In-memory storage, for tests and for running without persistence."""

from typing import Sequence

from budget_ledger.models.entry import Entry
from budget_ledger.services.storage.interface import LedgerStorageInterface


class InMemoryLedgerStorage(LedgerStorageInterface):
    """Keeps saved collections in process memory. Entries are immutable, so list copies suffice."""

    def __init__(
        self,
        committed: Sequence[Entry] = (),
        pending: Sequence[Entry] = (),
    ):
        self.committed: list[Entry] = list(committed)
        self.pending: list[Entry] = list(pending)
        self.save_count = 0

    async def load_committed(self) -> list[Entry]:
        return list(self.committed)

    async def save_committed(self, entries: Sequence[Entry]) -> None:
        self.committed = list(entries)
        self.save_count += 1

    async def load_pending(self) -> list[Entry]:
        return list(self.pending)

    async def save_pending(self, entries: Sequence[Entry]) -> None:
        self.pending = list(entries)
        self.save_count += 1
