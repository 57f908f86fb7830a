"""
Abstract Persistence Gateway

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap the JSON store for Google Sheets (or a database) without touching the ledger
2. Use in-memory storage for testing
3. Keep the ledger memory-authoritative: storage only loads and saves whole collections

The interface is intentionally tiny: two independent collections, each with
a load and a save. Absence of stored data is a valid empty state, not an
error.
"""

from abc import ABC, abstractmethod
from typing import Sequence

from budget_ledger.models.entry import Entry


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger persistence.

    Any backend must round-trip every Entry field, including ``id``
    and ``series_id``.
    """

    @abstractmethod
    async def load_committed(self) -> list[Entry]:
        """
        Load the Committed collection.

        Returns:
            Stored entries in stored order; empty if nothing was saved yet

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def save_committed(self, entries: Sequence[Entry]) -> None:
        """
        Replace the stored Committed collection.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def load_pending(self) -> list[Entry]:
        """Load the Pending collection. Same contract as load_committed."""
        pass

    @abstractmethod
    async def save_pending(self, entries: Sequence[Entry]) -> None:
        """Replace the stored Pending collection. Same contract as save_committed."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Storage location (file, spreadsheet) not found."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
