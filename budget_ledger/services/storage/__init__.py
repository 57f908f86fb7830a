"""
Storage Services Package

Provides the persistence gateway interface and its backends.
The ledger only ever talks to LedgerStorageInterface.
"""

from budget_ledger.services.storage.interface import (
    ConnectionError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)
from budget_ledger.services.storage.memory import InMemoryLedgerStorage
from budget_ledger.services.storage.json_file import JsonFileLedgerStorage
from budget_ledger.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
)

__all__ = [
    # Interface
    "LedgerStorageInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "InMemoryLedgerStorage",
    "JsonFileLedgerStorage",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStorage",
]
