"""
JSON Key-Value Storage

Stores both collections in one JSON document, under the keys
``transactions`` (Committed) and ``pendingTransactions`` (Pending).

TRADEOFFS:
- The whole document is rewritten on every save (fine for a personal ledger)
- Writes go to a temp file first and are swapped in with os.replace,
  so a crash mid-write leaves the previous document intact
"""

import json
import os
from pathlib import Path
from typing import Optional, Sequence

from pydantic import ValidationError

from budget_ledger.config import get_settings
from budget_ledger.models.entry import Entry
from budget_ledger.services.storage.interface import (
    LedgerStorageInterface,
    StorageError,
)


COMMITTED_KEY = "transactions"
PENDING_KEY = "pendingTransactions"


class JsonFileLedgerStorage(LedgerStorageInterface):
    """File-backed key-value store for the two collections."""

    def __init__(self, path: Optional[Path] = None):
        self._path = Path(path or get_settings().ledger.json_path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    # No awaits between read and write below: a read-modify-write of the
    # shared document cannot interleave with the other collection's save.

    def _read_document(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            with self._path.open("r", encoding="utf-8") as fh:
                document = json.load(fh)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read ledger store {self._path}: {e}")
        if not isinstance(document, dict):
            raise StorageError(f"Ledger store {self._path} is not a JSON object")
        return document

    def _write_document(self, document: dict) -> None:
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            with tmp_path.open("w", encoding="utf-8") as fh:
                json.dump(document, fh, indent=2)
            os.replace(tmp_path, self._path)
        except OSError as e:
            raise StorageError(f"Failed to write ledger store {self._path}: {e}")

    def _load(self, key: str) -> list[Entry]:
        rows = self._read_document().get(key) or []
        try:
            return [Entry.model_validate(row) for row in rows]
        except ValidationError as e:
            raise StorageError(f"Malformed entry under '{key}': {e}")

    def _save(self, key: str, entries: Sequence[Entry]) -> None:
        document = self._read_document()
        document[key] = [entry.model_dump(mode="json") for entry in entries]
        self._write_document(document)

    async def load_committed(self) -> list[Entry]:
        return self._load(COMMITTED_KEY)

    async def save_committed(self, entries: Sequence[Entry]) -> None:
        self._save(COMMITTED_KEY, entries)

    async def load_pending(self) -> list[Entry]:
        return self._load(PENDING_KEY)

    async def save_pending(self, entries: Sequence[Entry]) -> None:
        self._save(PENDING_KEY, entries)
