"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as a storage backend because:
1. Users can view their ledger directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- Saving rewrites the whole worksheet (clear, then write all rows);
  the ledger serializes saves per collection, so two saves never overlap
- Limited query capabilities (the ledger keeps everything in memory anyway)

Committed and Pending each get their own worksheet with a header row
and one entry per row.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence
from uuid import UUID

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from budget_ledger.config import get_settings
from budget_ledger.models.entry import Entry, EntryType, Recurrence
from budget_ledger.services.storage.interface import (
    ConnectionError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)


ENTRY_COLUMNS = [
    "id",
    "date",
    "amount",
    "category",
    "type",
    "recurrence",
    "notes",
    "icon",
    "series_id",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @property
    def committed_sheet_name(self) -> str:
        return self._settings.committed_sheet_name

    @property
    def pending_sheet_name(self) -> str:
        return self._settings.pending_sheet_name

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise NotFoundError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(self, title: str) -> gspread.Worksheet:
        """Get or create a worksheet with the entry header row."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(ENTRY_COLUMNS),
            )
            sheet.append_row(ENTRY_COLUMNS)
        return sheet


class GoogleSheetsLedgerStorage(LedgerStorageInterface):
    """
    Google Sheets implementation of the persistence gateway.

    Entries are stored as rows; amounts as decimal strings so nothing is
    lost to float conversion.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _entry_to_row(self, entry: Entry) -> list:
        """Convert an Entry to a spreadsheet row."""
        return [
            str(entry.id),
            entry.date.isoformat(),
            str(entry.amount),
            entry.category,
            entry.type.value,
            entry.recurrence.value,
            entry.notes or "",
            entry.icon,
            str(entry.series_id) if entry.series_id else "",
        ]

    def _row_to_entry(self, row: list) -> Entry:
        """Convert a spreadsheet row to an Entry."""
        # Handle missing trailing columns gracefully
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return Entry(
            id=UUID(safe_get(0)),
            date=datetime.fromisoformat(safe_get(1)),
            amount=Decimal(safe_get(2)),
            category=safe_get(3),
            type=EntryType(safe_get(4)),
            recurrence=Recurrence(safe_get(5)),
            notes=safe_get(6) or None,
            icon=safe_get(7),
            series_id=UUID(safe_get(8)) if safe_get(8) else None,
        )

    def _load(self, title: str) -> list[Entry]:
        try:
            sheet = self._client.get_worksheet(title)
            rows = sheet.get_all_values()[1:]  # Skip header
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read {title} sheet: {e}")

        entries = []
        for row in rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                entries.append(self._row_to_entry(row))
            except Exception as e:
                raise StorageError(f"Malformed row in {title} sheet: {e}")
        return entries

    def _save(self, title: str, entries: Sequence[Entry]) -> None:
        try:
            sheet = self._client.get_worksheet(title)
            values = [ENTRY_COLUMNS] + [self._entry_to_row(entry) for entry in entries]
            sheet.clear()
            sheet.update(range_name="A1", values=values, value_input_option="RAW")
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save {title} sheet: {e}")

    async def load_committed(self) -> list[Entry]:
        return self._load(self._client.committed_sheet_name)

    async def save_committed(self, entries: Sequence[Entry]) -> None:
        self._save(self._client.committed_sheet_name, entries)

    async def load_pending(self) -> list[Entry]:
        return self._load(self._client.pending_sheet_name)

    async def save_pending(self, entries: Sequence[Entry]) -> None:
        self._save(self._client.pending_sheet_name, entries)
