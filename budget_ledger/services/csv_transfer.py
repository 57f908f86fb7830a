"""
CSV Import and Export

Moves entries in and out of spreadsheet-friendly CSV text.

Export writes one row per entry. Import finds its columns from the header
(or takes an explicit column mapping), turns each row into an Entry and
reports the rows it could not use rather than guessing: a row with an
unreadable amount or date is rejected, never dated "today".

Imported entries go through Ledger.add, so a row with a recurrence starts
a new series exactly as if the user had entered it.
"""

import csv
import io
import re
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Iterable, Mapping, Optional

from pydantic import ValidationError

from budget_ledger.audit import AuditLogger, create_correlation_id
from budget_ledger.ledger import Ledger
from budget_ledger.models.entry import Entry, EntryType, Recurrence


EXPORT_HEADER = ("Amount", "Category", "Type", "Date", "Notes", "Icon")
REQUIRED_COLUMNS = ("amount", "category", "date")
DEFAULT_ICON = "💵"

# Header fragments that identify each field; the first match wins
COLUMN_HINTS = (
    ("amount", ("amount", "price", "sum")),
    ("category", ("categ",)),
    ("date", ("date", "time")),
    ("notes", ("note", "description", "memo")),
    ("type", ("type",)),
    ("icon", ("icon", "symbol")),
    ("recurrence", ("recur", "repeat", "frequency")),
)

# Month-first is tried before day-first
DATE_FORMATS = (
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%d/%m/%Y",
    "%Y/%m/%d",
    "%m-%d-%Y",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M:%S %z",
    "%Y/%m/%d %H:%M:%S %z",
)


class CsvImportError(ValueError):
    """The CSV text cannot be imported at all."""


@dataclass
class CsvImportResult:
    """Entries parsed from a CSV file, and the line numbers of rows that were not."""
    entries: list[Entry] = field(default_factory=list)
    rejected_rows: list[int] = field(default_factory=list)


# =============================================================================
# EXPORT
# =============================================================================

def export_csv(entries: Iterable[Entry]) -> str:
    """Render entries as CSV text with an ``EXPORT_HEADER`` row."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(EXPORT_HEADER)
    for entry in entries:
        writer.writerow([
            f"{entry.amount:.2f}",
            entry.category,
            entry.type.value,
            entry.date.strftime("%Y-%m-%d"),
            entry.notes or "",
            entry.icon,
        ])
    return buffer.getvalue()


# =============================================================================
# IMPORT
# =============================================================================

def detect_columns(header: list[str]) -> dict[str, int]:
    """Map field names to column indexes by looking at the header text."""
    columns: dict[str, int] = {}
    for index, name in enumerate(header):
        name = name.strip().lower()
        for field_name, hints in COLUMN_HINTS:
            if any(hint in name for hint in hints):
                columns.setdefault(field_name, index)
                break
    return columns


def parse_amount(text: str) -> Optional[Decimal]:
    """Read "$1,250.00", "-12.5" or "(50.00)" (negative) as a Decimal."""
    cleaned = re.sub(r"[^0-9.\-]", "", text)
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None
    if "(" in text and ")" in text:
        amount = -abs(amount)
    return amount


def parse_date(text: str) -> Optional[datetime]:
    """Try each of ``DATE_FORMATS``; zoned times become naive local times."""
    for fmt in DATE_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone().replace(tzinfo=None)
        return parsed
    return None


def parse_type(text: str) -> EntryType:
    text = text.lower()
    if any(word in text for word in ("income", "deposit", "credit")):
        return EntryType.INCOME
    if "invest" in text:
        return EntryType.INVESTMENT
    if "sav" in text:
        return EntryType.SAVINGS
    return EntryType.EXPENSE


def parse_recurrence(text: str) -> Recurrence:
    text = text.lower()
    if "daily" in text:
        return Recurrence.DAILY
    if "week" in text:
        return Recurrence.BI_WEEKLY if "bi" in text else Recurrence.WEEKLY
    if "month" in text:
        return Recurrence.MONTHLY
    if "quarter" in text:
        return Recurrence.QUARTERLY
    if "year" in text or "annual" in text:
        return Recurrence.ANNUAL
    return Recurrence.ONE_TIME


def _parse_row(row: list[str], columns: Mapping[str, int]) -> Optional[Entry]:
    def cell(name: str) -> str:
        index = columns.get(name)
        if index is None or index >= len(row):
            return ""
        return row[index].strip()

    amount = parse_amount(cell("amount"))
    date = parse_date(cell("date"))
    if not amount or date is None:
        return None

    if "type" in columns:
        entry_type = parse_type(cell("type"))
    else:
        # Without a type column the sign decides
        entry_type = EntryType.INCOME if amount > 0 else EntryType.EXPENSE

    try:
        return Entry(
            amount=abs(amount),
            category=cell("category"),
            type=entry_type,
            date=date,
            recurrence=parse_recurrence(cell("recurrence")),
            notes=cell("notes") or None,
            icon=cell("icon") or DEFAULT_ICON,
        )
    except ValidationError:
        return None


def parse_csv(text: str, columns: Optional[Mapping[str, int]] = None) -> CsvImportResult:
    """
    Parse CSV text into entries.

    Args:
        text: The whole file
        columns: Field name -> column index. Detected from the header
            when omitted.

    Returns:
        The parsed entries and the line numbers of rejected rows

    Raises:
        CsvImportError: If the file is empty or a required column
            (amount, category, date) cannot be found
    """
    rows = csv.reader(io.StringIO(text.lstrip("\ufeff")))
    header = next(rows, None)
    if header is None or not any(cell.strip() for cell in header):
        raise CsvImportError("The CSV file is empty")

    columns = dict(columns) if columns is not None else detect_columns(header)
    missing = [name for name in REQUIRED_COLUMNS if name not in columns]
    if missing:
        raise CsvImportError(f"Missing required columns: {', '.join(missing)}")

    result = CsvImportResult()
    for row in rows:
        if not any(cell.strip() for cell in row):
            continue
        entry = _parse_row(row, columns)
        if entry is None:
            result.rejected_rows.append(rows.line_num)
        else:
            result.entries.append(entry)
    return result


async def import_csv(
    ledger: Ledger,
    text: str,
    columns: Optional[Mapping[str, int]] = None,
    audit_logger: Optional[AuditLogger] = None,
) -> CsvImportResult:
    """Parse ``text`` and add every accepted entry to ``ledger``."""
    result = parse_csv(text, columns)
    for entry in result.entries:
        await ledger.add(entry)

    (audit_logger or AuditLogger()).log_entries_imported(
        imported=len(result.entries),
        rejected_rows=result.rejected_rows,
        correlation_id=create_correlation_id(),
    )
    return result
