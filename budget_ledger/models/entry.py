"""
Core Data Models for the Budget Ledger

These models define the schemas for every entry flowing through the ledger.
They are designed to:
1. Make invalid entries impossible to construct
2. Round-trip through storage with full fidelity (including ids)
3. Carry the series identity used for grouping and cancellation

DESIGN DECISION: Entry is frozen. The Ledger owns both collections
exclusively, so an edit is a new value (``model_copy(update=...)``) handed
back to ``Ledger.update`` rather than an in-place mutation.
"""

from collections.abc import Hashable
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class EntryType(str, Enum):
    """What kind of money movement an entry is. Amounts are always positive."""
    INCOME = "income"
    EXPENSE = "expense"
    INVESTMENT = "investment"
    SAVINGS = "savings"


class Recurrence(str, Enum):
    """How often an entry repeats."""
    ONE_TIME = "one_time"
    DAILY = "daily"
    WEEKLY = "weekly"
    BI_WEEKLY = "bi_weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"


class SeriesIdentity(str, Enum):
    """
    How entries are grouped into a recurring series.

    SERIES_ID: grouping by the explicit ``series_id`` assigned when the
    series was created. Two unrelated series with identical values stay apart.

    VALUE: legacy grouping by (category, type, amount, recurrence). Two
    series with coincidentally identical values merge.
    """
    SERIES_ID = "series_id"
    VALUE = "value"


# =============================================================================
# ENTRY
# =============================================================================

class Entry(BaseModel):
    """
    A single financial line item, one-time or a member of a recurring series.

    Lives in exactly one of the ledger's two collections:
    Committed (date has arrived) or Pending (scheduled, not yet due).
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique entry ID, never reused"
    )
    amount: Annotated[
        Decimal,
        Field(gt=0, description="Positive magnitude; meaning comes from type")
    ]
    category: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Free-text category label"
    )
    type: EntryType
    date: datetime = Field(
        ...,
        description="Effective date-time of this occurrence"
    )
    recurrence: Recurrence = Recurrence.ONE_TIME
    notes: Optional[str] = Field(
        default=None,
        max_length=1000,
    )
    icon: str = Field(
        default="",
        description="Display token, not used by the engine"
    )
    series_id: Optional[UUID] = Field(
        default=None,
        description="Shared by every occurrence generated from one recurring definition"
    )

    @property
    def is_recurring(self) -> bool:
        return self.recurrence is not Recurrence.ONE_TIME

    def value_key(self) -> tuple:
        """The legacy (category, type, amount, recurrence) series key."""
        return ("value", self.category, self.type, self.amount, self.recurrence)


def series_key(entry: Entry, strategy: SeriesIdentity) -> Hashable:
    """
    Key used to decide whether two entries belong to the same series.

    Under SERIES_ID, entries without a series_id (legacy data) fall back to
    their value key so they still group with each other.
    """
    if strategy is SeriesIdentity.SERIES_ID and entry.series_id is not None:
        return ("series", entry.series_id)
    return entry.value_key()


# =============================================================================
# INPUT BOUNDARY MODELS
# =============================================================================

class ReceiptSuggestion(BaseModel):
    """
    What the receipt scanner proposes.

    CRITICAL: This is a SUGGESTION used to pre-fill a draft.
    It is not trusted and not validated beyond the normal draft checks.
    """
    amount: Optional[Decimal] = None
    date: Optional[datetime] = None


class EntryDraft(BaseModel):
    """
    A user's in-progress entry, before validation.

    All fields are optional because the form (or the receipt scanner)
    might not have filled them in yet.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Optional[Decimal] = None
    category: Optional[str] = None
    type: Optional[EntryType] = None
    date: Optional[datetime] = None
    recurrence: Optional[Recurrence] = None
    notes: Optional[str] = None
    icon: str = ""

    @classmethod
    def from_receipt(
        cls,
        suggestion: ReceiptSuggestion,
        **fields,
    ) -> "EntryDraft":
        """Pre-fill a draft with the scanner's amount and date."""
        if suggestion.amount is not None:
            fields.setdefault("amount", suggestion.amount)
        if suggestion.date is not None:
            fields.setdefault("date", suggestion.date)
        return cls(**fields)


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'far_future')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning)$",
    )
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    """Result of validating a draft at the input boundary."""

    validated_at: datetime = Field(
        default_factory=datetime.now
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]
