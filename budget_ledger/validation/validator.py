"""
Input Boundary Validation

DESIGN DECISION: The ledger assumes every Entry it receives is valid; the
Entry model makes a non-positive amount or an empty category impossible
to construct. Validation of what the user typed (or what the receipt
scanner suggested) therefore happens HERE, on the EntryDraft, before an
Entry is ever built.

Checks:
- Required fields: amount, category, type, date
- Amount must be greater than zero
- Far-future one-time dates are flagged (warning only)

IMPORTANT: Validation NEVER silently fixes issues.
It reports them so the user can correct the draft.
"""

from datetime import datetime, timedelta
from typing import Callable, Optional

from budget_ledger.config import get_settings
from budget_ledger.models.entry import (
    Entry,
    EntryDraft,
    Recurrence,
    ValidationIssue,
    ValidationResult,
)


class InvalidEntryError(ValueError):
    """A draft failed validation and cannot become an Entry."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(i.message for i in result.issues if i.severity == "error")
        super().__init__(f"Invalid entry: {messages}")


class EntryValidator:
    """Validates drafts and turns valid ones into Entry objects."""

    def __init__(
        self,
        future_date_tolerance_days: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if future_date_tolerance_days is None:
            future_date_tolerance_days = get_settings().app.future_date_tolerance_days
        self._tolerance = timedelta(days=future_date_tolerance_days)
        self._clock = clock or datetime.now

    def validate(self, draft: EntryDraft) -> ValidationResult:
        issues = []

        if draft.amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="error",
                suggested_fix="Enter the amount, or scan a receipt",
            ))
        elif draft.amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
                suggested_fix="Use the entry type (income/expense) instead of a negative sign",
            ))

        if not draft.category:
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message="Category is required",
                severity="error",
            ))

        if draft.type is None:
            issues.append(ValidationIssue(
                field="type",
                issue_type="missing",
                message="Entry type is required",
                severity="error",
            ))

        if draft.date is None:
            issues.append(ValidationIssue(
                field="date",
                issue_type="missing",
                message="Date is required",
                severity="error",
            ))
        elif (
            draft.recurrence in (None, Recurrence.ONE_TIME)
            and draft.date > self._clock() + self._tolerance
        ):
            issues.append(ValidationIssue(
                field="date",
                issue_type="far_future",
                message=f"Date ({draft.date:%Y-%m-%d}) is unusually far in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        return ValidationResult(issues=issues)

    def to_entry(self, draft: EntryDraft) -> Entry:
        """
        Build an Entry from a valid draft.

        Raises:
            InvalidEntryError: If the draft has any error-level issue
        """
        result = self.validate(draft)
        if result.has_errors:
            raise InvalidEntryError(result)
        return Entry(
            amount=draft.amount,
            category=draft.category,
            type=draft.type,
            date=draft.date,
            recurrence=draft.recurrence or Recurrence.ONE_TIME,
            notes=draft.notes or None,
            icon=draft.icon,
        )
