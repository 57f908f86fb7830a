"""Input boundary validation package."""

from budget_ledger.validation.validator import EntryValidator, InvalidEntryError

__all__ = ["EntryValidator", "InvalidEntryError"]
