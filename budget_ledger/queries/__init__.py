"""Read-only aggregates package."""

from budget_ledger.queries.aggregates import (
    balance,
    timeline,
    total_for_category,
    total_for_type,
    totals_by_category,
    totals_by_type,
    upcoming,
)

__all__ = [
    "balance",
    "timeline",
    "total_for_category",
    "total_for_type",
    "totals_by_category",
    "totals_by_type",
    "upcoming",
]
