"""Occurrence generation and periodic reconciliation."""

from budget_ledger.scheduling.generator import (
    expand,
    next_occurrence,
    occurrence_dates,
    start_date,
)

__all__ = [
    "expand",
    "next_occurrence",
    "occurrence_dates",
    "start_date",
]
