"""
Tests for Budget Ledger

Test strategy:
1. Unit tests for individual components (models, policy, generator, validator)
2. Ledger and scheduler tests against in-memory storage and a fixed clock
3. No real API calls in tests (storage backends use fakes or tmp_path)
"""

import pytest
from datetime import datetime
from decimal import Decimal
from uuid import uuid4

from budget_ledger.models.entry import (
    Entry,
    EntryDraft,
    EntryType,
    ReceiptSuggestion,
    Recurrence,
    SeriesIdentity,
    ValidationIssue,
    ValidationResult,
    series_key,
)
from budget_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestEntryModels:
    """Tests for entry-related Pydantic models."""

    def test_entry_creation(self):
        """Test Entry model creation with defaults."""
        entry = Entry(
            amount=Decimal("20"),
            category="Allowance",
            type=EntryType.INCOME,
            date=datetime(2024, 3, 4),
        )
        assert entry.recurrence == Recurrence.ONE_TIME
        assert entry.series_id is None
        assert entry.icon == ""
        assert entry.is_recurring is False

    def test_entry_ids_are_unique(self):
        """Test that every entry gets its own id."""
        first = Entry(amount=Decimal("1"), category="A", type=EntryType.EXPENSE, date=datetime(2024, 1, 1))
        second = Entry(amount=Decimal("1"), category="A", type=EntryType.EXPENSE, date=datetime(2024, 1, 1))
        assert first.id != second.id

    def test_entry_strips_whitespace(self):
        """Test that whitespace is stripped from the category."""
        entry = Entry(
            amount=Decimal("5"),
            category="  Groceries  ",
            type=EntryType.EXPENSE,
            date=datetime(2024, 3, 4),
        )
        assert entry.category == "Groceries"

    @pytest.mark.parametrize("amount", ["0", "-100"])
    def test_entry_rejects_non_positive_amount(self, amount):
        """Test that zero and negative amounts are rejected."""
        with pytest.raises(ValueError):
            Entry(
                amount=Decimal(amount),
                category="Rent",
                type=EntryType.EXPENSE,
                date=datetime(2024, 3, 4),
            )

    def test_entry_rejects_empty_category(self):
        """Test that a blank category is rejected."""
        with pytest.raises(ValueError):
            Entry(
                amount=Decimal("5"),
                category="   ",
                type=EntryType.EXPENSE,
                date=datetime(2024, 3, 4),
            )

    def test_entry_is_frozen(self):
        """Test that entries cannot be mutated in place."""
        entry = Entry(amount=Decimal("5"), category="Fuel", type=EntryType.EXPENSE, date=datetime(2024, 3, 4))
        with pytest.raises(ValueError):
            entry.amount = Decimal("6")

    def test_entry_json_round_trip_keeps_ids(self):
        """Test that id and series_id survive serialization."""
        entry = Entry(
            amount=Decimal("12.50"),
            category="Gym",
            type=EntryType.EXPENSE,
            date=datetime(2024, 3, 4, 7, 30),
            recurrence=Recurrence.MONTHLY,
            series_id=uuid4(),
        )
        restored = Entry.model_validate(entry.model_dump(mode="json"))
        assert restored == entry


class TestSeriesKey:
    """Tests for series identity."""

    def test_series_id_strategy_separates_identical_values(self):
        """Test that two series with the same values stay apart by series_id."""
        a = Entry(amount=Decimal("9.99"), category="Music", type=EntryType.EXPENSE,
                  date=datetime(2024, 3, 1), recurrence=Recurrence.MONTHLY, series_id=uuid4())
        b = a.model_copy(update={"id": uuid4(), "series_id": uuid4()})

        assert series_key(a, SeriesIdentity.SERIES_ID) != series_key(b, SeriesIdentity.SERIES_ID)
        assert series_key(a, SeriesIdentity.VALUE) == series_key(b, SeriesIdentity.VALUE)

    def test_missing_series_id_falls_back_to_values(self):
        """Test that legacy entries without a series_id group by value."""
        a = Entry(amount=Decimal("50"), category="Rent", type=EntryType.EXPENSE,
                  date=datetime(2024, 3, 1), recurrence=Recurrence.MONTHLY)
        b = a.model_copy(update={"id": uuid4(), "date": datetime(2024, 4, 1)})

        assert series_key(a, SeriesIdentity.SERIES_ID) == a.value_key()
        assert series_key(a, SeriesIdentity.SERIES_ID) == series_key(b, SeriesIdentity.SERIES_ID)

    def test_value_key_ignores_date_and_notes(self):
        """Test that the value key only uses category, type, amount and recurrence."""
        a = Entry(amount=Decimal("50"), category="Rent", type=EntryType.EXPENSE,
                  date=datetime(2024, 3, 1), recurrence=Recurrence.MONTHLY, notes="March")
        b = a.model_copy(update={"date": datetime(2024, 5, 1), "notes": "May"})
        assert a.value_key() == b.value_key()


class TestDraftModels:
    """Tests for the input boundary models."""

    def test_draft_from_receipt_prefills_amount_and_date(self):
        """Test that the scanner's amount and date seed the draft."""
        suggestion = ReceiptSuggestion(amount=Decimal("42.10"), date=datetime(2024, 3, 2, 18, 0))
        draft = EntryDraft.from_receipt(suggestion, category="Groceries", type=EntryType.EXPENSE)

        assert draft.amount == Decimal("42.10")
        assert draft.date == datetime(2024, 3, 2, 18, 0)
        assert draft.category == "Groceries"

    def test_explicit_fields_win_over_receipt(self):
        """Test that what the user typed is not overwritten by the suggestion."""
        suggestion = ReceiptSuggestion(amount=Decimal("42.10"))
        draft = EntryDraft.from_receipt(suggestion, amount=Decimal("40"))
        assert draft.amount == Decimal("40")

    def test_empty_suggestion_leaves_draft_empty(self):
        """Test that an unreadable receipt suggests nothing."""
        draft = EntryDraft.from_receipt(ReceiptSuggestion())
        assert draft.amount is None
        assert draft.date is None


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.ENTRY_ADDED,
            description="Entry added",
        )
        assert event.event_type == AuditEventType.ENTRY_ADDED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.ENTRIES_PROMOTED,
            description="Promoted 2 pending entries",
            details={"count": 2},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "entries_promoted"
        assert log_dict["details"]["count"] == 2
        assert log_dict["entity_id"] is None

    def test_audit_event_builder_entry_added(self):
        """Test AuditEventBuilder.entry_added."""
        correlation_id = uuid4()
        entry_id = uuid4()

        event = AuditEventBuilder.entry_added(
            entry_id=entry_id,
            recurrence="weekly",
            committed=1,
            pending=2,
            correlation_id=correlation_id,
        )

        assert event.event_type == AuditEventType.ENTRY_ADDED
        assert event.entity_id == entry_id
        assert event.correlation_id == correlation_id
        assert event.is_user_action is True
        assert event.details["pending_created"] == 2

    def test_audit_event_builder_flush_failed(self):
        """Test AuditEventBuilder.flush_failed."""
        event = AuditEventBuilder.flush_failed(
            collection="pending",
            error_message="disk full",
            version=7,
            correlation_id=None,
        )

        assert event.event_type == AuditEventType.FLUSH_FAILED
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "disk full"
        assert event.is_user_action is False

    def test_ledger_loaded_warns_on_dropped_duplicates(self):
        """Test that dropping duplicate ids is a warning."""
        assert AuditEventBuilder.ledger_loaded(3, 2, 0).severity == AuditSeverity.INFO
        assert AuditEventBuilder.ledger_loaded(3, 2, 1).severity == AuditSeverity.WARNING


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="missing",
                    message="Amount is required",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.is_valid is False
        assert result.error_count == 1

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            issues=[
                ValidationIssue(
                    field="date",
                    issue_type="far_future",
                    message="Date in future",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0
        assert result.warnings == ["Date in future"]

    def test_severity_must_be_known(self):
        """Test that only error and warning severities are accepted."""
        with pytest.raises(ValueError):
            ValidationIssue(field="amount", issue_type="x", message="x", severity="fatal")


class TestEnums:
    """Tests for entry enums."""

    def test_all_recurrences_exist(self):
        """Test that expected recurrences exist."""
        expected = ["one_time", "daily", "weekly", "bi_weekly", "monthly", "quarterly", "annual"]
        for value in expected:
            assert Recurrence(value) is not None

    def test_entry_type_values(self):
        """Test entry type string values."""
        assert EntryType.INCOME.value == "income"
        assert EntryType.SAVINGS.value == "savings"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
