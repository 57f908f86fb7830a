"""Tests for input boundary validation and the entry flow."""

import pytest
from datetime import timedelta
from decimal import Decimal

from budget_ledger.models import (
    AuditEventType,
    EntryDraft,
    EntryType,
    ReceiptSuggestion,
    Recurrence,
)
from budget_ledger.orchestrator import EntryFlow, create_app_components, create_storage
from budget_ledger.config import LedgerSettings, get_settings, validate_all_settings
from budget_ledger.services.storage import InMemoryLedgerStorage, JsonFileLedgerStorage
from budget_ledger.validation import EntryValidator, InvalidEntryError

from conftest import NOW


def valid_draft(**overrides) -> EntryDraft:
    fields = dict(
        amount=Decimal("20"),
        category="Allowance",
        type=EntryType.INCOME,
        date=NOW,
    )
    fields.update(overrides)
    return EntryDraft(**fields)


@pytest.fixture
def validator(clock) -> EntryValidator:
    return EntryValidator(future_date_tolerance_days=365, clock=clock)


class TestEntryValidator:
    """Tests for EntryValidator."""

    def test_valid_draft(self, validator):
        """Test that a complete draft has no issues."""
        result = validator.validate(valid_draft())
        assert result.is_valid
        assert result.issues == []

    def test_empty_draft_reports_every_missing_field(self, validator):
        """Test that each required field is reported."""
        result = validator.validate(EntryDraft())
        assert {issue.field for issue in result.issues} == {"amount", "category", "type", "date"}
        assert result.error_count == 4

    @pytest.mark.parametrize("amount", ["0", "-12.5"])
    def test_non_positive_amount(self, validator, amount):
        """Test that zero and negative amounts are errors."""
        result = validator.validate(valid_draft(amount=Decimal(amount)))
        [issue] = result.issues
        assert issue.field == "amount"
        assert issue.issue_type == "invalid_value"

    def test_blank_category(self, validator):
        """Test that a whitespace-only category counts as missing."""
        result = validator.validate(valid_draft(category="   "))
        assert [issue.field for issue in result.issues] == ["category"]

    def test_far_future_one_time_is_a_warning(self, validator):
        """Test that a one-time date beyond the tolerance only warns."""
        result = validator.validate(valid_draft(date=NOW + timedelta(days=400)))
        assert result.is_valid
        assert len(result.warnings) == 1

    def test_far_future_recurring_is_fine(self, validator):
        """Test that a recurring series may start far ahead without warning."""
        result = validator.validate(valid_draft(
            date=NOW + timedelta(days=400),
            recurrence=Recurrence.ANNUAL,
        ))
        assert result.issues == []

    def test_to_entry_defaults_to_one_time(self, validator):
        """Test that a draft without recurrence becomes a one-time entry."""
        entry = validator.to_entry(valid_draft(notes=""))
        assert entry.recurrence == Recurrence.ONE_TIME
        assert entry.amount == Decimal("20")
        assert entry.notes is None

    def test_to_entry_raises_with_result(self, validator):
        """Test that an invalid draft raises with its validation result."""
        with pytest.raises(InvalidEntryError, match="Amount is required") as excinfo:
            validator.to_entry(valid_draft(amount=None))
        assert excinfo.value.result.error_count == 1


class TestEntryFlow:
    """Tests for EntryFlow."""

    def test_prefill_from_receipt(self, ledger, validator, audit_logger):
        """Test that a receipt suggestion pre-fills a draft."""
        flow = EntryFlow(ledger, validator=validator, audit_logger=audit_logger)
        suggestion = ReceiptSuggestion(amount=Decimal("18.40"), date=NOW - timedelta(hours=2))

        draft = flow.prefill_from_receipt(suggestion, category="Groceries", type=EntryType.EXPENSE)

        assert draft.amount == Decimal("18.40")
        assert flow.review(draft).is_valid

    @pytest.mark.asyncio
    async def test_submit_adds_to_ledger(self, ledger, validator, audit_logger):
        """Test that a valid draft reaches the ledger."""
        flow = EntryFlow(ledger, validator=validator, audit_logger=audit_logger)

        created = await flow.submit(valid_draft(recurrence=Recurrence.WEEKLY))

        assert len(created) == 3
        assert len(ledger.committed) == 1
        assert len(ledger.pending) == 2

    @pytest.mark.asyncio
    async def test_rejected_draft_never_reaches_ledger(self, ledger, validator, audit_logger):
        """Test that an invalid draft is audited and not added."""
        flow = EntryFlow(ledger, validator=validator, audit_logger=audit_logger)

        with pytest.raises(InvalidEntryError):
            await flow.submit(valid_draft(category=""))

        assert ledger.all_entries == []
        [event] = audit_logger.of_type(AuditEventType.ENTRY_REJECTED)
        assert event.details["issues"][0]["field"] == "category"

    @pytest.mark.asyncio
    async def test_unread_receipt_needs_user_input(self, ledger, validator, audit_logger):
        """Test that a receipt the scanner could not read is rejected until completed."""
        flow = EntryFlow(ledger, validator=validator, audit_logger=audit_logger)
        draft = flow.prefill_from_receipt(ReceiptSuggestion(), category="Fuel", type=EntryType.EXPENSE)

        with pytest.raises(InvalidEntryError):
            await flow.submit(draft)

        completed = draft.model_copy(update={"amount": Decimal("60"), "date": NOW})
        assert len(await flow.submit(completed)) == 1


class TestComponents:
    """Tests for wiring the application together."""

    def test_create_storage_memory(self):
        settings = LedgerSettings(storage_backend="memory")
        assert isinstance(create_storage(settings), InMemoryLedgerStorage)

    def test_create_storage_json(self, tmp_path):
        settings = LedgerSettings(storage_backend="json", json_path=str(tmp_path / "store.json"))
        storage = create_storage(settings)
        assert isinstance(storage, JsonFileLedgerStorage)
        assert storage.path == tmp_path / "store.json"

    def test_validate_all_settings(self, monkeypatch):
        """Test that the startup check reports each settings group."""
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        get_settings.cache_clear()

        results = validate_all_settings()

        assert results["ledger"] is True
        assert results["app"] is True
        assert results["google_sheets"] is False
        assert "google_sheets_error" in results

    def test_unknown_backend_is_rejected(self):
        """Test that settings validation rejects unknown backends."""
        with pytest.raises(ValueError):
            LedgerSettings(storage_backend="postgres")

    @pytest.mark.asyncio
    async def test_components_share_one_ledger(self, settings, clock):
        """Test that the scheduler and the entry flow drive the same ledger."""
        components = create_app_components(
            storage=InMemoryLedgerStorage(),
            settings=settings,
            clock=clock,
        )
        await components.start()
        try:
            await components.entry_flow.submit(valid_draft(recurrence=Recurrence.DAILY))
            clock.advance(days=2)
            report = await components.scheduler.tick()
        finally:
            await components.stop()

        assert len(report.promoted) == 2
        assert len(components.ledger.committed) == 3
        assert components.scheduler.running is False
