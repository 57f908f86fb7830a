"""
Main Orchestrator for the Budget Ledger

This module ties together all the components and defines the
end-to-end flows for:
1. Entry input (draft / receipt suggestion -> validate -> add)
2. Process lifecycle (load -> catch-up tick -> periodic ticks -> stop)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No draft reaches the ledger without passing validation
- Nothing but the Ledger mutates the collections
- Every rejected draft is audited

There are no global singletons: create_app_components() builds one
explicit set of objects and hands them to the caller.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from budget_ledger.audit import AuditLogger, configure_logging, create_correlation_id
from budget_ledger.config import LedgerSettings, get_settings
from budget_ledger.ledger import Ledger
from budget_ledger.models.entry import (
    Entry,
    EntryDraft,
    ReceiptSuggestion,
    ValidationResult,
)
from budget_ledger.scheduling.scheduler import ReconciliationScheduler
from budget_ledger.services.storage import (
    GoogleSheetsLedgerStorage,
    InMemoryLedgerStorage,
    JsonFileLedgerStorage,
    LedgerStorageInterface,
)
from budget_ledger.validation import EntryValidator, InvalidEntryError


class EntryFlow:
    """
    Orchestrates user entry input.

    Flow:
    1. Prefill -> optional receipt suggestion seeds amount and date
    2. Validate -> boundary checks on the draft
    3. Add -> the Ledger routes or expands the entry

    The scanner's suggestion is treated exactly like typed input.
    """

    def __init__(
        self,
        ledger: Ledger,
        validator: Optional[EntryValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._ledger = ledger
        self._validator = validator or EntryValidator()
        self._audit_logger = audit_logger or AuditLogger()

    def prefill_from_receipt(
        self,
        suggestion: ReceiptSuggestion,
        **fields,
    ) -> EntryDraft:
        """Start a draft from what the receipt scanner read."""
        return EntryDraft.from_receipt(suggestion, **fields)

    def review(self, draft: EntryDraft) -> ValidationResult:
        return self._validator.validate(draft)

    async def submit(self, draft: EntryDraft) -> list[Entry]:
        """
        Validate a draft and add it to the ledger.

        Returns:
            The entries the ledger created

        Raises:
            InvalidEntryError: If the draft fails validation
        """
        try:
            entry = self._validator.to_entry(draft)
        except InvalidEntryError as e:
            self._audit_logger.log_entry_rejected(
                issues=[issue.model_dump() for issue in e.result.issues],
                correlation_id=create_correlation_id(),
            )
            raise
        return await self._ledger.add(entry)


@dataclass
class AppComponents:
    """One wired-up ledger with its scheduler and input flow."""
    storage: LedgerStorageInterface
    ledger: Ledger
    scheduler: ReconciliationScheduler
    entry_flow: EntryFlow

    async def start(self) -> None:
        """Load persisted state, catch up, and begin periodic reconciliation."""
        await self.scheduler.start()

    async def stop(self) -> None:
        await self.scheduler.stop()


def create_storage(settings: LedgerSettings) -> LedgerStorageInterface:
    """Build the persistence gateway selected by ``storage_backend``."""
    if settings.storage_backend == "memory":
        return InMemoryLedgerStorage()
    if settings.storage_backend == "google_sheets":
        return GoogleSheetsLedgerStorage()
    return JsonFileLedgerStorage(settings.json_path)


def create_app_components(
    storage: Optional[LedgerStorageInterface] = None,
    settings: Optional[LedgerSettings] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        storage: Persistence gateway. Defaults to the configured backend.
        settings: Ledger settings. Defaults to environment configuration.
        clock: Source of "now". Defaults to datetime.now.

    Returns:
        AppComponents; call ``await components.start()`` to run.
    """
    configure_logging(get_settings().app.log_level)
    settings = settings or get_settings().ledger
    storage = storage or create_storage(settings)
    audit_logger = AuditLogger()

    ledger = Ledger(storage, settings=settings, clock=clock, audit_logger=audit_logger)
    scheduler = ReconciliationScheduler(
        ledger,
        interval_seconds=settings.refresh_interval_seconds,
        audit_logger=audit_logger,
    )
    entry_flow = EntryFlow(
        ledger,
        validator=EntryValidator(clock=clock),
        audit_logger=audit_logger,
    )
    return AppComponents(
        storage=storage,
        ledger=ledger,
        scheduler=scheduler,
        entry_flow=entry_flow,
    )
