"""
Main Orchestrator for Club Ledger

This module ties together all the components and defines the
end-to-end flows for:
1. Entry (selection -> validate -> classify -> append)
2. Settlement (id -> PENDING -> PAID)
3. Deletion
4. Reporting (load snapshot -> executor)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No record is stored unless the whole entry validated
- The engine only ever sees snapshots; the store owns the data
- Every mutation is audited
- Store failures are surfaced, never retried here
"""

from datetime import date, datetime
from typing import Optional, Union
from uuid import UUID

import structlog

from club_ledger.audit import AuditLogger, configure_logging, create_correlation_id
from club_ledger.classification import build_draft
from club_ledger.config import get_settings
from club_ledger.engine import needs_settlement, settle
from club_ledger.models.indicators import (
    DashboardReport,
    LedgerSnapshot,
    SidebarMetric,
    TimeWindow,
)
from club_ledger.models.transaction import (
    EntrySelection,
    Origin,
    Transaction,
    TransactionStatus,
)
from club_ledger.queries import QueryExecutor
from club_ledger.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsTransactionStorage,
    InMemoryTransactionStorage,
    JsonFileTransactionStorage,
    NotFoundError,
    StorageError,
    StoreUnavailableError,
    TransactionStorageInterface,
)
from club_ledger.validation import EntryValidationError, EntryValidator


logger = structlog.get_logger("club_ledger.orchestrator")


class LedgerService:
    """
    Orchestrates every operation on one transaction store.

    Mutations (create, settle, delete) are independent single-record calls
    against the store. Reports are built from a freshly loaded snapshot.
    """

    def __init__(
        self,
        storage: TransactionStorageInterface,
        validator: Optional[EntryValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        executor: Optional[QueryExecutor] = None,
    ):
        self._storage = storage
        self._validator = validator or EntryValidator()
        self._audit_logger = audit_logger or AuditLogger()
        self._executor = executor or QueryExecutor()

    async def create_transaction(
        self,
        entry: EntrySelection,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Validate, classify and store one entry.

        Raises:
            EntryValidationError: Entry rejected; nothing was stored
            StoreUnavailableError: Store could not be reached
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            amount = self._validator.validate_or_raise(entry)
        except EntryValidationError as e:
            await self._audit_logger.log_validation_failed(
                user_id=entry.user_id,
                issues=[issue.model_dump() for issue in e.result.issues],
                correlation_id=correlation_id,
            )
            raise

        draft = build_draft(entry, amount)

        try:
            transaction_id = await self._storage.append(draft)
        except StoreUnavailableError as e:
            await self._audit_logger.log_store_unavailable(
                operation="append",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        transaction = Transaction(id=transaction_id, **draft.model_dump())

        await self._audit_logger.log_transaction_created(
            transaction_id=transaction_id,
            user_id=transaction.user_id,
            category=transaction.category,
            amount=str(transaction.amount),
            correlation_id=correlation_id,
        )

        return transaction

    async def settle(
        self,
        transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Mark a credit sale as collected.

        Settling a record that is not pending is a no-op: the record is
        returned unchanged and nothing is written.

        Raises:
            NotFoundError: Unknown id
            StoreUnavailableError: Store could not be reached
            StorageError: Stored record could not be read
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            record = await self._storage.get_by_id(transaction_id)
            if record is None:
                raise NotFoundError(f"Transaction not found: {transaction_id}")

            if not needs_settlement(record):
                await self._audit_logger.log_settle_ignored(
                    transaction_id=transaction_id,
                    user_id=record.user_id,
                    status=record.status.value,
                    correlation_id=correlation_id,
                )
                return record

            settled = settle(record)
            await self._storage.update_status(transaction_id, TransactionStatus.PAID)
        except StoreUnavailableError as e:
            await self._audit_logger.log_store_unavailable(
                operation="settle",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise
        except NotFoundError:
            raise
        except StorageError as e:
            await self._log_storage_error("settle", transaction_id, e, correlation_id)
            raise

        await self._audit_logger.log_transaction_settled(
            transaction_id=transaction_id,
            user_id=settled.user_id,
            amount=str(settled.amount),
            correlation_id=correlation_id,
        )
        return settled

    async def delete(
        self,
        transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Delete a transaction. Unconditional; unknown ids return False.

        Raises:
            StoreUnavailableError: Store could not be reached
            StorageError: Stored record could not be read
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            record = await self._storage.get_by_id(transaction_id)
            removed = await self._storage.remove(transaction_id)
        except StoreUnavailableError as e:
            await self._audit_logger.log_store_unavailable(
                operation="remove",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise
        except StorageError as e:
            await self._log_storage_error("remove", transaction_id, e, correlation_id)
            raise

        await self._audit_logger.log_transaction_deleted(
            transaction_id=transaction_id,
            user_id=record.user_id if record else None,
            existed=removed,
            correlation_id=correlation_id,
        )
        return removed

    async def _log_storage_error(
        self,
        operation: str,
        transaction_id: str,
        error: Exception,
        correlation_id: UUID,
    ) -> None:
        """Audit a store error other than an unreachable store or unknown id."""
        await self._audit_logger.log_error(
            error_type=type(error).__name__,
            error_message=str(error),
            details={"operation": operation, "transaction_id": transaction_id},
            correlation_id=correlation_id,
        )

    async def load_snapshot(self, user_id: str) -> LedgerSnapshot:
        """Read one owner's records into an immutable snapshot."""
        records = await self._storage.list_by_owner(user_id)
        return LedgerSnapshot(user_id=user_id, records=tuple(records))

    async def dashboard(
        self,
        user_id: str,
        reference: Union[date, datetime],
        window: TimeWindow,
    ) -> DashboardReport:
        """Load the owner's snapshot and build the report for one window."""
        snapshot = await self.load_snapshot(user_id)
        report = self._executor.dashboard(snapshot, reference, window)
        logger.debug(
            "dashboard_built",
            user_id=user_id,
            window=window.value,
            label=report.label,
            record_count=report.record_count,
        )
        return report

    async def sidebar_metric(
        self,
        user_id: str,
        origin: Origin,
        day: Union[date, datetime],
    ) -> SidebarMetric:
        snapshot = await self.load_snapshot(user_id)
        return self._executor.sidebar_metric(snapshot, origin, day)


def create_storage(backend: Optional[str] = None) -> tuple[TransactionStorageInterface, AuditLogger]:
    """
    Build the configured transaction store and a matching audit logger.

    Falls back to the local JSON store when Google Sheets is selected but
    not configured.
    """
    settings = get_settings()
    backend = backend or settings.app.storage_backend

    if backend == "sheets":
        try:
            sheets_client = GoogleSheetsClient()
            return (
                GoogleSheetsTransactionStorage(sheets_client),
                AuditLogger(GoogleSheetsAuditStorage(sheets_client)),
            )
        except Exception as e:
            # Storage not configured - continue with the local store
            logger.warning("sheets_not_configured", error=str(e))
            backend = "local"

    if backend == "local":
        return JsonFileTransactionStorage(settings.local_store.path), AuditLogger()

    return InMemoryTransactionStorage(), AuditLogger()


def create_app_components(backend: Optional[str] = None) -> LedgerService:
    """
    Factory function to create the ledger service.

    Args:
        backend: 'sheets', 'local' or 'memory'. Defaults to the configured
                 storage backend.
    """
    app = get_settings().app
    configure_logging(app)
    storage, audit_logger = create_storage(backend)

    return LedgerService(
        storage=storage,
        validator=EntryValidator(app.max_transaction_amount),
        audit_logger=audit_logger,
        executor=QueryExecutor(app.family_cost_ratio),
    )
