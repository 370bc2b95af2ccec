"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the remote store because:
1. The family can look at the raw ledger directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (a club ledger is small)
- No transactions (single-row writes only, last write wins)
- Limited query capabilities (we filter in Python)

Retries live HERE, not in the engine: connecting and writing are retried
with exponential backoff, and whatever still fails surfaces as
StoreUnavailableError.
"""

import json
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import gspread
from google.oauth2.service_account import Credentials
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from club_ledger.config import get_settings
from club_ledger.models.audit import AuditEvent, AuditEventType, AuditSeverity
from club_ledger.models.transaction import (
    Origin,
    Transaction,
    TransactionDraft,
    TransactionStatus,
    TransactionType,
)
from club_ledger.services.storage.interface import (
    AuditStorageInterface,
    NotFoundError,
    StorageError,
    StoreUnavailableError,
    TransactionStorageInterface,
)


# Column mappings for Transactions sheet
TRANSACTION_COLUMNS = [
    "id",
    "user_id",
    "date",
    "origin",
    "type",
    "category",
    "amount",
    "status",
    "note",
    "client",
    "consumer",
]

STATUS_COLUMN = TRANSACTION_COLUMNS.index("status") + 1

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "user_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
]

# Retry policy for writes to the Transactions sheet
_WRITE_RETRY = dict(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_exception_type(StoreUnavailableError),
    reraise=True,
)

_retry_writes = retry(**_WRITE_RETRY)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise StoreUnavailableError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise StoreUnavailableError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise StoreUnavailableError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(
        self,
        title: str,
        columns: list[str],
        rows: int,
    ) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(title=title, rows=rows, cols=len(columns))
            sheet.append_row(columns)
        return sheet

    def get_transactions_sheet(self) -> gspread.Worksheet:
        """Get or create the Transactions worksheet."""
        return self._get_or_create_sheet(
            self._settings.transactions_sheet_name, TRANSACTION_COLUMNS, rows=1000
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000
        )


def transaction_to_row(transaction: Transaction) -> list:
    """Convert a Transaction to a spreadsheet row."""
    return [
        transaction.id,
        transaction.user_id,
        transaction.date.isoformat(),
        transaction.origin.value,
        transaction.type.value,
        transaction.category,
        str(transaction.amount),
        transaction.status.value,
        transaction.note,
        transaction.client or "",
        transaction.consumer or "",
    ]


def row_to_transaction(row: list) -> Transaction:
    """Convert a spreadsheet row to a Transaction."""
    # Trailing empty cells are not returned by the API
    def safe_get(index: int, default: str = "") -> str:
        try:
            return row[index] if row[index] else default
        except IndexError:
            return default

    return Transaction(
        id=safe_get(0),
        user_id=safe_get(1),
        date=datetime.fromisoformat(safe_get(2)),
        origin=Origin(safe_get(3)),
        type=TransactionType(safe_get(4)),
        category=safe_get(5),
        amount=Decimal(safe_get(6, "0")),
        status=TransactionStatus(safe_get(7, TransactionStatus.PAID.value)),
        note=safe_get(8),
        client=safe_get(9) or None,
        consumer=safe_get(10) or None,
    )


class GoogleSheetsTransactionStorage(TransactionStorageInterface):
    """
    Google Sheets implementation of transaction storage.

    One transaction per row. Ids are UUID4 strings generated here, since
    Sheets has no notion of row identity.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _all_rows(self) -> list[list]:
        try:
            return self._client.get_transactions_sheet().get_all_values()
        except StorageError:
            raise
        except Exception as e:
            raise StoreUnavailableError(f"Failed to read transactions: {e}")

    def _find_row(self, transaction_id: str) -> Optional[tuple[int, list]]:
        """(1-based sheet row number, row values) of a transaction."""
        for idx, row in enumerate(self._all_rows()[1:], start=2):  # Row 1 is header
            if row and row[0] == transaction_id:
                return idx, row
        return None

    def _append_row(self, row: list) -> None:
        try:
            sheet = self._client.get_transactions_sheet()
            sheet.append_row(row, value_input_option="RAW")
        except StorageError:
            raise
        except Exception as e:
            raise StoreUnavailableError(f"Failed to save transaction: {e}")

    async def append(self, draft: TransactionDraft) -> str:
        """
        Append a new transaction row.

        The id is fixed before the first attempt. A retry first looks the
        id up, since an attempt that raised may still have written the row.
        """
        transaction = Transaction(id=str(uuid4()), **draft.model_dump())
        row = transaction_to_row(transaction)

        async for attempt in AsyncRetrying(**_WRITE_RETRY):
            with attempt:
                if (
                    attempt.retry_state.attempt_number > 1
                    and self._find_row(transaction.id) is not None
                ):
                    break
                self._append_row(row)

        return transaction.id

    async def list_by_owner(self, user_id: str) -> list[Transaction]:
        """List one owner's transactions, newest first."""
        transactions = []
        for row in self._all_rows()[1:]:
            if not row or not row[0] or len(row) < 2 or row[1] != user_id:
                continue
            try:
                transactions.append(row_to_transaction(row))
            except (ValueError, ValidationError):
                continue  # Skip rows edited into an invalid state by hand

        transactions.sort(key=lambda t: t.date, reverse=True)
        return transactions

    async def get_by_id(self, transaction_id: str) -> Optional[Transaction]:
        """Retrieve a transaction by its id."""
        found = self._find_row(transaction_id)
        if found is None:
            return None
        try:
            return row_to_transaction(found[1])
        except (ValueError, ValidationError) as e:
            raise StorageError(f"Malformed row for transaction {transaction_id}: {e}")

    @_retry_writes
    async def update_status(
        self,
        transaction_id: str,
        status: TransactionStatus,
    ) -> None:
        """Overwrite the status cell of a transaction row."""
        found = self._find_row(transaction_id)
        if found is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")
        try:
            sheet = self._client.get_transactions_sheet()
            sheet.update_cell(found[0], STATUS_COLUMN, status.value)
        except Exception as e:
            raise StoreUnavailableError(f"Failed to update transaction: {e}")

    async def remove(self, transaction_id: str) -> bool:
        """Delete a transaction row."""
        found = self._find_row(transaction_id)
        if found is None:
            return False
        try:
            self._client.get_transactions_sheet().delete_rows(found[0])
        except Exception as e:
            raise StoreUnavailableError(f"Failed to delete transaction: {e}")
        return True


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            entity_type=safe_get(4) or None,
            entity_id=safe_get(5) or None,
            user_id=safe_get(6) or None,
            correlation_id=UUID(safe_get(7)) if safe_get(7) else None,
            description=safe_get(8),
            details=json.loads(safe_get(9)) if safe_get(9) else {},
            error_message=safe_get(10) or None,
        )

    def _read_events(self) -> list[AuditEvent]:
        try:
            all_rows = self._client.get_audit_sheet().get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events = []
        for row in all_rows:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except (ValueError, ValidationError):
                continue
        return events

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event. Failures are reported, never raised."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception:
            # The audit logger records the failure locally
            return False

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        events = [e for e in self._read_events() if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """Get events by entity."""
        events = [
            e for e in self._read_events()
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        events = self._read_events()
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
