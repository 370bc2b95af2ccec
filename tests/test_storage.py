"""
Tests for the storage backends.

The Sheets backend is exercised against an in-process fake worksheet, so
no credentials or network access are needed.
"""

import asyncio
import json
from datetime import datetime
from decimal import Decimal
from uuid import uuid4

import pytest
from tenacity import wait_none

from club_ledger.models.audit import AuditEventBuilder
from club_ledger.models.transaction import (
    Origin,
    TransactionDraft,
    TransactionStatus,
    TransactionType,
)
from club_ledger.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsTransactionStorage,
    InMemoryAuditStorage,
    InMemoryTransactionStorage,
    JsonFileTransactionStorage,
    NotFoundError,
    StorageError,
    StoreUnavailableError,
)
from club_ledger.services.storage import google_sheets
from club_ledger.services.storage.google_sheets import (
    AUDIT_COLUMNS,
    TRANSACTION_COLUMNS,
    row_to_transaction,
    transaction_to_row,
)

from conftest import OWNER, make_tx


def make_draft(**overrides) -> TransactionDraft:
    values = dict(
        amount=Decimal("50"),
        type=TransactionType.INCOME,
        origin=Origin.BUSINESS,
        category="Consumo en Club",
        status=TransactionStatus.PENDING,
        date=datetime(2026, 10, 17, 19, 30),
        client="Pedro",
        user_id=OWNER,
    )
    values.update(overrides)
    return TransactionDraft(**values)


class FakeWorksheet:
    """Just enough of gspread.Worksheet for the storage layer."""

    def __init__(self, header: list[str]):
        self.rows = [list(header)]
        self.fail = False

    def _check(self):
        if self.fail:
            raise RuntimeError("quota exceeded")

    def get_all_values(self):
        self._check()
        return [list(row) for row in self.rows]

    def append_row(self, values, value_input_option=None):
        self._check()
        self.rows.append(list(values))

    def update_cell(self, row, col, value):
        self._check()
        self.rows[row - 1][col - 1] = value

    def delete_rows(self, index):
        self._check()
        del self.rows[index - 1]


class FlakyWorksheet(FakeWorksheet):
    """Worksheet whose first append fails, after or before landing the row."""

    def __init__(self, header: list[str], lands_row: bool):
        super().__init__(header)
        self.lands_row = lands_row
        self.append_calls = 0

    def append_row(self, values, value_input_option=None):
        self.append_calls += 1
        if self.append_calls == 1:
            if self.lands_row:
                self.rows.append(list(values))
            raise RuntimeError("connection reset")
        super().append_row(values, value_input_option)


class FakeSheetsClient:

    def __init__(self):
        self.transactions = FakeWorksheet(TRANSACTION_COLUMNS)
        self.audit = FakeWorksheet(AUDIT_COLUMNS)

    def get_transactions_sheet(self):
        return self.transactions

    def get_audit_sheet(self):
        return self.audit


class TestInMemoryStorage:
    """Tests for the dict-backed store."""

    def test_append_assigns_local_id(self):
        storage = InMemoryTransactionStorage()
        transaction_id = asyncio.run(storage.append(make_draft()))

        assert transaction_id.startswith("demo_")
        stored = asyncio.run(storage.get_by_id(transaction_id))
        assert stored.amount == Decimal("50")
        assert stored.client == "Pedro"

    def test_list_by_owner_newest_first(self):
        older = make_tx(1, "Servicios", date=datetime(2026, 10, 1))
        newer = make_tx(2, "Servicios", date=datetime(2026, 10, 9))
        foreign = make_tx(3, "Servicios", user_id="someone-else")
        storage = InMemoryTransactionStorage([older, foreign, newer])

        assert asyncio.run(storage.list_by_owner(OWNER)) == [newer, older]

    def test_update_status(self):
        storage = InMemoryTransactionStorage()
        transaction_id = asyncio.run(storage.append(make_draft()))

        asyncio.run(storage.update_status(transaction_id, TransactionStatus.PAID))
        stored = asyncio.run(storage.get_by_id(transaction_id))
        assert stored.status == TransactionStatus.PAID

    def test_update_status_unknown_id(self):
        storage = InMemoryTransactionStorage()
        with pytest.raises(NotFoundError):
            asyncio.run(storage.update_status("nope", TransactionStatus.PAID))

    def test_remove(self):
        record = make_tx(10, "Servicios")
        storage = InMemoryTransactionStorage([record])

        assert asyncio.run(storage.remove(record.id)) is True
        assert asyncio.run(storage.remove(record.id)) is False
        assert asyncio.run(storage.get_by_id(record.id)) is None


class TestJsonFileStorage:
    """Tests for the JSON-file backed local store."""

    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "ledger.json"
        first = JsonFileTransactionStorage(path)
        transaction_id = asyncio.run(first.append(make_draft(note="mesa 4")))
        asyncio.run(first.update_status(transaction_id, TransactionStatus.PAID))

        second = JsonFileTransactionStorage(path)
        stored = asyncio.run(second.get_by_id(transaction_id))
        assert stored.status == TransactionStatus.PAID
        assert stored.note == "mesa 4"
        assert stored.amount == Decimal("50")

    def test_file_is_plain_json(self, tmp_path):
        path = tmp_path / "ledger.json"
        storage = JsonFileTransactionStorage(path)
        asyncio.run(storage.append(make_draft()))

        payload = json.loads(path.read_text(encoding="utf-8"))
        assert payload[0]["category"] == "Consumo en Club"
        assert payload[0]["status"] == "pending"

    def test_missing_file_is_empty(self, tmp_path):
        storage = JsonFileTransactionStorage(tmp_path / "absent.json")
        assert asyncio.run(storage.list_by_owner(OWNER)) == []

    def test_failed_writes_leave_store_unchanged(self, tmp_path):
        """A write the disk refused must not show up in later reads."""
        storage = JsonFileTransactionStorage(tmp_path / "ledger.json")
        transaction_id = asyncio.run(storage.append(make_draft()))

        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        storage._path = blocker / "ledger.json"

        with pytest.raises(StoreUnavailableError):
            asyncio.run(storage.append(make_draft(client="Ana")))
        with pytest.raises(StoreUnavailableError):
            asyncio.run(storage.update_status(transaction_id, TransactionStatus.PAID))
        with pytest.raises(StoreUnavailableError):
            asyncio.run(storage.remove(transaction_id))

        records = asyncio.run(storage.list_by_owner(OWNER))
        assert [r.id for r in records] == [transaction_id]
        assert records[0].status == TransactionStatus.PENDING

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "ledger.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StoreUnavailableError):
            JsonFileTransactionStorage(path)


class TestSheetsRows:
    """Row conversion for the Transactions sheet."""

    def test_row_round_trip(self):
        record = make_tx("12.50", "Consumo Interno", consumer="Luis")
        row = transaction_to_row(record)

        assert len(row) == len(TRANSACTION_COLUMNS)
        assert row[9] == ""
        assert row_to_transaction(row) == record

    def test_short_row(self):
        """The API drops trailing empty cells."""
        row = ["tx-9", OWNER, "2026-10-17T10:00:00", "Hogar", "Gasto", "Comida", "8"]
        record = row_to_transaction(row)

        assert record.status == TransactionStatus.PAID
        assert record.note == ""
        assert record.consumer is None


class TestGoogleSheetsStorage:
    """Tests for the Sheets backend against a fake worksheet."""

    @pytest.fixture
    def client(self):
        return FakeSheetsClient()

    @pytest.fixture
    def storage(self, client):
        return GoogleSheetsTransactionStorage(client=client)

    def test_append_and_list(self, client, storage):
        transaction_id = asyncio.run(storage.append(make_draft()))

        assert client.transactions.rows[1][0] == transaction_id
        records = asyncio.run(storage.list_by_owner(OWNER))
        assert [r.id for r in records] == [transaction_id]
        assert records[0].status == TransactionStatus.PENDING

    def test_list_skips_other_owners_and_broken_rows(self, client, storage):
        client.transactions.rows.append(transaction_to_row(make_tx(1, "Servicios")))
        client.transactions.rows.append(
            transaction_to_row(make_tx(2, "Servicios", user_id="someone-else"))
        )
        client.transactions.rows.append(["broken", OWNER, "yesterday", "Negocio"])
        client.transactions.rows.append([])

        assert len(asyncio.run(storage.list_by_owner(OWNER))) == 1

    def test_update_status_writes_status_cell(self, client, storage):
        transaction_id = asyncio.run(storage.append(make_draft()))
        asyncio.run(storage.update_status(transaction_id, TransactionStatus.PAID))

        assert client.transactions.rows[1][TRANSACTION_COLUMNS.index("status")] == "paid"
        stored = asyncio.run(storage.get_by_id(transaction_id))
        assert stored.status == TransactionStatus.PAID

    def test_update_status_unknown_id(self, storage):
        with pytest.raises(NotFoundError):
            asyncio.run(storage.update_status("missing", TransactionStatus.PAID))

    def test_remove(self, client, storage):
        keep = asyncio.run(storage.append(make_draft()))
        drop = asyncio.run(storage.append(make_draft(client="Ana")))

        assert asyncio.run(storage.remove(drop)) is True
        assert asyncio.run(storage.remove(drop)) is False
        assert [row[0] for row in client.transactions.rows[1:]] == [keep]

    @pytest.fixture
    def no_backoff(self, monkeypatch):
        monkeypatch.setitem(google_sheets._WRITE_RETRY, "wait", wait_none())

    @pytest.mark.parametrize("lands_row", [True, False])
    def test_retried_append_writes_one_row(self, no_backoff, lands_row):
        """A retry never duplicates a row an earlier attempt already wrote."""
        client = FakeSheetsClient()
        client.transactions = FlakyWorksheet(TRANSACTION_COLUMNS, lands_row=lands_row)
        storage = GoogleSheetsTransactionStorage(client=client)

        transaction_id = asyncio.run(storage.append(make_draft()))

        assert [row[0] for row in client.transactions.rows[1:]] == [transaction_id]

    def test_malformed_row_is_a_storage_error(self, client, storage):
        client.transactions.rows.append(["broken", OWNER, "yesterday", "Negocio"])

        with pytest.raises(StorageError, match="Malformed row"):
            asyncio.run(storage.get_by_id("broken"))

    def test_read_failure_is_unavailable(self, client, storage):
        client.transactions.fail = True
        with pytest.raises(StoreUnavailableError):
            asyncio.run(storage.list_by_owner(OWNER))


class TestAuditStorage:
    """Audit stores: in-memory and Sheets."""

    def _events(self):
        correlation_id = uuid4()
        created = AuditEventBuilder.transaction_created(
            transaction_id="tx-1",
            user_id=OWNER,
            category="Consumo en Club",
            amount="50",
            correlation_id=correlation_id,
        )
        settled = AuditEventBuilder.transaction_settled(
            transaction_id="tx-1",
            user_id=OWNER,
            amount="50",
            correlation_id=uuid4(),
        )
        return correlation_id, created, settled

    def test_in_memory_queries(self):
        storage = InMemoryAuditStorage()
        correlation_id, created, settled = self._events()
        asyncio.run(storage.append_event(created))
        asyncio.run(storage.append_event(settled))

        by_correlation = asyncio.run(storage.get_events_by_correlation_id(correlation_id))
        assert by_correlation == [created]
        by_entity = asyncio.run(storage.get_events_by_entity("transaction", "tx-1"))
        assert len(by_entity) == 2
        assert len(asyncio.run(storage.get_recent_events(limit=1))) == 1

    def test_sheets_round_trip(self):
        client = FakeSheetsClient()
        storage = GoogleSheetsAuditStorage(client=client)
        correlation_id, created, _ = self._events()

        assert asyncio.run(storage.append_event(created)) is True
        events = asyncio.run(storage.get_events_by_correlation_id(correlation_id))
        assert [e.event_id for e in events] == [created.event_id]
        assert events[0].details == created.details

    def test_sheets_append_failure_is_reported(self):
        client = FakeSheetsClient()
        client.audit.fail = True
        storage = GoogleSheetsAuditStorage(client=client)
        _, created, _ = self._events()

        assert asyncio.run(storage.append_event(created)) is False
