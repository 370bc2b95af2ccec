"""
End-to-end flows through the LedgerService with in-memory stores.
"""

import asyncio
from datetime import datetime
from decimal import Decimal

import pytest

from club_ledger.audit import AuditLogger
from club_ledger.models.audit import AuditEventType
from club_ledger.models.indicators import TimeWindow
from club_ledger.models.transaction import (
    BusinessActivity,
    EntrySelection,
    Origin,
    TransactionStatus,
    TransactionType,
)
from club_ledger.orchestrator import LedgerService, create_app_components
from club_ledger.services.storage import (
    InMemoryTransactionStorage,
    NotFoundError,
    StorageError,
    StoreUnavailableError,
)
from club_ledger.validation import EntryValidationError, EntryValidator

from conftest import OWNER, REFERENCE, make_tx


class UnavailableStorage(InMemoryTransactionStorage):
    """Store whose writes always fail."""

    async def append(self, draft):
        raise StoreUnavailableError("network down")

    async def update_status(self, transaction_id, status):
        raise StoreUnavailableError("network down")


class CorruptRowStorage(InMemoryTransactionStorage):
    """Store holding a row that no longer parses."""

    async def get_by_id(self, transaction_id):
        raise StorageError(f"Malformed row for transaction {transaction_id}")


def credit_sale(**overrides) -> EntrySelection:
    values = dict(
        origin=Origin.BUSINESS,
        activity=BusinessActivity.CLIENT_CONSUMPTION,
        amount="50",
        client="Pedro",
        is_credit_sale=True,
        date=REFERENCE,
        user_id=OWNER,
    )
    values.update(overrides)
    return EntrySelection(**values)


def event_types(audit_storage) -> list[AuditEventType]:
    return [e.event_type for e in audit_storage.events]


class TestCreateTransaction:
    """Entry flow: validate -> classify -> append -> audit."""

    def test_credit_sale_is_stored_pending(self, service, storage, audit_storage):
        created = asyncio.run(service.create_transaction(credit_sale()))

        assert created.type == TransactionType.INCOME
        assert created.category == "Consumo en Club"
        assert created.status == TransactionStatus.PENDING
        assert asyncio.run(storage.get_by_id(created.id)) == created
        assert event_types(audit_storage) == [AuditEventType.TRANSACTION_CREATED]

    def test_household_entry(self, service):
        entry = EntrySelection(
            origin=Origin.HOME,
            home_category="Comida",
            amount="35.40",
            date=REFERENCE,
            user_id=OWNER,
        )
        created = asyncio.run(service.create_transaction(entry))
        assert created.origin == Origin.HOME
        assert created.amount == Decimal("35.40")
        assert created.status == TransactionStatus.PAID

    def test_rejected_entry_stores_nothing(self, service, storage, audit_storage):
        with pytest.raises(EntryValidationError):
            asyncio.run(service.create_transaction(credit_sale(client="")))

        assert asyncio.run(storage.list_by_owner(OWNER)) == []
        assert event_types(audit_storage) == [AuditEventType.VALIDATION_FAILED]

    def test_store_failure_is_surfaced(self, audit_storage):
        service = LedgerService(
            storage=UnavailableStorage(),
            validator=EntryValidator(max_amount=Decimal("1000")),
            audit_logger=AuditLogger(audit_storage),
        )
        with pytest.raises(StoreUnavailableError):
            asyncio.run(service.create_transaction(credit_sale()))
        assert event_types(audit_storage) == [AuditEventType.STORE_UNAVAILABLE]


class TestSettle:
    """PENDING -> PAID through the service."""

    def test_settle_pending(self, service, storage, audit_storage):
        created = asyncio.run(service.create_transaction(credit_sale()))
        settled = asyncio.run(service.settle(created.id))

        assert settled.status == TransactionStatus.PAID
        stored = asyncio.run(storage.get_by_id(created.id))
        assert stored.status == TransactionStatus.PAID
        assert event_types(audit_storage)[-1] == AuditEventType.TRANSACTION_SETTLED

    def test_settle_twice_is_a_no_op(self, service, audit_storage):
        created = asyncio.run(service.create_transaction(credit_sale()))
        first = asyncio.run(service.settle(created.id))
        second = asyncio.run(service.settle(created.id))

        assert second == first
        assert event_types(audit_storage)[-1] == AuditEventType.SETTLE_IGNORED

    def test_settle_expense_is_a_no_op(self):
        expense = make_tx(10, "Servicios")
        service = LedgerService(
            storage=InMemoryTransactionStorage([expense]),
            validator=EntryValidator(max_amount=Decimal("1000")),
        )

        assert asyncio.run(service.settle(expense.id)) == expense

    def test_settle_unknown_id(self, service):
        with pytest.raises(NotFoundError):
            asyncio.run(service.settle("does-not-exist"))

    def test_settle_store_failure(self, audit_storage):
        owed = make_tx(50, "Consumo en Club", client="Pedro", status=TransactionStatus.PENDING)
        service = LedgerService(
            storage=UnavailableStorage([owed]),
            validator=EntryValidator(max_amount=Decimal("1000")),
            audit_logger=AuditLogger(audit_storage),
        )
        with pytest.raises(StoreUnavailableError):
            asyncio.run(service.settle(owed.id))
        assert event_types(audit_storage) == [AuditEventType.STORE_UNAVAILABLE]

    def test_unreadable_record_is_audited_as_error(self, audit_storage):
        service = LedgerService(
            storage=CorruptRowStorage(),
            validator=EntryValidator(max_amount=Decimal("1000")),
            audit_logger=AuditLogger(audit_storage),
        )
        with pytest.raises(StorageError, match="Malformed row"):
            asyncio.run(service.settle("tx-broken"))
        with pytest.raises(StorageError, match="Malformed row"):
            asyncio.run(service.delete("tx-broken"))

        events = audit_storage.events
        assert [e.event_type for e in events] == [AuditEventType.SYSTEM_ERROR] * 2
        assert [e.details["operation"] for e in events] == ["settle", "remove"]
        assert events[0].details["transaction_id"] == "tx-broken"


class TestDelete:

    def test_delete(self, service, storage, audit_storage):
        created = asyncio.run(service.create_transaction(credit_sale()))

        assert asyncio.run(service.delete(created.id)) is True
        assert asyncio.run(storage.get_by_id(created.id)) is None
        assert event_types(audit_storage)[-1] == AuditEventType.TRANSACTION_DELETED

    def test_delete_unknown_id(self, service):
        assert asyncio.run(service.delete("missing")) is False


class TestReporting:
    """Snapshots and dashboard reports built through the service."""

    def test_settled_sale_shows_in_next_report(self, service):
        created = asyncio.run(service.create_transaction(credit_sale()))

        before = asyncio.run(service.dashboard(OWNER, REFERENCE, TimeWindow.MONTH))
        assert before.business.pending == Decimal("50")
        assert before.business.sales_paid == 0

        asyncio.run(service.settle(created.id))
        after = asyncio.run(service.dashboard(OWNER, REFERENCE, TimeWindow.MONTH))
        assert after.business.pending == 0
        assert after.business.sales_paid == Decimal("50")
        assert after.business.net_profit == Decimal("50")

    def test_snapshot_is_per_owner(self, service):
        asyncio.run(service.create_transaction(credit_sale()))
        asyncio.run(service.create_transaction(credit_sale(user_id="other")))

        snapshot = asyncio.run(service.load_snapshot(OWNER))
        assert len(snapshot) == 1
        assert snapshot.user_id == OWNER

    def test_backdated_entry_lands_in_its_own_window(self, service):
        asyncio.run(service.create_transaction(
            credit_sale(is_credit_sale=False, date=datetime(2026, 3, 2, 10, 0))
        ))
        october = asyncio.run(service.dashboard(OWNER, REFERENCE, TimeWindow.MONTH))
        march = asyncio.run(service.dashboard(OWNER, datetime(2026, 3, 20), TimeWindow.MONTH))

        assert october.data_found is False
        assert march.business.sales_paid == Decimal("50")

    def test_sidebar_household_cost_of_living(self, service):
        for category, amount in (("Aporte Familiar", "400"), ("Arriendo", "300")):
            asyncio.run(service.create_transaction(EntrySelection(
                origin=Origin.HOME,
                home_category=category,
                amount=amount,
                date=REFERENCE,
                user_id=OWNER,
            )))
        metric = asyncio.run(service.sidebar_metric(OWNER, Origin.HOME, REFERENCE))

        assert metric.title == "Costo Vida (oct)"
        assert metric.amount == Decimal("-100")
        assert metric.flagged is True


class TestFactory:

    def test_memory_backend(self):
        service = create_app_components("memory")
        assert isinstance(service, LedgerService)
        snapshot = asyncio.run(service.load_snapshot(OWNER))
        assert len(snapshot) == 0
