"""Shared fixtures and record factories."""

import itertools
from datetime import datetime
from decimal import Decimal
from typing import Optional

import pytest

from club_ledger.audit import AuditLogger
from club_ledger.models.transaction import (
    CATEGORY_CLUB_CONSUMPTION,
    CATEGORY_FAMILY_CONTRIBUTION,
    CATEGORY_INITIAL_INVENTORY,
    CATEGORY_ROYALTIES,
    Origin,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from club_ledger.orchestrator import LedgerService
from club_ledger.services.storage import InMemoryAuditStorage, InMemoryTransactionStorage
from club_ledger.validation import EntryValidator


OWNER = "owner-1"
REFERENCE = datetime(2026, 10, 17, 12, 0)

_INCOME_CATEGORIES = {
    CATEGORY_CLUB_CONSUMPTION,
    "Producto Cerrado",
    CATEGORY_ROYALTIES,
    CATEGORY_INITIAL_INVENTORY,
    CATEGORY_FAMILY_CONTRIBUTION,
}
_ids = itertools.count(1)


def make_tx(
    amount,
    category: str,
    origin: Origin = Origin.BUSINESS,
    type: Optional[TransactionType] = None,
    status: TransactionStatus = TransactionStatus.PAID,
    date: datetime = REFERENCE,
    consumer: Optional[str] = None,
    client: Optional[str] = None,
    user_id: str = OWNER,
) -> Transaction:
    """Build a stored transaction; type defaults from the category."""
    if type is None:
        type = (
            TransactionType.INCOME
            if category in _INCOME_CATEGORIES
            else TransactionType.EXPENSE
        )
    return Transaction(
        id=f"tx-{next(_ids)}",
        amount=Decimal(str(amount)),
        type=type,
        origin=origin,
        category=category,
        status=status,
        date=date,
        consumer=consumer,
        client=client,
        user_id=user_id,
    )


@pytest.fixture
def storage():
    return InMemoryTransactionStorage()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def service(storage, audit_storage):
    return LedgerService(
        storage=storage,
        validator=EntryValidator(max_amount=Decimal("1000000")),
        audit_logger=AuditLogger(audit_storage),
    )
