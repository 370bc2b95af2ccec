"""
Daily Cash Indicator

"How much liquid cash moved through the club on this day."

Independent of the dashboard window. Only PAID business movements count,
and of those:
- royalties are left out (tracked separately)
- initial inventory is left out (a valuation, not cash)
- internal consumption is left out (an accounting expense, not cash out)
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Union

from club_ledger.classification import ReducerBucket, bucket_for
from club_ledger.engine.window import is_same_day
from club_ledger.models.transaction import (
    Origin,
    Transaction,
    TransactionStatus,
)


_CASH_IN = frozenset({ReducerBucket.SALE})
_CASH_OUT = frozenset({ReducerBucket.OPERATING_EXPENSE, ReducerBucket.CARD_PAYMENT})


def daily_cash(
    records: Iterable[Transaction],
    day: Union[date, datetime],
) -> Decimal:
    """Net cash for the business on `day`. May be negative."""
    total = Decimal("0")

    for record in records:
        if record.origin != Origin.BUSINESS or not is_same_day(record.date, day):
            continue
        if record.status == TransactionStatus.PENDING:
            continue

        bucket = bucket_for(record)
        if bucket in _CASH_IN:
            total += record.amount
        elif bucket in _CASH_OUT:
            total -= record.amount

    return total


def day_history(
    records: Iterable[Transaction],
    origin: Origin,
    day: Union[date, datetime],
) -> list[Transaction]:
    """All movements of one origin booked on `day`, newest first."""
    matching = [
        record for record in records
        if record.origin == origin and is_same_day(record.date, day)
    ]
    matching.sort(key=lambda record: record.date, reverse=True)
    return matching
