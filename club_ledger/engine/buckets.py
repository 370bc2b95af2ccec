"""Period bucketizer for the sales vs. expenses trend chart."""

from typing import Iterable

from club_ledger.classification import ReducerBucket, bucket_for
from club_ledger.engine.window import sub_period
from club_ledger.models.indicators import PeriodBucket, TimeWindow
from club_ledger.models.transaction import (
    Origin,
    Transaction,
    TransactionStatus,
)


# Everything plotted as an expense: ordinary costs and card payments
_CHARTED_EXPENSES = frozenset({ReducerBucket.OPERATING_EXPENSE, ReducerBucket.CARD_PAYMENT})


def bucketize(
    records: Iterable[Transaction],
    window: TimeWindow,
) -> list[PeriodBucket]:
    """
    Group business records by sub-period and sum sales and expenses.

    Sub-periods are days in a MONTH window and months in a YEAR window.
    Buckets come back in chronological order; sub-periods with no business
    records are not emitted.
    """
    buckets: dict[str, PeriodBucket] = {}

    for record in records:
        if record.origin != Origin.BUSINESS:
            continue

        label, start = sub_period(record.date, window)
        if label not in buckets:
            buckets[label] = PeriodBucket(label=label, start=start)
        point = buckets[label]

        bucket = bucket_for(record)
        if bucket == ReducerBucket.SALE and record.status == TransactionStatus.PAID:
            point.sales += record.amount
        elif bucket in _CHARTED_EXPENSES:
            point.expenses += record.amount

    return sorted(buckets.values(), key=lambda point: point.start)
