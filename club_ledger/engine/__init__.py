"""
Aggregation Engine

Pure, synchronous reductions over an in-memory record set:

    records -> filter_window -> aggregate_business / aggregate_household /
                                bucketize
    records -> daily_cash (same-day, independent of the window)

Nothing in this package performs I/O or keeps state between calls.
"""

from club_ledger.engine.buckets import bucketize
from club_ledger.engine.business import FAMILY_COST_RATIO, aggregate_business
from club_ledger.engine.cash import daily_cash, day_history
from club_ledger.engine.household import aggregate_household
from club_ledger.engine.settlement import needs_settlement, settle
from club_ledger.engine.window import (
    filter_window,
    is_same_day,
    shift_reference,
    sub_period,
    window_bounds,
    window_label,
)

__all__ = [
    "FAMILY_COST_RATIO",
    "aggregate_business",
    "aggregate_household",
    "bucketize",
    "daily_cash",
    "day_history",
    "filter_window",
    "is_same_day",
    "needs_settlement",
    "settle",
    "shift_reference",
    "sub_period",
    "window_bounds",
    "window_label",
]
