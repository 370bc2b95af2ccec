"""Household aggregator: contributions, expenses and cost of living."""

from decimal import Decimal
from typing import Iterable

from club_ledger.classification import ReducerBucket, bucket_for
from club_ledger.models.indicators import HouseholdIndicators
from club_ledger.models.transaction import Origin, Transaction


def aggregate_household(records: Iterable[Transaction]) -> HouseholdIndicators:
    """
    Reduce the household records in `records`.

    Cost of living is expenses minus contributions and is never clamped:
    a negative value means the family contributed more than it spent.
    """
    contributions = Decimal("0")
    expenses = Decimal("0")

    for record in records:
        if record.origin != Origin.HOME:
            continue
        if bucket_for(record) == ReducerBucket.FAMILY_CONTRIBUTION:
            contributions += record.amount
        else:
            expenses += record.amount

    return HouseholdIndicators(
        contributions=contributions,
        expenses=expenses,
        cost_of_living=expenses - contributions,
    )
