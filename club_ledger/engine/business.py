"""
Business Aggregator

Reduces a (window-filtered) record set into the club's indicators.

NET PROFIT:
    sales_paid + royalties + initial_inventory
    - operating_expense - family_cost - card_payments

where `operating_expense` is ordinary costs only and `family_cost` is the
deductible share (half, by default) of the retail value of inventory the
family consumed.
"""

from decimal import Decimal
from typing import Iterable

from club_ledger.classification import ReducerBucket, bucket_for
from club_ledger.models.indicators import BusinessIndicators
from club_ledger.models.transaction import (
    CONSUMERS,
    Origin,
    Transaction,
    TransactionStatus,
)


FAMILY_COST_RATIO = Decimal("0.5")


def aggregate_business(
    records: Iterable[Transaction],
    family_cost_ratio: Decimal = FAMILY_COST_RATIO,
) -> BusinessIndicators:
    """
    Fresh reduction over the business records in `records`.

    Household records in the input are ignored. An empty input yields
    zero-valued indicators.
    """
    totals = {bucket: Decimal("0") for bucket in ReducerBucket}
    pending = Decimal("0")
    breakdown = {consumer: Decimal("0") for consumer in CONSUMERS}

    for record in records:
        if record.origin != Origin.BUSINESS:
            continue

        bucket = bucket_for(record)

        if bucket == ReducerBucket.SALE and record.status == TransactionStatus.PENDING:
            pending += record.amount
            continue

        totals[bucket] += record.amount

        # Unattributed consumption still counts towards the total
        if bucket == ReducerBucket.INTERNAL_CONSUMPTION and record.consumer in breakdown:
            breakdown[record.consumer] += record.amount

    sales_paid = totals[ReducerBucket.SALE]
    royalties = totals[ReducerBucket.ROYALTY]
    initial_inventory = totals[ReducerBucket.INITIAL_INVENTORY]
    operating_expense = totals[ReducerBucket.OPERATING_EXPENSE]
    card_payments = totals[ReducerBucket.CARD_PAYMENT]
    family_consumption = totals[ReducerBucket.INTERNAL_CONSUMPTION]
    family_cost = family_consumption * family_cost_ratio

    net_profit = (
        sales_paid + royalties + initial_inventory
        - operating_expense - family_cost - card_payments
    )

    return BusinessIndicators(
        sales_paid=sales_paid,
        pending=pending,
        royalties=royalties,
        operating_expense=operating_expense,
        charted_expense=operating_expense + card_payments,
        card_payments=card_payments,
        initial_inventory=initial_inventory,
        family_consumption=family_consumption,
        family_breakdown=breakdown,
        family_cost=family_cost,
        net_profit=net_profit,
    )
