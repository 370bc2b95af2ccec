"""
Classification Rules

Maps an entry selection (origin + business tab or household category) to
the `{type, category}` pair stored on the transaction, and maps a stored
transaction to the reducer bucket it feeds.

DESIGN DECISION: Reserved categories live in ONE lookup table.
Reducers ask `bucket_for()` instead of comparing category strings, so the
special-case literals appear exactly once in the codebase.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from club_ledger.models.transaction import (
    CATEGORY_CARD_PAYMENT,
    CATEGORY_CLUB_CONSUMPTION,
    CATEGORY_FAMILY_CONTRIBUTION,
    CATEGORY_INITIAL_INVENTORY,
    CATEGORY_INTERNAL_CONSUMPTION,
    CATEGORY_PRODUCT_SALE,
    CATEGORY_ROYALTIES,
    BusinessActivity,
    EntrySelection,
    Origin,
    TransactionDraft,
    TransactionStatus,
    TransactionType,
)


class ReducerBucket(str, Enum):
    """Which indicator a transaction contributes to."""
    SALE = "sale"
    ROYALTY = "royalty"
    INITIAL_INVENTORY = "initial_inventory"
    INTERNAL_CONSUMPTION = "internal_consumption"
    CARD_PAYMENT = "card_payment"
    OPERATING_EXPENSE = "operating_expense"
    FAMILY_CONTRIBUTION = "family_contribution"
    HOME_EXPENSE = "home_expense"


class CategoryDescriptor(BaseModel):
    """Fixed classification of a reserved category."""
    model_config = ConfigDict(frozen=True)

    type: TransactionType
    origin: Origin
    bucket: ReducerBucket


RESERVED_CATEGORIES: dict[str, CategoryDescriptor] = {
    CATEGORY_ROYALTIES: CategoryDescriptor(
        type=TransactionType.INCOME,
        origin=Origin.BUSINESS,
        bucket=ReducerBucket.ROYALTY,
    ),
    CATEGORY_INITIAL_INVENTORY: CategoryDescriptor(
        type=TransactionType.INCOME,
        origin=Origin.BUSINESS,
        bucket=ReducerBucket.INITIAL_INVENTORY,
    ),
    CATEGORY_INTERNAL_CONSUMPTION: CategoryDescriptor(
        type=TransactionType.EXPENSE,
        origin=Origin.BUSINESS,
        bucket=ReducerBucket.INTERNAL_CONSUMPTION,
    ),
    CATEGORY_CARD_PAYMENT: CategoryDescriptor(
        type=TransactionType.EXPENSE,
        origin=Origin.BUSINESS,
        bucket=ReducerBucket.CARD_PAYMENT,
    ),
    CATEGORY_FAMILY_CONTRIBUTION: CategoryDescriptor(
        type=TransactionType.INCOME,
        origin=Origin.HOME,
        bucket=ReducerBucket.FAMILY_CONTRIBUTION,
    ),
}

# Business tab -> (type, category). None means the category is the chosen
# expense sub-category.
ACTIVITY_RULES: dict[BusinessActivity, tuple[TransactionType, Optional[str]]] = {
    BusinessActivity.CLIENT_CONSUMPTION: (TransactionType.INCOME, CATEGORY_CLUB_CONSUMPTION),
    BusinessActivity.PRODUCT_SALE: (TransactionType.INCOME, CATEGORY_PRODUCT_SALE),
    BusinessActivity.ROYALTY: (TransactionType.INCOME, CATEGORY_ROYALTIES),
    BusinessActivity.INTERNAL_CONSUMPTION: (TransactionType.EXPENSE, CATEGORY_INTERNAL_CONSUMPTION),
    BusinessActivity.OPERATING_EXPENSE: (TransactionType.EXPENSE, None),
    BusinessActivity.CARD_PAYMENT: (TransactionType.EXPENSE, CATEGORY_CARD_PAYMENT),
    BusinessActivity.INITIAL_INVENTORY: (TransactionType.INCOME, CATEGORY_INITIAL_INVENTORY),
}

# Tabs that record a sale to a named client
CLIENT_ACTIVITIES = frozenset({
    BusinessActivity.CLIENT_CONSUMPTION,
    BusinessActivity.PRODUCT_SALE,
})


class Classification(BaseModel):
    """Outcome of classifying an entry selection."""
    model_config = ConfigDict(frozen=True)

    type: TransactionType
    origin: Origin
    category: str


def classify(selection: EntrySelection) -> Classification:
    """
    Derive type and category from an entry selection.

    Pure function of the selection; it does not validate. Run the entry
    validator first, or use `build_draft()` which expects a valid entry.
    """
    if selection.origin == Origin.BUSINESS:
        tx_type, category = ACTIVITY_RULES[selection.activity]
        if category is None:
            category = selection.expense_category
        return Classification(type=tx_type, origin=Origin.BUSINESS, category=category)

    category = selection.home_category
    tx_type = (
        TransactionType.INCOME
        if category == CATEGORY_FAMILY_CONTRIBUTION
        else TransactionType.EXPENSE
    )
    return Classification(type=tx_type, origin=Origin.HOME, category=category)


def build_draft(selection: EntrySelection, amount: Decimal) -> TransactionDraft:
    """
    Turn a validated entry selection into a transaction draft.

    Args:
        selection: The entry, already accepted by the validator
        amount: The parsed amount

    Returns:
        A draft ready to be appended to the store
    """
    classification = classify(selection)

    status = (
        TransactionStatus.PENDING
        if classification.type == TransactionType.INCOME and selection.is_credit_sale
        else TransactionStatus.PAID
    )

    note = selection.note
    client = None
    consumer = None

    if selection.origin == Origin.BUSINESS:
        if selection.activity == BusinessActivity.INTERNAL_CONSUMPTION:
            consumer = selection.consumer
            # Display tag only; `consumer` is the structured attribution
            note = f"{note} [{consumer}]".strip()
        if selection.activity in CLIENT_ACTIVITIES:
            client = selection.client

    return TransactionDraft(
        amount=amount,
        type=classification.type,
        origin=classification.origin,
        category=classification.category,
        status=status,
        date=selection.date,
        note=note,
        client=client,
        consumer=consumer,
        user_id=selection.user_id,
    )


def bucket_for(record: TransactionDraft) -> ReducerBucket:
    """Reducer bucket a stored transaction feeds."""
    descriptor = RESERVED_CATEGORIES.get(record.category)
    if descriptor is not None and descriptor.origin == record.origin:
        return descriptor.bucket

    if record.origin == Origin.HOME:
        if record.type == TransactionType.INCOME:
            return ReducerBucket.FAMILY_CONTRIBUTION
        return ReducerBucket.HOME_EXPENSE

    if record.type == TransactionType.INCOME:
        return ReducerBucket.SALE
    return ReducerBucket.OPERATING_EXPENSE
