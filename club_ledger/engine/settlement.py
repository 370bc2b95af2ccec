"""
Settlement Lifecycle

Two states: PENDING (credit sale awaiting collection) and PAID (terminal).
The only transition is PENDING -> PAID.

Settling a record that is already PAID is a no-op: the caller gets the
record back unchanged and `needs_settlement()` tells it whether a store
write is due. EXPENSE records are always PAID, so they fall in that case.
"""

from club_ledger.models.transaction import Transaction, TransactionStatus


def needs_settlement(record: Transaction) -> bool:
    return record.status == TransactionStatus.PENDING


def settle(record: Transaction) -> Transaction:
    """
    Apply the PENDING -> PAID transition.

    Returns a new record; the input is never mutated. A record that is
    not pending is returned as is.
    """
    if not needs_settlement(record):
        return record
    return record.model_copy(update={"status": TransactionStatus.PAID})
