"""Entry validation package."""

from club_ledger.validation.validator import (
    EntryValidationError,
    EntryValidator,
    parse_amount,
)

__all__ = ["EntryValidationError", "EntryValidator", "parse_amount"]
