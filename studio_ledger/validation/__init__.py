"""Validation package."""

from studio_ledger.validation.validator import (
    ALLOWED_TRANSITIONS,
    LedgerValidationError,
    LedgerValidator,
)

__all__ = [
    "ALLOWED_TRANSITIONS",
    "LedgerValidationError",
    "LedgerValidator",
]
