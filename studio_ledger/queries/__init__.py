"""Revenue queries package."""

from studio_ledger.queries.revenue import (
    DEPOSIT_RATIO,
    appointment_contribution,
    compute_revenue,
    deposit_for,
    price_index,
)

__all__ = [
    "DEPOSIT_RATIO",
    "appointment_contribution",
    "compute_revenue",
    "deposit_for",
    "price_index",
]
