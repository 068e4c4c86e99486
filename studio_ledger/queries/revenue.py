"""
Revenue Accrual Engine

DESIGN DECISION: Revenue is DERIVED, never stored.
Every dashboard refresh recomputes it from the appointments returned by
the repository and the current service catalog. The engine is a pure
function: it never touches a backend.

Accrual policy per appointment (deposit = price * DEPOSIT_RATIO):

    status      deposit_paid   realized      predicted
    COMPLETED   either         + price       0
    PENDING     true           + deposit     + (price - deposit)
    PENDING     false          0             + price
    CANCELLED   true           + deposit     0
    CANCELLED   false          0             0

A completed service was rendered and paid in full. A paid deposit on an
open appointment is cash in hand while the rest is still owed. A paid
deposit on a cancelled appointment is kept by the studio.

Prices are Decimal, so the 30/70 split is exact and the sum does not
depend on the order of the appointments.
"""

from decimal import Decimal
from typing import Iterable

from studio_ledger.models.booking import (
    Appointment,
    AppointmentStatus,
    RevenueStats,
    Service,
)


# Share of the price collected in advance as a deposit
DEPOSIT_RATIO = Decimal("0.30")

ZERO = Decimal("0")


def deposit_for(price: Decimal) -> Decimal:
    """Deposit owed in advance for a service of the given price."""
    return Decimal(price) * DEPOSIT_RATIO


def appointment_contribution(
    appointment: Appointment,
    price: Decimal,
) -> tuple[Decimal, Decimal]:
    """
    Revenue contributed by a single appointment.

    Returns:
        (realized, predicted)
    """
    deposit = deposit_for(price)

    if appointment.status == AppointmentStatus.COMPLETED:
        return price, ZERO

    if appointment.status == AppointmentStatus.PENDING:
        if appointment.deposit_paid:
            return deposit, price - deposit
        return ZERO, price

    # CANCELLED: a paid deposit is not refunded
    if appointment.deposit_paid:
        return deposit, ZERO
    return ZERO, ZERO


def price_index(services: Iterable[Service]) -> dict[str, Decimal]:
    """Map service id to price."""
    return {service.id: service.price for service in services}


def compute_revenue(
    appointments: Iterable[Appointment],
    services: Iterable[Service],
) -> RevenueStats:
    """
    Compute predicted and realized revenue for a set of appointments.

    Appointments whose service no longer exists are priced at zero.
    """
    prices = price_index(services)

    predicted = ZERO
    realized = ZERO
    for appointment in appointments:
        price = prices.get(appointment.service_id, ZERO)
        appt_realized, appt_predicted = appointment_contribution(appointment, price)
        realized += appt_realized
        predicted += appt_predicted

    return RevenueStats(predicted=predicted, realized=realized)
