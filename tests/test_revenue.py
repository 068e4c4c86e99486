"""
Tests for the revenue accrual engine.
"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal
from itertools import count

from studio_ledger.models.booking import (
    Appointment,
    AppointmentStatus,
    Service,
)
from studio_ledger.queries import (
    DEPOSIT_RATIO,
    appointment_contribution,
    compute_revenue,
    deposit_for,
)


_ids = count(1)

CATALOG = [
    Service(id="s100", name="Full", price=Decimal("100.00")),
    Service(id="s50", name="Half", price=Decimal("50.00")),
]


def appointment(
    service_id: str = "s100",
    status: AppointmentStatus = AppointmentStatus.PENDING,
    deposit_paid: bool = False,
) -> Appointment:
    return Appointment(
        id=f"a{next(_ids)}",
        client_name="Client",
        service_id=service_id,
        date=datetime(2024, 3, 1, 10, tzinfo=timezone.utc),
        status=status,
        deposit_paid=deposit_paid,
    )


class TestDeposit:
    """Tests for the deposit rule."""

    def test_ratio(self):
        """Test the deposit share."""
        assert DEPOSIT_RATIO == Decimal("0.30")

    def test_deposit_is_exact(self):
        """Test that the 30/70 split carries no float error."""
        assert deposit_for(Decimal("100.00")) == Decimal("30")
        assert deposit_for(Decimal("35.00")) == Decimal("10.5")
        assert Decimal("35.00") - deposit_for(Decimal("35.00")) == Decimal("24.5")


class TestAppointmentContribution:
    """Tests for the per-appointment accrual table."""

    @pytest.mark.parametrize(
        "status, deposit_paid, realized, predicted",
        [
            (AppointmentStatus.COMPLETED, False, "100", "0"),
            (AppointmentStatus.COMPLETED, True, "100", "0"),
            (AppointmentStatus.PENDING, True, "30", "70"),
            (AppointmentStatus.PENDING, False, "0", "100"),
            (AppointmentStatus.CANCELLED, True, "30", "0"),
            (AppointmentStatus.CANCELLED, False, "0", "0"),
        ],
    )
    def test_accrual_table(self, status, deposit_paid, realized, predicted):
        """Test every status and deposit combination."""
        appt = appointment(status=status, deposit_paid=deposit_paid)
        got_realized, got_predicted = appointment_contribution(appt, Decimal("100.00"))
        assert got_realized == Decimal(realized)
        assert got_predicted == Decimal(predicted)


class TestComputeRevenue:
    """Tests for month revenue totals."""

    def test_empty(self):
        """Test that no appointments yields zero revenue."""
        stats = compute_revenue([], CATALOG)
        assert stats.predicted == Decimal("0")
        assert stats.realized == Decimal("0")

    def test_completed_counts_full_price(self):
        """Test a completed appointment is realized in full."""
        stats = compute_revenue(
            [appointment(status=AppointmentStatus.COMPLETED)], CATALOG
        )
        assert stats.realized == Decimal("100")
        assert stats.predicted == Decimal("0")

    def test_pending_with_deposit_splits(self):
        """Test a paid deposit is realized and the rest predicted."""
        stats = compute_revenue([appointment(deposit_paid=True)], CATALOG)
        assert stats.realized == Decimal("30")
        assert stats.predicted == Decimal("70")

    def test_cancelled_keeps_deposit(self):
        """Test that a paid deposit on a cancellation is kept."""
        stats = compute_revenue(
            [appointment(status=AppointmentStatus.CANCELLED, deposit_paid=True)],
            CATALOG,
        )
        assert stats.realized == Decimal("30")
        assert stats.predicted == Decimal("0")

    def test_cancelled_without_deposit_is_nothing(self):
        """Test a cancellation without deposit contributes nothing."""
        stats = compute_revenue(
            [appointment(status=AppointmentStatus.CANCELLED)], CATALOG
        )
        assert stats.realized == Decimal("0")
        assert stats.predicted == Decimal("0")

    def test_dangling_service_prices_at_zero(self):
        """Test appointments of a removed service contribute zero."""
        stats = compute_revenue(
            [
                appointment(service_id="gone", status=AppointmentStatus.COMPLETED),
                appointment(service_id="gone", deposit_paid=True),
            ],
            CATALOG,
        )
        assert stats.realized == Decimal("0")
        assert stats.predicted == Decimal("0")

    def test_mixed_month(self):
        """Test totals over a mix of statuses and services."""
        appointments = [
            appointment("s100", AppointmentStatus.COMPLETED),
            appointment("s50", AppointmentStatus.PENDING, deposit_paid=True),
            appointment("s50", AppointmentStatus.PENDING),
            appointment("s100", AppointmentStatus.CANCELLED, deposit_paid=True),
            appointment("s100", AppointmentStatus.CANCELLED),
        ]
        stats = compute_revenue(appointments, CATALOG)
        # 100 + 15 + 30
        assert stats.realized == Decimal("145")
        # 35 + 50
        assert stats.predicted == Decimal("85")

    def test_order_independent(self):
        """Test that appointment order does not change the totals."""
        appointments = [
            appointment("s100", AppointmentStatus.COMPLETED),
            appointment("s50", AppointmentStatus.PENDING, deposit_paid=True),
            appointment("s100", AppointmentStatus.CANCELLED, deposit_paid=True),
            appointment("s50"),
        ]
        forward = compute_revenue(appointments, CATALOG)
        backward = compute_revenue(list(reversed(appointments)), CATALOG)
        assert forward == backward

    def test_totals_are_non_negative(self):
        """Test both totals stay non-negative."""
        stats = compute_revenue(
            [appointment(status=s, deposit_paid=d)
             for s in AppointmentStatus for d in (True, False)],
            CATALOG,
        )
        assert stats.realized >= 0
        assert stats.predicted >= 0
