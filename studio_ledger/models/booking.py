"""
Core Data Models for Studio Ledger

These models define the schemas for services and appointments as they
flow between the repository backends and the revenue engine.
They are designed to:
1. Reject malformed records before they reach a backend
2. Serialize identically to the local JSON store and the remote sheet
3. Keep appointment status inside its three legal values

DESIGN DECISION: Dates are normalized to timezone-aware UTC on the way in.
Both backends compare and sort the same instants, so month queries
return identical results whichever backend is active.
"""

from calendar import monthrange
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)


# =============================================================================
# ENUMS
# =============================================================================

class AppointmentStatus(str, Enum):
    """
    Appointment lifecycle status.

    PENDING is the initial state. COMPLETED and CANCELLED both
    reopen back to PENDING; they never move into each other directly.
    """
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


def _as_utc(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# =============================================================================
# SERVICE MODELS
# =============================================================================

class Service(BaseModel):
    """A service offering from the studio catalog."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Opaque identifier assigned by the backend"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Service name shown to the operator"
    )
    price: Decimal = Field(
        ...,
        ge=0,
        description="Full price of the service"
    )
    duration_minutes: Optional[int] = Field(
        default=None,
        gt=0,
        description="Expected duration in minutes"
    )

    @field_serializer("price", when_used="json")
    def serialize_price(self, price: Decimal) -> str:
        # Decimal string, as in the sheet; a float would round large prices
        return str(price)


class ServiceCreate(BaseModel):
    """Fields required to register a new service."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    name: str = Field(..., min_length=1, max_length=200)
    price: Decimal = Field(..., ge=0)
    duration_minutes: Optional[int] = Field(default=None, gt=0)


class ServiceUpdate(BaseModel):
    """
    Partial update for a service.

    Only fields explicitly set are applied. The id is not part of this
    model, so attempts to change it are rejected.
    """
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    price: Optional[Decimal] = Field(default=None, ge=0)
    duration_minutes: Optional[int] = Field(default=None, gt=0)


# =============================================================================
# APPOINTMENT MODELS
# =============================================================================

class AppointmentCreate(BaseModel):
    """Fields for booking an appointment (everything but the id)."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    client_name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Client name (required)"
    )
    client_phone: Optional[str] = Field(
        default=None,
        max_length=50,
        description="Client phone number"
    )
    service_id: str = Field(
        ...,
        min_length=1,
        description="Weak reference to Service.id; may dangle"
    )
    date: datetime = Field(
        ...,
        description="Scheduled instant (stored as UTC)"
    )
    status: AppointmentStatus = Field(
        default=AppointmentStatus.PENDING,
        description="Lifecycle status"
    )
    notes: Optional[str] = Field(
        default=None,
        max_length=1000,
    )
    deposit_paid: bool = Field(
        default=False,
        description="Whether the 30% deposit was paid in advance"
    )

    @field_validator("date")
    @classmethod
    def normalize_date(cls, v: datetime) -> datetime:
        return _as_utc(v)


class Appointment(AppointmentCreate):
    """
    A persisted appointment.

    Same fields as AppointmentCreate plus the backend-assigned id.
    """
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    id: str = Field(
        ...,
        min_length=1,
        description="Opaque identifier assigned by the backend"
    )

    @field_validator("deposit_paid", mode="before")
    @classmethod
    def default_missing_deposit(cls, v):
        # Records written before deposits were tracked carry null here
        return False if v is None else v


class AppointmentUpdate(BaseModel):
    """
    Partial update for an appointment.

    Status is not part of this model: status changes go through
    set_appointment_status so transitions are always checked.
    """
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    client_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    client_phone: Optional[str] = Field(default=None, max_length=50)
    service_id: Optional[str] = Field(default=None, min_length=1)
    date: Optional[datetime] = None
    notes: Optional[str] = Field(default=None, max_length=1000)
    deposit_paid: Optional[bool] = None

    @field_validator("date")
    @classmethod
    def normalize_date(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v) if v is not None else None


# =============================================================================
# QUERY / RESULT MODELS
# =============================================================================

class MonthPeriod(BaseModel):
    """
    A calendar month used for appointment range queries.

    month_index is zero-based (0 = January). Bounds are inclusive on
    both ends: start is the first instant of the month and end is the
    last representable instant before the next month begins.
    """
    model_config = ConfigDict(frozen=True)

    month_index: int = Field(..., ge=0, le=11)
    year: int = Field(..., ge=1, le=9999)

    @property
    def start(self) -> datetime:
        return datetime(self.year, self.month_index + 1, 1, tzinfo=timezone.utc)

    @property
    def end(self) -> datetime:
        last_day = monthrange(self.year, self.month_index + 1)[1]
        return datetime(
            self.year, self.month_index + 1, last_day,
            23, 59, 59, 999999, tzinfo=timezone.utc,
        )

    def contains(self, moment: datetime) -> bool:
        moment = _as_utc(moment)
        return self.start <= moment <= self.end


class RevenueStats(BaseModel):
    """
    Revenue summary for a set of appointments.

    Transient: recomputed on every query, never persisted.
    """

    predicted: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Owed but not yet collected"
    )
    realized: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Already collected (completed services and paid deposits)"
    )


class MonthOverview(BaseModel):
    """Everything a dashboard needs for one month."""

    period: MonthPeriod
    appointments: list[Appointment] = Field(default_factory=list)
    services: list[Service] = Field(default_factory=list)
    stats: RevenueStats = Field(default_factory=RevenueStats)


# =============================================================================
# DEFAULT CATALOG
# =============================================================================

# Seeded into the local store the first time services are read
DEFAULT_SERVICES: list[Service] = [
    Service(id="1", name="Manicure Simples", price=Decimal("35.00"), duration_minutes=40),
    Service(id="2", name="Pedicure Simples", price=Decimal("35.00"), duration_minutes=45),
    Service(id="3", name="Pé e Mão", price=Decimal("65.00"), duration_minutes=80),
    Service(id="4", name="Alongamento Fibra", price=Decimal("150.00"), duration_minutes=150),
    Service(id="5", name="Manutenção Fibra", price=Decimal("90.00"), duration_minutes=120),
]


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single reason an operation was rejected."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'illegal_transition')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
