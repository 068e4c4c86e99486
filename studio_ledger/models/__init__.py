"""
Data Models Package

This package contains all Pydantic models used in Studio Ledger.
All data flowing between the backends and the revenue engine must
conform to these schemas.
"""

from studio_ledger.models.booking import (
    DEFAULT_SERVICES,
    Appointment,
    AppointmentCreate,
    AppointmentStatus,
    AppointmentUpdate,
    MonthOverview,
    MonthPeriod,
    RevenueStats,
    Service,
    ServiceCreate,
    ServiceUpdate,
    ValidationIssue,
)
from studio_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Booking models
    "DEFAULT_SERVICES",
    "Appointment",
    "AppointmentCreate",
    "AppointmentStatus",
    "AppointmentUpdate",
    "MonthOverview",
    "MonthPeriod",
    "RevenueStats",
    "Service",
    "ServiceCreate",
    "ServiceUpdate",
    "ValidationIssue",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
