"""
Audit Models for Studio Ledger

Every change to the catalog or the appointment book is recorded as an
audit event. This provides:
1. Traceability of who changed what, and when
2. Debugging information when a backend call fails
3. A history of status transitions that explains revenue changes

DESIGN DECISION: Audit events are write-only. They go to the structured
log and are never read back by the ledger itself.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Catalog
    SERVICE_ADDED = "service_added"
    SERVICE_UPDATED = "service_updated"
    SERVICE_DELETED = "service_deleted"

    # Appointment book
    APPOINTMENT_BOOKED = "appointment_booked"
    APPOINTMENT_UPDATED = "appointment_updated"
    APPOINTMENT_STATUS_CHANGED = "appointment_status_changed"
    APPOINTMENT_DELETED = "appointment_deleted"

    # Rejections and failures
    VALIDATION_REJECTED = "validation_rejected"
    ENTITY_NOT_FOUND = "entity_not_found"
    BACKEND_ERROR = "backend_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Entity ids are opaque strings because both backends assign their own
    id formats.
    """

    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity ('service' or 'appointment')"
    )
    entity_id: Optional[str] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.appointment_booked(appointment)
        event = AuditEventBuilder.status_changed(appointment_id, old, new)
    """

    @staticmethod
    def service_added(service_id: str, name: str, price: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SERVICE_ADDED,
            entity_type="service",
            entity_id=service_id,
            description=f"Service added: {name} ({price})",
            details={"name": name, "price": price},
        )

    @staticmethod
    def service_updated(service_id: str, fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SERVICE_UPDATED,
            entity_type="service",
            entity_id=service_id,
            description=f"Service updated: {', '.join(fields) or 'no fields'}",
            details={"fields": fields},
        )

    @staticmethod
    def service_deleted(service_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SERVICE_DELETED,
            entity_type="service",
            entity_id=service_id,
            description="Service deleted",
        )

    @staticmethod
    def appointment_booked(
        appointment_id: str,
        client_name: str,
        service_id: str,
        deposit_paid: bool,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.APPOINTMENT_BOOKED,
            entity_type="appointment",
            entity_id=appointment_id,
            description=f"Appointment booked for {client_name}",
            details={
                "service_id": service_id,
                "deposit_paid": deposit_paid,
            },
        )

    @staticmethod
    def appointment_updated(appointment_id: str, fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.APPOINTMENT_UPDATED,
            entity_type="appointment",
            entity_id=appointment_id,
            description=f"Appointment updated: {', '.join(fields) or 'no fields'}",
            details={"fields": fields},
        )

    @staticmethod
    def status_changed(
        appointment_id: str,
        old_status: str,
        new_status: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.APPOINTMENT_STATUS_CHANGED,
            entity_type="appointment",
            entity_id=appointment_id,
            description=f"Status changed: {old_status} -> {new_status}",
            details={"from": old_status, "to": new_status},
        )

    @staticmethod
    def appointment_deleted(appointment_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.APPOINTMENT_DELETED,
            entity_type="appointment",
            entity_id=appointment_id,
            description="Cancelled appointment deleted",
        )

    @staticmethod
    def validation_rejected(
        operation: str,
        issues: list[dict],
        entity_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_id=entity_id,
            description=f"{operation} rejected with {len(issues)} issues",
            details={"operation": operation, "issues": issues},
        )

    @staticmethod
    def entity_not_found(operation: str, entity_id: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTITY_NOT_FOUND,
            severity=AuditSeverity.WARNING,
            entity_id=entity_id,
            description=f"{operation} refers to an unknown id",
            details={"operation": operation},
        )

    @staticmethod
    def backend_error(
        operation: str,
        backend: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKEND_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"Backend error during {operation}",
            error_message=error_message,
            details={"operation": operation, "backend": backend},
        )
