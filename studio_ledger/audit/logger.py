"""
Audit Logger

DESIGN DECISION: Every change to the catalog or the appointment book is
logged. This provides:
1. Complete traceability of status transitions (they move revenue)
2. Debugging capability when a backend call fails
3. A record of rejected operations

The audit logger:
- Is async so it can be awaited from the repository flow
- Gracefully handles failures (a logging problem never breaks an operation)
"""

import logging
from collections import deque
from typing import Optional

import structlog

from studio_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditSeverity,
)


# JSON lines through the stdlib logging tree
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


# Events kept in memory per AuditLogger
DEFAULT_MAX_EVENTS = 500


def set_log_level(level: str) -> None:
    """Apply a level name (e.g. "INFO") to every studio_ledger logger."""
    logging.getLogger("studio_ledger").setLevel(level.upper())


class AuditLogger:
    """
    Records ledger events in the structured log.

    The structured log is the audit trail. The most recent `max_events`
    events are also kept in memory for inspection; older ones are dropped.
    """

    def __init__(self, max_events: int = DEFAULT_MAX_EVENTS):
        self._logger = structlog.get_logger("studio_ledger.audit")
        self._events: deque[AuditEvent] = deque(maxlen=max_events)

    @property
    def events(self) -> list[AuditEvent]:
        """Most recent events logged by this instance, oldest first."""
        return list(self._events)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the event could not be written.
        """
        try:
            log_dict = event.to_log_dict()
            if event.severity == AuditSeverity.ERROR:
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # Never propagate into the ledger operation
            self._logger.error("audit_log_failed", error=str(e))
            return False
        self._events.append(event)
        return True

    async def log_service_added(self, service_id: str, name: str, price: str) -> None:
        await self.log(AuditEventBuilder.service_added(service_id, name, price))

    async def log_service_updated(self, service_id: str, fields: list[str]) -> None:
        await self.log(AuditEventBuilder.service_updated(service_id, fields))

    async def log_service_deleted(self, service_id: str) -> None:
        await self.log(AuditEventBuilder.service_deleted(service_id))

    async def log_appointment_booked(
        self,
        appointment_id: str,
        client_name: str,
        service_id: str,
        deposit_paid: bool,
    ) -> None:
        """Log a new booking."""
        event = AuditEventBuilder.appointment_booked(
            appointment_id=appointment_id,
            client_name=client_name,
            service_id=service_id,
            deposit_paid=deposit_paid,
        )
        await self.log(event)

    async def log_appointment_updated(
        self,
        appointment_id: str,
        fields: list[str],
    ) -> None:
        await self.log(AuditEventBuilder.appointment_updated(appointment_id, fields))

    async def log_status_changed(
        self,
        appointment_id: str,
        old_status: str,
        new_status: str,
    ) -> None:
        """Log a status transition."""
        event = AuditEventBuilder.status_changed(
            appointment_id=appointment_id,
            old_status=old_status,
            new_status=new_status,
        )
        await self.log(event)

    async def log_appointment_deleted(self, appointment_id: str) -> None:
        await self.log(AuditEventBuilder.appointment_deleted(appointment_id))

    async def log_validation_rejected(
        self,
        operation: str,
        issues: list[dict],
        entity_id: Optional[str] = None,
    ) -> None:
        """Log an operation rejected by validation."""
        event = AuditEventBuilder.validation_rejected(
            operation=operation,
            issues=issues,
            entity_id=entity_id,
        )
        await self.log(event)

    async def log_not_found(self, operation: str, entity_id: Optional[str]) -> None:
        await self.log(AuditEventBuilder.entity_not_found(operation, entity_id))

    async def log_backend_error(
        self,
        operation: str,
        backend: str,
        error_message: str,
    ) -> None:
        """Log a failed backend call."""
        event = AuditEventBuilder.backend_error(
            operation=operation,
            backend=backend,
            error_message=error_message,
        )
        await self.log(event)
