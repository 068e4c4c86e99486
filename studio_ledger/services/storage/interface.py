"""
Abstract Repository Interface

DESIGN DECISION: We define one abstract repository for services and
appointments. Two concrete backends implement it:
1. RemoteRepository - Google Sheets, one worksheet per table
2. LocalRepository - JSON records in a local key-value store

The public operations that carry domain rules (validation, the status
state machine, the deletion policy) are implemented HERE, once. Backends
only implement the raw table primitives, so both backends enforce the
same rules and produce the same results for the same data.

The interface is intentionally simple - we're not building a full ORM.
Just the operations the booking ledger needs.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Optional, Union

import structlog

from studio_ledger.models.booking import (
    Appointment,
    AppointmentCreate,
    AppointmentStatus,
    AppointmentUpdate,
    MonthPeriod,
    Service,
    ServiceCreate,
    ServiceUpdate,
)
from studio_ledger.validation import LedgerValidator


logger = structlog.get_logger(__name__)


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class StorageConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


class LedgerRepository(ABC):
    """
    Abstract repository for the booking ledger.

    All operations are async: they may suspend on network or disk I/O.
    No locking is performed; a single caller at a time is assumed.
    """

    backend_name = "abstract"

    @property
    def is_remote(self) -> bool:
        return False

    # -------------------------------------------------------------------------
    # Backend primitives
    # -------------------------------------------------------------------------

    @abstractmethod
    async def list_services(self) -> list[Service]:
        """
        Return every service in the catalog.

        Raises:
            StorageError: If the backend call fails
        """
        pass

    @abstractmethod
    async def get_service(self, service_id: str) -> Optional[Service]:
        """
        Retrieve a service by id.

        Returns:
            The service if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_appointment(self, appointment_id: str) -> Optional[Appointment]:
        """
        Retrieve an appointment by id.

        Returns:
            The appointment if found, None otherwise
        """
        pass

    @abstractmethod
    async def _insert_service(self, data: ServiceCreate) -> Service:
        """Store a new service, assigning its id. Returns the stored row."""
        pass

    @abstractmethod
    async def _replace_service(self, service: Service, fields: set[str]) -> None:
        """Write the given fields of an existing service."""
        pass

    @abstractmethod
    async def _remove_service(self, service_id: str) -> bool:
        """Delete a service row. Returns False if no row matched."""
        pass

    @abstractmethod
    async def _fetch_appointments(self, period: MonthPeriod) -> list[Appointment]:
        """Appointments with period.start <= date <= period.end, ascending by date."""
        pass

    @abstractmethod
    async def _insert_appointment(self, data: AppointmentCreate) -> Appointment:
        """Store a new appointment, assigning its id. Returns the stored row."""
        pass

    @abstractmethod
    async def _replace_appointment(
        self,
        appointment: Appointment,
        fields: set[str],
    ) -> None:
        """Write the given fields of an existing appointment."""
        pass

    @abstractmethod
    async def _remove_appointment(self, appointment_id: str) -> None:
        """Delete an appointment row."""
        pass

    # -------------------------------------------------------------------------
    # Services
    # -------------------------------------------------------------------------

    async def add_service(
        self,
        name: str,
        price: Union[Decimal, float, int, str],
        duration_minutes: Optional[int] = None,
    ) -> Service:
        """
        Add a service to the catalog.

        Raises:
            LedgerValidationError: If name is empty, price negative,
                or duration not positive
        """
        data = LedgerValidator.parse(
            ServiceCreate,
            {"name": name, "price": price, "duration_minutes": duration_minutes},
            "add_service",
        )
        return await self._insert_service(data)

    async def update_service(
        self,
        service_id: str,
        changes: Union[ServiceUpdate, dict[str, Any]],
    ) -> None:
        """
        Apply a partial update to a service.

        Raises:
            LedgerValidationError: If the changes are invalid
            NotFoundError: If the service doesn't exist
        """
        update = LedgerValidator.parse(ServiceUpdate, changes, "update_service")
        fields = set(update.model_dump(exclude_unset=True))

        current = await self.get_service(service_id)
        if current is None:
            raise NotFoundError(f"Service not found: {service_id}")
        if not fields:
            return

        merged = LedgerValidator.parse(
            Service,
            {**current.model_dump(), **update.model_dump(exclude_unset=True)},
            "update_service",
        )
        await self._replace_service(merged, fields)

    async def delete_service(self, service_id: str) -> None:
        """
        Delete a service.

        Appointments referencing it are left in place; their service
        resolves to price zero from then on.
        """
        removed = await self._remove_service(service_id)
        if not removed:
            logger.info(
                "service_delete_missing",
                backend=self.backend_name,
                service_id=service_id,
            )

    # -------------------------------------------------------------------------
    # Appointments
    # -------------------------------------------------------------------------

    async def list_appointments(self, month_index: int, year: int) -> list[Appointment]:
        """
        List appointments within a calendar month, oldest first.

        Args:
            month_index: Zero-based month (0 = January)
            year: Four-digit year

        Raises:
            LedgerValidationError: If month_index is outside 0..11
        """
        period = LedgerValidator.period(month_index, year)
        return await self._fetch_appointments(period)

    async def add_appointment(
        self,
        fields: Union[AppointmentCreate, dict[str, Any]],
    ) -> Appointment:
        """
        Book an appointment.

        Raises:
            LedgerValidationError: If a required field is missing or invalid
        """
        data = LedgerValidator.parse(AppointmentCreate, fields, "add_appointment")
        return await self._insert_appointment(data)

    async def update_appointment(
        self,
        appointment_id: str,
        changes: Union[AppointmentUpdate, dict[str, Any]],
    ) -> None:
        """
        Apply a partial update to an appointment.

        Status is not accepted here; use set_appointment_status.

        Raises:
            LedgerValidationError: If the changes are invalid
            NotFoundError: If the appointment doesn't exist
        """
        update = LedgerValidator.parse(AppointmentUpdate, changes, "update_appointment")
        fields = set(update.model_dump(exclude_unset=True))

        current = await self.get_appointment(appointment_id)
        if current is None:
            raise NotFoundError(f"Appointment not found: {appointment_id}")
        if not fields:
            return

        merged = LedgerValidator.parse(
            Appointment,
            {**current.model_dump(), **update.model_dump(exclude_unset=True)},
            "update_appointment",
        )
        await self._replace_appointment(merged, fields)

    async def set_appointment_status(
        self,
        appointment_id: str,
        status: Union[AppointmentStatus, str],
    ) -> None:
        """
        Move an appointment to a new status.

        Setting the status an appointment already has is a no-op.

        Raises:
            LedgerValidationError: If the transition is not allowed
            NotFoundError: If the appointment doesn't exist
        """
        new_status = LedgerValidator.parse_status(status)

        current = await self.get_appointment(appointment_id)
        if current is None:
            raise NotFoundError(f"Appointment not found: {appointment_id}")

        if not LedgerValidator.check_transition(current, new_status):
            return

        await self._replace_appointment(
            current.model_copy(update={"status": new_status}),
            {"status"},
        )

    async def delete_appointment(self, appointment_id: str) -> None:
        """
        Delete a cancelled appointment.

        Raises:
            LedgerValidationError: If the appointment is not CANCELLED
            NotFoundError: If the appointment doesn't exist
        """
        current = await self.get_appointment(appointment_id)
        if current is None:
            raise NotFoundError(f"Appointment not found: {appointment_id}")

        LedgerValidator.check_deletable(current)
        await self._remove_appointment(appointment_id)
