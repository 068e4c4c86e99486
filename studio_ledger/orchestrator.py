"""
Booking Ledger Orchestrator

This module ties together the repository, the revenue engine and the
audit log, and defines the operations a UI calls:
1. Month overview (appointments + catalog + revenue)
2. Booking, editing and the status actions (conclude, cancel, reopen)
3. Guarded deletion of cancelled appointments
4. Catalog maintenance

DESIGN DECISION: There is no global repository. create_ledger() builds
exactly one backend from an explicit Settings value, and the resulting
BookingLedger is passed to whatever needs it. The backend choice is
fixed for the lifetime of the ledger.
"""

from typing import Any, Awaitable, Optional, Type, TypeVar, Union

from pydantic import BaseModel

from studio_ledger.audit import AuditLogger, set_log_level
from studio_ledger.config import Settings, get_settings
from studio_ledger.models.booking import (
    Appointment,
    AppointmentCreate,
    AppointmentStatus,
    AppointmentUpdate,
    MonthOverview,
    MonthPeriod,
    Service,
    ServiceUpdate,
)
from studio_ledger.queries import compute_revenue
from studio_ledger.services.storage import (
    FileRecordStore,
    GoogleSheetsClient,
    LedgerRepository,
    LocalRepository,
    NotFoundError,
    RemoteRepository,
    StorageError,
)
from studio_ledger.validation import LedgerValidationError, LedgerValidator


T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

SERVICE_REMOVED_LABEL = "Service removed"


def filter_appointments(
    appointments: list[Appointment],
    term: Optional[str],
) -> list[Appointment]:
    """
    Client search: case-insensitive match on the name, or a substring
    match on the phone number. A blank term matches everything.
    """
    if not term or not term.strip():
        return list(appointments)
    needle = term.strip().lower()
    return [
        appt for appt in appointments
        if needle in appt.client_name.lower()
        or (appt.client_phone and term.strip() in appt.client_phone)
    ]


def service_label(appointment: Appointment, services: list[Service]) -> str:
    """Name of the booked service, or a fallback for dangling references."""
    for service in services:
        if service.id == appointment.service_id:
            return service.name
    return SERVICE_REMOVED_LABEL


class BookingLedger:
    """
    Orchestrates ledger operations over a single repository.

    Every mutating action is audited. Validation rejections and backend
    failures are audited too, then re-raised to the caller unchanged.
    """

    def __init__(
        self,
        repository: LedgerRepository,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._repository = repository
        self._audit_logger = audit_logger or AuditLogger()

    @property
    def repository(self) -> LedgerRepository:
        return self._repository

    @property
    def backend_name(self) -> str:
        return self._repository.backend_name

    @property
    def is_remote(self) -> bool:
        return self._repository.is_remote

    def connection_status(self) -> str:
        """One-line description of the active backend for a settings screen."""
        if self.is_remote:
            return "Connected to Google Sheets"
        return "Demo mode (local storage)"

    async def _run(
        self,
        operation: str,
        call: Awaitable[T],
        entity_id: Optional[str] = None,
    ) -> T:
        try:
            return await call
        except LedgerValidationError as e:
            await self._audit_logger.log_validation_rejected(
                operation=operation,
                issues=e.to_dicts(),
                entity_id=entity_id,
            )
            raise
        except NotFoundError:
            # Unknown id; audited apart from backend failures
            await self._audit_logger.log_not_found(operation, entity_id)
            raise
        except StorageError as e:
            await self._audit_logger.log_backend_error(
                operation=operation,
                backend=self.backend_name,
                error_message=str(e),
            )
            raise

    async def _parse(self, model: Type[M], data: Any, operation: str) -> M:
        try:
            return LedgerValidator.parse(model, data, operation)
        except LedgerValidationError as e:
            await self._audit_logger.log_validation_rejected(
                operation=operation,
                issues=e.to_dicts(),
            )
            raise

    # -------------------------------------------------------------------------
    # Dashboard
    # -------------------------------------------------------------------------

    async def month_overview(
        self,
        month_index: int,
        year: int,
        search: Optional[str] = None,
    ) -> MonthOverview:
        """
        Appointments, catalog and revenue for one month.

        Revenue always covers the whole month; `search` only narrows the
        appointment list that is returned.
        """
        appointments = await self._run(
            "list_appointments",
            self._repository.list_appointments(month_index, year),
        )
        services = await self._run("list_services", self._repository.list_services())

        return MonthOverview(
            period=MonthPeriod(month_index=month_index, year=year),
            appointments=filter_appointments(appointments, search),
            services=services,
            stats=compute_revenue(appointments, services),
        )

    # -------------------------------------------------------------------------
    # Appointments
    # -------------------------------------------------------------------------

    async def book(
        self,
        fields: Union[AppointmentCreate, dict[str, Any]],
    ) -> Appointment:
        """Book a new appointment. New appointments always start PENDING."""
        data = await self._parse(AppointmentCreate, fields, "book")
        data = data.model_copy(update={"status": AppointmentStatus.PENDING})

        appointment = await self._run("book", self._repository.add_appointment(data))
        await self._audit_logger.log_appointment_booked(
            appointment_id=appointment.id,
            client_name=appointment.client_name,
            service_id=appointment.service_id,
            deposit_paid=appointment.deposit_paid,
        )
        return appointment

    async def edit(
        self,
        appointment_id: str,
        changes: Union[AppointmentUpdate, dict[str, Any]],
    ) -> None:
        """Edit the details of an appointment (not its status)."""
        update = await self._parse(AppointmentUpdate, changes, "edit")
        await self._run(
            "edit",
            self._repository.update_appointment(appointment_id, update),
            entity_id=appointment_id,
        )
        await self._audit_logger.log_appointment_updated(
            appointment_id, sorted(update.model_dump(exclude_unset=True))
        )

    async def _transition(
        self,
        operation: str,
        appointment_id: str,
        new_status: AppointmentStatus,
    ) -> None:
        current = await self._run(
            operation,
            self._repository.get_appointment(appointment_id),
            entity_id=appointment_id,
        )
        await self._run(
            operation,
            self._repository.set_appointment_status(appointment_id, new_status),
            entity_id=appointment_id,
        )
        if current is not None and current.status != new_status:
            await self._audit_logger.log_status_changed(
                appointment_id=appointment_id,
                old_status=current.status.value,
                new_status=new_status.value,
            )

    async def conclude(self, appointment_id: str) -> None:
        """PENDING -> COMPLETED."""
        await self._transition("conclude", appointment_id, AppointmentStatus.COMPLETED)

    async def cancel(self, appointment_id: str) -> None:
        """PENDING -> CANCELLED."""
        await self._transition("cancel", appointment_id, AppointmentStatus.CANCELLED)

    async def reopen(self, appointment_id: str) -> None:
        """COMPLETED or CANCELLED -> PENDING."""
        await self._transition("reopen", appointment_id, AppointmentStatus.PENDING)

    async def remove(self, appointment_id: str) -> None:
        """Permanently delete a cancelled appointment."""
        await self._run(
            "remove",
            self._repository.delete_appointment(appointment_id),
            entity_id=appointment_id,
        )
        await self._audit_logger.log_appointment_deleted(appointment_id)

    # -------------------------------------------------------------------------
    # Catalog
    # -------------------------------------------------------------------------

    async def add_service(
        self,
        name: str,
        price,
        duration_minutes: Optional[int] = None,
    ) -> Service:
        service = await self._run(
            "add_service",
            self._repository.add_service(name, price, duration_minutes),
        )
        await self._audit_logger.log_service_added(
            service.id, service.name, str(service.price)
        )
        return service

    async def update_service(
        self,
        service_id: str,
        changes: Union[ServiceUpdate, dict[str, Any]],
    ) -> None:
        update = await self._parse(ServiceUpdate, changes, "update_service")
        await self._run(
            "update_service",
            self._repository.update_service(service_id, update),
            entity_id=service_id,
        )
        await self._audit_logger.log_service_updated(
            service_id, sorted(update.model_dump(exclude_unset=True))
        )

    async def delete_service(self, service_id: str) -> None:
        await self._run(
            "delete_service",
            self._repository.delete_service(service_id),
            entity_id=service_id,
        )
        await self._audit_logger.log_service_deleted(service_id)


def create_repository(settings: Optional[Settings] = None) -> LedgerRepository:
    """
    Build the repository for this process.

    Uses Google Sheets when its credentials and spreadsheet id are
    configured, otherwise the local JSON store. Called once at startup.
    """
    settings = settings or get_settings()

    if settings.remote_configured:
        return RemoteRepository(GoogleSheetsClient(settings.google_sheets))
    return LocalRepository(FileRecordStore(settings.local_store.data_dir))


def create_ledger(
    settings: Optional[Settings] = None,
    audit_logger: Optional[AuditLogger] = None,
) -> BookingLedger:
    """Factory function to create the ledger and its backend."""
    settings = settings or get_settings()
    set_log_level(settings.app.log_level)
    return BookingLedger(create_repository(settings), audit_logger=audit_logger)
