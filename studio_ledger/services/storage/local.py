"""
Local Repository (offline / demo backend)

Stores the two collections as JSON arrays in a RecordStore:
- `studio_services` - every Service
- `studio_appointments` - every Appointment

Every mutation reads the whole collection, changes it in memory and
writes the whole collection back. Queries load the collection and
filter/sort in Python; fine for the handful of records a single studio
keeps.

KNOWN LIMITATION: the read-modify-write sequence is not atomic. Two
concurrent mutations of the same collection can lose an update (last
write wins). The local backend is a single-user demo store, not a sync
target, so no locking is done.
"""

import secrets
import string
from typing import Optional

import structlog
from pydantic import TypeAdapter, ValidationError

from studio_ledger.models.booking import (
    DEFAULT_SERVICES,
    Appointment,
    AppointmentCreate,
    MonthPeriod,
    Service,
    ServiceCreate,
)
from studio_ledger.services.storage.interface import (
    LedgerRepository,
    NotFoundError,
)
from studio_ledger.services.storage.record_store import RecordStore


logger = structlog.get_logger(__name__)

SERVICES_KEY = "studio_services"
APPOINTMENTS_KEY = "studio_appointments"

ID_ALPHABET = string.ascii_lowercase + string.digits
ID_LENGTH = 9

_services_adapter = TypeAdapter(list[Service])
_appointments_adapter = TypeAdapter(list[Appointment])


def generate_local_id(existing: set[str]) -> str:
    """Short random alphanumeric id not used by any live record."""
    while True:
        token = "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_LENGTH))
        if token not in existing:
            return token


class LocalRepository(LedgerRepository):
    """LedgerRepository over a local RecordStore."""

    backend_name = "local"

    def __init__(self, store: RecordStore):
        self._store = store

    # -------------------------------------------------------------------------
    # Collection I/O
    # -------------------------------------------------------------------------

    def _default_services(self) -> list[Service]:
        return [service.model_copy() for service in DEFAULT_SERVICES]

    def _load_services(self) -> list[Service]:
        try:
            raw = self._store.read(SERVICES_KEY)
            if raw is not None:
                return _services_adapter.validate_json(raw)
        except (ValidationError, UnicodeDecodeError) as e:
            logger.warning("corrupt_record_reset", key=SERVICES_KEY, error=str(e))
            services = self._default_services()
            self._save_services(services)
            return services

        services = self._default_services()
        self._save_services(services)
        logger.info("services_seeded", count=len(services))
        return services

    def _save_services(self, services: list[Service]) -> None:
        self._store.write(SERVICES_KEY, _services_adapter.dump_json(services).decode("utf-8"))

    def _load_appointments(self) -> list[Appointment]:
        try:
            raw = self._store.read(APPOINTMENTS_KEY)
            if raw is None:
                return []
            return _appointments_adapter.validate_json(raw)
        except (ValidationError, UnicodeDecodeError) as e:
            # Undecodable bytes count as corruption, same as bad JSON
            logger.warning("corrupt_record_reset", key=APPOINTMENTS_KEY, error=str(e))
            self._save_appointments([])
            return []

    def _save_appointments(self, appointments: list[Appointment]) -> None:
        self._store.write(
            APPOINTMENTS_KEY,
            _appointments_adapter.dump_json(appointments).decode("utf-8"),
        )

    # -------------------------------------------------------------------------
    # Services
    # -------------------------------------------------------------------------

    async def list_services(self) -> list[Service]:
        return self._load_services()

    async def get_service(self, service_id: str) -> Optional[Service]:
        for service in self._load_services():
            if service.id == service_id:
                return service
        return None

    async def _insert_service(self, data: ServiceCreate) -> Service:
        services = self._load_services()
        service = Service(
            id=generate_local_id({s.id for s in services}),
            **data.model_dump(),
        )
        services.append(service)
        self._save_services(services)
        return service

    async def _replace_service(self, service: Service, fields: set[str]) -> None:
        services = self._load_services()
        for idx, existing in enumerate(services):
            if existing.id == service.id:
                services[idx] = service
                self._save_services(services)
                return
        raise NotFoundError(f"Service not found: {service.id}")

    async def _remove_service(self, service_id: str) -> bool:
        services = self._load_services()
        remaining = [s for s in services if s.id != service_id]
        if len(remaining) == len(services):
            return False
        self._save_services(remaining)
        return True

    # -------------------------------------------------------------------------
    # Appointments
    # -------------------------------------------------------------------------

    async def _fetch_appointments(self, period: MonthPeriod) -> list[Appointment]:
        matching = [a for a in self._load_appointments() if period.contains(a.date)]
        # sorted() is stable, so equal dates keep insertion order
        return sorted(matching, key=lambda a: a.date)

    async def get_appointment(self, appointment_id: str) -> Optional[Appointment]:
        for appointment in self._load_appointments():
            if appointment.id == appointment_id:
                return appointment
        return None

    async def _insert_appointment(self, data: AppointmentCreate) -> Appointment:
        appointments = self._load_appointments()
        appointment = Appointment(
            id=generate_local_id({a.id for a in appointments}),
            **data.model_dump(),
        )
        appointments.append(appointment)
        self._save_appointments(appointments)
        return appointment

    async def _replace_appointment(
        self,
        appointment: Appointment,
        fields: set[str],
    ) -> None:
        appointments = self._load_appointments()
        for idx, existing in enumerate(appointments):
            if existing.id == appointment.id:
                appointments[idx] = appointment
                self._save_appointments(appointments)
                return
        raise NotFoundError(f"Appointment not found: {appointment.id}")

    async def _remove_appointment(self, appointment_id: str) -> None:
        appointments = self._load_appointments()
        self._save_appointments([a for a in appointments if a.id != appointment_id])
