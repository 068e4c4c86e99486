"""
Google Sheets Storage Implementation (remote backend)

DESIGN DECISION: Google Sheets is the remote tabular store because:
1. The studio owner can look at the appointment book directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

Each table is a worksheet whose first row holds the column names:
- `services`: id, name, price, duration_minutes
- `appointments`: id, client_name, client_phone, service_id, date,
  status, notes, deposit_paid

TRADEOFFS:
- Sheets has no server-side predicates, so the month range filter and
  the date ordering are evaluated on the fetched rows. Results are
  identical to the local backend for identical data.
- Sheets does not generate keys; ids are minted here (uuid4 hex) at
  insert time and the inserted row is returned.
- No transactions and no automatic retry: a failed call surfaces as a
  StorageError for that single operation.
"""

from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Iterator, Optional
from uuid import uuid4

import gspread
import structlog
from google.oauth2.service_account import Credentials
from gspread.cell import Cell

from studio_ledger.config import GoogleSheetsSettings, get_settings
from studio_ledger.models.booking import (
    Appointment,
    AppointmentCreate,
    AppointmentStatus,
    MonthPeriod,
    Service,
    ServiceCreate,
)
from studio_ledger.services.storage.interface import (
    LedgerRepository,
    NotFoundError,
    StorageConnectionError,
    StorageError,
)


logger = structlog.get_logger(__name__)

# Column layout of each worksheet (header row)
SERVICE_COLUMNS = [
    "id",
    "name",
    "price",
    "duration_minutes",
]

APPOINTMENT_COLUMNS = [
    "id",
    "client_name",
    "client_phone",
    "service_id",
    "date",
    "status",
    "notes",
    "deposit_paid",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and creates missing worksheets with their
    header row on first access.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._worksheets: dict[str, gspread.Worksheet] = {}
        self._settings = settings or get_settings().google_sheets

    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError as e:
                raise StorageConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                ) from e
            except Exception as e:
                raise StorageConnectionError(f"Failed to connect to Google Sheets: {e}") from e

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound as e:
                raise StorageConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                ) from e
        return self._spreadsheet

    def get_worksheet(self, title: str, columns: list[str]) -> gspread.Worksheet:
        """Get or create a worksheet with the given header row."""
        if title in self._worksheets:
            return self._worksheets[title]

        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(columns),
            )
            sheet.append_row(columns, value_input_option="RAW")
            logger.info("worksheet_created", title=title)

        self._worksheets[title] = sheet
        return sheet

    def get_services_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.services_sheet_name, SERVICE_COLUMNS)

    def get_appointments_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.appointments_sheet_name, APPOINTMENT_COLUMNS)


@contextmanager
def _remote_call(operation: str) -> Iterator[None]:
    """Wrap backend failures of one operation in StorageError."""
    try:
        yield
    except StorageError:
        raise
    except Exception as e:
        logger.error("remote_call_failed", operation=operation, error=str(e))
        raise StorageError(f"Failed to {operation}: {e}") from e


def _records(values: list[list[str]]) -> Iterator[tuple[int, dict[str, str]]]:
    """
    Yield (sheet_row_number, record) for every non-empty data row.

    Row 1 is the header; data rows start at sheet row 2.
    """
    if not values:
        return
    header = values[0]
    for row_number, row in enumerate(values[1:], start=2):
        if not row or not row[0]:
            continue
        # Trailing empty cells are omitted by the API
        padded = row + [""] * (len(header) - len(row))
        yield row_number, dict(zip(header, padded))


def _service_to_row(service: Service) -> dict[str, str]:
    return {
        "id": service.id,
        "name": service.name,
        "price": str(service.price),
        "duration_minutes": str(service.duration_minutes) if service.duration_minutes else "",
    }


def _row_to_service(record: dict[str, str]) -> Service:
    duration = record.get("duration_minutes", "")
    return Service(
        id=record["id"],
        name=record["name"],
        price=Decimal(record["price"] or "0"),
        duration_minutes=int(duration) if duration else None,
    )


def _appointment_to_row(appointment: Appointment) -> dict[str, str]:
    return {
        "id": appointment.id,
        "client_name": appointment.client_name,
        "client_phone": appointment.client_phone or "",
        "service_id": appointment.service_id,
        "date": appointment.date.isoformat(),
        "status": appointment.status.value,
        "notes": appointment.notes or "",
        "deposit_paid": "TRUE" if appointment.deposit_paid else "FALSE",
    }


def _row_to_appointment(record: dict[str, str]) -> Appointment:
    return Appointment(
        id=record["id"],
        client_name=record["client_name"],
        client_phone=record.get("client_phone") or None,
        service_id=record["service_id"],
        date=datetime.fromisoformat(record["date"]),
        status=AppointmentStatus(record["status"]),
        notes=record.get("notes") or None,
        deposit_paid=record.get("deposit_paid", "").upper() == "TRUE",
    )


class RemoteRepository(LedgerRepository):
    """
    Google Sheets implementation of the ledger repository.

    One row per entity; values are written RAW so Sheets never
    reinterprets dates or decimals.
    """

    backend_name = "google_sheets"

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @property
    def is_remote(self) -> bool:
        return True

    def _parse_rows(self, values, parse, table: str) -> list:
        """Parse data rows, skipping (and logging) malformed ones."""
        parsed = []
        for row_number, record in _records(values):
            try:
                parsed.append(parse(record))
            except (KeyError, ValueError, ArithmeticError) as e:
                logger.warning(
                    "malformed_row_skipped",
                    table=table,
                    row=row_number,
                    error=str(e),
                )
        return parsed

    def _find_row(self, values: list[list[str]], entity_id: str) -> Optional[int]:
        for row_number, record in _records(values):
            if record.get("id") == entity_id:
                return row_number
        return None

    def _write_fields(
        self,
        sheet: gspread.Worksheet,
        values: list[list[str]],
        row_number: int,
        row: dict[str, str],
        fields: set[str],
    ) -> None:
        header = values[0]
        cells = [
            Cell(row_number, header.index(field) + 1, row[field])
            for field in sorted(fields)
        ]
        sheet.update_cells(cells, value_input_option="RAW")

    # -------------------------------------------------------------------------
    # Services
    # -------------------------------------------------------------------------

    async def list_services(self) -> list[Service]:
        with _remote_call("list services"):
            values = self._client.get_services_sheet().get_all_values()
        return self._parse_rows(values, _row_to_service, "services")

    async def get_service(self, service_id: str) -> Optional[Service]:
        for service in await self.list_services():
            if service.id == service_id:
                return service
        return None

    async def _insert_service(self, data: ServiceCreate) -> Service:
        service = Service(id=uuid4().hex, **data.model_dump())
        row = _service_to_row(service)
        with _remote_call("add service"):
            sheet = self._client.get_services_sheet()
            sheet.append_row(
                [row[column] for column in SERVICE_COLUMNS],
                value_input_option="RAW",
            )
        return _row_to_service(row)

    async def _replace_service(self, service: Service, fields: set[str]) -> None:
        with _remote_call("update service"):
            sheet = self._client.get_services_sheet()
            values = sheet.get_all_values()
            row_number = self._find_row(values, service.id)
            if row_number is None:
                raise NotFoundError(f"Service not found: {service.id}")
            self._write_fields(sheet, values, row_number, _service_to_row(service), fields)

    async def _remove_service(self, service_id: str) -> bool:
        with _remote_call("delete service"):
            sheet = self._client.get_services_sheet()
            row_number = self._find_row(sheet.get_all_values(), service_id)
            if row_number is None:
                return False
            sheet.delete_rows(row_number)
        return True

    # -------------------------------------------------------------------------
    # Appointments
    # -------------------------------------------------------------------------

    async def _all_appointments(self) -> list[Appointment]:
        with _remote_call("list appointments"):
            values = self._client.get_appointments_sheet().get_all_values()
        return self._parse_rows(values, _row_to_appointment, "appointments")

    async def _fetch_appointments(self, period: MonthPeriod) -> list[Appointment]:
        matching = [
            a for a in await self._all_appointments()
            if period.start <= a.date <= period.end
        ]
        return sorted(matching, key=lambda a: a.date)

    async def get_appointment(self, appointment_id: str) -> Optional[Appointment]:
        for appointment in await self._all_appointments():
            if appointment.id == appointment_id:
                return appointment
        return None

    async def _insert_appointment(self, data: AppointmentCreate) -> Appointment:
        appointment = Appointment(id=uuid4().hex, **data.model_dump())
        row = _appointment_to_row(appointment)
        with _remote_call("add appointment"):
            sheet = self._client.get_appointments_sheet()
            sheet.append_row(
                [row[column] for column in APPOINTMENT_COLUMNS],
                value_input_option="RAW",
            )
        return _row_to_appointment(row)

    async def _replace_appointment(
        self,
        appointment: Appointment,
        fields: set[str],
    ) -> None:
        with _remote_call("update appointment"):
            sheet = self._client.get_appointments_sheet()
            values = sheet.get_all_values()
            row_number = self._find_row(values, appointment.id)
            if row_number is None:
                raise NotFoundError(f"Appointment not found: {appointment.id}")
            self._write_fields(
                sheet, values, row_number, _appointment_to_row(appointment), fields
            )

    async def _remove_appointment(self, appointment_id: str) -> None:
        with _remote_call("delete appointment"):
            sheet = self._client.get_appointments_sheet()
            row_number = self._find_row(sheet.get_all_values(), appointment_id)
            if row_number is None:
                raise NotFoundError(f"Appointment not found: {appointment_id}")
            sheet.delete_rows(row_number)
