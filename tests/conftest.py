"""
Shared fixtures.

The remote backend runs against FakeSheetsClient, an in-memory stand-in
for the two worksheets. No network calls are made in tests.
"""

import pytest

from studio_ledger.services.storage import (
    InMemoryRecordStore,
    LocalRepository,
    RemoteRepository,
)
from studio_ledger.services.storage.google_sheets import (
    APPOINTMENT_COLUMNS,
    SERVICE_COLUMNS,
)


class FakeWorksheet:
    """Mimics the parts of gspread.Worksheet the remote backend uses."""

    def __init__(self, header: list[str]):
        self.rows: list[list[str]] = [list(header)]
        self.fail = False
        self.calls = 0

    def _call(self) -> None:
        self.calls += 1
        if self.fail:
            raise RuntimeError("APIError: quota exceeded")

    def get_all_values(self) -> list[list[str]]:
        self._call()
        return [list(row) for row in self.rows]

    def append_row(self, values, value_input_option="RAW"):
        self._call()
        self.rows.append([str(v) for v in values])

    def update_cells(self, cells, value_input_option="RAW"):
        self._call()
        for cell in cells:
            row = self.rows[cell.row - 1]
            row.extend([""] * (cell.col - len(row)))
            row[cell.col - 1] = cell.value

    def delete_rows(self, index):
        self._call()
        del self.rows[index - 1]


class FakeSheetsClient:
    """Stands in for GoogleSheetsClient."""

    def __init__(self):
        self.services = FakeWorksheet(SERVICE_COLUMNS)
        self.appointments = FakeWorksheet(APPOINTMENT_COLUMNS)

    def get_services_sheet(self):
        return self.services

    def get_appointments_sheet(self):
        return self.appointments


@pytest.fixture
def record_store():
    return InMemoryRecordStore()


@pytest.fixture
def local_repo(record_store):
    return LocalRepository(record_store)


@pytest.fixture
def sheets_client():
    return FakeSheetsClient()


@pytest.fixture
def remote_repo(sheets_client):
    return RemoteRepository(sheets_client)


@pytest.fixture(params=["local", "remote"])
def repository(request):
    """Run a test once per backend."""
    if request.param == "local":
        return LocalRepository(InMemoryRecordStore())
    return RemoteRepository(FakeSheetsClient())
