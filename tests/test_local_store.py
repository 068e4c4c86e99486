"""
Tests for the local backend and its record stores.
"""

import json
import re
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from studio_ledger.models.booking import AppointmentCreate
from studio_ledger.services.storage import (
    FileRecordStore,
    InMemoryRecordStore,
    LocalRepository,
    StorageError,
)
from studio_ledger.services.storage.local import (
    APPOINTMENTS_KEY,
    SERVICES_KEY,
    generate_local_id,
)


def booking(**overrides) -> AppointmentCreate:
    fields = {
        "client_name": "Joana",
        "service_id": "1",
        "date": datetime(2024, 7, 4, 15, tzinfo=timezone.utc),
    }
    fields.update(overrides)
    return AppointmentCreate(**fields)


class TestSeeding:
    """Tests for the first-run catalog."""

    async def test_services_seeded_on_first_read(self, local_repo, record_store):
        """Test that the default catalog is returned and persisted."""
        services = await local_repo.list_services()

        assert [s.name for s in services] == [
            "Manicure Simples",
            "Pedicure Simples",
            "Pé e Mão",
            "Alongamento Fibra",
            "Manutenção Fibra",
        ]
        stored = json.loads(record_store.read(SERVICES_KEY))
        assert len(stored) == 5
        assert stored[0]["price"] == "35.00"

    async def test_seed_not_reapplied_after_deletes(self, local_repo):
        """Test that an emptied catalog stays empty."""
        for service in await local_repo.list_services():
            await local_repo.delete_service(service.id)
        assert await local_repo.list_services() == []

    async def test_appointments_start_empty(self, local_repo, record_store):
        """Test that an unwritten appointment record reads as empty."""
        assert await local_repo.list_appointments(6, 2024) == []
        assert record_store.read(APPOINTMENTS_KEY) is None


class TestCorruptRecords:
    """Tests for recovery from unreadable records."""

    async def test_corrupt_services_reset_to_defaults(self):
        """Test that invalid JSON in the services record is replaced by the seed."""
        store = InMemoryRecordStore({SERVICES_KEY: "{not json"})
        repo = LocalRepository(store)

        services = await repo.list_services()

        assert len(services) == 5
        assert len(json.loads(store.read(SERVICES_KEY))) == 5

    async def test_wrong_shape_services_reset(self):
        """Test that a record of the wrong shape is treated as corrupt."""
        store = InMemoryRecordStore({SERVICES_KEY: json.dumps({"id": "1"})})
        services = await LocalRepository(store).list_services()
        assert [s.id for s in services] == ["1", "2", "3", "4", "5"]

    async def test_corrupt_appointments_reset_to_empty(self):
        """Test that invalid appointment data is replaced by an empty list."""
        store = InMemoryRecordStore({APPOINTMENTS_KEY: "[{\"id\": 1,"})
        repo = LocalRepository(store)

        assert await repo.list_appointments(0, 2024) == []
        assert store.read(APPOINTMENTS_KEY) == "[]"

    async def test_bad_status_resets_appointments(self):
        """Test that an out-of-range status makes the record corrupt."""
        store = InMemoryRecordStore({APPOINTMENTS_KEY: json.dumps([{
            "id": "abc",
            "client_name": "X",
            "service_id": "1",
            "date": "2024-01-05T10:00:00Z",
            "status": "ARCHIVED",
        }])})
        assert await LocalRepository(store).list_appointments(0, 2024) == []

    async def test_undecodable_appointments_file_reset(self, tmp_path):
        """Test that a record file with non-UTF-8 bytes is reset to empty."""
        (tmp_path / f"{APPOINTMENTS_KEY}.json").write_bytes(b"\xff\xfe[garbage")
        repo = LocalRepository(FileRecordStore(tmp_path))

        assert await repo.list_appointments(0, 2024) == []
        assert (tmp_path / f"{APPOINTMENTS_KEY}.json").read_text(encoding="utf-8") == "[]"

    async def test_undecodable_services_file_reset(self, tmp_path):
        """Test that a services file with non-UTF-8 bytes is reset to the seed."""
        (tmp_path / f"{SERVICES_KEY}.json").write_bytes(b"\xff\xfe[garbage")
        repo = LocalRepository(FileRecordStore(tmp_path))

        services = await repo.list_services()

        assert [s.id for s in services] == ["1", "2", "3", "4", "5"]
        stored = json.loads((tmp_path / f"{SERVICES_KEY}.json").read_text(encoding="utf-8"))
        assert len(stored) == 5

    async def test_writes_after_reset(self):
        """Test that the store is usable after a reset."""
        store = InMemoryRecordStore({APPOINTMENTS_KEY: "garbage"})
        repo = LocalRepository(store)

        added = await repo.add_appointment(booking())

        assert [a.id for a in await repo.list_appointments(6, 2024)] == [added.id]


class TestRecordFormat:
    """Tests for the stored JSON layout."""

    async def test_appointment_record_fields(self, local_repo, record_store):
        """Test the stored field names and value types."""
        added = await local_repo.add_appointment(booking(deposit_paid=True, notes="Pix"))

        stored = json.loads(record_store.read(APPOINTMENTS_KEY))
        assert stored == [{
            "id": added.id,
            "client_name": "Joana",
            "client_phone": None,
            "service_id": "1",
            "date": "2024-07-04T15:00:00Z",
            "status": "PENDING",
            "notes": "Pix",
            "deposit_paid": True,
        }]

    async def test_legacy_null_deposit(self):
        """Test records without a deposit value load as unpaid."""
        store = InMemoryRecordStore({APPOINTMENTS_KEY: json.dumps([{
            "id": "legacy001",
            "client_name": "Old Client",
            "client_phone": None,
            "service_id": "2",
            "date": "2024-07-10T12:00:00Z",
            "status": "COMPLETED",
            "notes": None,
            "deposit_paid": None,
        }])})
        listed = await LocalRepository(store).list_appointments(6, 2024)
        assert listed[0].deposit_paid is False

    async def test_equal_dates_keep_insertion_order(self, local_repo):
        """Test that ties on date keep the order they were added in."""
        for name in ("First", "Second", "Third"):
            await local_repo.add_appointment(booking(client_name=name))
        listed = await local_repo.list_appointments(6, 2024)
        assert [a.client_name for a in listed] == ["First", "Second", "Third"]

    async def test_update_service_price_persisted(self, local_repo, record_store):
        """Test a price edit is visible in the stored record."""
        await local_repo.list_services()
        await local_repo.update_service("3", {"price": "70.00"})
        stored = {s["id"]: s for s in json.loads(record_store.read(SERVICES_KEY))}
        assert stored["3"]["price"] == "70.00"
        assert (await local_repo.get_service("3")).price == Decimal("70")

    async def test_numeric_price_still_loads(self):
        """Test that records holding the price as a JSON number still load."""
        store = InMemoryRecordStore({SERVICES_KEY: json.dumps([
            {"id": "old1", "name": "Manicure", "price": 35.5, "duration_minutes": None},
        ])})
        services = await LocalRepository(store).list_services()
        assert services[0].price == Decimal("35.5")


class TestLocalIds:
    """Tests for locally generated ids."""

    def test_id_format(self):
        """Test ids are nine lowercase alphanumeric characters."""
        for _ in range(50):
            assert re.fullmatch(r"[a-z0-9]{9}", generate_local_id(set()))

    async def test_assigned_ids_use_local_format(self, local_repo):
        """Test that inserted rows get local ids."""
        service = await local_repo.add_service("Spa", Decimal("80"))
        appt = await local_repo.add_appointment(booking())
        assert re.fullmatch(r"[a-z0-9]{9}", service.id)
        assert re.fullmatch(r"[a-z0-9]{9}", appt.id)


class TestFileRecordStore:
    """Tests for the file-backed record store."""

    def test_missing_key_reads_none(self, tmp_path):
        """Test that an unwritten key reads as None."""
        assert FileRecordStore(tmp_path).read("nothing") is None

    def test_write_then_read(self, tmp_path):
        """Test a write is readable and stored as <key>.json."""
        store = FileRecordStore(tmp_path / "data")
        store.write("studio_services", "[]")

        assert store.read("studio_services") == "[]"
        assert (tmp_path / "data" / "studio_services.json").read_text(encoding="utf-8") == "[]"

    def test_overwrite_leaves_no_temp_files(self, tmp_path):
        """Test that replacing a record leaves only the record file."""
        store = FileRecordStore(tmp_path)
        store.write("k", "one")
        store.write("k", "two")

        assert store.read("k") == "two"
        assert [p.name for p in tmp_path.iterdir()] == ["k.json"]

    def test_unwritable_dir_raises_storage_error(self, tmp_path):
        """Test that filesystem failures surface as StorageError."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        store = FileRecordStore(blocker / "data")

        with pytest.raises(StorageError):
            store.write("k", "value")

    async def test_repository_survives_reopen(self, tmp_path):
        """Test that data written by one repository is read by the next."""
        first = LocalRepository(FileRecordStore(tmp_path))
        added = await first.add_appointment(booking())

        second = LocalRepository(FileRecordStore(tmp_path))
        listed = await second.list_appointments(6, 2024)
        assert [a.id for a in listed] == [added.id]
