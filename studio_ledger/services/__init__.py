"""Services package."""

from studio_ledger.services.storage import (
    FileRecordStore,
    GoogleSheetsClient,
    InMemoryRecordStore,
    LedgerRepository,
    LocalRepository,
    NotFoundError,
    RecordStore,
    RemoteRepository,
    StorageConnectionError,
    StorageError,
)

__all__ = [
    "FileRecordStore",
    "GoogleSheetsClient",
    "InMemoryRecordStore",
    "LedgerRepository",
    "LocalRepository",
    "NotFoundError",
    "RecordStore",
    "RemoteRepository",
    "StorageConnectionError",
    "StorageError",
]
