"""
Storage Services Package

Provides the abstract ledger repository and its two backends:
Google Sheets (remote) and a local JSON record store (offline/demo).
"""

from studio_ledger.services.storage.interface import (
    LedgerRepository,
    NotFoundError,
    StorageConnectionError,
    StorageError,
)
from studio_ledger.services.storage.record_store import (
    FileRecordStore,
    InMemoryRecordStore,
    RecordStore,
)
from studio_ledger.services.storage.local import LocalRepository
from studio_ledger.services.storage.google_sheets import (
    GoogleSheetsClient,
    RemoteRepository,
)

__all__ = [
    # Interfaces
    "LedgerRepository",
    "RecordStore",
    # Exceptions
    "NotFoundError",
    "StorageConnectionError",
    "StorageError",
    # Local implementation
    "FileRecordStore",
    "InMemoryRecordStore",
    "LocalRepository",
    # Google Sheets implementation
    "GoogleSheetsClient",
    "RemoteRepository",
]
