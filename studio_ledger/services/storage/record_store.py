"""
Local Record Store

A minimal key-value store for the offline/demo backend. Each key holds
one whole serialized collection; there is no query capability beyond
reading and replacing a record.

The file-backed store keeps one file per key inside a data directory.
Writes go to a temporary file first and are moved into place, so a
crash mid-write never leaves a half-written record behind. This does
NOT make the repository's read-modify-write sequence atomic.
"""

import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from studio_ledger.services.storage.interface import StorageError


class RecordStore(ABC):
    """Key-addressed durable storage for serialized collections."""

    @abstractmethod
    def read(self, key: str) -> Optional[str]:
        """
        Return the stored record, or None if the key was never written.

        Raises UnicodeDecodeError if the stored bytes are not UTF-8.
        """
        pass

    @abstractmethod
    def write(self, key: str, value: str) -> None:
        """Replace the record stored under key."""
        pass


class InMemoryRecordStore(RecordStore):
    """Record store held in a dict. Used for tests and throwaway demos."""

    def __init__(self, records: Optional[dict[str, str]] = None):
        self._records: dict[str, str] = dict(records or {})

    def read(self, key: str) -> Optional[str]:
        return self._records.get(key)

    def write(self, key: str, value: str) -> None:
        self._records[key] = value


class FileRecordStore(RecordStore):
    """Record store keeping each key as `<data_dir>/<key>.json`."""

    def __init__(self, data_dir: Union[str, Path]):
        self._data_dir = Path(data_dir)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path(self, key: str) -> Path:
        return self._data_dir / f"{key}.json"

    def read(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read record {key}: {e}") from e

    def write(self, key: str, value: str) -> None:
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._data_dir, prefix=f".{key}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(value)
            os.replace(tmp_name, self._path(key))
        except OSError as e:
            raise StorageError(f"Failed to write record {key}: {e}") from e
