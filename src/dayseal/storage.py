"""Record stores implementing the save/load contract.

A store never raises for I/O trouble; it reports it through ``SaveResult``
and ``LoadResult`` so the controller can surface it unchanged.
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Optional, Protocol

import portalocker

from .locking import file_lock, locked_atomic_write
from .log import get_logger
from .models import DailyRecord, is_valid_date_key
from .results import LoadResult, PersistenceErrorKind, SaveResult, SnapshotFormatError

logger = get_logger(__name__)


class RecordStore(Protocol):
    """What the controller needs from persistence."""

    def save(self, record: DailyRecord) -> SaveResult:
        ...

    def load(self, date_key: str) -> LoadResult:
        ...

    def list_records(self) -> list[DailyRecord]:
        ...


def record_from_snapshot(data: dict) -> DailyRecord:
    """Rebuild a record from a snapshot dict.

    Raises:
        SnapshotFormatError: If the snapshot is malformed.
    """
    try:
        return DailyRecord.from_dict(data)
    except (KeyError, ValueError, TypeError, AttributeError) as e:
        raise SnapshotFormatError(f"Malformed record snapshot: {e}") from e


class MemoryStore:
    """In-process store keeping serialized snapshots.

    Snapshots are stored as dicts so nothing loaded from the store shares
    state with the record that was saved.
    """

    def __init__(self, snapshots: Optional[dict[str, dict]] = None):
        self._snapshots: dict[str, dict] = copy.deepcopy(snapshots) if snapshots else {}
        self.save_count = 0

    def save(self, record: DailyRecord) -> SaveResult:
        """Store a snapshot of ``record`` under its date key.

        Args:
            record: Record to snapshot

        Returns:
            SaveResult; always successful for the in-memory store
        """
        self._snapshots[record.date_key] = record.to_dict()
        self.save_count += 1
        return SaveResult.ok()

    def load(self, date_key: str) -> LoadResult:
        """Rebuild the record stored under ``date_key``.

        Returns:
            LoadResult with a fresh record, or NOT_FOUND / PARSE_ERROR
        """
        snapshot = self._snapshots.get(date_key)
        if snapshot is None:
            return LoadResult.failed(PersistenceErrorKind.NOT_FOUND, f"No record for {date_key}")
        try:
            return LoadResult.ok(record_from_snapshot(copy.deepcopy(snapshot)))
        except SnapshotFormatError as e:
            return LoadResult.failed(PersistenceErrorKind.PARSE_ERROR, str(e))

    def list_records(self) -> list[DailyRecord]:
        return [record_from_snapshot(copy.deepcopy(s)) for s in self._snapshots.values()]

    def snapshot(self, date_key: str) -> Optional[dict]:
        """Raw stored snapshot for ``date_key`` (a copy)."""
        data = self._snapshots.get(date_key)
        return copy.deepcopy(data) if data is not None else None


class JsonFileStore:
    """One JSON file per day under ``directory``: ``YYYY-MM-DD.json``."""

    def __init__(self, directory: Path, lock_timeout: float = 10.0):
        self.directory = Path(directory)
        self.lock_timeout = lock_timeout

    def ensure_directory(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, date_key: str) -> Path:
        return self.directory / f"{date_key}.json"

    def save(self, record: DailyRecord) -> SaveResult:
        """Write ``record`` atomically under an exclusive lock.

        Args:
            record: Record to write to ``path_for(record.date_key)``

        Returns:
            SaveResult, failed with LOCK_TIMEOUT or WRITE_ERROR on trouble
        """
        path = self.path_for(record.date_key)
        try:
            with locked_atomic_write(path, timeout=self.lock_timeout) as f:
                json.dump(record.to_dict(), f, indent=2, ensure_ascii=False)
                f.write("\n")
        except portalocker.LockException as e:
            logger.warning("save_lock_timeout", date=record.date_key, error=str(e))
            return SaveResult.failed(PersistenceErrorKind.LOCK_TIMEOUT, f"Could not lock {path}: {e}")
        except OSError as e:
            logger.warning("save_failed", date=record.date_key, error=str(e))
            return SaveResult.failed(PersistenceErrorKind.WRITE_ERROR, f"Could not write {path}: {e}")
        return SaveResult.ok()

    def load(self, date_key: str) -> LoadResult:
        """Read and parse the snapshot for ``date_key``.

        Args:
            date_key: Record key in YYYY-MM-DD form

        Returns:
            LoadResult with the record, or failed with NOT_FOUND, LOCK_TIMEOUT,
            READ_ERROR or PARSE_ERROR
        """
        path = self.path_for(date_key)
        if not path.exists():
            return LoadResult.failed(PersistenceErrorKind.NOT_FOUND, f"No record for {date_key}")
        try:
            with file_lock(path, timeout=self.lock_timeout):
                text = path.read_text(encoding="utf-8")
        except portalocker.LockException as e:
            return LoadResult.failed(PersistenceErrorKind.LOCK_TIMEOUT, f"Could not lock {path}: {e}")
        except OSError as e:
            return LoadResult.failed(PersistenceErrorKind.READ_ERROR, f"Could not read {path}: {e}")

        try:
            return LoadResult.ok(record_from_snapshot(json.loads(text)))
        except (json.JSONDecodeError, SnapshotFormatError) as e:
            return LoadResult.failed(PersistenceErrorKind.PARSE_ERROR, f"Could not parse {path}: {e}")

    def date_keys(self) -> list[str]:
        """Date keys with a stored snapshot, oldest first."""
        if not self.directory.exists():
            return []
        keys = [p.stem for p in self.directory.glob("*.json") if is_valid_date_key(p.stem)]
        return sorted(keys)

    def list_records(self) -> list[DailyRecord]:
        """Every readable record; unreadable files are logged and skipped."""
        records = []
        for key in self.date_keys():
            result = self.load(key)
            if result.success:
                records.append(result.record)
            else:
                logger.warning("record_skipped", date=key, error_kind=result.error_kind.value, error=result.error)
        return records
