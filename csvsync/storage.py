"""
Persistence behind an injected key/value port.

The core never touches storage itself; the host builds a ``RecentFiles`` and
an ``ExportHistory`` over whichever ``StoragePort`` it chooses. Values stored
through the port are JSON-compatible.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from .analysis import preview_text
from .errors import StorageError
from .models import ExportFormat, ExportRecord, RecentFile, Table
from .rules import EXPORT_HISTORY_LIMIT, RECENT_FILES_LIMIT

logger = logging.getLogger(__name__)

RECENT_FILES_KEY = "recent_files"
EXPORT_HISTORY_KEY = "export_history"


class StoragePort(Protocol):
    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...


class InMemoryStorage:
    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Any:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value


class JsonFileStorage:
    """
    All keys in a single JSON document on disk.

    Writes go to a temporary file that replaces the document, so readers
    never see a partial write. A document that cannot be decoded reads as
    empty but is never overwritten.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = threading.RLock()

    def _load(self, strict: bool = False) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            return json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError as e:
            if strict:
                raise StorageError(f"Storage file {self.path} is not valid JSON") from e
            logger.warning("Storage file %s is not valid JSON, reading as empty", self.path)
            return {}

    def get(self, key: str) -> Any:
        with self._lock:
            return self._load().get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._load(strict=True)
            data[key] = value
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name + ".", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, ensure_ascii=False, indent=2)
                os.replace(tmp, self.path)
            except Exception:
                if os.path.exists(tmp):
                    os.unlink(tmp)
                raise


def _now() -> datetime:
    return datetime.now(timezone.utc)


class RecentFiles:
    """Most recent uploads, newest first, unique by file name."""

    def __init__(self, storage: StoragePort, limit: int = RECENT_FILES_LIMIT):
        self.storage = storage
        self.limit = limit
        self._lock = threading.Lock()
        self._files: List[RecentFile] = [
            RecentFile.model_validate(item) for item in (storage.get(RECENT_FILES_KEY) or [])
        ]

    def list(self) -> List[RecentFile]:
        return list(self._files)

    def add(self, name: str, table: Table, byte_size: int) -> RecentFile:
        entry = RecentFile(
            id=uuid.uuid4().hex,
            name=name,
            date=_now(),
            rows=table.row_count,
            size=byte_size,
            preview=preview_text(table) or None,
        )
        with self._lock:
            self._files = [entry] + [f for f in self._files if f.name != name]
            self._files = self._files[: self.limit]
            self._save()
        return entry

    def clear(self) -> None:
        with self._lock:
            self._files = []
            self._save()

    def _save(self) -> None:
        self.storage.set(RECENT_FILES_KEY, [f.model_dump(mode="json") for f in self._files])


class ExportHistory:
    """Export log, newest first. Read-modify-write cycles are serialized per instance."""

    def __init__(self, storage: StoragePort, limit: int = EXPORT_HISTORY_LIMIT):
        self.storage = storage
        self.limit = limit
        self._lock = threading.Lock()

    def _records(self) -> List[ExportRecord]:
        return [ExportRecord.model_validate(item) for item in (self.storage.get(EXPORT_HISTORY_KEY) or [])]

    def _save(self, records: List[ExportRecord]) -> None:
        self.storage.set(EXPORT_HISTORY_KEY, [r.model_dump(mode="json") for r in records])

    def save(
        self,
        name: str,
        type: ExportFormat,
        row_count: int,
        theme: Optional[str] = None,
        scheduled_for: Optional[datetime] = None,
    ) -> ExportRecord:
        record = ExportRecord(
            id=uuid.uuid4().hex,
            name=name,
            type=type,
            exported_at=_now(),
            row_count=row_count,
            theme=theme,
            scheduled_for=scheduled_for,
        )
        with self._lock:
            self._save(([record] + self._records())[: self.limit])
        logger.info("Recorded %s export %s (%d rows)", type, name, row_count)
        return record

    def list(self) -> List[ExportRecord]:
        return sorted(self._records(), key=lambda r: r.exported_at, reverse=True)

    def delete(self, record_id: str) -> bool:
        with self._lock:
            records = self._records()
            kept = [r for r in records if r.id != record_id]
            if len(kept) == len(records):
                return False
            self._save(kept)
            return True
