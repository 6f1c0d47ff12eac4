"""Native record stores.

In-memory collections for tests and ephemeral sessions; JSON files under
.splitui/records/ for everything else.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any

from splitui.store.base import DomainStores, RecordStore, record_not_found

logger = logging.getLogger(__name__)


class InMemoryRecordStore(RecordStore):
    """Records held in a list for the life of the process."""

    def __init__(self, records: list[dict[str, Any]] | None = None) -> None:
        self._records: list[dict[str, Any]] = [dict(r) for r in records or ()]

    def append(self, record: dict[str, Any]) -> dict[str, Any]:
        stored = self._stamp(record)
        self._records.append(stored)
        return dict(stored)

    def update(self, record_id: str, patch: dict[str, Any]) -> dict[str, Any]:
        for record in self._records:
            if record.get("id") == record_id:
                record.update({k: v for k, v in patch.items() if k != "id"})
                return dict(record)
        raise record_not_found(record_id)

    def get(self, record_id: str) -> dict[str, Any] | None:
        for record in self._records:
            if record.get("id") == record_id:
                return dict(record)
        return None

    def list_records(self) -> list[dict[str, Any]]:
        return [dict(r) for r in self._records]


class JsonRecordStore(RecordStore):
    """Records stored as a JSON array in one file per collection."""

    def __init__(self, data_dir: Path, collection: str) -> None:
        self.dir = Path(data_dir) / "records"
        self.dir.mkdir(parents=True, exist_ok=True)
        # Sanitize collection name for filesystem
        safe_name = "".join(c if c.isalnum() or c in "-_" else "_" for c in collection)
        self.path = self.dir / f"{safe_name}.json"
        self._lock = threading.Lock()

    def _load(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text())
        except json.JSONDecodeError:
            logger.warning("Corrupt record file %s, starting empty", self.path)
            return []
        return [r for r in data if isinstance(r, dict)] if isinstance(data, list) else []

    def _save(self, records: list[dict[str, Any]]) -> None:
        tmp = self.path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(records, indent=2))
        tmp.replace(self.path)

    def append(self, record: dict[str, Any]) -> dict[str, Any]:
        stored = self._stamp(record)
        with self._lock:
            records = self._load()
            records.append(stored)
            self._save(records)
        return dict(stored)

    def update(self, record_id: str, patch: dict[str, Any]) -> dict[str, Any]:
        with self._lock:
            records = self._load()
            for record in records:
                if record.get("id") == record_id:
                    record.update({k: v for k, v in patch.items() if k != "id"})
                    self._save(records)
                    return dict(record)
        raise record_not_found(record_id)

    def get(self, record_id: str) -> dict[str, Any] | None:
        for record in self._load():
            if record.get("id") == record_id:
                return record
        return None

    def list_records(self) -> list[dict[str, Any]]:
        return self._load()


def memory_stores() -> DomainStores:
    """Fresh in-memory task and bonus collections."""
    return DomainStores(tasks=InMemoryRecordStore(), bonuses=InMemoryRecordStore())


def open_stores(data_dir: str | Path) -> DomainStores:
    """JSON-backed task and bonus collections under `data_dir`."""
    base = Path(data_dir)
    return DomainStores(
        tasks=JsonRecordStore(base, "tasks"),
        bonuses=JsonRecordStore(base, "bonuses"),
    )
