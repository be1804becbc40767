"""JSON-file record store for generated images.

The whole file is read and rewritten on every mutation. All mutations go
through one asyncio.Lock so concurrent jobs in a batch cannot lose each
other's writes. File I/O runs in a worker thread to keep the event loop free.
"""
import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any

from .errors import PersistenceError
from .request_types import GenerationRecord

logger = logging.getLogger(__name__)


def _empty_db() -> dict[str, Any]:
    return {"images": [], "statistics": {"total": 0, "by_model": {}}}


def _normalize_stats(stats: Any) -> dict[str, Any]:
    """Coerce the counters block into {"total": int, "by_model": {name: int}}.

    Older data files name the per-model counters ``byModel``.
    """
    if not isinstance(stats, dict):
        stats = {}
    total = stats.get("total")
    by_model = stats.get("by_model", stats.get("byModel"))
    if not isinstance(by_model, dict):
        by_model = {}
    return {
        "total": total if isinstance(total, int) and not isinstance(total, bool) else 0,
        "by_model": {k: v for k, v in by_model.items() if isinstance(v, int)},
    }


class RecordStore:
    """Single-file store holding records (newest first) and counters."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = asyncio.Lock()

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return _empty_db()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Unreadable record store {self.path}, starting empty: {e}")
            return _empty_db()
        if not isinstance(data, dict) or not isinstance(data.get("images"), list):
            return _empty_db()
        data["images"] = [item for item in data["images"] if isinstance(item, dict)]
        data["statistics"] = _normalize_stats(data.get("statistics"))
        return data

    def _write(self, data: dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp, self.path)
        except OSError as e:
            raise PersistenceError(f"Failed to write {self.path}: {e}") from e

    def _append_sync(self, record: GenerationRecord) -> int:
        db = self._read()
        stats = db["statistics"]
        by_model = stats["by_model"]

        db["images"].insert(0, record.to_dict())
        stats["total"] += 1
        by_model[record.model] = by_model.get(record.model, 0) + 1
        self._write(db)
        return stats["total"]

    async def append(self, record: GenerationRecord) -> bool:
        """Persist ``record``. Failures of any kind are logged, never raised."""
        async with self._lock:
            try:
                total = await asyncio.to_thread(self._append_sync, record)
            except Exception:
                logger.exception(f"Failed to save image {record.id} to database")
                return False
        logger.info(f"Image saved to database: {record.model} (Total: {total})")
        return True

    async def list(self, include_hidden: bool = False) -> list[GenerationRecord]:
        async with self._lock:
            db = await asyncio.to_thread(self._read)
        records = [GenerationRecord.from_dict(item) for item in db["images"]]
        if include_hidden:
            return records
        return [r for r in records if not r.hidden]

    async def stats(self) -> dict[str, Any]:
        async with self._lock:
            db = await asyncio.to_thread(self._read)
        return db["statistics"]

    def _hide_sync(self, record_id: str) -> bool:
        db = self._read()
        for item in db["images"]:
            if item.get("id") == record_id:
                item["hidden"] = True
                self._write(db)
                return True
        return False

    async def hide(self, record_id: str) -> bool:
        """Mark a record hidden. Returns False if it does not exist."""
        async with self._lock:
            return await asyncio.to_thread(self._hide_sync, record_id)

    def _remove_sync(self, record_id: str) -> bool:
        db = self._read()
        remaining = [item for item in db["images"] if item.get("id") != record_id]
        if len(remaining) == len(db["images"]):
            return False
        db["images"] = remaining
        self._write(db)
        return True

    async def remove(self, record_id: str) -> bool:
        """Delete a record. Counters are left unchanged."""
        async with self._lock:
            return await asyncio.to_thread(self._remove_sync, record_id)
