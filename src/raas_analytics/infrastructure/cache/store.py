"""Local dataset cache: JSON files on disk, or a dict for tests.

Each entry is stored as ``{"id", "data", "timestamp"}`` where ``timestamp``
is the write time in epoch milliseconds. Stores never judge freshness; see
``freshness.py``.
"""

from __future__ import annotations

import copy
import json
import os
import re
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from raas_analytics.exceptions import CacheReadFailed, CacheWriteFailed
from raas_analytics.infrastructure.impls.system import SystemClock
from raas_analytics.infrastructure.observability import get_infrastructure_logger
from raas_analytics.infrastructure.ports.system import IClock

_VALID_ID = re.compile(r"^[A-Za-z0-9_.-]+$")


@dataclass(frozen=True)
class CacheEntry:
    """One cached dataset bundle."""

    id: str
    data: Any
    timestamp: int

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "data": self.data, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> CacheEntry:
        return cls(
            id=str(raw["id"]),
            data=raw.get("data"),
            timestamp=int(raw["timestamp"]),
        )


class CacheStore(Protocol):
    """Keyed store of dataset bundles."""

    def save(self, dataset_id: str, data: Any) -> CacheEntry:
        """Overwrite the entry for ``dataset_id``, stamped with the current time."""
        ...

    def get(self, dataset_id: str) -> CacheEntry | None:
        """Return the entry regardless of age, or None when absent."""
        ...

    def clear(self) -> None:
        """Remove every entry."""
        ...


def _check_id(dataset_id: str) -> str:
    if not _VALID_ID.match(dataset_id):
        raise ValueError(f"Invalid dataset id: {dataset_id!r}")
    return dataset_id


class InMemoryCacheStore:
    """Dict-backed store. Bundles are copied in and out, like a JSON round trip."""

    def __init__(self, clock: IClock | None = None):
        self.clock = clock or SystemClock()
        self._entries: dict[str, CacheEntry] = {}

    def save(self, dataset_id: str, data: Any) -> CacheEntry:
        entry = CacheEntry(_check_id(dataset_id), copy.deepcopy(data), self.clock.now_ms())
        self._entries[dataset_id] = entry
        return entry

    def get(self, dataset_id: str) -> CacheEntry | None:
        entry = self._entries.get(_check_id(dataset_id))
        if entry is None:
            return None
        return CacheEntry(entry.id, copy.deepcopy(entry.data), entry.timestamp)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class JsonFileCacheStore:
    """One ``<id>.json`` document per dataset under ``cache_dir``.

    Writes go to a temporary file in the same directory and are moved into
    place with ``os.replace``, so a reader never sees a half-written entry.
    """

    def __init__(self, cache_dir: str | Path, clock: IClock | None = None):
        self.cache_dir = Path(cache_dir)
        self.clock = clock or SystemClock()
        self.log = get_infrastructure_logger("json-cache", cache_dir=str(self.cache_dir))

    def _path(self, dataset_id: str) -> Path:
        return self.cache_dir / f"{_check_id(dataset_id)}.json"

    def save(self, dataset_id: str, data: Any) -> CacheEntry:
        """
        Raises:
            CacheWriteFailed: On filesystem or serialization errors
        """
        entry = CacheEntry(dataset_id, data, self.clock.now_ms())
        path = self._path(dataset_id)
        try:
            payload = json.dumps(entry.to_dict(), ensure_ascii=True)
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.cache_dir, prefix=f".{dataset_id}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(payload)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as e:
            raise CacheWriteFailed(f"Could not write {path}: {e}") from e

        self.log.debug("cache_saved", dataset=dataset_id, timestamp=entry.timestamp)
        return entry

    def get(self, dataset_id: str) -> CacheEntry | None:
        """
        Raises:
            CacheReadFailed: When the file exists but cannot be read or parsed
        """
        path = self._path(dataset_id)
        if not path.exists():
            return None
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            return CacheEntry.from_dict(raw)
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise CacheReadFailed(f"Could not read {path}: {e}") from e

    def clear(self) -> None:
        if not self.cache_dir.exists():
            return
        removed = 0
        for path in self.cache_dir.glob("*.json"):
            try:
                path.unlink()
            except OSError as e:
                raise CacheWriteFailed(f"Could not remove {path}: {e}") from e
            removed += 1
        self.log.info("cache_cleared", removed=removed)
