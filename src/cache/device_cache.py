# src/cache/device_cache.py — v1
"""TTL cache of full enrichment answers (``device_cache.json``).

Expired entries stop being served immediately but stay on disk until
:meth:`CacheManager.cleanup_expired` sweeps them.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from hwenrich.cache.models import CacheEntry, CacheStats
from hwenrich.core.errors import PersistenceError
from hwenrich.core.locking import ReadWriteLock
from hwenrich.core.models import DeviceType, EnrichedDeviceInfo
from hwenrich.core.persistence import read_json, write_json_atomic

logger = logging.getLogger(__name__)

CACHE_FILE = "device_cache.json"
DEFAULT_TTL_DAYS = 30

_entries_adapter = TypeAdapter(list[CacheEntry])


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CacheManager:
    """Per-(key, type) answer cache with expiry.

    Args:
        data_dir: Directory holding ``device_cache.json``.
        default_ttl_days: TTL used when ``set`` is not given one.
        clock: Time source, injectable for tests.
    """

    def __init__(
        self,
        data_dir: Path,
        default_ttl_days: int = DEFAULT_TTL_DAYS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._path = Path(data_dir).expanduser() / CACHE_FILE
        self._default_ttl_days = default_ttl_days
        self._clock = clock
        self._lock = ReadWriteLock()
        self._entries: dict[tuple[str, DeviceType], CacheEntry] = {
            (e.device_key, e.device_type): e for e in self._load()
        }

    @property
    def path(self) -> Path:
        return self._path

    def get(self, device_key: str, device_type: DeviceType) -> EnrichedDeviceInfo | None:
        """Return the cached answer if present and not expired."""
        with self._lock.read():
            entry = self._entries.get((device_key, device_type))
            if entry is None:
                return None
            if not entry.is_valid(self._clock()):
                logger.debug("Cache entry %s expired at %s", device_key, entry.expires_at)
                return None
            return entry.data.model_copy(deep=True)

    def set(
        self,
        device_key: str,
        device_type: DeviceType,
        info: EnrichedDeviceInfo,
        ttl_days: int | None = None,
    ) -> CacheEntry:
        """Insert or replace the entry for (key, type)."""
        ttl = self._default_ttl_days if ttl_days is None else ttl_days
        now = self._clock()
        entry = CacheEntry(
            device_key=device_key,
            device_type=device_type,
            data=info.model_copy(deep=True),
            cached_at=now,
            expires_at=now + timedelta(days=ttl),
        )
        with self._lock.write():
            self._entries[(device_key, device_type)] = entry
            self._persist()
        return entry

    def remove(self, device_key: str, device_type: DeviceType) -> bool:
        with self._lock.write():
            if self._entries.pop((device_key, device_type), None) is None:
                return False
            self._persist()
            return True

    def clear(self) -> None:
        with self._lock.write():
            self._entries.clear()
            self._persist()

    def cleanup_expired(self) -> int:
        """Remove every entry with ``expires_at <= now``. Returns the count."""
        with self._lock.write():
            now = self._clock()
            expired = [k for k, e in self._entries.items() if not e.is_valid(now)]
            for k in expired:
                del self._entries[k]
            if expired:
                self._persist()
        if expired:
            logger.info("Removed %d expired cache entries", len(expired))
        return len(expired)

    def get_all(self) -> list[CacheEntry]:
        with self._lock.read():
            return [e.model_copy(deep=True) for e in self._entries.values()]

    def stats(self) -> CacheStats:
        with self._lock.read():
            now = self._clock()
            total = len(self._entries)
            valid = sum(1 for e in self._entries.values() if e.is_valid(now))
        return CacheStats(
            total_entries=total, expired_entries=total - valid, valid_entries=valid
        )

    def _load(self) -> list[CacheEntry]:
        try:
            raw = read_json(self._path, default=[])
            return _entries_adapter.validate_python(raw)
        except (PersistenceError, ValidationError) as exc:
            logger.error("Device cache unreadable, starting empty: %s", exc)
            return []

    def _persist(self) -> None:
        payload = [e.model_dump(mode="json") for e in self._entries.values()]
        try:
            write_json_atomic(self._path, payload)
        except PersistenceError as exc:
            logger.error("Failed to persist device cache: %s", exc)
