# src/cache/models.py — v1
"""Cache domain models: CacheEntry, CachedImageInfo and the stats/result types."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel

from hwenrich.core.models import DeviceType, EnrichedDeviceInfo


class CacheEntry(BaseModel):
    """Short-lived copy of a full enrichment answer."""

    device_key: str
    device_type: DeviceType
    data: EnrichedDeviceInfo
    cached_at: datetime
    expires_at: datetime

    def is_valid(self, now: datetime) -> bool:
        return now < self.expires_at


class CacheStats(BaseModel):
    total_entries: int = 0
    expired_entries: int = 0
    valid_entries: int = 0


class CachedImageInfo(BaseModel):
    """Index record for one cached image file.

    The timestamp is persisted as whole epoch seconds (``cached_at_secs``).
    """

    cache_key: str
    file_path: str
    original_url: str
    file_size: int
    cached_at_secs: int
    thumbnail_path: str | None = None

    @property
    def cached_at(self) -> datetime:
        return datetime.fromtimestamp(self.cached_at_secs, timezone.utc)


class ImageCacheResult(BaseModel):
    cache_key: str
    file_path: str
    is_cached: bool
    thumbnail_path: str | None = None


class ImageCacheStats(BaseModel):
    hits: int = 0
    misses: int = 0
    downloads: int = 0
    download_failures: int = 0
    total_bytes_cached: int = 0
    cached_count: int = 0
    total_size: int = 0
