# src/cache/image_cache.py — v1
"""Size-bounded on-disk cache of product images plus derived thumbnails.

Layout under the cache directory::

    cache_index.json        array of CachedImageInfo
    <key>.<ext>             original image bytes
    <key>_thumb.png         thumbnail

The cache key is a hash of the source URL unless the caller passes a
stable slot key (``<device_key>_primary``) so a device's image is
overwritten in place. When a write would exceed ``max_size_bytes`` the
oldest entries are evicted first.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from datetime import timedelta
from pathlib import Path

import httpx
from pydantic import TypeAdapter, ValidationError

from hwenrich.cache.image_format import (
    FORMAT_EXTENSIONS,
    MAX_IMAGE_BYTES,
    mime_to_extension,
    validate_image,
)
from hwenrich.cache.models import CachedImageInfo, ImageCacheResult, ImageCacheStats
from hwenrich.cache.thumbnails import DEFAULT_THUMBNAIL_SIZE, make_thumbnail
from hwenrich.core.errors import (
    ImageDownloadError,
    ImageValidationError,
    PersistenceError,
)
from hwenrich.core.identity import device_key, url_key
from hwenrich.core.locking import AsyncReadWriteLock
from hwenrich.core.models import DeviceType
from hwenrich.core.persistence import read_json, write_json_atomic

logger = logging.getLogger(__name__)

INDEX_FILE = "cache_index.json"
DEFAULT_MAX_SIZE_BYTES = 500 * 1024 * 1024
DEFAULT_USER_AGENT = "hwenrich/0.1 (Device Knowledge Cache)"

_index_adapter = TypeAdapter(list[CachedImageInfo])


def generate_cache_key(url: str) -> str:
    """Content-address an image by its source URL."""
    return url_key(url)


def generate_device_cache_key(
    device_type: DeviceType | str, manufacturer: str, model: str
) -> str:
    """Stable per-device key, equal to the device key."""
    return device_key(device_type, manufacturer, model)


class ImageCache:
    """Download-once image store with oldest-first eviction.

    Args:
        cache_dir: Directory for images, thumbnails and the index.
        max_size_bytes: Upper bound on the summed size of cached images.
        max_image_bytes: Per-image ceiling enforced at validation.
        thumbnail_size: Square bound of generated thumbnails, in pixels.
        client: Pre-built HTTP client (tests inject a MockTransport).
        clock: Epoch-seconds time source, injectable for tests.
    """

    def __init__(
        self,
        cache_dir: Path,
        max_size_bytes: int = DEFAULT_MAX_SIZE_BYTES,
        max_image_bytes: int = MAX_IMAGE_BYTES,
        thumbnail_size: int = DEFAULT_THUMBNAIL_SIZE,
        client: httpx.AsyncClient | None = None,
        timeout_s: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._dir = Path(cache_dir).expanduser()
        self._dir.mkdir(parents=True, exist_ok=True)
        self._index_path = self._dir / INDEX_FILE
        self.max_size_bytes = max_size_bytes
        self._max_image_bytes = max_image_bytes
        self._thumbnail_size = thumbnail_size
        self._client = client
        self._owns_client = client is None
        self._timeout_s = timeout_s
        self._user_agent = user_agent
        self._clock = clock
        self._lock = AsyncReadWriteLock()
        self._stats = ImageCacheStats()
        self._files: dict[str, CachedImageInfo] = self._load_index()

    @property
    def cache_dir(self) -> Path:
        return self._dir

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout_s,
                follow_redirects=True,
                headers={"User-Agent": self._user_agent},
            )
        return self._client

    # === Lookup ===

    async def is_cached(self, cache_key: str) -> bool:
        return await self.get_cached_path(cache_key) is not None

    async def get_cached_path(self, cache_key: str) -> Path | None:
        async with self._lock.read():
            info = self._files.get(cache_key)
        if info is None:
            return None
        path = Path(info.file_path)
        return path if path.exists() else None

    async def cached_count(self) -> int:
        async with self._lock.read():
            return len(self._files)

    async def total_size(self) -> int:
        async with self._lock.read():
            return sum(f.file_size for f in self._files.values())

    async def stats(self) -> ImageCacheStats:
        async with self._lock.read():
            count = len(self._files)
            size = sum(f.file_size for f in self._files.values())
        return self._stats.model_copy(update={"cached_count": count, "total_size": size})

    # === Fetch ===

    async def fetch_and_cache(
        self, url: str, cache_key: str | None = None
    ) -> ImageCacheResult:
        """Return the cached image for ``cache_key``, downloading it if needed.

        Raises:
            ImageDownloadError: Transport failure or non-2xx response.
            ImageValidationError: Not a recognized image, or too large.
        """
        key = cache_key or generate_cache_key(url)

        async with self._lock.read():
            existing = self._files.get(key)
        if existing is not None and Path(existing.file_path).exists():
            self._stats.hits += 1
            return ImageCacheResult(
                cache_key=key,
                file_path=existing.file_path,
                is_cached=True,
                thumbnail_path=existing.thumbnail_path,
            )

        self._stats.misses += 1
        data, content_type = await self._download(url)
        try:
            fmt = validate_image(data, self._max_image_bytes)
        except ImageValidationError:
            self._stats.download_failures += 1
            raise
        if len(data) > self.max_size_bytes:
            self._stats.download_failures += 1
            raise ImageValidationError(
                f"Image of {len(data)} bytes is larger than the whole cache"
            )

        extension = FORMAT_EXTENSIONS.get(fmt) or mime_to_extension(content_type)
        file_path = self._dir / f"{key}.{extension}"

        async with self._lock.write():
            previous = self._files.pop(key, None)
            if previous is not None:
                await asyncio.to_thread(_remove_files, previous, file_path)
            await self._evict_for(len(data))
            await asyncio.to_thread(file_path.write_bytes, data)
            info = CachedImageInfo(
                cache_key=key,
                file_path=str(file_path),
                original_url=url,
                file_size=len(data),
                cached_at_secs=int(self._clock()),
            )
            self._files[key] = info
            await self._persist_index()

        self._stats.downloads += 1
        self._stats.total_bytes_cached += len(data)
        logger.info("Cached image %s -> %s", url, file_path.name)

        thumbnail = await self._make_thumbnail(key, file_path)
        return ImageCacheResult(
            cache_key=key,
            file_path=str(file_path),
            is_cached=False,
            thumbnail_path=thumbnail,
        )

    # === Space management ===

    async def ensure_cache_space(self, needed_bytes: int) -> int:
        """Evict oldest entries until ``needed_bytes`` more fit. Returns bytes freed."""
        async with self._lock.write():
            freed = await self._evict_for(needed_bytes)
            if freed:
                await self._persist_index()
        return freed

    async def cleanup_older_than(self, max_age: timedelta) -> int:
        """Remove every image cached more than ``max_age`` ago. Returns the count."""
        cutoff = self._clock() - max_age.total_seconds()
        async with self._lock.write():
            stale = [k for k, f in self._files.items() if f.cached_at_secs < cutoff]
            removed = [self._files.pop(key) for key in stale]
            await asyncio.to_thread(_remove_many, removed)
            if stale:
                await self._persist_index()
        if stale:
            logger.info("Removed %d images older than %s", len(stale), max_age)
        return len(stale)

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    # === Internals ===

    async def _evict_for(self, needed_bytes: int) -> int:
        """Evict oldest-first. Caller holds the write lock and persists."""
        current = sum(f.file_size for f in self._files.values())
        to_free = current + needed_bytes - self.max_size_bytes
        if to_free <= 0:
            return 0

        freed = 0
        evicted: list[CachedImageInfo] = []
        # stable sort: equal timestamps evict in insertion order
        for info in sorted(self._files.values(), key=lambda f: f.cached_at_secs):
            if freed >= to_free:
                break
            del self._files[info.cache_key]
            evicted.append(info)
            freed += info.file_size
            logger.debug("Evicted %s (%d bytes)", info.cache_key, info.file_size)
        await asyncio.to_thread(_remove_many, evicted)

        logger.info("Image cache eviction freed %d bytes", freed)
        return freed

    async def _download(self, url: str) -> tuple[bytes, str | None]:
        try:
            response = await self.client.get(url)
        except httpx.HTTPError as exc:
            self._stats.download_failures += 1
            raise ImageDownloadError(f"Failed to fetch image {url}: {exc}") from exc
        if not response.is_success:
            self._stats.download_failures += 1
            raise ImageDownloadError(f"HTTP {response.status_code} for image {url}")
        return response.content, response.headers.get("content-type")

    async def _make_thumbnail(self, key: str, file_path: Path) -> str | None:
        try:
            thumb = await asyncio.to_thread(make_thumbnail, file_path, self._thumbnail_size)
        except Exception as exc:
            logger.warning("Thumbnail generation failed for %s: %s", file_path.name, exc)
            return None

        async with self._lock.write():
            info = self._files.get(key)
            if info is None or info.file_path != str(file_path):
                # evicted or replaced while the thumbnail was being built
                thumb.unlink(missing_ok=True)
                return None
            info.thumbnail_path = str(thumb)
            await self._persist_index()
        return str(thumb)

    def _load_index(self) -> dict[str, CachedImageInfo]:
        try:
            raw = read_json(self._index_path, default=[])
            entries = _index_adapter.validate_python(raw)
        except (PersistenceError, ValidationError) as exc:
            logger.error("Image cache index unreadable, starting empty: %s", exc)
            return {}

        files = {e.cache_key: e for e in entries if Path(e.file_path).exists()}
        dropped = len(entries) - len(files)
        if dropped:
            logger.info("Dropped %d image index entries with missing files", dropped)
            self._write_index(list(files.values()))
        return files

    async def _persist_index(self) -> None:
        snapshot = [f.model_copy() for f in self._files.values()]
        await asyncio.to_thread(self._write_index, snapshot)

    def _write_index(self, entries: list[CachedImageInfo]) -> None:
        try:
            write_json_atomic(self._index_path, [e.model_dump(mode="json") for e in entries])
        except PersistenceError as exc:
            logger.error("Failed to persist image cache index: %s", exc)


def _remove_many(infos: list[CachedImageInfo]) -> None:
    for info in infos:
        _remove_files(info)


def _remove_files(info: CachedImageInfo, keep: Path | None = None) -> None:
    paths = [Path(info.file_path)]
    if info.thumbnail_path:
        paths.append(Path(info.thumbnail_path))
    for path in paths:
        if keep is not None and path == keep:
            continue
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Failed to remove cached file %s: %s", path, exc)
