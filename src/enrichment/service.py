# src/enrichment/service.py — v1
"""EnrichmentService — the single entry point for device enrichment.

Flow of :meth:`EnrichmentService.enrich`:

1. Derive the device key.
2. Serve from the TTL cache unless a refresh is forced.
3. Fan out to every applicable source, each with its own timeout.
4. Session-merge the successes ("founder wins"). If none succeeded,
   fall back to whatever the knowledge store already knows.
5. Cache the primary and gallery images; failures keep the remote URLs.
6. Store the answer in the TTL cache and fold every source answer into
   the knowledge store.

The three stores are independent: a failure writing one never rolls back
another.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path

from hwenrich.cache.device_cache import CacheManager
from hwenrich.cache.image_cache import ImageCache
from hwenrich.core.errors import ImageError, NoSourceSucceeded
from hwenrich.core.identity import device_key_for
from hwenrich.core.models import (
    DeviceIdentifier,
    DeviceType,
    EnrichedDeviceInfo,
    ImageMetadata,
    PartialDeviceInfo,
    ProductImages,
)
from hwenrich.enrichment.models import CleanupResult, ServiceStats
from hwenrich.knowledge.store import KnowledgeStore
from hwenrich.logging.context import bind_device
from hwenrich.merge.session_merger import SessionMergeResult, merge_session_results
from hwenrich.sources.fanout import fetch_from_all_sources
from hwenrich.sources.models import SourceDescriptor, SourceResult
from hwenrich.sources.registry import SourceRegistry

logger = logging.getLogger(__name__)


class EnrichmentService:
    """Composes sources, merge and the three stores.

    Args:
        registry: Registered device sources (fan-out order).
        cache: Short-lived answer cache.
        knowledge: Durable per-field knowledge.
        images: Image cache; None disables image caching.
        cache_ttl_days: TTL of new answer cache entries.
        gallery_limit: Max gallery images cached per device.
        source_timeout_s: Per-source fan-out timeout.
        max_concurrent_sources: Fan-out concurrency bound (0 = unbounded).
    """

    def __init__(
        self,
        registry: SourceRegistry,
        cache: CacheManager,
        knowledge: KnowledgeStore,
        images: ImageCache | None = None,
        cache_ttl_days: int = 30,
        gallery_limit: int = 5,
        source_timeout_s: float | None = 20.0,
        max_concurrent_sources: int = 0,
    ) -> None:
        self.registry = registry
        self.cache = cache
        self.knowledge = knowledge
        self.images = images
        self._cache_ttl_days = cache_ttl_days
        self._gallery_limit = gallery_limit
        self._source_timeout_s = source_timeout_s
        self._max_concurrent_sources = max_concurrent_sources

    async def enrich(
        self,
        device_type: DeviceType,
        identifier: DeviceIdentifier,
        force_refresh: bool = False,
    ) -> EnrichedDeviceInfo:
        """Return the best available knowledge about one device.

        Raises:
            NoSourceSucceeded: No source answered and nothing was learned before.
        """
        key = device_key_for(device_type, identifier)
        with bind_device(key, device_type.value):
            if not force_refresh:
                cached = await asyncio.to_thread(self.cache.get, key, device_type)
                if cached is not None:
                    logger.info("Cache hit for %s %s", identifier.manufacturer, identifier.model)
                    return cached.model_copy(update={"from_cache": True, "origin": "cache"})

            results = await fetch_from_all_sources(
                self.registry.sources,
                device_type,
                identifier,
                timeout_s=self._source_timeout_s,
                max_concurrency=self._max_concurrent_sources,
            )
            _log_outcomes(results)

            try:
                session = merge_session_results(results)
            except NoSourceSucceeded:
                fallback = await asyncio.to_thread(
                    self._knowledge_fallback, key, device_type, identifier
                )
                if fallback is None:
                    logger.warning(
                        "No information for %s %s from any source",
                        identifier.manufacturer, identifier.model,
                    )
                    raise
                logger.info("All sources failed; answering from learned knowledge")
                return fallback

            info = await self._build_result(key, device_type, identifier, session)
            await asyncio.to_thread(
                self.cache.set, key, device_type, info, self._cache_ttl_days
            )
            await asyncio.to_thread(
                self.knowledge.store_or_merge_many,
                key, device_type, identifier, session.partials,
            )
            logger.info(
                "Enriched %s %s from %d sources (confidence %.2f)",
                identifier.manufacturer, identifier.model,
                len(session.sources), info.confidence,
            )
            return info

    def list_sources(self) -> list[SourceDescriptor]:
        return self.registry.descriptors()

    async def cleanup(self, max_age_days: int = 30) -> CleanupResult:
        """Drop expired cache entries and images older than ``max_age_days``."""
        removed = await asyncio.to_thread(self.cache.cleanup_expired)
        images_removed = 0
        if self.images is not None:
            images_removed = await self.images.cleanup_older_than(
                timedelta(days=max_age_days)
            )
        return CleanupResult(cache_entries_removed=removed, images_removed=images_removed)

    async def stats(self) -> ServiceStats:
        return ServiceStats(
            cache=self.cache.stats(),
            knowledge=self.knowledge.stats(),
            images=await self.images.stats() if self.images is not None else None,
        )

    async def aclose(self) -> None:
        await self.registry.aclose()
        if self.images is not None:
            await self.images.aclose()

    # === Internals ===

    def _knowledge_fallback(
        self, key: str, device_type: DeviceType, identifier: DeviceIdentifier
    ) -> EnrichedDeviceInfo | None:
        learned = self.knowledge.get(key, device_type) or self.knowledge.find_by_model(
            identifier.model, device_type, identifier.manufacturer
        )
        if learned is None:
            return None
        return self.knowledge.to_enriched(learned)

    async def _build_result(
        self,
        key: str,
        device_type: DeviceType,
        identifier: DeviceIdentifier,
        session: SessionMergeResult,
    ) -> EnrichedDeviceInfo:
        merged = session.merged
        now = datetime.now(timezone.utc)
        images = await self._cache_images(key, merged, now)
        documentation = merged.documentation
        if documentation is not None:
            documentation = documentation.model_copy(deep=True)
            documentation.product_page = documentation.product_page or merged.product_page
            documentation.support_page = documentation.support_page or merged.support_page

        return EnrichedDeviceInfo(
            device_key=key,
            identifier=identifier.model_copy(deep=True),
            device_type=device_type,
            images=images,
            specs=dict(merged.specs),
            categories=merged.categories,
            description=merged.description,
            release_date=merged.release_date,
            product_page=merged.product_page,
            support_page=merged.support_page,
            documentation=documentation,
            drivers=merged.driver_info,
            sources=list(session.sources),
            confidence=merged.confidence,
            fetched_at=now,
            from_cache=False,
            origin="sources",
        )

    async def _cache_images(
        self, key: str, merged: PartialDeviceInfo, now: datetime
    ) -> ProductImages | None:
        if merged.image_url is None and not merged.image_gallery:
            return None

        images = ProductImages(
            primary_image=merged.image_url,
            gallery=[g.model_copy() for g in merged.image_gallery],
        )
        if self.images is None:
            return images

        primary_key = f"{key}_primary"
        file_size: int | None = None
        # url -> cached path, None once a download or validation failed
        attempted: dict[str, str | None] = {}
        if merged.image_url:
            attempted[merged.image_url] = None
            try:
                result = await self.images.fetch_and_cache(merged.image_url, primary_key)
            except ImageError as exc:
                logger.warning("Primary image not cached: %s", exc)
            else:
                images.primary_image_cached = result.file_path
                images.thumbnail_cached = result.thumbnail_path
                attempted[merged.image_url] = result.file_path
                file_size = _file_size(result.file_path)

        for index, entry in enumerate(images.gallery[: self._gallery_limit]):
            if entry.url in attempted:
                entry.cached_path = attempted[entry.url]
                continue
            attempted[entry.url] = None
            try:
                result = await self.images.fetch_and_cache(
                    entry.url, f"{key}_gallery_{index}"
                )
            except ImageError as exc:
                logger.warning("Gallery image %d not cached: %s", index, exc)
                continue
            entry.cached_path = result.file_path
            attempted[entry.url] = result.file_path

        images.metadata = ImageMetadata(
            fetched_at=now,
            source=merged.source_name,
            cache_key=primary_key,
            file_size=file_size,
        )
        return images


def _file_size(path: str) -> int | None:
    try:
        return Path(path).stat().st_size
    except OSError:
        return None


def _log_outcomes(results: list[SourceResult]) -> None:
    for result in results:
        if result.ok:
            logger.info(
                "%s: %d specs (confidence %.2f, %dms)",
                result.source_name,
                len(result.partial_info.specs),
                result.partial_info.confidence,
                result.elapsed_ms,
            )
        else:
            logger.info("%s: %s", result.source_name, result.error)
