# src/enrichment/factory.py — v1
"""Factories wiring settings into sources, stores and the service.

Nothing here is a module-level singleton: callers own an
:class:`EnrichmentContext` (or a service) and pass it where needed.
"""

from __future__ import annotations

import logging
import threading

import httpx

from hwenrich.cache.device_cache import CacheManager
from hwenrich.cache.image_cache import ImageCache
from hwenrich.config.settings import Settings
from hwenrich.enrichment.service import EnrichmentService
from hwenrich.knowledge.store import KnowledgeStore
from hwenrich.sources.registry import SourceRegistry

logger = logging.getLogger(__name__)


def create_source_registry(
    settings: Settings, client: httpx.AsyncClient | None = None
) -> SourceRegistry:
    """Build the default registry, most preferred source first.

    Args:
        settings: Application settings.
        client: Shared HTTP client for network sources (tests inject one).
    """
    registry = SourceRegistry()

    if settings.local_database_path is not None:
        from hwenrich.sources.local_database_source import LocalDatabaseSource
        registry.register(LocalDatabaseSource.from_file(settings.local_database_path))

    if settings.wikipedia_enabled:
        from hwenrich.sources.wikipedia_source import WikipediaSource
        registry.register(
            WikipediaSource(
                client=client,
                language=settings.wikipedia_language,
                timeout_s=settings.http_timeout_s,
                user_agent=settings.http_user_agent,
            )
        )

    if settings.model_name_source_enabled:
        from hwenrich.sources.model_name_source import ModelNameSource
        registry.register(ModelNameSource())

    logger.debug("Source registry: %s", ", ".join(registry.source_names) or "(empty)")
    return registry


def create_enrichment_service(
    settings: Settings | None = None,
    client: httpx.AsyncClient | None = None,
    image_client: httpx.AsyncClient | None = None,
) -> EnrichmentService:
    """Instantiate the service and its stores from settings.

    Args:
        settings: Application settings. Defaults to ``Settings()``.
        client: HTTP client for network sources.
        image_client: HTTP client for image downloads.
    """
    settings = settings or Settings()
    data_dir = settings.resolved_data_dir
    data_dir.mkdir(parents=True, exist_ok=True)

    return EnrichmentService(
        registry=create_source_registry(settings, client=client),
        cache=CacheManager(data_dir, default_ttl_days=settings.cache_ttl_days),
        knowledge=KnowledgeStore(data_dir),
        images=ImageCache(
            settings.image_cache_dir,
            max_size_bytes=settings.image_cache_max_bytes,
            max_image_bytes=settings.image_max_bytes,
            thumbnail_size=settings.thumbnail_size,
            client=image_client,
            timeout_s=settings.http_timeout_s,
            user_agent=settings.image_user_agent,
        ),
        cache_ttl_days=settings.cache_ttl_days,
        gallery_limit=settings.gallery_limit,
        source_timeout_s=settings.source_timeout_s,
        max_concurrent_sources=settings.max_concurrent_sources,
    )


class EnrichmentContext:
    """Owns the lazily constructed service for one application.

    The stores load their files on first use, once, behind a lock.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()
        self._service: EnrichmentService | None = None
        self._lock = threading.Lock()

    @property
    def service(self) -> EnrichmentService:
        if self._service is None:
            with self._lock:
                if self._service is None:
                    self._service = create_enrichment_service(self.settings)
        return self._service

    @property
    def initialized(self) -> bool:
        return self._service is not None

    async def aclose(self) -> None:
        if self._service is not None:
            await self._service.aclose()
            self._service = None
