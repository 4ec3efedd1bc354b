# src/enrichment/models.py — v1
"""Service-level result models: CleanupResult, ServiceStats."""

from __future__ import annotations

from pydantic import BaseModel, Field

from hwenrich.cache.models import CacheStats, ImageCacheStats
from hwenrich.knowledge.models import KnowledgeStats


class CleanupResult(BaseModel):
    cache_entries_removed: int = 0
    images_removed: int = 0


class ServiceStats(BaseModel):
    """Combined view of the three stores."""

    cache: CacheStats = Field(default_factory=CacheStats)
    knowledge: KnowledgeStats = Field(default_factory=KnowledgeStats)
    images: ImageCacheStats | None = None
