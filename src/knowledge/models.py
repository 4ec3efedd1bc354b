# src/knowledge/models.py — v1
"""Knowledge store models: learned specs, provenance, persisted database."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from hwenrich.core.models import DeviceIdentifier, DeviceType, SpecCategory

KNOWLEDGE_DB_VERSION = "1.0"


class LearnedSpec(BaseModel):
    """One specification value with confidence and contributing sources."""

    value: str
    confidence: float
    sources: list[str] = Field(default_factory=list)
    last_updated: datetime


class SourceInfo(BaseModel):
    """A source that contributed knowledge about a device."""

    name: str
    url: str | None = None
    confidence: float
    fetched_at: datetime


class LearnedDevice(BaseModel):
    """Durable, accumulated knowledge about one device. Never auto-deleted."""

    device_key: str
    device_type: DeviceType
    identifier: DeviceIdentifier
    specs: dict[str, LearnedSpec] = Field(default_factory=dict)
    categories: list[SpecCategory] = Field(default_factory=list)
    description: str | None = None
    release_date: str | None = None
    sources: list[SourceInfo] = Field(default_factory=list)
    created_at: datetime
    last_verified: datetime

    def source_names(self) -> list[str]:
        return [s.name for s in self.sources]


class KnowledgeDatabase(BaseModel):
    """On-disk layout of ``learned_devices.json``."""

    version: str = KNOWLEDGE_DB_VERSION
    devices: list[LearnedDevice] = Field(default_factory=list)


class KnowledgeStats(BaseModel):
    total_devices: int = 0
    devices_by_type: dict[str, int] = Field(default_factory=dict)
    total_sources: int = 0
    avg_sources_per_device: float = 0.0
