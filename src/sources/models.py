# src/sources/models.py — v1
"""Fan-out result models: SourceResult, SourceDescriptor."""

from __future__ import annotations

from dataclasses import dataclass, field

from hwenrich.core.errors import SourceError
from hwenrich.core.models import DeviceType, PartialDeviceInfo


@dataclass(frozen=True)
class SourceResult:
    """Outcome of one source's fetch: either a partial answer or a typed error."""

    source_name: str
    partial_info: PartialDeviceInfo | None = None
    error: SourceError | None = None
    elapsed_ms: int = 0

    @classmethod
    def success(
        cls, source_name: str, info: PartialDeviceInfo, elapsed_ms: int = 0
    ) -> SourceResult:
        return cls(source_name=source_name, partial_info=info, elapsed_ms=elapsed_ms)

    @classmethod
    def failure(
        cls, source_name: str, error: SourceError, elapsed_ms: int = 0
    ) -> SourceResult:
        return cls(source_name=source_name, error=error, elapsed_ms=elapsed_ms)

    @property
    def ok(self) -> bool:
        return self.partial_info is not None


@dataclass(frozen=True)
class SourceDescriptor:
    """Listing entry for a registered source."""

    name: str
    priority: int
    device_types: list[DeviceType] = field(default_factory=list)
