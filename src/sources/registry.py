# src/sources/registry.py — v1
"""Source registry — ordered collection of device sources.

Registration order is the fan-out order, which is also the tie-break
order of the session merge when two sources report equal confidence.
Sources can be disabled at runtime without unregistering them.
"""

from __future__ import annotations

import logging

from hwenrich.core.errors import HwEnrichError
from hwenrich.core.models import DeviceIdentifier, DeviceType
from hwenrich.sources.base_source import BaseDeviceSource
from hwenrich.sources.models import SourceDescriptor

logger = logging.getLogger(__name__)


class RegistryError(HwEnrichError):
    """Raised when a source lookup fails."""


class SourceRegistry:
    """Registry of all available device sources."""

    def __init__(self, sources: list[BaseDeviceSource] | None = None) -> None:
        self._sources: dict[str, BaseDeviceSource] = {}
        self._disabled: set[str] = set()
        for source in sources or []:
            self.register(source)

    @property
    def sources(self) -> list[BaseDeviceSource]:
        """Enabled sources in registration order."""
        return [s for name, s in self._sources.items() if name not in self._disabled]

    @property
    def source_names(self) -> list[str]:
        return [s.name for s in self.sources]

    def register(self, source: BaseDeviceSource) -> None:
        """Register a source instance. Re-registering a name replaces it in place."""
        if source.name in self._sources:
            logger.warning("Overwriting existing source: %s", source.name)
        self._sources[source.name] = source
        logger.debug("Registered source: %s (priority %d)", source.name, source.priority)

    def disable(self, name: str) -> None:
        self.get_or_raise(name)
        self._disabled.add(name)

    def enable(self, name: str) -> None:
        self._disabled.discard(name)

    def get(self, name: str) -> BaseDeviceSource | None:
        """Get source by name, or None if not registered."""
        return self._sources.get(name)

    def get_or_raise(self, name: str) -> BaseDeviceSource:
        """Get source by name, raise if not found."""
        source = self._sources.get(name)
        if source is None:
            raise RegistryError(f"Source '{name}' not found in registry")
        return source

    def applicable(
        self, device_type: DeviceType, identifier: DeviceIdentifier
    ) -> list[BaseDeviceSource]:
        """Enabled sources whose ``supports`` accepts this device."""
        return [s for s in self.sources if s.supports(device_type, identifier)]

    def descriptors(self) -> list[SourceDescriptor]:
        """Listing of enabled sources, most preferred first."""
        return [
            SourceDescriptor(
                name=s.name, priority=s.priority, device_types=list(s.device_types)
            )
            for s in sorted(self.sources, key=lambda s: s.priority)
        ]

    async def aclose(self) -> None:
        """Close every registered source, logging individual failures."""
        for source in self._sources.values():
            try:
                await source.aclose()
            except Exception as exc:
                logger.warning("Failed to close source %s: %s", source.name, exc)

    def __len__(self) -> int:
        return len(self.sources)
