# src/core/models.py — v1
"""Core domain models: device identity, specifications, images, enrichment results.

All models are pydantic v2 and round-trip through JSON unchanged; the
on-disk stores serialize them with ``model_dump(mode="json")``.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class DeviceType(str, Enum):
    """Closed set of device categories. Fixed at creation."""

    CPU = "Cpu"
    GPU = "Gpu"
    MOTHERBOARD = "Motherboard"
    MEMORY = "Memory"
    STORAGE = "Storage"
    MONITOR = "Monitor"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @classmethod
    def parse(cls, value: str) -> DeviceType:
        """Parse a case-insensitive type name ("cpu", "GPU", "Monitor")."""
        needle = value.strip().lower()
        for member in cls:
            if member.value.lower() == needle:
                return member
        raise ValueError(f"Unknown device type: {value!r}")


_DISPLAY_NAMES: dict[DeviceType, str] = {
    DeviceType.CPU: "CPU",
    DeviceType.GPU: "GPU",
    DeviceType.MOTHERBOARD: "Motherboard",
    DeviceType.MEMORY: "Memory",
    DeviceType.STORAGE: "Storage",
    DeviceType.MONITOR: "Monitor",
}


class DeviceIdentifier(BaseModel):
    """Raw identifying information as reported by the hardware collectors.

    Not unique by itself: matching against stored devices is fuzzy.
    """

    manufacturer: str
    model: str
    part_number: str | None = None
    serial_number: str | None = None
    hardware_ids: list[str] = Field(default_factory=list)

    def matches(self, other: DeviceIdentifier) -> bool:
        """Exact match on manufacturer and model, ignoring case and padding."""
        return (
            self.manufacturer.strip().lower() == other.manufacturer.strip().lower()
            and self.model.strip().lower() == other.model.strip().lower()
        )


# === Specifications ===


class SpecItem(BaseModel):
    """Single labelled specification value for display."""

    label: str
    value: str
    unit: str | None = None


class SpecCategory(BaseModel):
    """Ordered group of specification items."""

    name: str
    specs: list[SpecItem] = Field(default_factory=list)


# === Drivers and documentation ===


class DriverInfo(BaseModel):
    installed_version: str | None = None
    latest_version: str | None = None
    download_url: str | None = None
    release_date: str | None = None
    release_notes_url: str | None = None
    driver_page_url: str | None = None
    update_available: bool = False


class DocumentLink(BaseModel):
    title: str
    url: str
    file_type: str
    language: str | None = None


class FirmwareLink(BaseModel):
    title: str
    version: str
    url: str
    release_date: str | None = None


class DocumentationLinks(BaseModel):
    product_page: str | None = None
    support_page: str | None = None
    manuals: list[DocumentLink] = Field(default_factory=list)
    datasheets: list[DocumentLink] = Field(default_factory=list)
    firmware_updates: list[FirmwareLink] = Field(default_factory=list)


# === Images ===


class ImageType(str, Enum):
    PRODUCT = "product"
    PACKAGING = "packaging"
    INSTALLATION = "installation"
    DIAGRAM = "diagram"
    DIE_SHOT = "dieShot"
    OTHER = "other"


class ImageEntry(BaseModel):
    """A gallery image, optionally backed by a local cached copy."""

    url: str
    cached_path: str | None = None
    image_type: ImageType = ImageType.PRODUCT
    description: str | None = None
    width: int | None = None
    height: int | None = None


class ImageMetadata(BaseModel):
    fetched_at: datetime
    source: str
    ai_generated: bool = False
    cache_key: str
    file_size: int | None = None


class ProductImages(BaseModel):
    primary_image: str | None = None
    primary_image_cached: str | None = None
    gallery: list[ImageEntry] = Field(default_factory=list)
    thumbnail: str | None = None
    thumbnail_cached: str | None = None
    metadata: ImageMetadata | None = None


# === Source output ===


class PartialDeviceInfo(BaseModel):
    """Partial answer emitted by one source.

    Ephemeral: always passes through a merge step before being stored.
    """

    specs: dict[str, str] = Field(default_factory=dict)
    categories: list[SpecCategory] = Field(default_factory=list)
    description: str | None = None
    release_date: str | None = None
    product_page: str | None = None
    support_page: str | None = None
    image_url: str | None = None
    image_gallery: list[ImageEntry] = Field(default_factory=list)
    source_name: str
    source_url: str | None = None
    confidence: float
    documentation: DocumentationLinks | None = None
    driver_info: DriverInfo | None = None

    @field_validator("confidence")
    @classmethod
    def validate_confidence(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("confidence must be in [0, 1]")
        return v


# === Enrichment result ===


class EnrichedDeviceInfo(BaseModel):
    """Final best-effort answer for one device, with provenance."""

    device_key: str
    identifier: DeviceIdentifier
    device_type: DeviceType
    images: ProductImages | None = None
    specs: dict[str, str] = Field(default_factory=dict)
    categories: list[SpecCategory] = Field(default_factory=list)
    description: str | None = None
    release_date: str | None = None
    product_page: str | None = None
    support_page: str | None = None
    documentation: DocumentationLinks | None = None
    drivers: DriverInfo | None = None
    sources: list[str] = Field(default_factory=list)
    confidence: float = 0.0
    fetched_at: datetime | None = None
    from_cache: bool = False
    origin: Literal["sources", "cache", "knowledge"] = "sources"
