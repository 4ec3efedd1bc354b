# src/sources/local_database_source.py — v1
"""Lookup in a curated JSON device database shipped alongside the app.

File layout::

    {
      "version": "2024.1",
      "devices": {
        "cpu": [{"identifier": {"manufacturer": "Intel", "model": "..."},
                 "specs": {...}, "categories": [...], ...}],
        "gpu": [...]
      }
    }

Matching is exact (manufacturer + model, case-insensitive) first, then
fuzzy: same manufacturer and one alphanumeric-only model containing the
other.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from hwenrich.core.errors import PersistenceError
from hwenrich.core.models import (
    DeviceIdentifier,
    DeviceType,
    PartialDeviceInfo,
    SpecCategory,
)
from hwenrich.core.persistence import read_json
from hwenrich.sources.base_source import BaseDeviceSource

logger = logging.getLogger(__name__)

SOURCE_NAME = "Local Database"
CONFIDENCE = 0.85


class LocalDeviceEntry(BaseModel):
    """One curated device record."""

    identifier: DeviceIdentifier
    specs: dict[str, str] = Field(default_factory=dict)
    categories: list[SpecCategory] = Field(default_factory=list)
    description: str | None = None
    release_date: str | None = None
    product_page: str | None = None
    support_page: str | None = None
    image_url: str | None = None


class LocalDatabase(BaseModel):
    version: str = "0"
    devices: dict[str, list[LocalDeviceEntry]] = Field(default_factory=dict)

    def entries_for(self, device_type: DeviceType) -> list[LocalDeviceEntry]:
        return self.devices.get(device_type.value.lower(), [])


def normalize_model(model: str) -> str:
    """Lowercase, alphanumeric-only form used for fuzzy comparison."""
    return "".join(c for c in model.lower() if c.isalnum())


def load_local_database(path: Path) -> LocalDatabase:
    """Load the database file; missing or malformed files yield an empty database."""
    try:
        raw = read_json(path)
    except PersistenceError as exc:
        logger.error("Local device database unreadable: %s", exc)
        return LocalDatabase()
    if raw is None:
        logger.warning("Local device database not found: %s", path)
        return LocalDatabase()
    try:
        database = LocalDatabase.model_validate(raw)
    except ValidationError as exc:
        logger.error("Local device database %s is malformed: %s", path, exc)
        return LocalDatabase()
    logger.info(
        "Loaded local device database v%s (%d devices)",
        database.version,
        sum(len(v) for v in database.devices.values()),
    )
    return database


class LocalDatabaseSource(BaseDeviceSource):
    """Answers from a curated local database. Offline and fast."""

    def __init__(self, database: LocalDatabase) -> None:
        self._database = database

    @classmethod
    def from_file(cls, path: Path) -> LocalDatabaseSource:
        return cls(load_local_database(Path(path).expanduser()))

    @property
    def name(self) -> str:
        return SOURCE_NAME

    @property
    def priority(self) -> int:
        return 5

    @property
    def device_types(self) -> list[DeviceType]:
        return [t for t in DeviceType if self._database.entries_for(t)]

    def supports(self, device_type: DeviceType, identifier: DeviceIdentifier) -> bool:
        return bool(self._database.entries_for(device_type))

    def find(
        self, device_type: DeviceType, identifier: DeviceIdentifier
    ) -> LocalDeviceEntry | None:
        entries = self._database.entries_for(device_type)
        for entry in entries:
            if entry.identifier.matches(identifier):
                return entry

        wanted_mfr = identifier.manufacturer.strip().lower()
        wanted_model = normalize_model(identifier.model)
        if not wanted_model:
            return None
        for entry in entries:
            if entry.identifier.manufacturer.strip().lower() != wanted_mfr:
                continue
            candidate = normalize_model(entry.identifier.model)
            if candidate and (candidate in wanted_model or wanted_model in candidate):
                return entry
        return None

    async def fetch(
        self, device_type: DeviceType, identifier: DeviceIdentifier
    ) -> PartialDeviceInfo:
        entry = self.find(device_type, identifier)
        if entry is None:
            raise self._error(
                "no_match",
                f"{identifier.manufacturer} {identifier.model} not in local database",
            )
        return PartialDeviceInfo(
            specs=dict(entry.specs),
            categories=list(entry.categories),
            description=entry.description,
            release_date=entry.release_date,
            product_page=entry.product_page,
            support_page=entry.support_page,
            image_url=entry.image_url,
            source_name=SOURCE_NAME,
            confidence=CONFIDENCE,
        )
