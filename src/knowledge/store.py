# src/knowledge/store.py — v1
"""Durable cross-session device knowledge (``learned_devices.json``).

Every successful source answer is folded in per field: a spec value is
replaced only by a strictly more confident one, provenance accumulates,
and nothing is ever deleted automatically. The in-memory database is
authoritative; disk writes are atomic and a failed write is logged, not
rolled back.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from hwenrich.core.errors import PersistenceError
from hwenrich.core.identity import normalize_identity_part
from hwenrich.core.locking import ReadWriteLock
from hwenrich.core.models import (
    DeviceIdentifier,
    DeviceType,
    EnrichedDeviceInfo,
    PartialDeviceInfo,
)
from hwenrich.core.persistence import read_json, write_json_atomic
from hwenrich.knowledge.models import (
    KnowledgeDatabase,
    KnowledgeStats,
    LearnedDevice,
    SourceInfo,
)
from hwenrich.knowledge.normalizer import generate_categories, merge_learned_specs

logger = logging.getLogger(__name__)

KNOWLEDGE_FILE = "learned_devices.json"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _fuzzy(model: str) -> str:
    return "".join(c for c in model.lower() if c.isalnum())


class KnowledgeStore:
    """Field-level, confidence-weighted store of everything ever learned.

    Args:
        data_dir: Directory holding ``learned_devices.json``.
        clock: Time source, injectable for tests.
    """

    def __init__(
        self, data_dir: Path, clock: Callable[[], datetime] = _utcnow
    ) -> None:
        self._path = Path(data_dir).expanduser() / KNOWLEDGE_FILE
        self._clock = clock
        self._lock = ReadWriteLock()
        self._db = self._load()

    @property
    def path(self) -> Path:
        return self._path

    # === Writes ===

    def store_or_merge(
        self,
        device_key: str,
        device_type: DeviceType,
        identifier: DeviceIdentifier,
        partial: PartialDeviceInfo,
    ) -> LearnedDevice:
        """Create or merge knowledge from one source answer, then persist."""
        return self.store_or_merge_many(device_key, device_type, identifier, [partial])

    def store_or_merge_many(
        self,
        device_key: str,
        device_type: DeviceType,
        identifier: DeviceIdentifier,
        partials: Iterable[PartialDeviceInfo],
    ) -> LearnedDevice:
        """Apply several source answers under one lock and one persist.

        Partials are applied in the order given.
        """
        with self._lock.write():
            now = self._clock()
            device = self._find(device_key, device_type)
            if device is None:
                device = LearnedDevice(
                    device_key=device_key,
                    device_type=device_type,
                    identifier=identifier.model_copy(deep=True),
                    created_at=now,
                    last_verified=now,
                )
                self._db.devices.append(device)
                logger.info("Learning new device %s (%s)", device_key, device_type.value)

            for partial in partials:
                self._merge_into(device, partial, now)
            device.last_verified = now

            self._persist()
            return device.model_copy(deep=True)

    def remove(self, device_key: str, device_type: DeviceType) -> bool:
        """Explicitly forget a device. Returns True if it existed."""
        with self._lock.write():
            device = self._find(device_key, device_type)
            if device is None:
                return False
            self._db.devices.remove(device)
            self._persist()
            return True

    # === Reads ===

    def get(self, device_key: str, device_type: DeviceType) -> LearnedDevice | None:
        with self._lock.read():
            device = self._find(device_key, device_type)
            return device.model_copy(deep=True) if device else None

    def find_by_model(
        self,
        model: str,
        device_type: DeviceType,
        manufacturer: str | None = None,
    ) -> LearnedDevice | None:
        """Exact (case-insensitive) model match first, then substring either way."""
        wanted = normalize_identity_part(model)
        wanted_fuzzy = _fuzzy(model)
        wanted_mfr = normalize_identity_part(manufacturer) if manufacturer else None

        with self._lock.read():
            candidates = [
                d for d in self._db.devices
                if d.device_type == device_type
                and (
                    wanted_mfr is None
                    or normalize_identity_part(d.identifier.manufacturer) == wanted_mfr
                )
            ]
            for device in candidates:
                if normalize_identity_part(device.identifier.model) == wanted:
                    return device.model_copy(deep=True)
            if not wanted_fuzzy:
                return None
            for device in candidates:
                stored = _fuzzy(device.identifier.model)
                if stored and (stored in wanted_fuzzy or wanted_fuzzy in stored):
                    return device.model_copy(deep=True)
        return None

    def get_all(self) -> list[LearnedDevice]:
        with self._lock.read():
            return [d.model_copy(deep=True) for d in self._db.devices]

    def stats(self) -> KnowledgeStats:
        with self._lock.read():
            total = len(self._db.devices)
            by_type = Counter(d.device_type.value for d in self._db.devices)
            total_sources = sum(len(d.sources) for d in self._db.devices)
        return KnowledgeStats(
            total_devices=total,
            devices_by_type=dict(by_type),
            total_sources=total_sources,
            avg_sources_per_device=total_sources / total if total else 0.0,
        )

    def to_enriched(self, learned: LearnedDevice) -> EnrichedDeviceInfo:
        """Render learned knowledge as an enrichment answer (values only)."""
        if learned.specs:
            confidence = sum(s.confidence for s in learned.specs.values()) / len(learned.specs)
        elif learned.sources:
            confidence = max(s.confidence for s in learned.sources)
        else:
            confidence = 0.0

        with_url = [s for s in learned.sources if s.url]
        best = max(with_url, key=lambda s: s.confidence) if with_url else None

        return EnrichedDeviceInfo(
            device_key=learned.device_key,
            identifier=learned.identifier.model_copy(deep=True),
            device_type=learned.device_type,
            specs={k: s.value for k, s in learned.specs.items()},
            categories=(
                [c.model_copy(deep=True) for c in learned.categories]
                or generate_categories(learned.specs, learned.device_type)
            ),
            description=learned.description,
            release_date=learned.release_date,
            product_page=best.url if best else None,
            sources=learned.source_names(),
            confidence=confidence,
            fetched_at=learned.last_verified,
            from_cache=False,
            origin="knowledge",
        )

    # === Internals ===

    def _find(self, device_key: str, device_type: DeviceType) -> LearnedDevice | None:
        for device in self._db.devices:
            if device.device_key == device_key and device.device_type == device_type:
                return device
        return None

    def _merge_into(
        self, device: LearnedDevice, partial: PartialDeviceInfo, now: datetime
    ) -> None:
        changed = merge_learned_specs(
            device.specs, partial.specs, partial.confidence, partial.source_name, now
        )

        if device.description is None and partial.description:
            device.description = partial.description
        if device.release_date is None and partial.release_date:
            device.release_date = partial.release_date
        if len(partial.categories) > len(device.categories):
            device.categories = [c.model_copy(deep=True) for c in partial.categories]

        url = partial.source_url or partial.product_page
        for info in device.sources:
            if info.name == partial.source_name:
                info.fetched_at = now
                info.url = url or info.url
                info.confidence = max(info.confidence, partial.confidence)
                break
        else:
            device.sources.append(
                SourceInfo(
                    name=partial.source_name,
                    url=url,
                    confidence=partial.confidence,
                    fetched_at=now,
                )
            )

        logger.debug(
            "Merged %s into %s: %d spec values changed",
            partial.source_name, device.device_key, changed,
        )

    def _load(self) -> KnowledgeDatabase:
        try:
            raw = read_json(self._path)
        except PersistenceError as exc:
            logger.error("Knowledge store unreadable, starting empty: %s", exc)
            return KnowledgeDatabase()
        if raw is None:
            return KnowledgeDatabase()
        try:
            db = KnowledgeDatabase.model_validate(raw)
        except ValidationError as exc:
            logger.error("Knowledge store %s is corrupt, starting empty: %s", self._path, exc)
            return KnowledgeDatabase()
        logger.info("Loaded %d learned devices from %s", len(db.devices), self._path)
        return db

    def _persist(self) -> None:
        try:
            write_json_atomic(self._path, self._db.model_dump(mode="json"))
        except PersistenceError as exc:
            logger.error("Failed to persist knowledge store: %s", exc)
