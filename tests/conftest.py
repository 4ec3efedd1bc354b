# tests/conftest.py — v1
"""Shared test fixtures for all unit and integration tests.

Provides sample identifiers and partial answers, scripted in-memory
sources, fake and real image payloads, and temp data directories.
No network access: HTTP goes through ``httpx.MockTransport``.
"""

from __future__ import annotations

import asyncio
import io
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from PIL import Image

from hwenrich.core.errors import SourceError
from hwenrich.core.models import (
    DeviceIdentifier,
    DeviceType,
    ImageEntry,
    PartialDeviceInfo,
)
from hwenrich.logging.context import clear_context
from hwenrich.sources.base_source import BaseDeviceSource

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


# === Scripted source ===


class ScriptedSource(BaseDeviceSource):
    """In-memory source returning a fixed answer, error or exception."""

    def __init__(
        self,
        name: str,
        partial: PartialDeviceInfo | None = None,
        error_kind: str | None = None,
        exception: Exception | None = None,
        delay_s: float = 0.0,
        types: list[DeviceType] | None = None,
        priority: int = 100,
    ) -> None:
        self._name = name
        self._partial = partial
        self._error_kind = error_kind
        self._exception = exception
        self._delay_s = delay_s
        self._types = types
        self._priority = priority
        self.calls = 0
        self.closed = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def priority(self) -> int:
        return self._priority

    @property
    def device_types(self) -> list[DeviceType]:
        return list(self._types) if self._types is not None else list(DeviceType)

    def supports(self, device_type: DeviceType, identifier: DeviceIdentifier) -> bool:
        return self._types is None or device_type in self._types

    async def fetch(
        self, device_type: DeviceType, identifier: DeviceIdentifier
    ) -> PartialDeviceInfo:
        self.calls += 1
        if self._delay_s:
            await asyncio.sleep(self._delay_s)
        if self._exception is not None:
            raise self._exception
        if self._error_kind is not None:
            raise SourceError(self._name, self._error_kind, "scripted failure")
        assert self._partial is not None
        return self._partial.model_copy(deep=True)

    async def aclose(self) -> None:
        self.closed = True


def make_partial(
    source_name: str = "Test Source",
    confidence: float = 0.8,
    specs: dict[str, str] | None = None,
    **fields,
) -> PartialDeviceInfo:
    return PartialDeviceInfo(
        source_name=source_name,
        confidence=confidence,
        specs=specs or {},
        **fields,
    )


# === FIXTURES: Sample data ===


@pytest.fixture(autouse=True)
def _reset_log_context():
    clear_context()
    yield
    clear_context()


@pytest.fixture
def cpu_identifier() -> DeviceIdentifier:
    return DeviceIdentifier(manufacturer="Intel", model="Core i9-14900K")


@pytest.fixture
def storage_identifier() -> DeviceIdentifier:
    return DeviceIdentifier(manufacturer="Samsung", model="990 PRO 2TB NVMe")


@pytest.fixture
def partial_factory():
    """Build PartialDeviceInfo instances with sensible defaults."""
    return make_partial


@pytest.fixture
def source_factory():
    """Build ScriptedSource instances."""
    return ScriptedSource


@pytest.fixture
def wiki_like_partial() -> PartialDeviceInfo:
    return make_partial(
        "Wikipedia",
        0.7,
        description="Raptor Lake refresh desktop processor.",
        product_page="https://en.wikipedia.org/wiki/Raptor_Lake",
        image_url="https://img.example.com/i9.png",
        image_gallery=[ImageEntry(url="https://img.example.com/i9.png")],
    )


# === FIXTURES: Time ===


class FakeClock:
    """Manually advanced clock returning aware datetimes."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# === FIXTURES: Images ===


def fake_png(size: int) -> bytes:
    """PNG signature padded to ``size`` bytes. Passes sniffing, not decoding."""
    return PNG_MAGIC + b"\x00" * (size - len(PNG_MAGIC))


@pytest.fixture
def fake_png_factory():
    return fake_png


@pytest.fixture
def real_png_bytes() -> bytes:
    """A decodable 300x200 PNG."""
    buffer = io.BytesIO()
    Image.new("RGB", (300, 200), color=(200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


# === FIXTURES: Temp directories ===


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def image_dir(tmp_path: Path) -> Path:
    return tmp_path / "images"
