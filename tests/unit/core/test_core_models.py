# tests/unit/core/test_core_models.py — v1
"""Tests for core/models.py and core/errors.py."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from hwenrich.core.errors import NoSourceSucceeded, SourceError
from hwenrich.core.models import (
    DeviceIdentifier,
    DeviceType,
    EnrichedDeviceInfo,
    PartialDeviceInfo,
)


class TestDeviceType:
    @pytest.mark.parametrize(
        "raw, expected",
        [("cpu", DeviceType.CPU), ("GPU", DeviceType.GPU), (" Monitor ", DeviceType.MONITOR)],
    )
    def test_parse(self, raw, expected):
        assert DeviceType.parse(raw) is expected

    def test_parse_unknown(self):
        with pytest.raises(ValueError, match="Unknown device type"):
            DeviceType.parse("toaster")

    def test_display_name(self):
        assert DeviceType.CPU.display_name == "CPU"
        assert DeviceType.STORAGE.display_name == "Storage"


class TestDeviceIdentifier:
    def test_matches_ignores_case_and_padding(self):
        a = DeviceIdentifier(manufacturer="Intel", model="Core i9-14900K")
        b = DeviceIdentifier(manufacturer=" intel", model="CORE I9-14900K ")
        assert a.matches(b)

    def test_different_model_does_not_match(self):
        a = DeviceIdentifier(manufacturer="Intel", model="Core i9-14900K")
        b = DeviceIdentifier(manufacturer="Intel", model="Core i7-14700K")
        assert not a.matches(b)


class TestPartialDeviceInfo:
    def test_confidence_bounds(self):
        with pytest.raises(ValidationError):
            PartialDeviceInfo(source_name="x", confidence=1.5)
        with pytest.raises(ValidationError):
            PartialDeviceInfo(source_name="x", confidence=-0.1)

    def test_defaults(self):
        p = PartialDeviceInfo(source_name="x", confidence=0.5)
        assert p.specs == {}
        assert p.image_gallery == []


class TestEnrichedDeviceInfo:
    def test_json_roundtrip(self, cpu_identifier):
        info = EnrichedDeviceInfo(
            device_key="abc",
            identifier=cpu_identifier,
            device_type=DeviceType.CPU,
            specs={"cores": "24"},
            sources=["A"],
            confidence=0.9,
        )
        restored = EnrichedDeviceInfo.model_validate_json(info.model_dump_json())
        assert restored == info
        assert restored.device_type is DeviceType.CPU


class TestErrors:
    def test_source_error_message(self):
        err = SourceError("Wikipedia", "timeout", "slow")
        assert err.source_name == "Wikipedia"
        assert err.kind == "timeout"
        assert "Wikipedia" in str(err) and "timeout" in str(err)

    def test_no_source_succeeded_carries_errors(self):
        errors = [SourceError("A", "network", "down"), SourceError("B", "no_match", "-")]
        exc = NoSourceSucceeded(errors)
        assert exc.errors == errors
        assert "[A] network" in str(exc)

    def test_no_source_succeeded_without_errors(self):
        assert "no applicable sources" in str(NoSourceSucceeded())
