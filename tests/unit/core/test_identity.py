# tests/unit/core/test_identity.py — v1
"""Tests for core/identity.py — deterministic device keys."""

from __future__ import annotations

from hwenrich.core.identity import (
    KEY_LENGTH,
    device_key,
    device_key_for,
    normalize_identity_part,
    url_key,
)
from hwenrich.core.models import DeviceIdentifier, DeviceType


class TestNormalizeIdentityPart:
    def test_lowercases_and_trims(self):
        assert normalize_identity_part("  Intel  ") == "intel"

    def test_collapses_internal_whitespace(self):
        assert normalize_identity_part("Core   i9\t14900K") == "core i9 14900k"


class TestDeviceKey:
    def test_fixed_width_hex(self):
        key = device_key(DeviceType.CPU, "Intel", "Core i9-14900K")
        assert len(key) == KEY_LENGTH
        int(key, 16)

    def test_deterministic(self):
        a = device_key(DeviceType.CPU, "Intel", "Core i9-14900K")
        b = device_key(DeviceType.CPU, "Intel", "Core i9-14900K")
        assert a == b

    def test_insensitive_to_case_and_padding(self):
        a = device_key(DeviceType.CPU, "Intel", "Core i9-14900K")
        b = device_key(DeviceType.CPU, "  INTEL ", "core  i9-14900k")
        assert a == b

    def test_type_changes_key(self):
        a = device_key(DeviceType.CPU, "Samsung", "X")
        b = device_key(DeviceType.STORAGE, "Samsung", "X")
        assert a != b

    def test_accepts_type_name_string(self):
        assert device_key("Cpu", "Intel", "X") == device_key(DeviceType.CPU, "Intel", "X")

    def test_device_key_for(self, cpu_identifier):
        assert device_key_for(DeviceType.CPU, cpu_identifier) == device_key(
            DeviceType.CPU, "Intel", "Core i9-14900K"
        )

    def test_model_change_changes_key(self):
        a = device_key_for(DeviceType.GPU, DeviceIdentifier(manufacturer="NVIDIA", model="RTX 4090"))
        b = device_key_for(DeviceType.GPU, DeviceIdentifier(manufacturer="NVIDIA", model="RTX 4080"))
        assert a != b


class TestUrlKey:
    def test_distinct_urls_distinct_keys(self):
        assert url_key("https://a.example/1.png") != url_key("https://a.example/2.png")

    def test_width(self):
        assert len(url_key("https://a.example/1.png")) == KEY_LENGTH
