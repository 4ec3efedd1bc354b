# tests/unit/cache/test_device_cache.py — v1
"""Tests for cache/device_cache.py — TTL answer cache with JSON persistence."""

from __future__ import annotations

import json
import logging

import pytest

from hwenrich.cache.device_cache import CACHE_FILE, CacheManager
from hwenrich.core.models import DeviceType, EnrichedDeviceInfo


@pytest.fixture
def cache(data_dir, clock) -> CacheManager:
    return CacheManager(data_dir, default_ttl_days=30, clock=clock)


@pytest.fixture
def sample_info(cpu_identifier) -> EnrichedDeviceInfo:
    return EnrichedDeviceInfo(
        device_key="k1",
        identifier=cpu_identifier,
        device_type=DeviceType.CPU,
        specs={"cores": "24"},
        sources=["A"],
        confidence=0.9,
    )


class TestCacheManager:
    def test_set_and_get(self, cache, sample_info):
        entry = cache.set("k1", DeviceType.CPU, sample_info)
        assert (entry.expires_at - entry.cached_at).days == 30
        got = cache.get("k1", DeviceType.CPU)
        assert got == sample_info

    def test_miss(self, cache):
        assert cache.get("nope", DeviceType.CPU) is None

    def test_type_is_part_of_key(self, cache, sample_info):
        cache.set("k1", DeviceType.CPU, sample_info)
        assert cache.get("k1", DeviceType.GPU) is None

    def test_expiry(self, cache, sample_info, clock):
        cache.set("k1", DeviceType.CPU, sample_info, ttl_days=1)
        clock.advance(hours=23)
        assert cache.get("k1", DeviceType.CPU) is not None
        clock.advance(hours=1)
        assert cache.get("k1", DeviceType.CPU) is None
        # expired entries stay until swept
        assert len(cache.get_all()) == 1

    def test_get_returns_copy(self, cache, sample_info):
        cache.set("k1", DeviceType.CPU, sample_info)
        got = cache.get("k1", DeviceType.CPU)
        got.specs["cores"] = "0"
        assert cache.get("k1", DeviceType.CPU).specs["cores"] == "24"

    def test_set_replaces(self, cache, sample_info):
        cache.set("k1", DeviceType.CPU, sample_info)
        updated = sample_info.model_copy(update={"confidence": 0.5})
        cache.set("k1", DeviceType.CPU, updated)
        assert cache.get("k1", DeviceType.CPU).confidence == 0.5
        assert len(cache.get_all()) == 1

    def test_cleanup_expired_only_removes_expired(self, cache, sample_info, clock):
        cache.set("old", DeviceType.CPU, sample_info, ttl_days=1)
        cache.set("new", DeviceType.CPU, sample_info, ttl_days=30)
        clock.advance(days=2)
        assert cache.cleanup_expired() == 1
        assert [e.device_key for e in cache.get_all()] == ["new"]
        assert cache.cleanup_expired() == 0

    def test_remove_and_clear(self, cache, sample_info):
        cache.set("a", DeviceType.CPU, sample_info)
        cache.set("b", DeviceType.CPU, sample_info)
        assert cache.remove("a", DeviceType.CPU) is True
        assert cache.remove("a", DeviceType.CPU) is False
        cache.clear()
        assert cache.get_all() == []

    def test_stats(self, cache, sample_info, clock):
        cache.set("a", DeviceType.CPU, sample_info, ttl_days=1)
        cache.set("b", DeviceType.CPU, sample_info, ttl_days=10)
        clock.advance(days=5)
        stats = cache.stats()
        assert stats.total_entries == 2
        assert stats.valid_entries == 1
        assert stats.expired_entries == 1


class TestPersistence:
    def test_reload(self, data_dir, clock, sample_info):
        CacheManager(data_dir, clock=clock).set("k1", DeviceType.CPU, sample_info)
        reloaded = CacheManager(data_dir, clock=clock)
        assert reloaded.get("k1", DeviceType.CPU) == sample_info

    def test_file_is_json_array(self, cache, data_dir, sample_info):
        cache.set("k1", DeviceType.CPU, sample_info)
        raw = json.loads((data_dir / CACHE_FILE).read_text(encoding="utf-8"))
        assert isinstance(raw, list)
        assert raw[0]["device_key"] == "k1"
        assert raw[0]["data"]["specs"] == {"cores": "24"}

    def test_corrupt_file_starts_empty(self, data_dir, clock):
        (data_dir / CACHE_FILE).write_text('[{"device_key": 1}]', encoding="utf-8")
        assert CacheManager(data_dir, clock=clock).get_all() == []

    def test_failed_persist_keeps_memory_state(self, cache, data_dir, sample_info, caplog):
        (data_dir / CACHE_FILE).mkdir()
        with caplog.at_level(logging.ERROR, logger="hwenrich"):
            cache.set("k1", DeviceType.CPU, sample_info)
        assert cache.get("k1", DeviceType.CPU) == sample_info
        assert any("Failed to persist device cache" in r.getMessage() for r in caplog.records)
