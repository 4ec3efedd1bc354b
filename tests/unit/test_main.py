# tests/unit/test_main.py — v1
"""Tests for main.py — CLI entry point."""

from __future__ import annotations

import json
import logging

import pytest

from hwenrich.main import _build_parser, main


@pytest.fixture
def offline_env(tmp_path, monkeypatch):
    """Point the CLI at a temp data dir with only offline sources enabled."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HWENRICH_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("HWENRICH_WIKIPEDIA_ENABLED", "false")
    yield tmp_path
    root = logging.getLogger("hwenrich")
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
    root.propagate = True
    root.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Parser tests
# ---------------------------------------------------------------------------


class TestBuildParser:
    def test_version_flag(self):
        parser = _build_parser()
        with pytest.raises(SystemExit) as exc_info:
            parser.parse_args(["--version"])
        assert exc_info.value.code == 0

    def test_enrich_subcommand(self):
        args = _build_parser().parse_args(
            ["enrich", "cpu", "Intel", "Core i9-14900K", "--refresh", "--json"]
        )
        assert args.command == "enrich"
        assert args.device_type == "cpu"
        assert args.model == "Core i9-14900K"
        assert args.refresh is True
        assert args.as_json is True

    def test_enrich_defaults(self):
        args = _build_parser().parse_args(["enrich", "gpu", "NVIDIA", "RTX 4090"])
        assert args.refresh is False
        assert args.as_json is False

    def test_cleanup_default_age(self):
        assert _build_parser().parse_args(["cleanup"]).max_age_days == 30


# ---------------------------------------------------------------------------
# Command tests
# ---------------------------------------------------------------------------


class TestMain:
    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out.lower()

    def test_invalid_configuration(self, offline_env, monkeypatch, capsys):
        monkeypatch.setenv("HWENRICH_CACHE_TTL_DAYS", "0")
        assert main(["sources"]) == 2
        assert "Invalid configuration" in capsys.readouterr().err

    def test_sources(self, offline_env, capsys):
        assert main(["sources"]) == 0
        out = capsys.readouterr().out
        assert "Model Name Heuristics" in out
        assert "Wikipedia" not in out

    def test_invalid_device_type(self, offline_env):
        assert main(["enrich", "toaster", "Acme", "T1000"]) == 2

    def test_enrich_json(self, offline_env, capsys):
        assert main(["enrich", "storage", "Samsung", "990 PRO 2TB NVMe", "--json"]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["origin"] == "sources"
        assert payload["specs"]["capacity"] == "2TB"
        assert payload["sources"] == ["Model Name Heuristics"]
        assert (offline_env / "data" / "device_cache.json").exists()
        assert (offline_env / "data" / "learned_devices.json").exists()

    def test_enrich_text_then_cached(self, offline_env, capsys):
        assert main(["enrich", "memory", "Corsair", "Vengeance DDR5 2x16GB 6000"]) == 0
        first = capsys.readouterr().out
        assert "Memory Type: DDR5" in first
        assert "Origin:      sources" in first

        assert main(["enrich", "memory", "Corsair", "Vengeance DDR5 2x16GB 6000"]) == 0
        assert "Origin:      cache" in capsys.readouterr().out

    def test_enrich_no_source(self, offline_env):
        assert main(["enrich", "cpu", "Intel", "Core i9-14900K"]) == 1

    def test_stats(self, offline_env, capsys):
        main(["enrich", "storage", "Samsung", "990 PRO 2TB NVMe"])
        capsys.readouterr()
        assert main(["stats"]) == 0
        out = capsys.readouterr().out
        assert "Result cache:" in out
        assert "Devices:      1" in out

    def test_cleanup(self, offline_env, capsys):
        assert main(["cleanup", "--max-age-days", "7"]) == 0
        assert json.loads(capsys.readouterr().out) == {
            "cache_entries_removed": 0,
            "images_removed": 0,
        }
