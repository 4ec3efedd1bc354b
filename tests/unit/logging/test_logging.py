# tests/unit/logging/test_logging.py — v1
"""Tests for logging/context.py, logging/logger.py and logging/handlers.py."""

from __future__ import annotations

import json
import logging
import sys
from logging.handlers import RotatingFileHandler

import pytest

from hwenrich.logging.context import bind_device, bind_source, get_context
from hwenrich.logging.handlers import create_rotating_handler, parse_size
from hwenrich.logging.logger import ROOT_LOGGER, JsonFormatter, TextFormatter, setup_logging


def _record(msg: str = "Hello") -> logging.LogRecord:
    return logging.LogRecord(
        name="hwenrich.test", level=logging.INFO, pathname="", lineno=0,
        msg=msg, args=(), exc_info=None,
    )


class TestLogContext:
    def test_initial_state(self):
        ctx = get_context()
        assert ctx.device_key is None
        assert ctx.source is None
        assert ctx.as_dict() == {}

    def test_bind_device_resets(self):
        with bind_device("abc123", "Cpu"):
            assert get_context().as_dict() == {"device_key": "abc123", "device_type": "Cpu"}
        assert get_context().device_key is None

    def test_bind_source_nested(self):
        with bind_device("abc123", "Cpu"):
            with bind_source("Wikipedia"):
                assert get_context().source == "Wikipedia"
            assert get_context().source is None
            assert get_context().device_key == "abc123"


class TestJsonFormatter:
    def test_format_basic(self):
        parsed = json.loads(JsonFormatter().format(_record()))
        assert parsed["level"] == "INFO"
        assert parsed["message"] == "Hello"
        assert parsed["logger"] == "hwenrich.test"
        assert "timestamp" in parsed
        assert "context" not in parsed

    def test_format_with_context(self):
        with bind_device("abc123", "Gpu"), bind_source("Wikipedia"):
            parsed = json.loads(JsonFormatter().format(_record()))
        assert parsed["context"] == {
            "device_key": "abc123", "device_type": "Gpu", "source": "Wikipedia",
        }

    def test_exception_included(self):
        try:
            raise ValueError("bad")
        except ValueError:
            record = _record()
            record.exc_info = sys.exc_info()
        parsed = json.loads(JsonFormatter().format(record))
        assert "ValueError: bad" in parsed["exception"]


class TestTextFormatter:
    def test_format_basic(self):
        output = TextFormatter().format(_record("Hello text"))
        assert "Hello text" in output
        assert "INFO" in output

    def test_context_tags(self):
        with bind_device("abc123", "Cpu"), bind_source("Local Database"):
            output = TextFormatter().format(_record())
        assert "[Cpu:abc123]" in output
        assert "(Local Database)" in output


class TestSetupLogging:
    def teardown_method(self):
        root = logging.getLogger(ROOT_LOGGER)
        for handler in root.handlers:
            handler.close()
        root.handlers.clear()
        root.propagate = True
        root.setLevel(logging.NOTSET)

    def test_replaces_handlers(self):
        setup_logging(level="DEBUG")
        logger = setup_logging(level="WARNING", log_format="json")
        assert logger.name == ROOT_LOGGER
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, JsonFormatter)
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "hwenrich.log"
        logger = setup_logging(log_file=log_file, rotation="1MB", retention=2)
        file_handlers = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1
        assert file_handlers[0].maxBytes == 1024 * 1024
        assert file_handlers[0].backupCount == 2


class TestHandlers:
    @pytest.mark.parametrize(
        "raw, expected",
        [("10MB", 10 * 1024**2), ("512 KB", 512 * 1024), ("2048", 2048), ("1gb", 1024**3)],
    )
    def test_parse_size(self, raw, expected):
        assert parse_size(raw) == expected

    def test_parse_size_invalid(self):
        with pytest.raises(ValueError, match="Invalid size format"):
            parse_size("ten megabytes")

    def test_creates_parent_dir(self, tmp_path):
        handler = create_rotating_handler(tmp_path / "a" / "b.log")
        try:
            assert (tmp_path / "a").is_dir()
        finally:
            handler.close()
