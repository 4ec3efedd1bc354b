# tests/unit/cache/test_image_format.py — v1
"""Tests for cache/image_format.py — magic-byte sniffing and validation."""

from __future__ import annotations

import pytest

from hwenrich.cache.image_format import mime_to_extension, sniff_format, validate_image
from hwenrich.core.errors import ImageValidationError


class TestSniffFormat:
    @pytest.mark.parametrize(
        "data, fmt",
        [
            (b"\x89PNG\r\n\x1a\n" + b"\x00" * 8, "png"),
            (b"\xff\xd8\xff\xe0" + b"\x00" * 8, "jpeg"),
            (b"GIF89a" + b"\x00" * 8, "gif"),
            (b"RIFF\x00\x00\x00\x00WEBPVP8 ", "webp"),
            (b"<html></html>", None),
        ],
    )
    def test_formats(self, data, fmt):
        assert sniff_format(data) == fmt


class TestValidateImage:
    def test_valid(self, fake_png_factory):
        assert validate_image(fake_png_factory(100)) == "png"

    def test_too_small(self):
        with pytest.raises(ImageValidationError, match="too small"):
            validate_image(b"\x89PN")

    def test_unknown_format(self):
        with pytest.raises(ImageValidationError, match="unsupported"):
            validate_image(b"<!doctype html><html>")

    def test_too_large(self, fake_png_factory):
        with pytest.raises(ImageValidationError, match="exceeds"):
            validate_image(fake_png_factory(200), max_bytes=100)


class TestMimeToExtension:
    @pytest.mark.parametrize(
        "mime, ext",
        [
            ("image/png", "png"),
            ("image/jpeg; charset=binary", "jpg"),
            ("IMAGE/WEBP", "webp"),
            ("application/octet-stream", "jpg"),
            (None, "jpg"),
        ],
    )
    def test_mapping(self, mime, ext):
        assert mime_to_extension(mime) == ext
