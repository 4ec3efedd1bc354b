# src/cache/image_format.py — v1
"""Magic-byte sniffing and validation of downloaded image payloads."""

from __future__ import annotations

from hwenrich.core.errors import ImageValidationError

MAX_IMAGE_BYTES = 10 * 1024 * 1024
MIN_IMAGE_BYTES = 8

_PNG_MAGIC = b"\x89PNG\r\n\x1a\n"
_JPEG_MAGIC = b"\xff\xd8\xff"
_GIF_MAGICS = (b"GIF87a", b"GIF89a")

FORMAT_EXTENSIONS = {"png": "png", "jpeg": "jpg", "gif": "gif", "webp": "webp"}

_MIME_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/svg+xml": "svg",
}


def sniff_format(data: bytes) -> str | None:
    """Return "png", "jpeg", "gif" or "webp" from the leading bytes, else None."""
    if data.startswith(_PNG_MAGIC):
        return "png"
    if data.startswith(_JPEG_MAGIC):
        return "jpeg"
    if data.startswith(_GIF_MAGICS):
        return "gif"
    if len(data) >= 12 and data.startswith(b"RIFF") and data[8:12] == b"WEBP":
        return "webp"
    return None


def validate_image(data: bytes, max_bytes: int = MAX_IMAGE_BYTES) -> str:
    """Check that ``data`` is a supported image within the size ceiling.

    Returns:
        The sniffed format name.

    Raises:
        ImageValidationError: Too small, unrecognized or too large.
    """
    if len(data) < MIN_IMAGE_BYTES:
        raise ImageValidationError("Image too small to be valid")
    fmt = sniff_format(data)
    if fmt is None:
        raise ImageValidationError("Invalid or unsupported image format")
    if len(data) > max_bytes:
        raise ImageValidationError(
            f"Image of {len(data)} bytes exceeds maximum size of {max_bytes} bytes"
        )
    return fmt


def mime_to_extension(mime: str | None) -> str:
    """File extension for a Content-Type value; unknown types map to "jpg"."""
    if not mime:
        return "jpg"
    base = mime.split(";", 1)[0].strip().lower()
    return _MIME_EXTENSIONS.get(base, "jpg")
