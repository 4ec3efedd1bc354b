# src/core/errors.py — v1
"""Error taxonomy.

Only :class:`NoSourceSucceeded` ever reaches the caller of ``enrich``.
Source, image and persistence errors are absorbed and logged where they
occur.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

SourceErrorKind = Literal["network", "parse", "no_match", "timeout", "unexpected"]


class HwEnrichError(Exception):
    """Base class for all package errors."""


class SourceError(HwEnrichError):
    """A single named source failed. Never fatal to the overall operation."""

    def __init__(self, source_name: str, kind: SourceErrorKind, message: str) -> None:
        self.source_name = source_name
        self.kind = kind
        self.message = message
        super().__init__(f"[{source_name}] {kind}: {message}")


class NoSourceSucceeded(HwEnrichError):
    """Every applicable source failed (or none applied)."""

    def __init__(self, errors: list[SourceError] | None = None) -> None:
        self.errors = list(errors or [])
        if self.errors:
            detail = "; ".join(str(e) for e in self.errors)
            msg = f"No device information found from any source ({detail})"
        else:
            msg = "No device information found from any source (no applicable sources)"
        super().__init__(msg)


class PersistenceError(HwEnrichError):
    """Disk I/O failure while loading or saving a store."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(f"{path}: {message}")


class ImageError(HwEnrichError):
    """Base class for image cache failures."""


class ImageValidationError(ImageError):
    """Downloaded bytes are not a recognized image or exceed the size ceiling."""


class ImageDownloadError(ImageError):
    """The image could not be downloaded."""


class ConfigurationError(HwEnrichError):
    """Raised when configuration is internally inconsistent."""
