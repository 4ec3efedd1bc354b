# src/cache/thumbnails.py — v1
"""Thumbnail derivation with Pillow. Blocking: call from a worker thread."""

from __future__ import annotations

from pathlib import Path

from PIL import Image

DEFAULT_THUMBNAIL_SIZE = 128


def thumbnail_path_for(image_path: Path) -> Path:
    return image_path.with_name(f"{image_path.stem}_thumb.png")


def make_thumbnail(image_path: Path, size: int = DEFAULT_THUMBNAIL_SIZE) -> Path:
    """Write a PNG thumbnail fitting in ``size`` x ``size`` next to the image.

    Aspect ratio is preserved; images already smaller are not upscaled.

    Raises:
        OSError: If the image cannot be decoded or the thumbnail written.
    """
    image_path = Path(image_path)
    target = thumbnail_path_for(image_path)
    with Image.open(image_path) as img:
        img.thumbnail((size, size))
        if img.mode not in ("RGB", "RGBA", "L", "LA", "P"):
            img = img.convert("RGBA")
        img.save(target, format="PNG")
    return target
