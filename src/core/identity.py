# src/core/identity.py — v1
"""Deterministic device identity.

A device key is the join point between the result cache and the
knowledge store, so it must not depend on how a caller happened to
capitalize or pad the manufacturer and model strings.
"""

from __future__ import annotations

import hashlib
import re

from hwenrich.core.models import DeviceIdentifier, DeviceType

KEY_LENGTH = 16

_WS_RE = re.compile(r"\s+")


def normalize_identity_part(value: str) -> str:
    """Lowercase, trim and collapse internal whitespace."""
    return _WS_RE.sub(" ", value).strip().lower()


def device_key(device_type: DeviceType | str, manufacturer: str, model: str) -> str:
    """Derive the fixed-width hex key for (type, manufacturer, model)."""
    type_name = device_type.value if isinstance(device_type, DeviceType) else device_type
    payload = "|".join(
        (
            normalize_identity_part(type_name),
            normalize_identity_part(manufacturer),
            normalize_identity_part(model),
        )
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:KEY_LENGTH]


def device_key_for(device_type: DeviceType, identifier: DeviceIdentifier) -> str:
    """Convenience wrapper over :func:`device_key`."""
    return device_key(device_type, identifier.manufacturer, identifier.model)


def url_key(url: str) -> str:
    """Content-address a URL (image cache key)."""
    return hashlib.sha256(url.encode("utf-8")).hexdigest()[:KEY_LENGTH]
