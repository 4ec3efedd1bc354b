# src/logging/context.py — v1
"""Contextual logging support: attach device_key, device_type and source to log records.

Each fan-out task runs in a copy of the caller's context, so binding a
source inside one task never leaks into its siblings.
"""

from __future__ import annotations

import contextvars
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

_device_key: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "device_key", default=None
)
_device_type: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "device_type", default=None
)
_source: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "source", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    device_key: str | None = None
    device_type: str | None = None
    source: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        device_key=_device_key.get(),
        device_type=_device_type.get(),
        source=_source.get(),
    )


@contextmanager
def bind_device(device_key: str, device_type: str) -> Iterator[None]:
    """Tag every record emitted inside the block with the device being enriched."""
    key_token = _device_key.set(device_key)
    type_token = _device_type.set(device_type)
    try:
        yield
    finally:
        _device_type.reset(type_token)
        _device_key.reset(key_token)


@contextmanager
def bind_source(source: str) -> Iterator[None]:
    """Tag every record emitted inside the block with the active source."""
    token = _source.set(source)
    try:
        yield
    finally:
        _source.reset(token)


def clear_context() -> None:
    """Reset all context variables."""
    _device_key.set(None)
    _device_type.set(None)
    _source.set(None)
