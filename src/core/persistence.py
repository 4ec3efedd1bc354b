# src/core/persistence.py — v1
"""Atomic JSON persistence shared by the on-disk stores.

Writes go to a temporary file in the target directory and are moved
into place with ``os.replace`` so a crash mid-write never leaves a
truncated store behind.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from hwenrich.core.errors import PersistenceError


def write_json_atomic(path: Path, data: Any) -> None:
    """Serialize ``data`` as pretty JSON and atomically replace ``path``.

    Raises:
        PersistenceError: On serialization or filesystem failure.
    """
    path = Path(path)
    try:
        payload = json.dumps(data, indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise PersistenceError(path, f"cannot serialize: {exc}") from exc

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except OSError as exc:
        raise PersistenceError(path, f"write failed: {exc}") from exc


def read_json(path: Path, default: Any = None) -> Any:
    """Load JSON from ``path``; return ``default`` if the file is absent.

    Raises:
        PersistenceError: If the file exists but cannot be read or parsed.
    """
    path = Path(path)
    if not path.exists():
        return default
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise PersistenceError(path, f"read failed: {exc}") from exc
