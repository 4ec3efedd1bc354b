# src/sources/fanout.py — v1
"""Parallel fan-out over device sources with per-source failure isolation.

Every applicable source runs as its own task. A slow, failing or
misbehaving source only ever affects its own :class:`SourceResult`; the
fan-out itself always returns.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Sequence

from hwenrich.core.errors import SourceError
from hwenrich.core.models import DeviceIdentifier, DeviceType
from hwenrich.logging.context import bind_source
from hwenrich.sources.base_source import BaseDeviceSource
from hwenrich.sources.models import SourceResult

logger = logging.getLogger(__name__)


async def fetch_from_all_sources(
    sources: Sequence[BaseDeviceSource],
    device_type: DeviceType,
    identifier: DeviceIdentifier,
    timeout_s: float | None = None,
    max_concurrency: int = 0,
) -> list[SourceResult]:
    """Query every source that supports the device, concurrently.

    Args:
        sources: Candidate sources, in fan-out order.
        device_type: Category of the device.
        identifier: Raw identifying information.
        timeout_s: Per-source timeout. None disables it.
        max_concurrency: Upper bound on simultaneous fetches (0 = unbounded).

    Returns:
        One result per applicable source, in fan-out order. Empty if no
        source supports the device.
    """
    applicable = [s for s in sources if _supports(s, device_type, identifier)]
    if not applicable:
        logger.info(
            "No source supports %s %s %s",
            device_type.value, identifier.manufacturer, identifier.model,
        )
        return []

    semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency > 0 else None

    async def run(source: BaseDeviceSource) -> SourceResult:
        if semaphore is None:
            return await _fetch_one(source, device_type, identifier, timeout_s)
        async with semaphore:
            return await _fetch_one(source, device_type, identifier, timeout_s)

    results = await asyncio.gather(*(run(s) for s in applicable))

    succeeded = sum(1 for r in results if r.ok)
    logger.info(
        "Fan-out for %s %s: %d/%d sources succeeded",
        identifier.manufacturer, identifier.model, succeeded, len(results),
    )
    return list(results)


async def _fetch_one(
    source: BaseDeviceSource,
    device_type: DeviceType,
    identifier: DeviceIdentifier,
    timeout_s: float | None,
) -> SourceResult:
    name = source.name
    start = time.monotonic()
    with bind_source(name):
        try:
            info = await asyncio.wait_for(
                source.fetch(device_type, identifier), timeout=timeout_s
            )
        except asyncio.TimeoutError:
            error = SourceError(name, "timeout", f"no answer within {timeout_s}s")
        except SourceError as exc:
            error = exc
        except Exception as exc:
            logger.exception("Source %s raised unexpectedly", name)
            error = SourceError(name, "unexpected", f"{type(exc).__name__}: {exc}")
        else:
            elapsed = _elapsed_ms(start)
            logger.debug(
                "Source %s answered in %dms (%d specs, confidence %.2f)",
                name, elapsed, len(info.specs), info.confidence,
            )
            return SourceResult.success(name, info, elapsed)

        elapsed = _elapsed_ms(start)
        logger.info("Source %s failed after %dms: %s", name, elapsed, error)
        return SourceResult.failure(name, error, elapsed)


def _supports(
    source: BaseDeviceSource, device_type: DeviceType, identifier: DeviceIdentifier
) -> bool:
    try:
        return source.supports(device_type, identifier)
    except Exception as exc:
        logger.warning("Source %s.supports() failed: %s", source.name, exc)
        return False


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
