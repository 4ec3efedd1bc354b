# src/knowledge/normalizer.py — v1
"""Spec key normalization and the "highest confidence wins over time" merge.

Different sources name the same spec differently ("Base Clock",
"base-clock", "BASE_CLOCK"). Keys are folded into one canonical form
before they touch the store so they collapse into a single LearnedSpec.
"""

from __future__ import annotations

import re
from datetime import datetime

from hwenrich.core.models import DeviceType, SpecCategory, SpecItem
from hwenrich.knowledge.models import LearnedSpec

_STRIP_RE = re.compile(r"[\s\-_]+")

# Applied in order after stripping separators.
_PREFIX_DROPS = ("numberof", "#of")
_SYNONYMS: tuple[tuple[str, str], ...] = (
    ("clock", "clk"),
    ("frequency", "freq"),
)

UNITS = ("GB/s", "MHz", "GHz", "GB", "MB", "W", "nm", "bit")


def normalize_spec_key(key: str) -> str:
    """Canonical key: lowercase, no spaces/dashes/underscores, synonyms folded.

    "Base Clock" -> "baseclk", "Number of Cores" -> "cores".
    """
    normalized = _STRIP_RE.sub("", key.lower())
    for prefix in _PREFIX_DROPS:
        if normalized.startswith(prefix) and len(normalized) > len(prefix):
            normalized = normalized[len(prefix):]
            break
    for long, short in _SYNONYMS:
        normalized = normalized.replace(long, short)
    return normalized


def merge_learned_specs(
    existing: dict[str, LearnedSpec],
    incoming: dict[str, str],
    confidence: float,
    source_name: str,
    now: datetime,
) -> int:
    """Fold one source's specs into a learned spec map, in place.

    A missing key is inserted. For an existing key, a strictly higher
    confidence replaces value and confidence; the source list is always
    extended and ``last_updated`` always advances.

    Returns:
        Number of keys inserted or whose value was replaced.
    """
    changed = 0
    for raw_key, value in incoming.items():
        key = normalize_spec_key(raw_key)
        if not key:
            continue
        current = existing.get(key)
        if current is None:
            existing[key] = LearnedSpec(
                value=value,
                confidence=confidence,
                sources=[source_name],
                last_updated=now,
            )
            changed += 1
            continue

        if confidence > current.confidence:
            current.value = value
            current.confidence = confidence
            changed += 1
        if source_name not in current.sources:
            current.sources.append(source_name)
        current.last_updated = now
    return changed


# === Display helpers ===

_CPU_GROUPS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Cache", ("cache", "l1", "l2", "l3")),
    ("Power", ("tdp", "power", "watt")),
)
_GPU_GROUPS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Memory", ("memory", "mem", "vram", "bandwidth", "bus")),
    ("Power", ("tdp", "power", "watt")),
)


def format_spec_label(key: str) -> str:
    """Turn a normalized key back into a readable label ("baseclk" -> "Base Clock")."""
    label = re.sub(r"mem(?:ory)?(?=\w)", "Memory ", key)
    label = label.replace("clk", " Clock").replace("freq", " Frequency")
    label = label.replace("tdp", "TDP")
    return " ".join(w[:1].upper() + w[1:] for w in label.split())


def extract_unit(value: str) -> str | None:
    """First known unit appearing in a value string, if any."""
    for unit in UNITS:
        if unit in value:
            return unit
    return None


def generate_categories(
    specs: dict[str, LearnedSpec], device_type: DeviceType
) -> list[SpecCategory]:
    """Group learned specs into display categories by key hints."""
    if device_type == DeviceType.CPU:
        default, groups = "Processor", _CPU_GROUPS
    elif device_type == DeviceType.GPU:
        default, groups = "GPU Engine", _GPU_GROUPS
    else:
        default, groups = "Specifications", ()

    buckets: dict[str, list[SpecItem]] = {default: []}
    for name, _ in groups:
        buckets[name] = []

    for key in sorted(specs):
        spec = specs[key]
        item = SpecItem(
            label=format_spec_label(key),
            value=spec.value,
            unit=extract_unit(spec.value),
        )
        target = next(
            (name for name, hints in groups if any(h in key for h in hints)),
            default,
        )
        buckets[target].append(item)

    return [SpecCategory(name=n, specs=items) for n, items in buckets.items() if items]
