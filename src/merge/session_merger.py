# src/merge/session_merger.py — v1
"""Per-request merge of fan-out results: "founder wins" per field.

The most confident successful result becomes the base. Every other
result, in descending confidence (ties keep fan-out order), may only fill
what is still missing: absent spec keys, unset descriptive fields and
gallery images not yet seen. Nothing already present is ever overwritten.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from hwenrich.core.errors import NoSourceSucceeded
from hwenrich.core.models import PartialDeviceInfo
from hwenrich.sources.models import SourceResult

logger = logging.getLogger(__name__)

# Fields taken from the first result that has them.
_FILL_FIELDS = (
    "description",
    "release_date",
    "product_page",
    "support_page",
    "image_url",
    "source_url",
    "documentation",
    "driver_info",
)


@dataclass
class SessionMergeResult:
    """Merged answer plus the names of the sources that fed it, base first."""

    merged: PartialDeviceInfo
    sources: list[str] = field(default_factory=list)
    partials: list[PartialDeviceInfo] = field(default_factory=list)

    @property
    def confidence(self) -> float:
        return self.merged.confidence


def merge_session_results(results: list[SourceResult]) -> SessionMergeResult:
    """Merge the successful results of one fan-out.

    Args:
        results: Fan-out output, in fan-out order.

    Returns:
        SessionMergeResult whose ``merged`` carries the base source's
        name and confidence.

    Raises:
        NoSourceSucceeded: If no result carries a partial answer.
    """
    successes = [r.partial_info for r in results if r.partial_info is not None]
    if not successes:
        raise NoSourceSucceeded([r.error for r in results if r.error is not None])

    # sorted() is stable, so equal confidences keep fan-out order
    ranked = sorted(successes, key=lambda p: p.confidence, reverse=True)
    base = ranked[0]
    merged = base.model_copy(deep=True)
    gallery_urls = {img.url for img in merged.image_gallery}

    for partial in ranked[1:]:
        added = 0
        for key, value in partial.specs.items():
            if key not in merged.specs:
                merged.specs[key] = value
                added += 1

        for name in _FILL_FIELDS:
            if getattr(merged, name) is None and getattr(partial, name) is not None:
                setattr(merged, name, _copy(getattr(partial, name)))

        if not merged.categories and partial.categories:
            merged.categories = [c.model_copy(deep=True) for c in partial.categories]

        for image in partial.image_gallery:
            if image.url not in gallery_urls:
                merged.image_gallery.append(image.model_copy())
                gallery_urls.add(image.url)

        logger.debug(
            "Merged %s into %s: %d new spec keys",
            partial.source_name, base.source_name, added,
        )

    return SessionMergeResult(
        merged=merged,
        sources=[p.source_name for p in ranked],
        partials=[p.model_copy(deep=True) for p in ranked],
    )


def _copy(value):
    return value.model_copy(deep=True) if hasattr(value, "model_copy") else value
