# src/sources/wikipedia_source.py — v1
"""Wikipedia page-summary source for CPUs and GPUs.

Uses the REST ``page/summary`` endpoint, which returns a short plain-text
extract, the canonical page URL and the lead image without any HTML
scraping. Candidate titles go from most to least specific: the exact
product, then the product family page ("Intel Core (14th generation)",
"GeForce RTX 40 series").
"""

from __future__ import annotations

import logging
import re
from typing import Any
from urllib.parse import quote

import httpx

from hwenrich.core.models import (
    DeviceIdentifier,
    DeviceType,
    ImageEntry,
    ImageType,
    PartialDeviceInfo,
)
from hwenrich.sources.base_source import DEFAULT_USER_AGENT, HttpDeviceSource

logger = logging.getLogger(__name__)

SOURCE_NAME = "Wikipedia"
CONFIDENCE = 0.7

_INTEL_GEN_RE = re.compile(r"i[3579]-(\d{4,5})", re.IGNORECASE)
_NVIDIA_RE = re.compile(r"\b(?:RTX|GTX)\s*(\d{2})(\d{2})\b", re.IGNORECASE)
_RADEON_RE = re.compile(r"\bRX\s*(\d)(\d{3})\b", re.IGNORECASE)
_RYZEN_RE = re.compile(r"\bRyzen\s+(\d|Threadripper)\b", re.IGNORECASE)


def _ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def candidate_titles(device_type: DeviceType, identifier: DeviceIdentifier) -> list[str]:
    """Page titles to try, most specific first, without duplicates."""
    manufacturer = identifier.manufacturer.strip()
    model = " ".join(identifier.model.split())
    titles: list[str] = []

    if model.lower().startswith(manufacturer.lower()):
        titles.append(model)
    else:
        titles.append(f"{manufacturer} {model}")

    if device_type == DeviceType.CPU:
        intel = _INTEL_GEN_RE.search(model)
        if intel:
            digits = intel.group(1)
            gen = int(digits[:2]) if len(digits) == 5 else int(digits[:1])
            titles.append(f"Intel Core ({_ordinal(gen)} generation)")
        ryzen = _RYZEN_RE.search(model)
        if ryzen:
            titles.append(f"AMD Ryzen {ryzen.group(1)}")
    elif device_type == DeviceType.GPU:
        nvidia = _NVIDIA_RE.search(model)
        if nvidia:
            prefix = "RTX" if "rtx" in model.lower() else "GTX"
            titles.append(f"GeForce {prefix} {nvidia.group(1)} series")
        radeon = _RADEON_RE.search(model)
        if radeon:
            titles.append(f"Radeon RX {radeon.group(1)}000 series")

    unique: list[str] = []
    for title in titles:
        if title.lower() not in (u.lower() for u in unique):
            unique.append(title)
    return unique


def parse_summary(payload: dict[str, Any]) -> dict[str, str | None] | None:
    """Extract the useful fields of a page summary; None for disambiguation pages."""
    if payload.get("type") == "disambiguation":
        return None
    extract = (payload.get("extract") or "").strip()
    if not extract:
        return None
    page_url = (
        payload.get("content_urls", {}).get("desktop", {}).get("page")
    )
    image = (payload.get("originalimage") or payload.get("thumbnail") or {}).get("source")
    return {
        "title": payload.get("title"),
        "description": extract,
        "page_url": page_url,
        "image_url": image,
    }


class WikipediaSource(HttpDeviceSource):
    """General-knowledge source: descriptions, canonical pages, lead images."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        language: str = "en",
        timeout_s: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        super().__init__(client=client, timeout_s=timeout_s, user_agent=user_agent)
        self._base_url = f"https://{language}.wikipedia.org/api/rest_v1/page/summary/"

    @property
    def name(self) -> str:
        return SOURCE_NAME

    @property
    def priority(self) -> int:
        return 40

    @property
    def device_types(self) -> list[DeviceType]:
        return [DeviceType.CPU, DeviceType.GPU]

    def supports(self, device_type: DeviceType, identifier: DeviceIdentifier) -> bool:
        return device_type in (DeviceType.CPU, DeviceType.GPU) and bool(
            identifier.model.strip()
        )

    def summary_url(self, title: str) -> str:
        return self._base_url + quote(title.replace(" ", "_"), safe="()_,")

    async def fetch(
        self, device_type: DeviceType, identifier: DeviceIdentifier
    ) -> PartialDeviceInfo:
        titles = candidate_titles(device_type, identifier)
        for title in titles:
            url = self.summary_url(title)
            payload = await self.get_json(url)
            if payload is None:
                logger.debug("No Wikipedia page for %r", title)
                continue
            summary = await self.run_parser(parse_summary, payload)
            if summary is None:
                logger.debug("Wikipedia page %r is not usable", title)
                continue
            return self._to_partial(summary, url)

        raise self._error("no_match", f"no Wikipedia page among {titles}")

    def _to_partial(self, summary: dict[str, str | None], api_url: str) -> PartialDeviceInfo:
        image_url = summary["image_url"]
        gallery = (
            [ImageEntry(url=image_url, image_type=ImageType.PRODUCT, description=summary["title"])]
            if image_url
            else []
        )
        return PartialDeviceInfo(
            description=summary["description"],
            product_page=summary["page_url"],
            image_url=image_url,
            image_gallery=gallery,
            source_name=SOURCE_NAME,
            source_url=summary["page_url"] or api_url,
            confidence=CONFIDENCE,
        )
