# tests/unit/sources/test_wikipedia_source.py — v1
"""Tests for sources/wikipedia_source.py — REST page summaries via MockTransport."""

from __future__ import annotations

import httpx
import pytest

from hwenrich.core.errors import SourceError
from hwenrich.core.models import DeviceIdentifier, DeviceType
from hwenrich.sources.wikipedia_source import (
    CONFIDENCE,
    WikipediaSource,
    candidate_titles,
    parse_summary,
)


def _summary(title: str, extract: str = "A desktop processor.", kind: str = "standard") -> dict:
    slug = title.replace(" ", "_")
    return {
        "type": kind,
        "title": title,
        "extract": extract,
        "content_urls": {"desktop": {"page": f"https://en.wikipedia.org/wiki/{slug}"}},
        "originalimage": {"source": f"https://upload.wikimedia.org/{slug}.jpg"},
    }


def _client(pages: dict[str, httpx.Response]) -> tuple[httpx.AsyncClient, list[str]]:
    requested: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        slug = request.url.path.rsplit("/", 1)[-1]
        requested.append(slug)
        return pages.get(slug, httpx.Response(404))

    return httpx.AsyncClient(transport=httpx.MockTransport(handler)), requested


class TestCandidateTitles:
    def test_intel_generation(self, cpu_identifier):
        assert candidate_titles(DeviceType.CPU, cpu_identifier) == [
            "Intel Core i9-14900K",
            "Intel Core (14th generation)",
        ]

    def test_model_already_prefixed(self):
        ident = DeviceIdentifier(manufacturer="AMD", model="AMD Ryzen 9 7950X")
        assert candidate_titles(DeviceType.CPU, ident) == ["AMD Ryzen 9 7950X", "AMD Ryzen 9"]

    def test_nvidia_series(self):
        ident = DeviceIdentifier(manufacturer="NVIDIA", model="GeForce RTX 4090")
        assert candidate_titles(DeviceType.GPU, ident) == [
            "NVIDIA GeForce RTX 4090",
            "GeForce RTX 40 series",
        ]

    def test_radeon_series(self):
        ident = DeviceIdentifier(manufacturer="AMD", model="Radeon RX 7900 XTX")
        assert candidate_titles(DeviceType.GPU, ident)[-1] == "Radeon RX 7000 series"

    def test_duplicates_removed(self):
        ident = DeviceIdentifier(manufacturer="AMD", model="Ryzen 9")
        assert candidate_titles(DeviceType.CPU, ident) == ["AMD Ryzen 9"]


class TestParseSummary:
    def test_standard_page(self):
        parsed = parse_summary(_summary("Raptor Lake"))
        assert parsed["description"] == "A desktop processor."
        assert parsed["page_url"] == "https://en.wikipedia.org/wiki/Raptor_Lake"
        assert parsed["image_url"] == "https://upload.wikimedia.org/Raptor_Lake.jpg"

    def test_disambiguation_is_rejected(self):
        assert parse_summary(_summary("Core", kind="disambiguation")) is None

    def test_empty_extract_is_rejected(self):
        assert parse_summary(_summary("Core", extract="  ")) is None

    def test_thumbnail_fallback(self):
        payload = _summary("X")
        del payload["originalimage"]
        payload["thumbnail"] = {"source": "https://upload.wikimedia.org/thumb.jpg"}
        assert parse_summary(payload)["image_url"] == "https://upload.wikimedia.org/thumb.jpg"


class TestWikipediaSource:
    def test_supports_cpu_and_gpu_only(self, cpu_identifier):
        source = WikipediaSource()
        assert source.supports(DeviceType.CPU, cpu_identifier)
        assert source.supports(DeviceType.GPU, cpu_identifier)
        assert not source.supports(DeviceType.STORAGE, cpu_identifier)

    def test_summary_url(self):
        source = WikipediaSource(language="de")
        assert source.summary_url("Intel Core (14th generation)") == (
            "https://de.wikipedia.org/api/rest_v1/page/summary/Intel_Core_(14th_generation)"
        )

    @pytest.mark.asyncio
    async def test_exact_page(self, cpu_identifier):
        client, requested = _client(
            {"Intel_Core_i9-14900K": httpx.Response(200, json=_summary("Intel Core i9-14900K"))}
        )
        source = WikipediaSource(client=client)
        partial = await source.fetch(DeviceType.CPU, cpu_identifier)
        assert partial.confidence == CONFIDENCE
        assert partial.specs == {}
        assert partial.product_page == "https://en.wikipedia.org/wiki/Intel_Core_i9-14900K"
        assert partial.source_url == partial.product_page
        assert partial.image_url == "https://upload.wikimedia.org/Intel_Core_i9-14900K.jpg"
        assert [g.url for g in partial.image_gallery] == [partial.image_url]
        assert requested == ["Intel_Core_i9-14900K"]
        await client.aclose()

    @pytest.mark.asyncio
    async def test_falls_back_to_family_page(self, cpu_identifier):
        client, requested = _client(
            {
                "Intel_Core_(14th_generation)": httpx.Response(
                    200, json=_summary("Raptor Lake")
                )
            }
        )
        partial = await WikipediaSource(client=client).fetch(DeviceType.CPU, cpu_identifier)
        assert partial.product_page == "https://en.wikipedia.org/wiki/Raptor_Lake"
        assert requested == ["Intel_Core_i9-14900K", "Intel_Core_(14th_generation)"]
        await client.aclose()

    @pytest.mark.asyncio
    async def test_disambiguation_skipped(self, cpu_identifier):
        client, requested = _client(
            {
                "Intel_Core_i9-14900K": httpx.Response(
                    200, json=_summary("Core", kind="disambiguation")
                ),
                "Intel_Core_(14th_generation)": httpx.Response(
                    200, json=_summary("Raptor Lake")
                ),
            }
        )
        partial = await WikipediaSource(client=client).fetch(DeviceType.CPU, cpu_identifier)
        assert partial.description == "A desktop processor."
        assert partial.product_page.endswith("Raptor_Lake")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_no_page_is_no_match(self, cpu_identifier):
        client, requested = _client({})
        with pytest.raises(SourceError) as exc_info:
            await WikipediaSource(client=client).fetch(DeviceType.CPU, cpu_identifier)
        assert exc_info.value.kind == "no_match"
        assert exc_info.value.source_name == "Wikipedia"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_server_error_is_network(self, cpu_identifier):
        client, requested = _client({"Intel_Core_i9-14900K": httpx.Response(503)})
        with pytest.raises(SourceError) as exc_info:
            await WikipediaSource(client=client).fetch(DeviceType.CPU, cpu_identifier)
        assert exc_info.value.kind == "network"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_injected_client_not_closed(self):
        client, requested = _client({})
        source = WikipediaSource(client=client)
        await source.aclose()
        assert not client.is_closed
        await client.aclose()
