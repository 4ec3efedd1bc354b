# src/sources/base_source.py — v1
"""Abstract device source interface and the shared HTTP source base.

A source answers two questions: "can you say anything about this
(type, identifier)?" (``supports``, cheap and synchronous) and "what do
you know?" (``fetch``, asynchronous, may hit the network). ``fetch``
reports every failure as a :class:`SourceError`; the fan-out turns
anything else into one as well.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, TypeVar

import httpx

from hwenrich.core.errors import SourceError
from hwenrich.core.models import DeviceIdentifier, DeviceType, PartialDeviceInfo

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)


class BaseDeviceSource(ABC):
    """Unified interface for device information sources."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable source name (e.g. "Wikipedia")."""

    @property
    def priority(self) -> int:
        """Lower is preferred. Informational only: confidence decides merges."""
        return 100

    @property
    def device_types(self) -> list[DeviceType]:
        """Device types this source can ever answer for (for listings)."""
        return list(DeviceType)

    @abstractmethod
    def supports(self, device_type: DeviceType, identifier: DeviceIdentifier) -> bool:
        """Whether this source should take part in the fan-out."""

    @abstractmethod
    async def fetch(
        self, device_type: DeviceType, identifier: DeviceIdentifier
    ) -> PartialDeviceInfo:
        """Fetch a partial answer.

        Raises:
            SourceError: On network, parse or no-match failure.
        """

    async def aclose(self) -> None:
        """Release any held resources. Default: nothing to release."""

    def _error(self, kind: Any, message: str) -> SourceError:
        return SourceError(self.name, kind, message)


class HttpDeviceSource(BaseDeviceSource):
    """Base for sources backed by an HTTP API or web page.

    Owns a lazily created ``httpx.AsyncClient``. Parsing that may take
    tens of milliseconds should go through :meth:`run_parser` so it runs
    on a worker thread instead of the event loop.

    Args:
        client: Pre-built client (tests inject one with a MockTransport).
        timeout_s: Per-request timeout.
        user_agent: User-Agent header value.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout_s: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self._client = client
        self._owns_client = client is None
        self._timeout_s = timeout_s
        self._user_agent = user_agent

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout_s,
                follow_redirects=True,
                headers={
                    "User-Agent": self._user_agent,
                    "Accept-Language": "en-US,en;q=0.9",
                },
            )
        return self._client

    async def get_json(self, url: str, **kwargs: Any) -> Any | None:
        """GET ``url`` and decode JSON. Returns None on 404.

        Raises:
            SourceError: network failure, non-2xx status, or invalid JSON.
        """
        response = await self._get(url, **kwargs)
        if response.status_code == 404:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise self._error("parse", f"invalid JSON from {url}: {exc}") from exc

    async def run_parser(self, fn: Callable[..., T], *args: Any) -> T:
        """Run a CPU-bound parser off the event loop."""
        try:
            return await asyncio.to_thread(fn, *args)
        except SourceError:
            raise
        except Exception as exc:
            raise self._error("parse", str(exc)) from exc

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _get(self, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self.client.get(url, **kwargs)
        except httpx.TimeoutException as exc:
            raise self._error("timeout", f"GET {url} timed out") from exc
        except httpx.HTTPError as exc:
            raise self._error("network", f"GET {url} failed: {exc}") from exc

        if response.status_code != 404 and not response.is_success:
            raise self._error("network", f"GET {url} returned HTTP {response.status_code}")
        logger.debug("%s: GET %s -> %d", self.name, url, response.status_code)
        return response
