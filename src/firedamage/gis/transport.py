"""HTTP transport used for every ArcGIS request."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol, runtime_checkable

import httpx

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """Network failure or a body that is not valid JSON."""


class TransportStatusError(TransportError):
    """The server answered with a non-2xx status."""

    def __init__(self, url: str, status_code: int) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(f"HTTP {status_code} from {url}")


class TransportTimeout(TransportError):
    """The request did not complete before its deadline and was cancelled."""

    def __init__(self, url: str, timeout: float | None) -> None:
        self.url = url
        self.timeout = timeout
        super().__init__(f"Request to {url} timed out after {timeout}s")


@runtime_checkable
class Transport(Protocol):
    """Issues GET requests and returns parsed JSON bodies."""

    async def get_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> Any: ...

    async def aclose(self) -> None: ...


class HttpxTransport:
    """Transport backed by a shared ``httpx.AsyncClient``.

    ``timeout`` on a call is a deadline for that call alone: the request
    task is cancelled when it expires.
    """

    def __init__(
        self,
        timeout_seconds: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._http = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_seconds))

    async def get_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> Any:
        try:
            async with asyncio.timeout(timeout):
                resp = await self._http.get(url, params=params)
        except TimeoutError as exc:
            raise TransportTimeout(url, timeout) from exc
        except httpx.TimeoutException as exc:
            raise TransportTimeout(url, timeout) from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"Request to {url} failed: {exc}") from exc

        if not resp.is_success:
            raise TransportStatusError(url, resp.status_code)
        try:
            return resp.json()
        except ValueError as exc:
            raise TransportError(f"Malformed JSON from {url}") from exc

    async def aclose(self) -> None:
        await self._http.aclose()
