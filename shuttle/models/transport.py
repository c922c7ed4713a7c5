"""HTTP transport for chat completion APIs.

``HTTPConnectionPool`` keeps one shared ``httpx.AsyncClient`` so repeated
completions reuse connections. ``HTTPTransport`` posts JSON bodies through it
and turns every failure into a ``TransportError`` carrying the HTTP status,
the provider's error code and its raw error detail.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

import httpx

from ..errors import TransportError

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Anything that can POST a completion payload and return decoded JSON."""

    async def post(
        self,
        path: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]: ...


class HTTPConnectionPool:
    """Manages a shared httpx.AsyncClient for efficient connection reuse."""

    def __init__(
        self,
        max_connections: int = 100,
        max_keepalive_connections: int = 20,
        keepalive_expiry: float = 5.0,
        timeout: float = 30.0,
        http2: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the connection pool.

        Args:
            max_connections: Maximum number of connections to maintain
            max_keepalive_connections: Max idle connections to keep alive
            keepalive_expiry: How long to keep idle connections (seconds)
            timeout: Default timeout for requests (seconds)
            http2: Negotiate HTTP/2 where the server supports it
            transport: Custom httpx transport, e.g. ``httpx.MockTransport``
        """
        self.max_connections = max_connections
        self.max_keepalive_connections = max_keepalive_connections
        self.keepalive_expiry = keepalive_expiry
        self.timeout = timeout
        self.http2 = http2
        self._transport = transport

        self.limits = httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max_keepalive_connections,
            keepalive_expiry=keepalive_expiry,
        )
        self.timeout_config = httpx.Timeout(
            timeout=timeout,
            connect=5.0,
            read=timeout,
            write=10.0,
        )

        self._client: httpx.AsyncClient | None = None
        self._lock = asyncio.Lock()

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            async with self._lock:
                # Double-check after acquiring lock
                if self._client is None:
                    self._client = httpx.AsyncClient(
                        limits=self.limits,
                        timeout=self.timeout_config,
                        http2=self.http2,
                        transport=self._transport,
                    )
        return self._client

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        client = await self._ensure_client()
        return await client.request(method, url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> HTTPConnectionPool:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def get_stats(self) -> dict[str, Any]:
        if not self._client:
            return {"active": False, "connections": 0}
        return {
            "active": True,
            "max_connections": self.max_connections,
            "max_keepalive": self.max_keepalive_connections,
            "keepalive_expiry": self.keepalive_expiry,
        }


class HTTPTransport:
    """Posts completion payloads to ``base_url`` through a connection pool."""

    def __init__(
        self,
        base_url: str,
        pool: HTTPConnectionPool | None = None,
        headers: dict[str, str] | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.pool = pool or HTTPConnectionPool()
        self.headers = headers or {}

    async def post(
        self,
        path: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        url = f"{self.base_url}/{path.lstrip('/')}"
        merged = {"Content-Type": "application/json", **self.headers, **(headers or {})}

        try:
            response = await self.pool.post(url, json=payload, headers=merged)
        except httpx.TimeoutException as e:
            raise TransportError(f"Request timeout for {url}", code="timeout") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Error calling {url}: {e}", code="network_error") from e

        if not response.is_success:
            raise _error_from_response(response)

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                "Response body is not valid JSON",
                status=response.status_code,
                code="invalid_response_body",
                error={"body": response.text[:500]},
            ) from e

    async def aclose(self) -> None:
        await self.pool.close()


def _error_from_response(response: httpx.Response) -> TransportError:
    """Decode an OpenAI-style ``{"error": {...}}`` body into a TransportError."""
    try:
        body = response.json()
    except ValueError:
        body = None

    detail: dict[str, Any] = {}
    if isinstance(body, dict):
        error = body.get("error", body)
        if isinstance(error, dict):
            detail = error
        elif error is not None:
            detail = {"message": str(error)}
    elif response.text:
        detail = {"message": response.text[:500]}

    code = detail.get("code") or detail.get("type")
    message = detail.get("message") or response.reason_phrase or "Request failed"
    logger.debug(f"API error ({response.status_code}): {message}")
    return TransportError(
        f"API error ({response.status_code}): {message}",
        status=response.status_code,
        code=str(code) if code is not None else None,
        error=detail,
    )
