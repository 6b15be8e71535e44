"""HTTP executor — Talks to Elasticsearch-compatible REST APIs via ``httpx``.

Usage::

    executor = HttpxExecutor(timeout=10.0)
    await executor.initialize()
    response = await executor.send(
        RequestDescriptor(method="PUT", url="http://localhost:9200/users/user/42", body={"name": "Bob"})
    )
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from indexsync.adapters.base.adapter import RequestDescriptor, RequestExecutor, TransportResponse
from indexsync.adapters.base.exceptions import TransientTransportError

logger = logging.getLogger(__name__)


class HttpxExecutor(RequestExecutor):
    """Request executor backed by ``httpx.AsyncClient``.

    Keep-alive pooling is off by default so a stale pooled socket can never
    turn a healthy cluster into a stream of connection errors.

    Args:
        timeout: Per-request timeout in seconds.
        pool_connections: Keep idle connections alive between requests.
        **httpx_kwargs: Additional keyword arguments forwarded to ``httpx.AsyncClient``.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        *,
        pool_connections: bool = False,
        **httpx_kwargs: Any,
    ) -> None:
        self._timeout = timeout
        self._pool_connections = pool_connections
        self._extra_kwargs = httpx_kwargs
        self._client: httpx.AsyncClient | None = None

    @property
    def name(self) -> str:
        return "http"

    async def __aenter__(self) -> HttpxExecutor:
        await self.initialize()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.shutdown()

    async def initialize(self) -> None:
        """Create the underlying ``httpx.AsyncClient``."""
        if self._client is not None:
            return
        limits = None if self._pool_connections else httpx.Limits(max_keepalive_connections=0)
        client_kwargs: dict[str, Any] = {"timeout": httpx.Timeout(self._timeout)}
        if limits is not None:
            client_kwargs["limits"] = limits
        client_kwargs.update(self._extra_kwargs)
        self._client = httpx.AsyncClient(**client_kwargs)
        logger.debug("HTTP executor initialized (timeout=%.1fs)", self._timeout)

    async def shutdown(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def send(self, request: RequestDescriptor) -> TransportResponse:
        """Send one request; connection errors and timeouts become transient errors."""
        if self._client is None:
            await self.initialize()
        assert self._client is not None

        try:
            resp = await self._client.request(
                request.method,
                request.url,
                json=request.body,
            )
        except httpx.TimeoutException as e:
            raise TransientTransportError(f"{request.method} {request.url} timed out: {e}") from e
        except httpx.TransportError as e:
            raise TransientTransportError(f"{request.method} {request.url} failed: {e}") from e

        return TransportResponse(status_code=resp.status_code, body=self._decode(resp))

    @staticmethod
    def _decode(resp: httpx.Response) -> Any:
        """Decode a JSON body, falling back to raw text."""
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            return resp.text
