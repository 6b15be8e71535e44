"""Base request executor — Abstract interface for search service transports.

The sync core never talks HTTP directly. Every call to the search service is
described as a ``RequestDescriptor`` and handed to a ``RequestExecutor``,
which is responsible for:
  1. Performing exactly one HTTP exchange per ``send()`` call
  2. Decoding the response body
  3. Raising ``TransientTransportError`` for connection failures and timeouts

Status-code classification (retry vs. fail) belongs to ``RequestBackoff``,
not to the executor.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field


class RequestDescriptor(BaseModel):
    """One logical HTTP call against the search service."""

    method: str = Field(description="HTTP method: GET, PUT, DELETE, ...")
    url: str = Field(description="Absolute request URL")
    body: Any = Field(default=None, description="JSON-serializable request body")
    tolerated_statuses: frozenset[int] = Field(
        default_factory=frozenset,
        description="Non-2xx statuses that count as success (e.g. 404 on delete)",
    )


class TransportResponse(BaseModel):
    """Decoded response from the search service."""

    status_code: int = Field(description="HTTP status code")
    body: Any = Field(default=None, description="Decoded JSON body, or raw text if not JSON")

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


class RequestExecutor(ABC):
    """Abstract base class for request executors.

    Executors should be safe to share between concurrent tasks; the sync
    engine issues many ``send()`` calls at once.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique executor name (e.g., 'http')."""

    @abstractmethod
    async def initialize(self) -> None:
        """Open connections or pools. Called once before first use."""

    @abstractmethod
    async def shutdown(self) -> None:
        """Release connections. Called once at process shutdown."""

    @abstractmethod
    async def send(self, request: RequestDescriptor) -> TransportResponse:
        """Perform a single HTTP exchange.

        Args:
            request: The request to send.

        Returns:
            The response, whatever its status code.

        Raises:
            TransientTransportError: On connection failure or timeout.
        """
