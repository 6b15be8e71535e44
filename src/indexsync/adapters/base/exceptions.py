"""Error taxonomy shared by the transport adapters and the sync core."""

from __future__ import annotations

from typing import Any


class IndexSyncError(Exception):
    """Base exception for all indexsync errors."""


class AdapterError(IndexSyncError):
    """Base exception for errors talking to the search service."""


class TransientTransportError(AdapterError):
    """Connection failure, timeout, or 5xx response.

    Retried by ``RequestBackoff``; only surfaces once a configured attempt
    ceiling has been reached.
    """

    def __init__(self, message: str, *, status_code: int | None = None, attempts: int = 0) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.attempts = attempts


class ClientRequestError(AdapterError):
    """Non-2xx response below 500 (4xx, or an unfollowed 3xx). Never retried."""

    def __init__(self, message: str, *, status_code: int, body: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ConfigurationError(IndexSyncError):
    """Raised when a required connection option is missing or invalid."""
