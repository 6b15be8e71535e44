"""Sync-core exceptions."""

from __future__ import annotations

from typing import Any

from indexsync.adapters.base.exceptions import IndexSyncError


class SerializationError(IndexSyncError):
    """Raised when a record field cannot be converted to a JSON value.

    Fatal for that one document: its write is never attempted.
    """

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class IndexingError(IndexSyncError):
    """Wraps the cause of a failed per-record index or unindex operation.

    This is the payload of ``error`` notifications. ``details`` holds the
    original transport, client or serialization error.
    """

    def __init__(self, message: str, *, operation: str, record_id: Any, details: BaseException | None = None) -> None:
        super().__init__(message)
        self.operation = operation
        self.record_id = record_id
        self.details = details
