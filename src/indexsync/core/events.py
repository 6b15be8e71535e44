"""Record notifications — Out-of-band results of per-record index operations."""

from __future__ import annotations

import contextlib
import logging
from collections import defaultdict
from collections.abc import Callable
from enum import Enum
from typing import Any

from indexsync.models.record import PrimaryRecord

logger = logging.getLogger(__name__)


class IndexEvent(str, Enum):
    """Notifications emitted per record operation."""

    INDEXED = "indexed"
    UNINDEXED = "unindexed"
    ERROR = "error"


Listener = Callable[[PrimaryRecord, Any], None]
"""Called with the record and the event payload (response body or ``IndexingError``)."""


class RecordEvents:
    """Observer registry for record notifications.

    Listeners run synchronously in the emitting task. A listener that raises
    is logged and skipped; it never affects other listeners or the operation
    that emitted the event.

    Example:
        >>> events = RecordEvents()
        >>> events.on(IndexEvent.ERROR, lambda record, err: print(record.id, err))
    """

    def __init__(self) -> None:
        self._listeners: dict[IndexEvent, list[Listener]] = defaultdict(list)

    def on(self, event: IndexEvent | str, listener: Listener) -> None:
        self._listeners[IndexEvent(event)].append(listener)

    def off(self, event: IndexEvent | str, listener: Listener) -> None:
        with contextlib.suppress(ValueError):
            self._listeners[IndexEvent(event)].remove(listener)

    def listeners(self, event: IndexEvent | str) -> list[Listener]:
        return list(self._listeners.get(IndexEvent(event), ()))

    def emit(self, event: IndexEvent | str, record: PrimaryRecord, payload: Any = None) -> None:
        event = IndexEvent(event)
        for listener in self.listeners(event):
            try:
                listener(record, payload)
            except Exception:
                logger.exception("Listener for '%s' failed on record %r", event.value, record.id)
