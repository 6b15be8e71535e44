"""Index Client — Per-record index and unindex operations.

Two layers:
  - ``write_document`` / ``remove_document`` perform the request and raise
    on failure. The resync engine builds on these.
  - ``index_record`` / ``unindex_record`` wrap them for lifecycle hooks:
    they never raise, and report the outcome through ``RecordEvents``
    instead, because the primary-store write that triggered them has
    already committed.

``spawn()`` runs either of the latter in the background so the triggering
save or remove returns immediately.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine, Iterable
from typing import Any
from urllib.parse import quote

from indexsync.adapters.base.adapter import RequestDescriptor
from indexsync.adapters.base.exceptions import ConfigurationError, IndexSyncError
from indexsync.core.backoff import RequestBackoff
from indexsync.core.events import IndexEvent, RecordEvents
from indexsync.core.exceptions import IndexingError
from indexsync.core.serializer import build_document
from indexsync.models.options import ConnectionOptions
from indexsync.models.record import PrimaryRecord

logger = logging.getLogger(__name__)

NOT_FOUND = 404


def document_url(options: ConnectionOptions, record_id: Any) -> str:
    """``{host}:{port}/{index}/{type}/{id}`` for one document.

    The id is percent-encoded as a single path segment.
    """
    if not options.index or not options.type:
        raise ConfigurationError("Document operations need both 'index' and 'type' options")
    return f"{options.base_url}/{options.index}/{options.type}/{quote(str(record_id), safe='')}"


class IndexClient:
    """Writes and deletes single documents in the search index.

    Args:
        backoff: Retry wrapper around the request executor.
    """

    def __init__(self, backoff: RequestBackoff) -> None:
        self.backoff = backoff
        self._tasks: set[asyncio.Task[Any]] = set()

    # ── Raising operations ───────────────────────────────────────────────

    async def write_document(
        self,
        record: PrimaryRecord,
        fields: Iterable[str],
        options: ConnectionOptions,
    ) -> Any:
        """Create or replace the document for ``record``.

        Returns:
            The search service's response body.

        Raises:
            SerializationError: If the record cannot be serialized; nothing is sent.
            ClientRequestError: On a 4xx response.
            TransientTransportError: When retries are exhausted.
        """
        document = build_document(record, fields, options)
        request = RequestDescriptor(
            method="PUT",
            url=document_url(options, document.id),
            body=document.body,
        )
        response = await self.backoff.execute(request)
        logger.debug("Indexed %s/%s/%s", document.index, document.type, document.id)
        return response.body

    async def remove_document(self, record_id: Any, options: ConnectionOptions) -> Any:
        """Delete the document with id ``record_id``.

        A document that is already absent counts as removed.

        Raises:
            ClientRequestError: On a 4xx response other than 404.
            TransientTransportError: When retries are exhausted.
        """
        request = RequestDescriptor(
            method="DELETE",
            url=document_url(options, record_id),
            tolerated_statuses=frozenset({NOT_FOUND}),
        )
        response = await self.backoff.execute(request)
        if response.status_code == NOT_FOUND:
            logger.debug("Document %s/%s/%s was already absent", options.index, options.type, record_id)
        return response.body

    # ── Notifying operations ─────────────────────────────────────────────

    async def index_record(
        self,
        record: PrimaryRecord,
        fields: Iterable[str],
        options: ConnectionOptions,
        events: RecordEvents,
    ) -> bool:
        """Index ``record`` and emit ``indexed`` or ``error``.

        Returns:
            True on success.
        """
        try:
            body = await self.write_document(record, fields, options)
        except Exception as e:
            self._report(events, record, "index", "Search document indexing error", e)
            return False
        events.emit(IndexEvent.INDEXED, record, body)
        return True

    async def unindex_record(
        self,
        record: PrimaryRecord,
        options: ConnectionOptions,
        events: RecordEvents,
    ) -> bool:
        """Remove ``record`` from the index and emit ``unindexed`` or ``error``.

        Also the soft-delete path: the record may still exist in the primary
        store.

        Returns:
            True on success, including when the document was already absent.
        """
        try:
            body = await self.remove_document(record.id, options)
        except Exception as e:
            self._report(events, record, "unindex", "Search document deletion error", e)
            return False
        events.emit(IndexEvent.UNINDEXED, record, body)
        return True

    @staticmethod
    def _report(
        events: RecordEvents,
        record: PrimaryRecord,
        operation: str,
        message: str,
        cause: BaseException,
    ) -> None:
        # Unexpected errors keep their traceback in the log.
        logger.error(
            "%s for record %r: %s", message, record.id, cause, exc_info=not isinstance(cause, IndexSyncError)
        )
        error = IndexingError(f"{message}: {cause}", operation=operation, record_id=record.id, details=cause)
        error.__cause__ = cause
        events.emit(IndexEvent.ERROR, record, error)

    # ── Background scheduling ────────────────────────────────────────────

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        """Run ``coro`` in the background on the running event loop.

        The task is tracked until it finishes so that ``drain()`` can wait
        for it.

        Raises:
            RuntimeError: If called outside a running event loop.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            raise
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending(self) -> int:
        """Number of background operations still running."""
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every background operation to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
