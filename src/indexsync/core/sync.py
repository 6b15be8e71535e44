"""Sync Engine — Full-collection resynchronization into the search index.

A resync streams every record of a collection from the primary store and
writes each one through the same serialize-and-PUT path as a single-record
index operation:

  cursor ──(sequential read)──▶ record ──▶ [Semaphore(max_in_flight)] ──▶ PUT

Per-record failures are counted and sampled; they never stop the job. Only a
failure of the cursor itself, or an explicit ``abort()``, makes the job
``failed``. Writes already in flight are always allowed to finish.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterable, AsyncIterator, Callable, Iterable
from typing import Any, Protocol, runtime_checkable

from indexsync.adapters.base.exceptions import IndexSyncError
from indexsync.core.client import IndexClient
from indexsync.models.job import RecordFailure, SyncProgress, SyncState, SyncSummary
from indexsync.models.options import ConnectionOptions
from indexsync.models.record import PrimaryRecord

logger = logging.getLogger(__name__)

Cursor = Iterable[PrimaryRecord] | AsyncIterable[PrimaryRecord]


@runtime_checkable
class RecordSource(Protocol):
    """Anything that can open a cursor over a collection's records.

    The cursor is finite and single-pass. Synchronous iterables are read on
    the event loop; blocking drivers should expose an async iterator.
    """

    def cursor(self) -> Cursor: ...


class SyncJob:
    """Handle on one running (or finished) resync.

    Await the job (or ``wait()``) to get its ``SyncSummary``.
    """

    def __init__(self, collection: str, *, max_error_samples: int = 50) -> None:
        self.collection = collection
        self.state = SyncState.PENDING
        self.progress = SyncProgress()
        self.error: str | None = None
        self.failures: list[RecordFailure] = []
        self.aborted = False
        self._max_error_samples = max_error_samples
        self._started_at: float | None = None
        self._finished_at: float | None = None
        self._done = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    def __repr__(self) -> str:
        return (
            f"<SyncJob {self.collection} {self.state.value} "
            f"scanned={self.progress.scanned} indexed={self.progress.indexed} failed={self.progress.failed}>"
        )

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def abort(self, reason: str = "aborted by caller") -> None:
        """Stop issuing new writes. In-flight writes still finish."""
        if self.done or self.aborted:
            return
        self.aborted = True
        self.error = reason
        logger.info("Resync of '%s' aborting: %s", self.collection, reason)

    async def wait(self) -> SyncSummary:
        """Wait for the job to finish and return its summary."""
        await self._done.wait()
        return self.summary()

    def __await__(self):  # type: ignore[no-untyped-def]
        return self.wait().__await__()

    def summary(self) -> SyncSummary:
        """Snapshot of the job's state and counters."""
        end = self._finished_at or time.monotonic()
        duration_ms = int((end - self._started_at) * 1000) if self._started_at else 0
        return SyncSummary(
            collection=self.collection,
            state=self.state,
            progress=self.progress.model_copy(),
            aborted=self.aborted,
            error=self.error,
            failures=list(self.failures),
            duration_ms=duration_ms,
        )

    # ── Internal bookkeeping (driven by SyncEngine) ──────────────────────

    def _start(self) -> None:
        self.state = SyncState.RUNNING
        self._started_at = time.monotonic()

    def _record_success(self) -> None:
        self.progress.indexed += 1

    def _record_failure(self, record: PrimaryRecord, error: BaseException) -> None:
        self.progress.failed += 1
        if len(self.failures) < self._max_error_samples:
            self.failures.append(
                RecordFailure(
                    record_id=record.document_id,
                    error_type=type(error).__name__,
                    message=str(error),
                )
            )

    def _finish(self, state: SyncState) -> None:
        self.state = state
        self._finished_at = time.monotonic()
        self._done.set()


class SyncEngine:
    """Drives ``IndexClient`` over every record of a collection.

    Args:
        client: Client used for each document write.
        max_in_flight: Maximum concurrent write requests per job.
        max_error_samples: Per-record failures kept in each job summary.
    """

    def __init__(self, client: IndexClient, *, max_in_flight: int = 10, max_error_samples: int = 50) -> None:
        if max_in_flight < 1:
            raise ValueError("max_in_flight must be at least 1")
        self.client = client
        self.max_in_flight = max_in_flight
        self.max_error_samples = max_error_samples

    def resync(
        self,
        source: RecordSource,
        fields: Iterable[str],
        options: ConnectionOptions,
        *,
        on_complete: Callable[[SyncJob], Any] | None = None,
    ) -> SyncJob:
        """Start resyncing ``source`` into the index named by ``options``.

        Returns immediately with a pending job; must be called from a running
        event loop.

        Args:
            source: The collection's record source.
            fields: Indexed field names.
            options: Resolved connection options (index and type set).
            on_complete: Called once with the job when it finishes.
        """
        job = SyncJob(options.index or "?", max_error_samples=self.max_error_samples)
        job._task = asyncio.get_running_loop().create_task(
            self._run(job, source, frozenset(fields), options, on_complete)
        )
        return job

    async def _run(
        self,
        job: SyncJob,
        source: RecordSource,
        fields: frozenset[str],
        options: ConnectionOptions,
        on_complete: Callable[[SyncJob], Any] | None,
    ) -> None:
        job._start()
        logger.info("Resync of '%s' started (max_in_flight=%d)", job.collection, self.max_in_flight)

        semaphore = asyncio.Semaphore(self.max_in_flight)
        in_flight: set[asyncio.Task[None]] = set()
        state = SyncState.COMPLETED

        try:
            async for record in _iterate(source.cursor()):
                if job.aborted:
                    break
                await semaphore.acquire()
                if job.aborted:
                    semaphore.release()
                    break
                # Only records whose write was launched count as scanned.
                job.progress.scanned += 1
                task = asyncio.ensure_future(self._write(job, record, fields, options, semaphore))
                in_flight.add(task)
                task.add_done_callback(in_flight.discard)
        except asyncio.CancelledError:
            job.aborted = True
            job.error = job.error or "resync task cancelled"
            raise
        except Exception as e:
            state = SyncState.FAILED
            job.error = f"Record cursor failed: {e}"
            logger.error("Resync of '%s' aborted, cursor failed: %s", job.collection, e, exc_info=True)
        finally:
            if in_flight:
                await asyncio.gather(*list(in_flight), return_exceptions=True)
            self._complete(job, SyncState.FAILED if job.aborted else state, on_complete)

    def _complete(self, job: SyncJob, state: SyncState, on_complete: Callable[[SyncJob], Any] | None) -> None:
        job._finish(state)
        logger.info(
            "Resync of '%s' %s: scanned=%d indexed=%d failed=%d",
            job.collection,
            state.value,
            job.progress.scanned,
            job.progress.indexed,
            job.progress.failed,
        )
        if on_complete is not None:
            try:
                on_complete(job)
            except Exception:
                logger.exception("Resync completion callback failed for '%s'", job.collection)

    async def _write(
        self,
        job: SyncJob,
        record: PrimaryRecord,
        fields: frozenset[str],
        options: ConnectionOptions,
        semaphore: asyncio.Semaphore,
    ) -> None:
        try:
            await self.client.write_document(record, fields, options)
        except IndexSyncError as e:
            logger.warning("Resync of '%s': record %r failed: %s", job.collection, record.id, e)
            job._record_failure(record, e)
        except Exception as e:
            logger.exception("Resync of '%s': unexpected error on record %r", job.collection, record.id)
            job._record_failure(record, e)
        else:
            job._record_success()
        finally:
            semaphore.release()


async def _iterate(cursor: Cursor) -> AsyncIterator[PrimaryRecord]:
    if isinstance(cursor, AsyncIterable):
        async for record in cursor:
            yield record
    else:
        for record in cursor:
            yield record
