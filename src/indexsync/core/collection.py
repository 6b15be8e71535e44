"""Indexed collections — Bind a primary-store collection to its search index.

The primary store notifies an ``IndexedCollection`` after each committed
write through the ``LifecycleListener`` interface; the collection turns those
notifications into background index/unindex operations. Results come back
through ``IndexedCollection.events``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, Protocol, runtime_checkable

from indexsync.adapters.base.exceptions import IndexSyncError
from indexsync.config.registry import ConfigRegistry, OptionsLike, as_options
from indexsync.core.client import IndexClient
from indexsync.core.events import IndexEvent, RecordEvents
from indexsync.core.exceptions import IndexingError
from indexsync.core.fields import select_fields
from indexsync.core.gateway import SearchGateway
from indexsync.core.sync import RecordSource, SyncEngine, SyncJob
from indexsync.models.options import ConnectionOptions
from indexsync.models.query import QueryDescriptor
from indexsync.models.record import PrimaryRecord
from indexsync.models.response import SearchResult
from indexsync.models.schema import SchemaDescriptor

logger = logging.getLogger(__name__)


@runtime_checkable
class LifecycleListener(Protocol):
    """Called by the primary store after a write has committed."""

    def on_record_saved(self, record: PrimaryRecord, schema: SchemaDescriptor) -> None: ...

    def on_record_removed(self, record: PrimaryRecord, schema: SchemaDescriptor) -> None: ...


@runtime_checkable
class RecordStore(RecordSource, Protocol):
    """The primary-store side of a collection."""

    def add_listener(self, listener: LifecycleListener) -> None: ...


class IndexedCollection:
    """A primary-store collection kept in sync with a search index.

    Connection options are resolved on every operation: per-collection
    overrides first, then the registry defaults. Unless overridden, the index
    is the collection name (``{prefix}-{name}`` under a prefix) and the type
    is ``type_name`` or the collection name.

    Args:
        name: Collection name.
        schema: The collection's schema; its indexed fields are computed once.
        registry: Process-wide connection defaults.
        client: Per-record index client.
        gateway: Search gateway.
        sync_engine: Resync engine.
        options: Per-collection connection overrides.
        type_name: Document type (defaults to the collection name).
    """

    def __init__(
        self,
        name: str,
        schema: SchemaDescriptor,
        *,
        registry: ConfigRegistry,
        client: IndexClient,
        gateway: SearchGateway,
        sync_engine: SyncEngine,
        options: OptionsLike | None = None,
        type_name: str | None = None,
    ) -> None:
        self.name = name
        self.schema = schema
        self.fields = select_fields(schema)
        self.type_name = type_name or name
        self.events = RecordEvents()
        self._registry = registry
        self._client = client
        self._gateway = gateway
        self._sync_engine = sync_engine
        self._overrides = as_options(options)
        self._store: RecordStore | None = None

    def __repr__(self) -> str:
        return f"<IndexedCollection {self.name} fields={sorted(self.fields)}>"

    # ── Options ──────────────────────────────────────────────────────────

    def connection_options(self) -> ConnectionOptions:
        """Resolve the options for one operation.

        Raises:
            ConfigurationError: If host or port cannot be resolved.
        """
        resolved = self._registry.resolve(self._overrides)
        update: dict[str, Any] = {}
        if not self._overrides.index:
            update["index"] = f"{resolved.prefix}-{self.name}" if resolved.prefix else self.name
        if not self._overrides.type:
            update["type"] = self.type_name
        return resolved.model_copy(update=update)

    # ── Lifecycle hooks ──────────────────────────────────────────────────

    def attach(self, store: RecordStore) -> None:
        """Register with ``store`` for save/remove notifications."""
        store.add_listener(self)
        self._store = store

    def on_record_saved(self, record: PrimaryRecord, schema: SchemaDescriptor | None = None) -> None:
        """Index ``record`` in the background."""
        self._dispatch("index", record)

    def on_record_removed(self, record: PrimaryRecord, schema: SchemaDescriptor | None = None) -> None:
        """Unindex ``record`` in the background."""
        self._dispatch("unindex", record)

    def delete_from_index(self, record: PrimaryRecord) -> None:
        """Remove ``record`` from the index without removing it from the store.

        For soft-deleted records that stay in the primary store.
        """
        self._dispatch("unindex", record)

    def _dispatch(self, operation: str, record: PrimaryRecord) -> None:
        try:
            options = self.connection_options()
            if operation == "index":
                coro = self._client.index_record(record, self.fields, options, self.events)
            else:
                coro = self._client.unindex_record(record, options, self.events)
            self._client.spawn(coro)
        except (IndexSyncError, RuntimeError) as e:
            logger.error("Cannot %s record %r in '%s': %s", operation, record.id, self.name, e)
            error = IndexingError(
                f"Search document {operation} could not start: {e}",
                operation=operation,
                record_id=record.id,
                details=e,
            )
            error.__cause__ = e
            self.events.emit(IndexEvent.ERROR, record, error)

    # ── Direct operations ────────────────────────────────────────────────

    async def index(self, record: PrimaryRecord) -> bool:
        """Index ``record`` now and wait for the outcome (also emitted as events)."""
        return await self._client.index_record(record, self.fields, self.connection_options(), self.events)

    async def unindex(self, record: PrimaryRecord) -> bool:
        """Unindex ``record`` now and wait for the outcome (also emitted as events)."""
        return await self._client.unindex_record(record, self.connection_options(), self.events)

    async def search(self, query: QueryDescriptor | None = None) -> SearchResult:
        """Search this collection only."""
        return await self._gateway.search_collection(query or QueryDescriptor(), self.connection_options())

    def sync(self, source: RecordSource | Iterable[PrimaryRecord] | None = None, **kwargs: Any) -> SyncJob:
        """Resync the whole collection into its index.

        Args:
            source: Record source; defaults to the attached store. A plain
                iterable of records is accepted as well.
            **kwargs: Forwarded to ``SyncEngine.resync`` (e.g. ``on_complete``).

        Raises:
            ConfigurationError: If host or port cannot be resolved.
            ValueError: If no source is given and no store is attached.
        """
        if source is None:
            if self._store is None:
                raise ValueError(f"Collection '{self.name}' has no attached store to resync from")
            source = self._store
        if not isinstance(source, RecordSource):
            source = _IterableSource(source)
        return self._sync_engine.resync(source, self.fields, self.connection_options(), **kwargs)


class _IterableSource:
    def __init__(self, records: Iterable[PrimaryRecord]) -> None:
        self._records = records

    def cursor(self) -> Iterable[PrimaryRecord]:
        return self._records
