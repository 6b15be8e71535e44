"""indexsync Engine — Wires the sync core together for one process.

    Settings ─▶ ConfigRegistry ─────────┐
    RequestExecutor ─▶ RequestBackoff ──┼─▶ SearchGateway
                                        └─▶ IndexClient ─▶ SyncEngine

Create one engine at process start, ``initialize()`` it, then bind each
primary-store collection with ``collection()``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from indexsync.adapters.http.adapter import HttpxExecutor
from indexsync.config.registry import ConfigRegistry, OptionsLike
from indexsync.config.settings import Settings
from indexsync.core.backoff import RequestBackoff
from indexsync.core.client import IndexClient
from indexsync.core.collection import IndexedCollection
from indexsync.core.gateway import SearchGateway
from indexsync.core.sync import SyncEngine
from indexsync.models.query import QueryDescriptor
from indexsync.models.response import SearchResult
from indexsync.models.schema import SchemaDescriptor

if TYPE_CHECKING:
    from indexsync.adapters.base.adapter import RequestExecutor
    from indexsync.core.backoff import Sleep

logger = logging.getLogger(__name__)


class IndexSyncEngine:
    """Process-wide entry point.

    Attributes:
        settings: Application configuration.
        registry: Process-wide connection defaults.
        executor: Transport to the search service.
        client: Per-record index client.
        gateway: Search gateway.
        sync_engine: Full-collection resync engine.

    Example:
        >>> engine = IndexSyncEngine(Settings())
        >>> await engine.initialize()
        >>> users = engine.collection("users", SchemaDescriptor.from_mapping({"name": str}))
        >>> users.attach(user_store)
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        executor: RequestExecutor | None = None,
        registry: ConfigRegistry | None = None,
        sleep: Sleep | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.registry = registry or ConfigRegistry.from_settings(self.settings.connection)
        self.executor = executor or HttpxExecutor(timeout=self.settings.retry.timeout)

        backoff_kwargs: dict[str, Any] = {}
        if sleep is not None:
            backoff_kwargs["sleep"] = sleep
        self.backoff = RequestBackoff(self.executor, self.settings.retry.to_policy(), **backoff_kwargs)

        self.client = IndexClient(self.backoff)
        self.gateway = SearchGateway(self.backoff, self.registry, params=self.settings.search.url_params)
        self.sync_engine = SyncEngine(
            self.client,
            max_in_flight=self.settings.sync.max_in_flight,
            max_error_samples=self.settings.sync.max_error_samples,
        )
        self._collections: dict[str, IndexedCollection] = {}

    async def __aenter__(self) -> IndexSyncEngine:
        await self.initialize()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.shutdown()

    async def initialize(self) -> None:
        """Open the transport."""
        await self.executor.initialize()
        logger.info("indexsync engine initialized (executor=%s)", self.executor.name)

    async def shutdown(self) -> None:
        """Wait for background index operations, then close the transport."""
        if self.client.pending:
            logger.info("Waiting for %d pending index operation(s)", self.client.pending)
        await self.client.drain()
        await self.executor.shutdown()
        logger.info("indexsync engine shut down")

    def configure(self, options: OptionsLike) -> None:
        """Update the process-wide connection defaults."""
        self.registry.configure(options)

    def collection(
        self,
        name: str,
        schema: SchemaDescriptor,
        *,
        options: OptionsLike | None = None,
        type_name: str | None = None,
    ) -> IndexedCollection:
        """Bind a collection to its search index.

        Binding the same name twice replaces the earlier binding.
        """
        if name in self._collections:
            logger.warning("Rebinding indexed collection: %s", name)
        collection = IndexedCollection(
            name,
            schema,
            registry=self.registry,
            client=self.client,
            gateway=self.gateway,
            sync_engine=self.sync_engine,
            options=options,
            type_name=type_name,
        )
        self._collections[name] = collection
        return collection

    def get(self, name: str) -> IndexedCollection:
        """Return a bound collection.

        Raises:
            KeyError: If no collection is bound under ``name``.
        """
        return self._collections[name]

    @property
    def collections(self) -> list[str]:
        return list(self._collections)

    async def search(self, query: QueryDescriptor | None = None, options: OptionsLike | None = None) -> SearchResult:
        """Search one, many, or all collections (see ``SearchGateway.search``)."""
        return await self.gateway.search(query or QueryDescriptor(), options)
