"""Search Gateway — Fans a query out over one, many, or prefixed indices.

Target resolution (first matching rule wins):

  ========== ================ ===============================
  prefix     collections      target
  ========== ================ ===============================
  set        non-empty        ``{prefix}-{collection}`` each
  set        empty / absent   ``{prefix}*``
  unset      non-empty        collection names as given
  unset      empty / absent   ``_all``
  ========== ================ ===============================

The backing engine's response envelope is normalized into ``SearchResult``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from indexsync.adapters.base.adapter import RequestDescriptor
from indexsync.adapters.base.exceptions import ConfigurationError
from indexsync.config.registry import ConfigRegistry, OptionsLike
from indexsync.core.backoff import RequestBackoff
from indexsync.models.options import ConnectionOptions
from indexsync.models.query import QueryDescriptor
from indexsync.models.response import SearchHit, SearchResult

logger = logging.getLogger(__name__)

ALL_INDICES = "_all"
SEARCH_PARAMS = "search_type=dfs_query_then_fetch&preference=_primary_first"


def resolve_targets(collections: Sequence[str] | None, prefix: str | None) -> list[str]:
    """Resolve the index names a multi-collection search is sent to."""
    names = [c for c in (collections or []) if c]
    if prefix:
        if names:
            return [f"{prefix}-{name}" for name in names]
        return [f"{prefix}*"]
    if names:
        return names
    return [ALL_INDICES]


def search_url(base_url: str, path: str, params: str = SEARCH_PARAMS) -> str:
    if not params:
        return f"{base_url}/{path}/_search"
    return f"{base_url}/{path}/_search?{params}"


def _total(hits: Mapping[str, Any]) -> int:
    total = hits.get("total", 0)
    if isinstance(total, Mapping):
        total = total.get("value", 0)
    try:
        return int(total or 0)
    except (TypeError, ValueError):
        return 0


def normalize_response(body: Any, targets: Sequence[str] = ()) -> SearchResult:
    """Map a raw ``_search`` response body to ``SearchResult``.

    Accepts both the legacy integer ``hits.total`` and the newer
    ``{"value": n}`` form.
    """
    if not isinstance(body, Mapping):
        return SearchResult(targets=list(targets))

    hits = body.get("hits") or {}
    documents = [
        SearchHit(
            id=str(hit.get("_id", "")),
            index=hit.get("_index"),
            type=hit.get("_type"),
            score=hit.get("_score"),
            source=hit.get("_source") or {},
        )
        for hit in hits.get("hits", [])
        if isinstance(hit, Mapping)
    ]
    return SearchResult(
        total=_total(hits),
        hits=documents,
        took_ms=int(body.get("took", 0) or 0),
        targets=list(targets),
    )


class SearchGateway:
    """Builds, sends and normalizes search requests.

    Args:
        backoff: Retry wrapper around the request executor.
        registry: Source of default connection options.
        params: Query string appended to every ``_search`` URL.
    """

    def __init__(self, backoff: RequestBackoff, registry: ConfigRegistry, *, params: str = SEARCH_PARAMS) -> None:
        self.backoff = backoff
        self.registry = registry
        self.params = params

    async def search(self, query: QueryDescriptor, options: OptionsLike | None = None) -> SearchResult:
        """Search across the collections named in ``query`` (or all of them).

        Raises:
            ConfigurationError: If host/port cannot be resolved; nothing is sent.
            ClientRequestError: On a 4xx response (e.g. malformed query).
            TransientTransportError: When retries are exhausted.
        """
        resolved = self.registry.resolve(options)
        targets = resolve_targets(query.collections, resolved.prefix)
        return await self._execute(search_url(resolved.base_url, ",".join(targets), self.params), query, targets)

    async def search_collection(self, query: QueryDescriptor, options: ConnectionOptions) -> SearchResult:
        """Search a single collection's index and type.

        ``options`` must already carry the collection's index and type.
        """
        resolved = self.registry.resolve(options)
        if not resolved.index or not resolved.type:
            raise ConfigurationError("Collection search needs both 'index' and 'type' options")
        path = f"{resolved.index}/{resolved.type}"
        return await self._execute(search_url(resolved.base_url, path, self.params), query, [resolved.index])

    async def _execute(self, url: str, query: QueryDescriptor, targets: list[str]) -> SearchResult:
        logger.debug("Searching %s", url)
        response = await self.backoff.execute(RequestDescriptor(method="GET", url=url, body=query.to_body()))
        return normalize_response(response.body, targets)
