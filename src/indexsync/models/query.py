"""Search query descriptor."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

MATCH_ALL = "*"


class QueryDescriptor(BaseModel):
    """A search request as callers describe it.

    The gateway shapes this into the backing engine's query DSL; it does
    not parse the query string itself.
    """

    query: str = Field(default=MATCH_ALL, description="Query string; empty or '*' matches everything")
    fields: list[str] = Field(default_factory=list, description="Fields to search (empty = engine default)")
    fuzziness: float | str | None = Field(default=None, description="Fuzziness for fuzzy terms, e.g. 0.5 or 'AUTO'")
    where: dict[str, Any] = Field(default_factory=dict, description="Exact-match filters, field to value(s)")
    page: int = Field(default=1, ge=1, description="1-based page number")
    page_size: int = Field(default=25, ge=1, le=10_000, description="Results per page")
    collections: list[str] | None = Field(default=None, description="Collections to search (None = all)")
    body: dict[str, Any] | None = Field(default=None, description="Raw query body, sent as-is when set")

    def to_body(self) -> dict[str, Any]:
        """Build the JSON search body."""
        if self.body is not None:
            return dict(self.body)

        text = self.query.strip()
        clause: dict[str, Any]
        if not text or text == MATCH_ALL:
            clause = {"match_all": {}}
        else:
            query_string: dict[str, Any] = {"query": text}
            if self.fields:
                query_string["fields"] = list(self.fields)
            if self.fuzziness is not None:
                query_string["fuzziness"] = self.fuzziness
            clause = {"query_string": query_string}

        if self.where:
            filters = [
                {"terms": {name: list(value)}} if isinstance(value, (list, tuple, set)) else {"term": {name: value}}
                for name, value in self.where.items()
            ]
            clause = {"bool": {"must": [clause], "filter": filters}}

        return {
            "query": clause,
            "from": (self.page - 1) * self.page_size,
            "size": self.page_size,
        }
