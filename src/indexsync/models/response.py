"""Search result models — The uniform shape returned by ``SearchGateway``."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class SearchHit(BaseModel):
    """One matching document."""

    id: str = Field(description="Document id (the primary record identifier)")
    index: str | None = Field(default=None, description="Index the hit came from")
    type: str | None = Field(default=None, description="Document type")
    score: float | None = Field(default=None, description="Relevance score from the search engine")
    source: dict[str, Any] = Field(default_factory=dict, description="Indexed document body")


class SearchResult(BaseModel):
    """Normalized search response.

    Hides the backing engine's envelope: callers only see the ordered hits
    and the total match count.
    """

    total: int = Field(default=0, description="Total number of matching documents")
    hits: list[SearchHit] = Field(default_factory=list, description="Matching documents, in engine order")
    took_ms: int = Field(default=0, description="Engine-reported query time in ms")
    targets: list[str] = Field(default_factory=list, description="Indices the query was sent to")

    @property
    def ids(self) -> list[str]:
        return [hit.id for hit in self.hits]
