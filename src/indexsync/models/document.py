"""Index document — The payload of a single index write."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class IndexDocument(BaseModel):
    """A record as it is written to the search index.

    Derived per operation from a ``PrimaryRecord`` and the resolved
    ``ConnectionOptions``; never stored locally.
    """

    index: str = Field(description="Target index name")
    type: str = Field(description="Target document type")
    id: str = Field(description="Document id, always the primary record identifier")
    body: dict[str, Any] = Field(default_factory=dict, description="Indexed field name to serialized value")
