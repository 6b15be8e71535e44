"""Primary records — Snapshots of datastore records handed to the sync core."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RecordState(str, Enum):
    """Lifecycle state of a primary record."""

    UNSAVED = "unsaved"
    SAVED = "saved"
    REMOVED = "removed"


class Reference(BaseModel):
    """A reference from one record to another.

    ``document`` holds the populated target when the datastore expanded the
    reference; it is runtime-only and never reaches the index.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: Any = Field(description="Identifier of the referenced record")
    document: Any = Field(default=None, description="Populated target record, if expanded")

    @property
    def populated(self) -> bool:
        return self.document is not None


class PrimaryRecord(BaseModel):
    """A consistent snapshot of one primary-store record.

    The datastore owns the record; the sync core only reads the snapshot it
    is handed with each lifecycle event.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: Any = Field(description="Identifier, unique within the collection")
    values: dict[str, Any] = Field(default_factory=dict, description="Field name to current value")
    state: RecordState = Field(default=RecordState.SAVED, description="Lifecycle state")

    @property
    def document_id(self) -> str:
        """Identifier as used in index URLs."""
        return str(self.id)
