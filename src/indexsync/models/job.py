"""Resync job state and progress models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class SyncState(str, Enum):
    """Lifecycle of a resync job."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class SyncProgress(BaseModel):
    """Progress counters of a resync job."""

    scanned: int = Field(default=0, description="Records read from the cursor and handed to a write")
    indexed: int = Field(default=0, description="Records written to the index")
    failed: int = Field(default=0, description="Records that permanently failed")

    @property
    def completed(self) -> int:
        return self.indexed + self.failed


class RecordFailure(BaseModel):
    """One per-record failure kept in a job summary."""

    record_id: str
    error_type: str
    message: str


class SyncSummary(BaseModel):
    """Final report of a resync job."""

    collection: str
    state: SyncState
    progress: SyncProgress
    aborted: bool = False
    error: str | None = Field(default=None, description="Cursor failure or abort reason")
    failures: list[RecordFailure] = Field(default_factory=list, description="Sampled per-record failures")
    duration_ms: int = 0
