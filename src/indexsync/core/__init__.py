"""Sync core — Field selection, serialization, retries, indexing, resync and search."""

from indexsync.core.collection import IndexedCollection, LifecycleListener, RecordStore
from indexsync.core.engine import IndexSyncEngine
from indexsync.core.events import IndexEvent, RecordEvents
from indexsync.core.sync import RecordSource, SyncEngine, SyncJob

__all__ = [
    "IndexEvent",
    "IndexSyncEngine",
    "IndexedCollection",
    "LifecycleListener",
    "RecordEvents",
    "RecordSource",
    "RecordStore",
    "SyncEngine",
    "SyncJob",
]
