"""HTTP executor for Elasticsearch-compatible REST APIs."""

from indexsync.adapters.http.adapter import HttpxExecutor

__all__ = ["HttpxExecutor"]
