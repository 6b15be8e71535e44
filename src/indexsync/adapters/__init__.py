"""Transport layer — Pluggable request executors for the search service.

Built-in executors:
  - http: ``httpx``-based executor for Elasticsearch-compatible REST APIs

Implement ``RequestExecutor`` to plug in your own transport.
"""
