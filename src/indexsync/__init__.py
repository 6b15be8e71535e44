"""indexsync — Keep a full-text search index in step with a primary datastore."""

__version__ = "0.1.0"
