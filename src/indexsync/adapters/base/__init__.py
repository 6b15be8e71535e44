"""Base transport interface — Abstract request executor and error types."""

from indexsync.adapters.base.adapter import RequestDescriptor, RequestExecutor, TransportResponse

__all__ = ["RequestDescriptor", "RequestExecutor", "TransportResponse"]
