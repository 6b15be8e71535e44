"""Tests for per-record index and unindex operations."""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import pytest

from indexsync.adapters.base.adapter import TransportResponse
from indexsync.adapters.base.exceptions import ClientRequestError, TransientTransportError
from indexsync.core.client import IndexClient, document_url
from indexsync.core.events import IndexEvent, RecordEvents
from indexsync.core.exceptions import IndexingError, SerializationError
from indexsync.models.options import ConnectionOptions
from indexsync.models.record import PrimaryRecord

OPTIONS = ConnectionOptions(host="http://localhost", port=9200, index="users", type="user")


class Collector:
    """Collects notifications per event."""

    def __init__(self, events: RecordEvents) -> None:
        self.seen: dict[IndexEvent, list[tuple[PrimaryRecord, Any]]] = {e: [] for e in IndexEvent}
        for event in IndexEvent:
            events.on(event, lambda record, payload, event=event: self.seen[event].append((record, payload)))


@pytest.fixture
def events() -> RecordEvents:
    return RecordEvents()


@pytest.fixture
def collector(events: RecordEvents) -> Collector:
    return Collector(events)


class TestDocumentUrl:
    def test_url(self) -> None:
        assert document_url(OPTIONS, "abc") == "http://localhost:9200/users/user/abc"

    def test_host_without_scheme(self) -> None:
        options = OPTIONS.model_copy(update={"host": "search.internal", "port": 9201})
        assert document_url(options, 1) == "http://search.internal:9201/users/user/1"

    @pytest.mark.parametrize(
        ("record_id", "segment"),
        [("a#1", "a%231"), ("a/b", "a%2Fb"), ("a b", "a%20b"), ("q?x=1", "q%3Fx%3D1")],
    )
    def test_id_is_escaped(self, record_id: str, segment: str) -> None:
        assert document_url(OPTIONS, record_id) == f"http://localhost:9200/users/user/{segment}"


class TestWriteDocument:
    async def test_put_with_body(self, client: IndexClient, executor) -> None:
        record = PrimaryRecord(id="u1", values={"name": "Bob", "password": "x"})
        body = await client.write_document(record, {"name"}, OPTIONS)

        assert body == {"result": "ok"}
        request = executor.requests[0]
        assert request.method == "PUT"
        assert request.url == "http://localhost:9200/users/user/u1"
        assert request.body == {"name": "Bob"}

    async def test_serialization_error_sends_nothing(self, client: IndexClient, executor) -> None:
        record = PrimaryRecord(id="u1", values={"bad": object()})
        with pytest.raises(SerializationError):
            await client.write_document(record, {"bad"}, OPTIONS)
        assert executor.requests == []


class TestIndexRecord:
    async def test_emits_indexed(self, client: IndexClient, executor, events, collector) -> None:
        executor.script = [TransportResponse(status_code=201, body={"_id": "u1", "result": "created"})]
        record = PrimaryRecord(id="u1", values={"name": "Bob"})

        assert await client.index_record(record, {"name"}, OPTIONS, events) is True
        assert collector.seen[IndexEvent.INDEXED] == [(record, {"_id": "u1", "result": "created"})]
        assert collector.seen[IndexEvent.ERROR] == []

    async def test_client_error_emits_error_once(self, client: IndexClient, executor, events, collector) -> None:
        executor.script = [TransportResponse(status_code=400, body={"error": "bad doc"})]
        record = PrimaryRecord(id="u1", values={"name": "Bob"})

        assert await client.index_record(record, {"name"}, OPTIONS, events) is False
        assert len(executor.requests) == 1

        [(seen_record, error)] = collector.seen[IndexEvent.ERROR]
        assert seen_record is record
        assert isinstance(error, IndexingError)
        assert isinstance(error.details, ClientRequestError)
        assert error.__cause__ is error.details
        assert error.operation == "index"
        assert error.record_id == "u1"

    async def test_serialization_error_is_notified(self, client: IndexClient, events, collector) -> None:
        record = PrimaryRecord(id="u1", values={"bad": object()})
        assert await client.index_record(record, {"bad"}, OPTIONS, events) is False
        [(_, error)] = collector.seen[IndexEvent.ERROR]
        assert isinstance(error.details, SerializationError)

    async def test_exhausted_retries_are_notified(self, client: IndexClient, executor, events, collector) -> None:
        executor.handler = lambda request: TransientTransportError("connection refused")
        record = PrimaryRecord(id="u1", values={"name": "Bob"})

        assert await client.index_record(record, {"name"}, OPTIONS, events) is False
        assert len(executor.requests) == 5
        [(_, error)] = collector.seen[IndexEvent.ERROR]
        assert isinstance(error.details, TransientTransportError)

    async def test_self_reference_is_notified(self, client: IndexClient, executor, events, collector) -> None:
        loop: dict = {}
        loop["self"] = loop
        record = PrimaryRecord(id="u1", values={"name": loop})

        assert await client.index_record(record, {"name"}, OPTIONS, events) is False
        [(_, error)] = collector.seen[IndexEvent.ERROR]
        assert isinstance(error.details, SerializationError)
        assert executor.requests == []

    async def test_unexpected_error_is_notified(self, client: IndexClient, executor, events, collector) -> None:
        executor.handler = lambda request: httpx.InvalidURL("Invalid port: 'x'")
        record = PrimaryRecord(id="u1", values={"name": "Bob"})

        task = client.spawn(client.index_record(record, {"name"}, OPTIONS, events))
        await client.drain()

        assert task.result() is False
        [(_, error)] = collector.seen[IndexEvent.ERROR]
        assert isinstance(error, IndexingError)
        assert isinstance(error.details, httpx.InvalidURL)
        assert error.__cause__ is error.details

    async def test_unexpected_unindex_error(self, client: IndexClient, executor, events, collector) -> None:
        executor.handler = lambda request: RuntimeError("driver bug")
        assert await client.unindex_record(PrimaryRecord(id="u1"), OPTIONS, events) is False
        [(_, error)] = collector.seen[IndexEvent.ERROR]
        assert error.operation == "unindex"
        assert isinstance(error.details, RuntimeError)

    async def test_failing_listener_does_not_break_operation(self, client: IndexClient, events) -> None:
        def boom(record: PrimaryRecord, payload: Any) -> None:
            raise RuntimeError("listener bug")

        events.on(IndexEvent.INDEXED, boom)
        record = PrimaryRecord(id="u1", values={"name": "Bob"})
        assert await client.index_record(record, {"name"}, OPTIONS, events) is True


class TestUnindexRecord:
    async def test_delete_request(self, client: IndexClient, executor, events, collector) -> None:
        record = PrimaryRecord(id="u1")
        assert await client.unindex_record(record, OPTIONS, events) is True

        request = executor.requests[0]
        assert request.method == "DELETE"
        assert request.url == "http://localhost:9200/users/user/u1"
        assert request.body is None
        assert len(collector.seen[IndexEvent.UNINDEXED]) == 1

    async def test_idempotent(self, client: IndexClient, executor, events, collector) -> None:
        executor.script = [
            TransportResponse(status_code=200, body={"found": True, "result": "deleted"}),
            TransportResponse(status_code=404, body={"found": False, "result": "not_found"}),
        ]
        record = PrimaryRecord(id="u1")

        assert await client.unindex_record(record, OPTIONS, events) is True
        assert await client.unindex_record(record, OPTIONS, events) is True
        assert len(collector.seen[IndexEvent.UNINDEXED]) == 2
        assert collector.seen[IndexEvent.ERROR] == []

    async def test_other_client_errors_notified(self, client: IndexClient, executor, events, collector) -> None:
        executor.script = [TransportResponse(status_code=403, body={"error": "forbidden"})]
        assert await client.unindex_record(PrimaryRecord(id="u1"), OPTIONS, events) is False
        [(_, error)] = collector.seen[IndexEvent.ERROR]
        assert error.operation == "unindex"


class TestSpawn:
    async def test_spawn_and_drain(self, client: IndexClient, executor, events, collector) -> None:
        record = PrimaryRecord(id="u1", values={"name": "Bob"})
        task = client.spawn(client.index_record(record, {"name"}, OPTIONS, events))
        assert isinstance(task, asyncio.Task)

        await client.drain()
        assert client.pending == 0
        assert len(collector.seen[IndexEvent.INDEXED]) == 1

    def test_spawn_without_loop_raises(self, client: IndexClient, events) -> None:
        record = PrimaryRecord(id="u1")
        with pytest.raises(RuntimeError):
            client.spawn(client.unindex_record(record, OPTIONS, events))
