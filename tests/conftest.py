"""Shared test fixtures and configuration."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

import pytest

from indexsync.adapters.base.adapter import RequestDescriptor, RequestExecutor, TransportResponse
from indexsync.config.registry import ConfigRegistry
from indexsync.config.settings import Settings
from indexsync.core.backoff import BackoffPolicy, RequestBackoff
from indexsync.core.client import IndexClient
from indexsync.core.gateway import SearchGateway
from indexsync.core.sync import SyncEngine
from indexsync.models.record import PrimaryRecord, Reference
from indexsync.models.schema import SchemaDescriptor

Outcome = TransportResponse | BaseException
Handler = Callable[[RequestDescriptor], Outcome]


class FakeExecutor(RequestExecutor):
    """Request executor that records requests and replays scripted outcomes.

    Outcomes are taken from ``script`` in order; once it is empty, ``handler``
    decides (default: 200 with ``{"result": "ok"}``).
    """

    def __init__(self) -> None:
        self.requests: list[RequestDescriptor] = []
        self.script: list[Outcome] = []
        self.handler: Handler | None = None
        self.initialized = False
        self.closed = False

    @property
    def name(self) -> str:
        return "fake"

    async def initialize(self) -> None:
        self.initialized = True

    async def shutdown(self) -> None:
        self.closed = True

    async def send(self, request: RequestDescriptor) -> TransportResponse:
        self.requests.append(request)
        if self.script:
            outcome = self.script.pop(0)
        elif self.handler is not None:
            outcome = self.handler(request)
        else:
            outcome = TransportResponse(status_code=200, body={"result": "ok"})
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    @property
    def urls(self) -> list[str]:
        return [r.url for r in self.requests]


class RecordingSleep:
    """Stand-in for ``asyncio.sleep`` that returns at once and records delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def settings() -> Settings:
    """Create a test Settings instance with defaults."""
    return Settings(_env_file=None)  # type: ignore[call-arg]


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def policy() -> BackoffPolicy:
    return BackoffPolicy(base_delay=0.1, max_delay=2.0, max_attempts=5)


@pytest.fixture
def backoff(executor: FakeExecutor, policy: BackoffPolicy, sleep: RecordingSleep) -> RequestBackoff:
    return RequestBackoff(executor, policy, sleep=sleep)


@pytest.fixture
def registry() -> ConfigRegistry:
    return ConfigRegistry({"host": "http://localhost", "port": 9200})


@pytest.fixture
def client(backoff: RequestBackoff) -> IndexClient:
    return IndexClient(backoff)


@pytest.fixture
def gateway(backoff: RequestBackoff, registry: ConfigRegistry) -> SearchGateway:
    return SearchGateway(backoff, registry)


@pytest.fixture
def sync_engine(client: IndexClient) -> SyncEngine:
    return SyncEngine(client, max_in_flight=2)


# ── Domain fixtures ──────────────────────────────────────────────────────────


@pytest.fixture
def user_schema() -> SchemaDescriptor:
    """A users collection: one hidden simple field, one partly hidden object, one fully hidden object."""
    return SchemaDescriptor.from_mapping(
        {
            "name": str,
            "email": {"type": str},
            "password": {"type": str, "no_index": True},
            "address": {
                "street": str,
                "zip": {"no_index": True},
            },
            "secrets": {
                "token": {"no_index": True},
                "pin": {"no_index": True},
            },
            "manager": {"type": Reference},
            "joined": {"type": datetime},
        }
    )


@pytest.fixture
def user_record() -> PrimaryRecord:
    return PrimaryRecord(
        id="u1",
        values={
            "name": "Bob",
            "email": "bob@example.com",
            "password": "hunter2",
            "address": {"street": "1 Main St", "zip": "12345"},
            "secrets": {"token": "t", "pin": "0000"},
            "manager": Reference(id="u0", document=PrimaryRecord(id="u0", values={"name": "Alice"})),
            "joined": datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC),
            "__v": 3,
        },
    )


def _make_records(count: int, *, start: int = 1) -> list[PrimaryRecord]:
    return [PrimaryRecord(id=f"r{i}", values={"name": f"Record {i}"}) for i in range(start, start + count)]


@pytest.fixture
def make_records() -> Callable[..., list[PrimaryRecord]]:
    return _make_records


@pytest.fixture
def records() -> list[PrimaryRecord]:
    return _make_records(3)
