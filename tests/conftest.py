"""Shared pytest fixtures: settings, fake click sinks, gateway context and API client."""

import asyncio
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from golink.config import Settings
from golink.dependencies import GatewayContext, get_gateway_context
from golink.enums import ClickSinkKind
from golink.main import app
from golink.schemas import ClickRecord


class InMemoryClickSink:
    """Collects appended records in a list."""

    kind = ClickSinkKind.DATABASE

    def __init__(self) -> None:
        self.records: list[ClickRecord] = []
        self.started = False
        self.closed = False

    async def start(self) -> None:
        self.started = True

    async def append(self, record: ClickRecord) -> None:
        self.records.append(record)

    async def ping(self) -> None:
        return None

    async def close(self) -> None:
        self.closed = True


class FailingClickSink(InMemoryClickSink):
    """Rejects every write, as an unreachable backend would."""

    async def append(self, record: ClickRecord) -> None:
        raise RuntimeError("write refused")

    async def ping(self) -> None:
        raise RuntimeError("backend down")


class BlockingClickSink(InMemoryClickSink):
    """Holds every write until ``release`` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.release = asyncio.Event()

    async def append(self, record: ClickRecord) -> None:
        await self.release.wait()
        self.records.append(record)


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def memory_sink() -> InMemoryClickSink:
    return InMemoryClickSink()


@pytest.fixture
def failing_sink() -> FailingClickSink:
    return FailingClickSink()


@pytest.fixture
def blocking_sink() -> BlockingClickSink:
    return BlockingClickSink()


@pytest.fixture
def sink(memory_sink: InMemoryClickSink) -> InMemoryClickSink:
    return memory_sink


@pytest.fixture
def gateway(settings: Settings, sink: InMemoryClickSink) -> GatewayContext:
    return GatewayContext.create(settings, sink=sink)


@pytest_asyncio.fixture(scope="function")
async def client(gateway: GatewayContext) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_gateway_context] = lambda: gateway

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await gateway.recorder.drain()
    app.dependency_overrides.clear()
