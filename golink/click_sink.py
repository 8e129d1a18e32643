"""Click record persistence: sink backends and the fire-and-forget recorder.

Persistence is best-effort and fully detached from the request. The route hands
a built ``ClickRecord`` to ``ClickRecorder.submit()``, which schedules the write
as its own asyncio task and returns immediately. The task's only error path is
a WARNING log line; nothing it does can change the redirect response.

Architecture Overview
=====================
::
    ┌───────────┐  submit()   ┌──────────────┐  create_task  ┌──────────────┐
    │  GET /go  │────────────►│ ClickRecorder│──────────────►│ _persist()   │
    └─────┬─────┘  (no await) └──────────────┘               └──────┬───────┘
          │                                                         ▼
          ▼                                              ┌─────────────────────┐
    302 Location                                         │ ClickSink.append()  │
                                                         │  ├ DatabaseClickSink│
                                                         │  ├ KafkaClickSink   │
                                                         │  └ RedisStreamSink  │
                                                         └──────────┬──────────┘
                                                            error?  ▼
                                                         logger.warning(...)

How to Use
===========
**Step 1 — Build the sink from settings**::
    sink = build_click_sink(settings)
    await sink.start()

**Step 2 — Record without awaiting the write**::
    recorder = ClickRecorder(sink, logger)
    recorder.submit(record)

**Step 3 — Drain on shutdown**::
    await recorder.drain()
    await sink.close()

Key Behaviours
===============
- Each record is written once; failures are logged and dropped, never retried.
- No timeout beyond whatever the backend client imposes.
- The recorder holds references to pending tasks only so they are not
  garbage-collected mid-flight and can be drained at shutdown.
- Every backend writes to the ``CLICK_COLLECTION`` table/topic/stream and
  assigns the record identity itself.
"""

import asyncio
import logging
from typing import Protocol

from nanoid import generate
from prometheus_client import Counter
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from golink.config import Settings
from golink.database import async_session, close_db, init_db
from golink.enums import ClickRecordStatus, ClickSinkKind
from golink.kafka import producer_ready, send_click, start_producer, stop_producer
from golink.models import ClickLog
from golink.redis import close_stream_client, get_stream_client
from golink.schemas import ClickRecord

__all__ = [
    "ClickSink",
    "DatabaseClickSink",
    "KafkaClickSink",
    "RedisStreamClickSink",
    "ClickRecorder",
    "build_click_sink",
]

CLICK_RECORDS_TOTAL = Counter(
    "golink_click_records_total",
    "Click records handed to the persistence backend",
    ["status"],
)


class ClickSink(Protocol):
    kind: ClickSinkKind

    async def start(self) -> None: ...

    async def append(self, record: ClickRecord) -> None: ...

    async def ping(self) -> None: ...

    async def close(self) -> None: ...


# ============================================================================
# SINK BACKENDS
# ============================================================================


class DatabaseClickSink:
    """Insert click records into the ``clicks`` table."""

    kind = ClickSinkKind.DATABASE

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def start(self) -> None:
        await init_db()

    async def append(self, record: ClickRecord) -> None:
        async with self._session_factory() as session:
            session.add(ClickLog.from_record(record))
            await session.commit()

    async def ping(self) -> None:
        async with self._session_factory() as session:
            await session.execute(text("SELECT 1"))

    async def close(self) -> None:
        await close_db()


class KafkaClickSink:
    """Publish click records as JSON to a Kafka topic, keyed by record id."""

    kind = ClickSinkKind.KAFKA

    def __init__(self, topic: str, bootstrap_servers: str):
        self._topic = topic
        self._bootstrap_servers = bootstrap_servers

    async def start(self) -> None:
        await start_producer(self._bootstrap_servers)

    async def append(self, record: ClickRecord) -> None:
        click_id = generate()
        payload = {"id": click_id, **record.model_dump(mode="json")}
        published = await send_click(self._topic, click_id, payload)
        if not published:
            raise RuntimeError("Kafka producer is not running")

    async def ping(self) -> None:
        if not producer_ready():
            raise RuntimeError("Kafka producer is not running")

    async def close(self) -> None:
        await stop_producer()


class RedisStreamClickSink:
    """Append click records to a Redis stream with ``XADD``."""

    kind = ClickSinkKind.REDIS

    def __init__(self, stream_key: str, redis_url: str):
        self._stream_key = stream_key
        self._redis_url = redis_url

    async def start(self) -> None:
        await get_stream_client(self._redis_url)

    async def append(self, record: ClickRecord) -> None:
        client = await get_stream_client(self._redis_url)
        # Streams cannot hold nulls.
        fields = {key: str(value) for key, value in record.model_dump(mode="json").items() if value is not None}
        fields["id"] = generate()
        await client.xadd(self._stream_key, fields)

    async def ping(self) -> None:
        client = await get_stream_client(self._redis_url)
        await client.ping()

    async def close(self) -> None:
        await close_stream_client()


def build_click_sink(settings: Settings) -> ClickSink:
    if settings.CLICK_SINK is ClickSinkKind.KAFKA:
        return KafkaClickSink(settings.CLICK_COLLECTION, settings.KAFKA_BOOTSTRAP_SERVERS)
    if settings.CLICK_SINK is ClickSinkKind.REDIS:
        return RedisStreamClickSink(settings.CLICK_COLLECTION, settings.REDIS_URL)
    return DatabaseClickSink(async_session)


# ============================================================================
# FIRE-AND-FORGET RECORDER
# ============================================================================


class ClickRecorder:
    """Schedules click writes as detached tasks whose failures only reach the log."""

    def __init__(self, sink: ClickSink, logger: logging.Logger | logging.LoggerAdapter):
        self._sink = sink
        self._logger = logger
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def sink(self) -> ClickSink:
        return self._sink

    @property
    def pending(self) -> int:
        return len(self._pending)

    def submit(self, record: ClickRecord) -> asyncio.Task[None]:
        """Start persisting ``record`` and return without waiting for it."""
        task = asyncio.create_task(self._persist(record))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        """Wait for every in-flight write to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _persist(self, record: ClickRecord) -> None:
        try:
            await self._sink.append(record)
        except Exception as exc:
            CLICK_RECORDS_TOTAL.labels(status=ClickRecordStatus.FAILED).inc()
            self._logger.warning(
                f"Click log failed: {exc}",
                extra={"operation": "click_log", "target_url": record.target_url},
            )
            return
        CLICK_RECORDS_TOTAL.labels(status=ClickRecordStatus.PERSISTED).inc()
        self._logger.debug(f"Click logged for {record.target_url}")
