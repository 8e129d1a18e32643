"""The shared redis.asyncio client used by ``RedisStreamClickSink``.

The client is built on first use from the given URL. It returns ``str`` rather
than ``bytes`` and is reused until ``close_stream_client`` runs at shutdown.
"""

import redis.asyncio as redis

__all__ = ["close_stream_client", "get_stream_client"]

_client: redis.Redis | None = None


async def get_stream_client(url: str) -> redis.Redis:
    global _client
    if _client is None:
        _client = redis.from_url(url, encoding="utf-8", decode_responses=True)
    return _client


async def close_stream_client() -> None:
    global _client
    client, _client = _client, None
    if client is not None:
        await client.aclose()
