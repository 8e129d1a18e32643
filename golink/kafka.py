"""The process-wide aiokafka producer behind ``KafkaClickSink``.

``start_producer`` can be called more than once. If the brokers can't be
reached, it logs the failure and leaves no producer behind. The gateway still
boots, and ``/health`` reports the Kafka sink as down until a restart.
"""

import json
import logging

from aiokafka import AIOKafkaProducer
from aiokafka.errors import KafkaError

__all__ = ["producer_ready", "send_click", "start_producer", "stop_producer"]

logger = logging.getLogger("golink")

_producer: AIOKafkaProducer | None = None


def _to_json(payload: dict) -> bytes:
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")


async def start_producer(bootstrap_servers: str) -> None:
    global _producer
    if _producer is not None:
        return

    producer = AIOKafkaProducer(
        bootstrap_servers=bootstrap_servers,
        key_serializer=str.encode,
        value_serializer=_to_json,
    )
    try:
        await producer.start()
    except KafkaError as exc:
        logger.warning(f"Kafka unavailable at {bootstrap_servers}: {exc}")
        await producer.stop()
        return
    _producer = producer


async def stop_producer() -> None:
    global _producer
    producer, _producer = _producer, None
    if producer is not None:
        await producer.stop()


def producer_ready() -> bool:
    return _producer is not None


async def send_click(topic: str, key: str, payload: dict) -> bool:
    """Publish one click and wait for the broker ack. ``False`` if no producer is running."""
    if _producer is None:
        return False
    await _producer.send_and_wait(topic, payload, key=key)
    return True
