from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator
from typing import Any, Protocol

import structlog
from redis.asyncio import Redis

from livequiz.core.config import get_settings

logger = structlog.get_logger(__name__)

BROADCAST_BACKEND_REDIS = "redis"
BROADCAST_BACKEND_MEMORY = "memory"


class BroadcastChannel(Protocol):
    async def publish(self, topic: str, event: dict[str, Any]) -> None: ...

    def subscribe(self, topic: str) -> AsyncIterator[dict[str, Any]]: ...

    async def close(self) -> None: ...


def encode_event(event: dict[str, Any]) -> str:
    return json.dumps(event, separators=(",", ":"), sort_keys=True, default=str)


def decode_event(raw: bytes | str) -> dict[str, Any] | None:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("broadcast_event_decode_failed")
        return None
    return payload if isinstance(payload, dict) else None


class RedisBroadcastChannel:
    def __init__(self, redis_client: Redis) -> None:
        self._redis = redis_client

    @classmethod
    def from_url(cls, redis_url: str) -> RedisBroadcastChannel:
        return cls(Redis.from_url(redis_url))

    async def publish(self, topic: str, event: dict[str, Any]) -> None:
        await self._redis.publish(topic, encode_event(event))

    async def subscribe(self, topic: str) -> AsyncIterator[dict[str, Any]]:
        pubsub = self._redis.pubsub(ignore_subscribe_messages=True)
        await pubsub.subscribe(topic)
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                event = decode_event(message["data"])
                if event is not None:
                    yield event
        finally:
            await pubsub.unsubscribe(topic)
            await pubsub.aclose()

    async def close(self) -> None:
        await self._redis.aclose()


class InMemoryBroadcastChannel:
    """Process-local fan-out: every subscriber of a topic gets its own queue."""

    def __init__(self) -> None:
        self._subscribers: dict[str, set[asyncio.Queue[dict[str, Any]]]] = {}

    async def publish(self, topic: str, event: dict[str, Any]) -> None:
        for queue in tuple(self._subscribers.get(topic, ())):
            queue.put_nowait(dict(event))

    def subscribe(self, topic: str) -> AsyncIterator[dict[str, Any]]:
        """Register now and return the event stream.

        Events published after this call are delivered even if iteration starts later.
        """
        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self._subscribers.setdefault(topic, set()).add(queue)
        return self._drain(topic, queue)

    async def _drain(
        self,
        topic: str,
        queue: asyncio.Queue[dict[str, Any]],
    ) -> AsyncIterator[dict[str, Any]]:
        try:
            while True:
                yield await queue.get()
        finally:
            self._unsubscribe(topic, queue)

    def _unsubscribe(self, topic: str, queue: asyncio.Queue[dict[str, Any]]) -> None:
        subscribers = self._subscribers.get(topic)
        if subscribers is not None:
            subscribers.discard(queue)
            if not subscribers:
                del self._subscribers[topic]

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic, ()))

    async def close(self) -> None:
        self._subscribers.clear()


def build_broadcast_channel() -> BroadcastChannel:
    settings = get_settings()
    backend = settings.broadcast_backend.strip().lower()
    if backend == BROADCAST_BACKEND_MEMORY:
        return InMemoryBroadcastChannel()
    if backend == BROADCAST_BACKEND_REDIS:
        return RedisBroadcastChannel.from_url(settings.redis_url)
    raise ValueError(f"unknown broadcast backend: {settings.broadcast_backend}")
