"""
Lifecycle event fan-out over Redis pub/sub.

The lifecycle engine hands a ``LifecycleEvent`` to an emitter *after* the
transaction commits.  Delivery is best-effort: the socket gateway
subscribed to the channel pushes it to connected clients.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Protocol

import redis.asyncio as aioredis

from errandhub.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LifecycleEvent:
    errand_id: int
    status: str
    actor_id: int
    timestamp: datetime

    def to_json(self) -> str:
        payload = asdict(self)
        payload["timestamp"] = self.timestamp.isoformat()
        return json.dumps(payload)


class EventEmitter(Protocol):
    async def emit(self, event: LifecycleEvent) -> None: ...


class RedisEventEmitter:
    """Publishes each event as JSON on a single channel."""

    def __init__(self, client: aioredis.Redis, channel: str):
        self.redis = client
        self.channel = channel

    async def emit(self, event: LifecycleEvent) -> None:
        receivers = await self.redis.publish(self.channel, event.to_json())
        logger.debug(
            "Published %s for errand %s to %d subscriber(s)",
            event.status,
            event.errand_id,
            receivers,
        )


class NullEventEmitter:
    """Drops events; used by scripts that have no subscribers."""

    async def emit(self, event: LifecycleEvent) -> None:
        return None


_pool: aioredis.ConnectionPool | None = None


def get_redis() -> aioredis.Redis:
    """Return a Redis client backed by the shared connection pool."""
    global _pool
    if _pool is None:
        _pool = aioredis.ConnectionPool.from_url(
            settings.redis_url, decode_responses=True
        )
    return aioredis.Redis(connection_pool=_pool)


def redis_event_emitter() -> RedisEventEmitter:
    return RedisEventEmitter(get_redis(), settings.events_channel)
