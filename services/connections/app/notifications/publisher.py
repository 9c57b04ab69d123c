"""Redis-backed lifecycle event emitter and notification cache.

Key schema
----------
account:{account_id}:events             pub/sub channel   lifecycle events (JSON)
notifications:{account_id}              JSON   TTL 5 min  cached incoming-request list
notifications:{account_id}:count        int    TTL 5 min  cached incoming-request count
"""
from __future__ import annotations

import json
import logging
import uuid
from typing import Any, Protocol

from redis.asyncio import Redis

from shared.events.schemas import LifecycleEvent

logger = logging.getLogger(__name__)

_CACHE_TTL_S: int = 300  # 5 minutes


class EventEmitter(Protocol):
    async def emit_to_account(self, account_id: uuid.UUID, event: LifecycleEvent) -> None: ...


class NotificationCache(Protocol):
    async def invalidate(self, account_id: uuid.UUID) -> None: ...

    async def get_incoming(self, account_id: uuid.UUID) -> list[dict[str, Any]] | None: ...

    async def set_incoming(self, account_id: uuid.UUID, items: list[dict[str, Any]]) -> None: ...


def events_channel(account_id: uuid.UUID) -> str:
    return f"account:{account_id}:events"


def _incoming_key(account_id: uuid.UUID) -> str:
    return f"notifications:{account_id}"


def _count_key(account_id: uuid.UUID) -> str:
    return f"notifications:{account_id}:count"


class RedisEventEmitter:
    """Publishes events on a per-account channel; the realtime gateway fans them out."""

    def __init__(self, redis: Redis) -> None:
        self._redis = redis

    async def emit_to_account(self, account_id: uuid.UUID, event: LifecycleEvent) -> None:
        receivers = await self._redis.publish(events_channel(account_id), event.model_dump_json())
        logger.debug("Published %s to %s (%d receivers)", event.event_type.value, account_id, receivers)


class RedisNotificationCache:
    def __init__(self, redis: Redis, ttl_seconds: int = _CACHE_TTL_S) -> None:
        self._redis = redis
        self._ttl = ttl_seconds

    async def invalidate(self, account_id: uuid.UUID) -> None:
        await self._redis.delete(_incoming_key(account_id), _count_key(account_id))

    async def get_incoming(self, account_id: uuid.UUID) -> list[dict[str, Any]] | None:
        """Return the cached list, or None on a miss or a Redis failure."""
        try:
            val = await self._redis.get(_incoming_key(account_id))
        except Exception:
            logger.warning("Notification cache read failed for %s", account_id, exc_info=True)
            return None
        return json.loads(val) if val is not None else None

    async def set_incoming(self, account_id: uuid.UUID, items: list[dict[str, Any]]) -> None:
        try:
            pipeline = self._redis.pipeline()
            pipeline.setex(_incoming_key(account_id), self._ttl, json.dumps(items))
            pipeline.setex(_count_key(account_id), self._ttl, str(len(items)))
            await pipeline.execute()
        except Exception:
            logger.warning("Notification cache write failed for %s", account_id, exc_info=True)


class NullNotificationCache:
    """Used when caching is disabled; every read is a miss."""

    async def invalidate(self, account_id: uuid.UUID) -> None:
        return None

    async def get_incoming(self, account_id: uuid.UUID) -> list[dict[str, Any]] | None:
        return None

    async def set_incoming(self, account_id: uuid.UUID, items: list[dict[str, Any]]) -> None:
        return None
