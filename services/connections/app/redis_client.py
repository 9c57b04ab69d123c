"""
Async Redis client — shared by the event emitter and the notification cache.

Uses a module-level singleton so a single connection pool is reused per
process.  The pool is created lazily on first call to get_redis().
"""
from __future__ import annotations

from redis.asyncio import Redis

from shared.database.redis_client import get_redis_client

_client: Redis | None = None


def get_redis(redis_url: str) -> Redis:
    """Return (and lazily create) the module-level async Redis client."""
    global _client
    if _client is None:
        _client = get_redis_client(redis_url)
    return _client


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
