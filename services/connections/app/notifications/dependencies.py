"""FastAPI providers for the outbound event channel and notification cache."""
from __future__ import annotations

from fastapi import BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.notifications.outbox import EventOutbox
from app.notifications.publisher import (
    EventEmitter,
    NotificationCache,
    NullNotificationCache,
    RedisEventEmitter,
    RedisNotificationCache,
)
from app.redis_client import get_redis


def get_event_emitter(settings: Settings = Depends(get_settings)) -> EventEmitter:
    return RedisEventEmitter(get_redis(settings.redis_url))


def get_notification_cache(settings: Settings = Depends(get_settings)) -> NotificationCache:
    if not settings.incoming_cache_enabled:
        return NullNotificationCache()
    return RedisNotificationCache(
        get_redis(settings.redis_url),
        ttl_seconds=settings.notification_cache_ttl_seconds,
    )


class OutboxDispatcher:
    """Commits the ledger write, then hands the outbox to a background task."""

    def __init__(
        self,
        background_tasks: BackgroundTasks,
        emitter: EventEmitter,
        cache: NotificationCache,
    ) -> None:
        self.background_tasks = background_tasks
        self.emitter = emitter
        self.cache = cache

    async def dispatch(self, session: AsyncSession, outbox: EventOutbox) -> None:
        await session.commit()
        if outbox.events or outbox.invalidations:
            self.background_tasks.add_task(outbox.flush, self.emitter, self.cache)


def get_dispatcher(
    background_tasks: BackgroundTasks,
    emitter: EventEmitter = Depends(get_event_emitter),
    cache: NotificationCache = Depends(get_notification_cache),
) -> OutboxDispatcher:
    return OutboxDispatcher(background_tasks, emitter, cache)
