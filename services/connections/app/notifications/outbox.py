"""
Per-request outbox for lifecycle events and cache invalidations.

Ledger functions only append to the outbox; nothing is sent while the database
transaction is open.  The router schedules ``flush`` as a background task, which
runs after the session has committed.  Every delivery is best-effort: a failure is
logged and the remaining deliveries continue.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field

from shared.events.schemas import LifecycleEvent, LifecycleEventType
from app.notifications.publisher import EventEmitter, NotificationCache

logger = logging.getLogger(__name__)


@dataclass
class EventOutbox:
    events: list[LifecycleEvent] = field(default_factory=list)
    invalidations: set[uuid.UUID] = field(default_factory=set)

    def emit(
        self,
        event_type: LifecycleEventType,
        *,
        to: uuid.UUID,
        actor: uuid.UUID,
        request_id: uuid.UUID | None,
        kind: str,
        status: str,
    ) -> None:
        self.events.append(
            LifecycleEvent(
                event_type=event_type,
                account_id=to,
                actor_id=actor,
                request_id=request_id,
                kind=kind,
                status=status,
            )
        )

    def invalidate(self, *account_ids: uuid.UUID) -> None:
        self.invalidations.update(account_ids)

    def event_types_for(self, account_id: uuid.UUID) -> list[LifecycleEventType]:
        return [e.event_type for e in self.events if e.account_id == account_id]

    async def flush(self, emitter: EventEmitter, cache: NotificationCache) -> None:
        for account_id in self.invalidations:
            try:
                await cache.invalidate(account_id)
            except Exception:
                logger.warning("Cache invalidation failed for %s", account_id, exc_info=True)
        for event in self.events:
            try:
                await emitter.emit_to_account(event.account_id, event)
            except Exception:
                logger.warning(
                    "Failed to emit %s to %s", event.event_type.value, event.account_id,
                    exc_info=True,
                )
        self.events.clear()
        self.invalidations.clear()
