from datetime import datetime, timezone
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LifecycleEventType(str, Enum):
    REQUEST_RECEIVED = "request:received"
    REQUEST_ACCEPTED = "request:accepted"
    REQUEST_REJECTED = "request:rejected"
    PHOTO_REQUESTED = "photo:requested"
    PHOTO_APPROVED = "photo:approved"
    PHOTO_REJECTED = "photo:rejected"


class LifecycleEvent(BaseModel):
    """Pushed to one account when a connection request involving it changes state."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    event_type: LifecycleEventType
    account_id: UUID
    actor_id: UUID
    request_id: UUID | None = None
    kind: str
    status: str
    occurred_at: datetime = Field(default_factory=_utcnow)
