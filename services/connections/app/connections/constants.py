"""
Connections domain — enums, slot keys and limits.

Every request record occupies exactly one slot:
  connect:{from}:{to}   follow / chat / both — one record per ordered pair
  photo:{lo}:{hi}       photo               — one record per unordered pair
The unique ``slot`` column is what turns a concurrent duplicate submission into
an IntegrityError that the ledger retries.
"""
from __future__ import annotations

import enum
import uuid


class RequestKind(str, enum.Enum):
    FOLLOW = "follow"
    CHAT = "chat"
    PHOTO = "photo"
    BOTH = "both"       # follow + chat merged in one direction


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class ResponseAction(str, enum.Enum):
    ACCEPT = "accept"
    REJECT = "reject"


class RequestDirection(str, enum.Enum):
    SENT = "sent"
    RECEIVED = "received"


CONNECT_KINDS: frozenset[RequestKind] = frozenset({
    RequestKind.FOLLOW,
    RequestKind.CHAT,
    RequestKind.BOTH,
})

# Admin overview of pending requests is capped
ADMIN_PENDING_LIMIT: int = 100

# Submissions retried after a lost uniqueness race before giving up
MAX_SUBMIT_ATTEMPTS: int = 3


def connect_slot(from_id: uuid.UUID, to_id: uuid.UUID) -> str:
    return f"connect:{from_id}:{to_id}"


def photo_slot(a: uuid.UUID, b: uuid.UUID) -> str:
    lo, hi = sorted((str(a), str(b)))
    return f"photo:{lo}:{hi}"


def slot_for(kind: RequestKind, from_id: uuid.UUID, to_id: uuid.UUID) -> str:
    if kind is RequestKind.PHOTO:
        return photo_slot(from_id, to_id)
    return connect_slot(from_id, to_id)


def pair_key(a: uuid.UUID, b: uuid.UUID) -> str:
    lo, hi = sorted((str(a), str(b)))
    return f"{lo}:{hi}"
