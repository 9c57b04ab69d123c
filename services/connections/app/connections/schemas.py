"""
Connections domain — Pydantic V2 request/response schemas.
"""
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.accounts.schemas import AccountRef
from app.connections.constants import RequestKind, RequestStatus, ResponseAction


class _Base(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


# ── Request bodies ─────────────────────────────────────────────────────────────

class SubmitRequestBody(_Base):
    # Optional at the schema level so a missing target maps onto TargetRequired
    to_account_id: uuid.UUID | None = None
    kind: RequestKind = RequestKind.FOLLOW


class RespondBody(_Base):
    action: ResponseAction


class WithdrawBody(_Base):
    account_id: uuid.UUID
    kind: RequestKind | None = Field(
        None, description="'photo' addresses the photo request; anything else the connect request."
    )


# ── Results ────────────────────────────────────────────────────────────────────

class SubmitResult(BaseModel):
    request_id: uuid.UUID
    status: RequestStatus
    kind: RequestKind = Field(description="Kind after any follow/chat merge")
    created: bool = Field(description="False when an existing request was returned or merged")
    quota_remaining: int | None = Field(
        None, description="Unset for photo requests, which do not count against the quota"
    )


class RespondResult(BaseModel):
    request_id: uuid.UUID
    status: RequestStatus
    requested_kind: RequestKind
    conversation_id: uuid.UUID | None = None


class QuotaStatusResponse(BaseModel):
    limit: int
    used: int
    remaining: int
    is_premium: bool
    resets_at: datetime


class IncomingRequestItem(BaseModel):
    id: uuid.UUID
    kind: RequestKind
    status: RequestStatus
    sender: AccountRef
    created_at: datetime


class IncomingRequestListResponse(BaseModel):
    items: list[IncomingRequestItem]
    total: int


class AdminPendingItem(BaseModel):
    id: uuid.UUID
    kind: RequestKind
    sender: AccountRef
    recipient: AccountRef
    created_at: datetime


class AdminPendingListResponse(BaseModel):
    items: list[AdminPendingItem]
    total: int
