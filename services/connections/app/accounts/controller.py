"""
Accounts domain — request orchestration.
"""
from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from shared.models.pagination import PaginatedResponse
from app.accounts import service as svc
from app.accounts.models import Account
from app.accounts.schemas import (
    AccountRef,
    BlockedAccountItem,
    MessageResponse,
    OwnAccountResponse,
    ProfileEdits,
    VisibilityUpdate,
)
from app.notifications.dependencies import OutboxDispatcher
from app.notifications.outbox import EventOutbox


def account_ref(account: Account) -> AccountRef:
    return AccountRef.model_validate(account)


def own_account(account: Account) -> OwnAccountResponse:
    return OwnAccountResponse.model_validate(account)


# ── Own account ────────────────────────────────────────────────────────────────

async def submit_edits(
    session: AsyncSession,
    account: Account,
    body: ProfileEdits,
) -> OwnAccountResponse:
    await svc.submit_profile_edits(session, account, body)
    return own_account(account)


async def update_visibility(
    session: AsyncSession,
    account: Account,
    body: VisibilityUpdate,
) -> OwnAccountResponse:
    await svc.update_visibility(session, account, body.is_public)
    return own_account(account)


# ── Block ──────────────────────────────────────────────────────────────────────

async def block_account(
    session: AsyncSession,
    blocker_id: uuid.UUID,
    blocked_id: uuid.UUID,
    dispatcher: OutboxDispatcher,
) -> MessageResponse:
    outbox = EventOutbox()
    await svc.block(session, blocker_id, blocked_id, outbox)
    await dispatcher.dispatch(session, outbox)
    return MessageResponse(message="Account blocked.")


async def unblock_account(
    session: AsyncSession,
    blocker_id: uuid.UUID,
    blocked_id: uuid.UUID,
) -> None:
    await svc.unblock(session, blocker_id, blocked_id)


async def list_blocked(
    session: AsyncSession,
    account_id: uuid.UUID,
    *,
    page: int,
    size: int,
) -> PaginatedResponse[BlockedAccountItem]:
    rows, total = await svc.get_blocked(session, account_id, page=page, size=size)
    items = [
        BlockedAccountItem(id=edge.id, account=account_ref(blocked), created_at=edge.created_at)
        for edge, blocked in rows
    ]
    return PaginatedResponse[BlockedAccountItem](items=items, total=total, page=page, size=size)


# ── Feed rejection ─────────────────────────────────────────────────────────────

async def reject_from_feed(
    session: AsyncSession,
    account_id: uuid.UUID,
    rejected_id: uuid.UUID,
) -> MessageResponse:
    await svc.reject_from_feed(session, account_id, rejected_id)
    return MessageResponse(message="Account removed from your feed.")


async def admin_restore_to_feed(
    session: AsyncSession,
    account_id: uuid.UUID,
    rejected_id: uuid.UUID,
) -> None:
    await svc.restore_to_feed(session, account_id, rejected_id)


# ── Admin: profile edits ───────────────────────────────────────────────────────

async def admin_approve_edits(session: AsyncSession, account_id: uuid.UUID) -> OwnAccountResponse:
    return own_account(await svc.approve_profile_edits(session, account_id))


async def admin_reject_edits(session: AsyncSession, account_id: uuid.UUID) -> OwnAccountResponse:
    return own_account(await svc.reject_profile_edits(session, account_id))
