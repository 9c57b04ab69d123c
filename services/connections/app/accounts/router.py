"""
Accounts domain — user-facing routes.

All routes prefixed /api/v1/accounts.

Routes:
  GET    /me                       Own account (every field, pending edits included)
  PATCH  /me                       Submit profile edits for admin approval
  PATCH  /me/visibility            Switch between public and private profile
  GET    /me/blocked               My block list (paginated)
  POST   /{account_id}/block       Block (removes every request record between the pair)
  DELETE /{account_id}/block       Unblock
  POST   /{account_id}/reject      Remove an account from my discovery feed

Note: /me/... routes are registered before /{account_id}/... routes.
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.models.pagination import PaginatedResponse
from app.accounts import controller as ctrl
from app.accounts.models import Account
from app.accounts.schemas import (
    BlockedAccountItem,
    MessageResponse,
    OwnAccountResponse,
    ProfileEdits,
    VisibilityUpdate,
)
from app.auth.dependencies import get_approved_account, get_current_account
from app.database import get_db
from app.notifications.dependencies import OutboxDispatcher, get_dispatcher

router = APIRouter(prefix="/accounts", tags=["accounts"])


# ── Own account ────────────────────────────────────────────────────────────────

@router.get(
    "/me",
    response_model=OwnAccountResponse,
    summary="Get my account",
)
async def get_me(
    account: Account = Depends(get_current_account),
) -> OwnAccountResponse:
    return ctrl.own_account(account)


@router.patch(
    "/me",
    response_model=OwnAccountResponse,
    summary="Submit profile edits",
    description="Edits are stored as pending and applied once an administrator approves them.",
)
async def submit_edits(
    body: ProfileEdits,
    account: Account = Depends(get_current_account),
    session: AsyncSession = Depends(get_db),
) -> OwnAccountResponse:
    return await ctrl.submit_edits(session, account, body)


@router.patch(
    "/me/visibility",
    response_model=OwnAccountResponse,
    summary="Set profile visibility",
)
async def update_visibility(
    body: VisibilityUpdate,
    account: Account = Depends(get_current_account),
    session: AsyncSession = Depends(get_db),
) -> OwnAccountResponse:
    return await ctrl.update_visibility(session, account, body)


@router.get(
    "/me/blocked",
    response_model=PaginatedResponse[BlockedAccountItem],
    summary="List accounts I have blocked",
)
async def my_blocked(
    page: int = Query(1, ge=1, description="Page number"),
    size: int = Query(20, ge=1, le=100, description="Items per page"),
    account: Account = Depends(get_current_account),
    session: AsyncSession = Depends(get_db),
) -> PaginatedResponse[BlockedAccountItem]:
    return await ctrl.list_blocked(session, account.id, page=page, size=size)


# ── Block ──────────────────────────────────────────────────────────────────────

@router.post(
    "/{account_id}/block",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Block an account",
    description="Deletes every pending and accepted request between the pair, in both directions.",
)
async def block_account(
    account_id: uuid.UUID,
    account: Account = Depends(get_approved_account),
    session: AsyncSession = Depends(get_db),
    dispatcher: OutboxDispatcher = Depends(get_dispatcher),
) -> MessageResponse:
    return await ctrl.block_account(session, account.id, account_id, dispatcher)


@router.delete(
    "/{account_id}/block",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Unblock an account",
)
async def unblock_account(
    account_id: uuid.UUID,
    account: Account = Depends(get_approved_account),
    session: AsyncSession = Depends(get_db),
) -> None:
    await ctrl.unblock_account(session, account.id, account_id)


# ── Feed rejection ─────────────────────────────────────────────────────────────

@router.post(
    "/{account_id}/reject",
    response_model=MessageResponse,
    summary="Remove an account from my feed",
    description="Not a block. Only an administrator can undo it.",
)
async def reject_from_feed(
    account_id: uuid.UUID,
    account: Account = Depends(get_approved_account),
    session: AsyncSession = Depends(get_db),
) -> MessageResponse:
    return await ctrl.reject_from_feed(session, account.id, account_id)
