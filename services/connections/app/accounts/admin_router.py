"""
Accounts domain — admin-facing routes.

Routes:
  POST   /api/v1/admin/accounts/{account_id}/edits/approve                    Apply pending edits
  POST   /api/v1/admin/accounts/{account_id}/edits/reject                     Discard pending edits
  DELETE /api/v1/admin/accounts/{account_id}/feed-rejections/{rejected_id}    Restore to feed

Requires: an administrator account.
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.accounts import controller as ctrl
from app.accounts.models import Account
from app.accounts.schemas import OwnAccountResponse
from app.auth.dependencies import require_admin
from app.database import get_db

router = APIRouter(prefix="/admin/accounts", tags=["admin-accounts"])


@router.post(
    "/{account_id}/edits/approve",
    response_model=OwnAccountResponse,
    summary="[Admin] Approve pending profile edits",
)
async def approve_edits(
    account_id: uuid.UUID,
    admin: Account = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
) -> OwnAccountResponse:
    return await ctrl.admin_approve_edits(session, account_id)


@router.post(
    "/{account_id}/edits/reject",
    response_model=OwnAccountResponse,
    summary="[Admin] Reject pending profile edits",
)
async def reject_edits(
    account_id: uuid.UUID,
    admin: Account = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
) -> OwnAccountResponse:
    return await ctrl.admin_reject_edits(session, account_id)


@router.delete(
    "/{account_id}/feed-rejections/{rejected_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="[Admin] Restore a rejected account to a feed",
)
async def restore_to_feed(
    account_id: uuid.UUID,
    rejected_id: uuid.UUID,
    admin: Account = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
) -> None:
    await ctrl.admin_restore_to_feed(session, account_id, rejected_id)
