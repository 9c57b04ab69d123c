"""
Policies domain — admin-facing routes.

Routes:
  GET   /api/v1/admin/settings/display-policy   Current display flags and quota defaults
  PATCH /api/v1/admin/settings/display-policy   Partial update; unknown field keys → 422

Requires: an administrator account.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.accounts.models import Account
from app.auth.dependencies import require_admin
from app.database import get_db
from app.policies import service as svc
from app.policies.schemas import DisplayPolicy, DisplayPolicyUpdate

router = APIRouter(prefix="/admin/settings", tags=["admin-settings"])


@router.get(
    "/display-policy",
    response_model=DisplayPolicy,
    summary="[Admin] Get the display policy",
)
async def get_display_policy(
    admin: Account = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
) -> DisplayPolicy:
    return await svc.get_display_policy(session)


@router.patch(
    "/display-policy",
    response_model=DisplayPolicy,
    summary="[Admin] Update the display policy",
    description="Only the provided keys change. Field flags merge into the stored map.",
)
async def update_display_policy(
    body: DisplayPolicyUpdate,
    admin: Account = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
) -> DisplayPolicy:
    return await svc.update_display_policy(session, body)
