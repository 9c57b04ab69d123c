"""
Connections domain — admin-facing routes.

Routes:
  GET /api/v1/admin/connections/pending   Every pending request, newest first (capped at 100)

Requires: an administrator account.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.accounts.models import Account
from app.auth.dependencies import require_admin
from app.connections import controller as ctrl
from app.connections.schemas import AdminPendingListResponse
from app.database import get_db

router = APIRouter(prefix="/admin/connections", tags=["admin-connections"])


@router.get(
    "/pending",
    response_model=AdminPendingListResponse,
    summary="[Admin] List pending connection requests",
)
async def list_pending(
    admin: Account = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
) -> AdminPendingListResponse:
    return await ctrl.admin_list_pending(session)
