"""
Policies domain — user-facing routes.

Routes:
  GET /api/v1/plans   Active premium plans, shortest duration first
"""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.accounts.models import Account
from app.auth.dependencies import get_current_account
from app.database import get_db
from app.policies import service as svc
from app.policies.schemas import PlanResponse

router = APIRouter(prefix="/plans", tags=["plans"])


@router.get(
    "",
    response_model=list[PlanResponse],
    summary="List premium plans",
)
async def list_plans(
    account: Account = Depends(get_current_account),
    session: AsyncSession = Depends(get_db),
) -> list[PlanResponse]:
    plans = await svc.list_active_plans(session)
    return [PlanResponse.model_validate(p) for p in plans]
