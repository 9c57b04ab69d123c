"""
Profiles domain — user-facing routes.

All routes prefixed /api/v1/profiles.

Routes:
  GET /feed             Discovery feed (filters, paginated, resolved per candidate)
  GET /{account_id}     View a profile through the visibility layers

Hidden fields are omitted from the body rather than returned as null.
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from shared.models.pagination import PaginatedResponse, PaginationParams
from app.accounts.constants import MaritalStatus
from app.accounts.models import Account
from app.auth.dependencies import get_approved_account
from app.database import get_db
from app.profiles import controller as ctrl
from app.profiles.schemas import FeedFilters, ProfileResponse

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get(
    "/feed",
    response_model=PaginatedResponse[ProfileResponse],
    response_model_exclude_unset=True,
    summary="Discovery feed",
    description=(
        "Approved accounts of the opposite gender, highest display priority first, then "
        "newest. Excludes accounts I removed from my feed, blocked accounts in either "
        "direction, and accounts I am already connected to."
    ),
)
async def list_feed(
    pagination: PaginationParams = Depends(),
    location: str | None = Query(None, description="Substring match on location"),
    min_age: int | None = Query(None, ge=18, le=100),
    max_age: int | None = Query(None, ge=18, le=100),
    education: str | None = Query(None),
    occupation: str | None = Query(None),
    marital_status: MaritalStatus | None = Query(None),
    name: str | None = Query(None, description="Substring match on name"),
    account: Account = Depends(get_approved_account),
    session: AsyncSession = Depends(get_db),
) -> PaginatedResponse[ProfileResponse]:
    filters = FeedFilters(
        location=location,
        min_age=min_age,
        max_age=max_age,
        education=education,
        occupation=occupation,
        marital_status=marital_status,
        name=name,
    )
    return await ctrl.list_feed(
        session, account, filters, page=pagination.page, size=pagination.size
    )


@router.get(
    "/{account_id}",
    response_model=ProfileResponse,
    response_model_exclude_unset=True,
    summary="View a profile",
    description=(
        "Fields are revealed according to connection state, blocks, profile visibility, "
        "the viewer's plan and the administrator's display policy."
    ),
)
async def view_profile(
    account_id: uuid.UUID,
    account: Account = Depends(get_approved_account),
    session: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    return await ctrl.view_profile(session, account, account_id)
