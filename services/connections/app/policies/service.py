"""
Policies domain — tier and display policy stores (zero FastAPI imports).

  tier:     plans are referenced by accounts, never embedded; a lookup returns
            an immutable TierPolicy snapshot
  display:  one app_settings row, created on first read, updated in place,
            never deleted
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.accounts.constants import DEFAULT_DISPLAY_FIELDS, ProfileField
from app.accounts.models import Account
from app.config import get_settings
from app.policies.models import APP_SETTINGS_ID, AppSettings, PremiumPlan
from app.policies.schemas import (
    AdvancedFeatures,
    DisplayPolicy,
    DisplayPolicyUpdate,
    TierPolicy,
)
from app.quota.tracker import has_active_premium

logger = logging.getLogger(__name__)


# ── Tier policy ────────────────────────────────────────────────────────────────

def _tier_from_plan(plan: PremiumPlan) -> TierPolicy:
    features = dict(plan.advanced_features or {})
    matrix = features.get("can_view_fields") or {}
    known = {f.value for f in ProfileField}
    unknown = sorted(str(k) for k in matrix if k not in known)
    if unknown:
        logger.warning(
            "Plan %s has unknown can_view_fields key(s): %s", plan.id, ", ".join(unknown)
        )
    features["can_view_fields"] = {k: v for k, v in matrix.items() if k in known}
    return TierPolicy(
        plan_id=plan.id,
        name=plan.name,
        request_limit=plan.request_limit,
        advanced_features=AdvancedFeatures.model_validate(features),
    )


async def get_plan(session: AsyncSession, plan_id: uuid.UUID) -> TierPolicy | None:
    plan = await session.get(PremiumPlan, plan_id)
    if plan is None:
        return None
    return _tier_from_plan(plan)


async def get_tier_policy_for(
    session: AsyncSession,
    account: Account,
    *,
    now: datetime,
) -> TierPolicy | None:
    """Plan snapshot for an account with an unexpired subscription, else None."""
    if not has_active_premium(account, now) or account.premium_plan_id is None:
        return None
    return await get_plan(session, account.premium_plan_id)


async def list_active_plans(session: AsyncSession) -> list[PremiumPlan]:
    result = await session.execute(
        sa.select(PremiumPlan)
        .where(PremiumPlan.is_active.is_(True))
        .order_by(PremiumPlan.duration_months.asc())
    )
    return list(result.scalars().all())


# ── Display policy ─────────────────────────────────────────────────────────────

def _snapshot(row: AppSettings) -> DisplayPolicy:
    return DisplayPolicy(
        profile_display_fields={**DEFAULT_DISPLAY_FIELDS, **(row.profile_display_fields or {})},
        free_request_limit=row.free_user_request_limit,
        premium_request_limit=row.premium_user_request_limit,
    )


async def _get_or_create_row(session: AsyncSession) -> AppSettings:
    row = await session.get(AppSettings, APP_SETTINGS_ID)
    if row is not None:
        return row
    settings = get_settings()
    row = AppSettings(
        id=APP_SETTINGS_ID,
        free_user_request_limit=settings.default_free_request_limit,
        premium_user_request_limit=settings.default_premium_request_limit,
        profile_display_fields=dict(DEFAULT_DISPLAY_FIELDS),
    )
    try:
        async with session.begin_nested():
            session.add(row)
    except IntegrityError:
        # A concurrent request created the row first
        row = await session.get(AppSettings, APP_SETTINGS_ID)
        if row is None:
            raise
    else:
        logger.info("Created default app settings row")
    return row


async def get_display_policy(session: AsyncSession) -> DisplayPolicy:
    return _snapshot(await _get_or_create_row(session))


async def update_display_policy(
    session: AsyncSession,
    body: DisplayPolicyUpdate,
) -> DisplayPolicy:
    row = await _get_or_create_row(session)
    if body.profile_display_fields is not None:
        # Reassign so the JSON column registers the change
        row.profile_display_fields = {
            **(row.profile_display_fields or {}),
            **body.profile_display_fields,
        }
    if body.free_request_limit is not None:
        row.free_user_request_limit = body.free_request_limit
    if body.premium_request_limit is not None:
        row.premium_user_request_limit = body.premium_request_limit
    await session.flush()
    return _snapshot(row)
