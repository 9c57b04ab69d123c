"""
Profiles domain — profile views and the discovery feed (zero FastAPI imports).

Both operations load one DisplayPolicy snapshot and the viewer's TierPolicy once
per request and hand them to the pure resolver.  The feed loads ledger records
for the whole page in one query.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from app.accounts import service as accounts
from app.accounts.constants import AccountStatus, Gender
from app.accounts.models import Account
from app.connections import service as ledger
from app.exceptions import AccountNotFound
from app.policies import service as policies
from app.profiles.resolver import (
    ResolvedProfile,
    ViewerContext,
    resolve_profile,
    summarize,
)
from app.profiles.schemas import FeedFilters
from app.timeutils import utcnow

logger = logging.getLogger(__name__)

_OPPOSITE_GENDER: dict[Gender, Gender] = {
    Gender.MALE: Gender.FEMALE,
    Gender.FEMALE: Gender.MALE,
}


async def _viewer_context(session: AsyncSession, viewer: Account, now: datetime) -> ViewerContext:
    tier = await policies.get_tier_policy_for(session, viewer, now=now)
    return ViewerContext(account_id=viewer.id, is_admin=viewer.is_admin, tier=tier)


# ── Profile view ───────────────────────────────────────────────────────────────

async def view_profile(
    session: AsyncSession,
    viewer: Account,
    target_id: uuid.UUID,
    *,
    now: datetime | None = None,
) -> ResolvedProfile:
    now = now or utcnow()
    accounts.ensure_approved(viewer)
    target = await accounts.require_account(session, target_id)
    is_self = target.id == viewer.id
    if not is_self and not viewer.is_admin and target.status is not AccountStatus.APPROVED:
        # Unapproved profiles are not discoverable
        raise AccountNotFound()

    display = await policies.get_display_policy(session)
    context = await _viewer_context(session, viewer, now)
    if is_self:
        relation = summarize(viewer.id, [])
    else:
        blocked_by_me, blocked_me = await accounts.block_state(session, viewer.id, target.id)
        records = await ledger.records_between(session, viewer.id, [target.id])
        relation = summarize(
            viewer.id,
            records[target.id],
            blocked_by_viewer=blocked_by_me,
            blocked_by_target=blocked_me,
        )
    return resolve_profile(context, target, relation, display)


# ── Discovery feed ─────────────────────────────────────────────────────────────

def _feed_query(viewer: Account, filters: FeedFilters) -> sa.Select:
    query = sa.select(Account).where(
        Account.id != viewer.id,
        Account.status == AccountStatus.APPROVED,
        Account.is_admin.is_(False),
        Account.id.not_in(accounts.rejected_ids_subquery(viewer.id)),
        Account.id.not_in(accounts.blocked_either_way_subquery(viewer.id)),
        Account.id.not_in(ledger.connected_ids_subquery(viewer.id)),
    )
    if viewer.gender is not None:
        query = query.where(Account.gender == _OPPOSITE_GENDER[viewer.gender])
    if filters.location:
        query = query.where(Account.location.ilike(f"%{filters.location}%"))
    if filters.min_age is not None:
        query = query.where(Account.age >= filters.min_age)
    if filters.max_age is not None:
        query = query.where(Account.age <= filters.max_age)
    if filters.education:
        query = query.where(Account.education.ilike(f"%{filters.education}%"))
    if filters.occupation:
        query = query.where(Account.occupation.ilike(f"%{filters.occupation}%"))
    if filters.marital_status is not None:
        query = query.where(Account.marital_status == filters.marital_status)
    if filters.name:
        query = query.where(Account.name.ilike(f"%{filters.name}%"))
    return query


async def list_feed(
    session: AsyncSession,
    viewer: Account,
    filters: FeedFilters,
    *,
    page: int,
    size: int,
    now: datetime | None = None,
) -> tuple[list[ResolvedProfile], int]:
    now = now or utcnow()
    accounts.ensure_approved(viewer)
    base = _feed_query(viewer, filters)

    total_r = await session.execute(sa.select(sa.func.count()).select_from(base.subquery()))
    total = total_r.scalar_one()
    rows_r = await session.execute(
        base.order_by(
            Account.display_priority.desc(),
            Account.created_at.desc(),
            Account.id,
        )
        .limit(size)
        .offset((page - 1) * size)
    )
    candidates = list(rows_r.scalars().all())
    if not candidates:
        return [], total

    display = await policies.get_display_policy(session)
    context = await _viewer_context(session, viewer, now)
    records = await ledger.records_between(session, viewer.id, [c.id for c in candidates])
    profiles = [
        resolve_profile(context, c, summarize(viewer.id, records[c.id]), display)
        for c in candidates
    ]
    logger.debug("Feed page %d for %s: %d of %d", page, viewer.id, len(profiles), total)
    return profiles, total
