"""
Quota domain — counter reads and atomic writes (zero FastAPI imports).

The increment is a single UPDATE whose CASE expressions perform the lazy
UTC-midnight reset in the same statement, so two concurrent submissions never
lose an increment.  It is a separate write from the ledger insert: a crash
between the two can leave a consumed unit without a request (or the reverse).
"""
from __future__ import annotations

import logging
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from app.accounts.models import Account
from app.exceptions import RequestLimitReached
from app.policies import service as policies
from app.policies.schemas import DisplayPolicy, TierPolicy
from app.quota import tracker
from app.quota.tracker import QuotaSnapshot
from app.timeutils import start_of_utc_day

logger = logging.getLogger(__name__)


async def get_quota_status(
    session: AsyncSession,
    account: Account,
    *,
    now: datetime,
    display: DisplayPolicy | None = None,
    tier: TierPolicy | None = None,
) -> QuotaSnapshot:
    if display is None:
        display = await policies.get_display_policy(session)
    if tier is None:
        tier = await policies.get_tier_policy_for(session, account, now=now)
    return tracker.snapshot(account, tier, display, now)


async def ensure_within_quota(
    session: AsyncSession,
    account: Account,
    *,
    now: datetime,
    display: DisplayPolicy | None = None,
) -> QuotaSnapshot:
    """Raise RequestLimitReached when today's counter has hit the effective limit."""
    quota = await get_quota_status(session, account, now=now, display=display)
    if quota.exhausted:
        logger.info(
            "Request limit reached for account %s (limit=%d, premium=%s)",
            account.id, quota.limit, quota.is_premium,
        )
        raise RequestLimitReached(
            limit=quota.limit, remaining=quota.remaining, is_premium=quota.is_premium
        )
    return quota


async def consume(session: AsyncSession, account: Account, *, now: datetime) -> int:
    """Consume one unit; resets a stale counter to 1.  Returns the new count."""
    day_start = start_of_utc_day(now)
    stale = sa.or_(
        Account.requests_today_at.is_(None),
        Account.requests_today_at < day_start,
    )
    await session.execute(
        sa.update(Account)
        .where(Account.id == account.id)
        .values(
            requests_today=sa.case((stale, 1), else_=Account.requests_today + 1),
            requests_today_at=sa.case(
                (stale, sa.literal(now, sa.DateTime(timezone=True))),
                else_=Account.requests_today_at,
            ),
        )
        .execution_options(synchronize_session=False)
    )
    await session.refresh(account, attribute_names=["requests_today", "requests_today_at"])
    return account.requests_today
