import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.accounts.models import Account
from app.policies.models import PremiumPlan
from app.policies.schemas import DisplayPolicy, TierPolicy
from app.quota import service as quota_svc
from app.quota import tracker

NOW = datetime(2026, 4, 10, 15, 30, tzinfo=timezone.utc)
DISPLAY = DisplayPolicy(free_request_limit=2, premium_request_limit=20)


def _account(**overrides) -> Account:
    data = {"id": uuid.uuid4(), "is_premium": False, "requests_today": 0}
    data.update(overrides)
    return Account(**data)


def _tier(limit: int) -> TierPolicy:
    return TierPolicy(plan_id=uuid.uuid4(), name="Plan", request_limit=limit)


# ── Pure rules ─────────────────────────────────────────────────────────────────

def test_counter_from_earlier_day_counts_as_zero() -> None:
    account = _account(requests_today=9, requests_today_at=NOW - timedelta(days=1))

    assert tracker.consumed_today(account, NOW) == 0


def test_counter_from_today_is_used() -> None:
    account = _account(requests_today=1, requests_today_at=NOW.replace(hour=0, minute=5))

    assert tracker.consumed_today(account, NOW) == 1


def test_naive_timestamps_are_read_as_utc() -> None:
    stamped = datetime(2026, 4, 10, 0, 1)
    account = _account(requests_today=2, requests_today_at=stamped)

    assert tracker.consumed_today(account, NOW) == 2


def test_free_limit_applies_without_premium() -> None:
    assert tracker.effective_limit(_account(), None, DISPLAY, NOW) == 2


def test_plan_limit_applies_to_active_premium() -> None:
    account = _account(is_premium=True, premium_expires_at=NOW + timedelta(days=3))

    assert tracker.effective_limit(account, _tier(50), DISPLAY, NOW) == 50


def test_premium_without_plan_uses_display_default() -> None:
    account = _account(is_premium=True, premium_expires_at=None)

    assert tracker.effective_limit(account, None, DISPLAY, NOW) == 20


def test_expired_premium_falls_back_to_free_limit() -> None:
    account = _account(is_premium=True, premium_expires_at=NOW - timedelta(seconds=1))

    assert tracker.has_active_premium(account, NOW) is False
    assert tracker.effective_limit(account, _tier(50), DISPLAY, NOW) == 2


def test_snapshot_remaining_never_negative() -> None:
    account = _account(requests_today=5, requests_today_at=NOW)

    quota = tracker.snapshot(account, None, DISPLAY, NOW)

    assert quota.remaining == 0
    assert quota.exhausted is True
    assert quota.resets_at == datetime(2026, 4, 11, tzinfo=timezone.utc)


# ── Store-backed ───────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_premium_plan_quota_status(db_session, make_account) -> None:
    plan = PremiumPlan(
        name="1 Month Premium",
        duration_months=1,
        price=Decimal("9.99"),
        request_limit=50,
        features=[],
        advanced_features={},
    )
    db_session.add(plan)
    await db_session.flush()
    account = await make_account(
        is_premium=True,
        premium_plan_id=plan.id,
        premium_expires_at=NOW + timedelta(days=20),
        requests_today=3,
        requests_today_at=NOW - timedelta(hours=1),
    )

    quota = await quota_svc.get_quota_status(db_session, account, now=NOW)

    assert quota.limit == 50
    assert quota.remaining == 47
    assert quota.is_premium is True


@pytest.mark.asyncio
async def test_consume_resets_stale_counter(db_session, make_account) -> None:
    account = await make_account(
        requests_today=7, requests_today_at=NOW - timedelta(days=2)
    )

    assert await quota_svc.consume(db_session, account, now=NOW) == 1
    assert await quota_svc.consume(db_session, account, now=NOW) == 2
