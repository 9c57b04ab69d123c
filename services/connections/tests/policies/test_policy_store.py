import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from app.accounts.constants import DEFAULT_DISPLAY_FIELDS, ProfileField
from app.policies import service as policies
from app.policies.models import PremiumPlan
from app.policies.schemas import DisplayPolicyUpdate

NOW = datetime(2026, 7, 1, 12, 0, tzinfo=timezone.utc)


def _plan(name: str, months: int, limit: int, **extra) -> PremiumPlan:
    return PremiumPlan(
        name=name,
        duration_months=months,
        price=Decimal("19.99"),
        request_limit=limit,
        features=[],
        advanced_features=extra.pop("advanced_features", {}),
        **extra,
    )


@pytest.mark.asyncio
async def test_display_policy_created_on_first_read(db_session) -> None:
    first = await policies.get_display_policy(db_session)
    second = await policies.get_display_policy(db_session)

    assert first == second
    assert first.profile_display_fields == DEFAULT_DISPLAY_FIELDS
    assert first.shows(ProfileField.NAME) is True
    assert first.shows(ProfileField.EMAIL, default=True) is False


@pytest.mark.asyncio
async def test_display_policy_partial_update(db_session) -> None:
    before = await policies.get_display_policy(db_session)

    after = await policies.update_display_policy(
        db_session,
        DisplayPolicyUpdate(profile_display_fields={"about": False}, free_request_limit=5),
    )

    assert after.free_request_limit == 5
    assert after.premium_request_limit == before.premium_request_limit
    assert after.profile_display_fields["about"] is False
    assert after.profile_display_fields["name"] is True
    assert (await policies.get_display_policy(db_session)) == after


def test_display_policy_update_rejects_unknown_keys() -> None:
    with pytest.raises(ValidationError):
        DisplayPolicyUpdate(profile_display_fields={"favourite_colour": True})
    with pytest.raises(ValidationError):
        DisplayPolicyUpdate(free_request_limit=-1)


@pytest.mark.asyncio
async def test_active_plans_shortest_first(db_session) -> None:
    db_session.add_all([
        _plan("6 Month Premium", 6, 100),
        _plan("1 Month Premium", 1, 50),
        _plan("Retired", 3, 75, is_active=False),
    ])
    await db_session.flush()

    plans = await policies.list_active_plans(db_session)

    assert [p.name for p in plans] == ["1 Month Premium", "6 Month Premium"]


@pytest.mark.asyncio
async def test_tier_policy_only_for_unexpired_subscription(db_session, make_account) -> None:
    plan = _plan(
        "3 Month Premium", 3, 75,
        advanced_features={"view_all_users": True, "can_view_fields": {"occupation": False}},
    )
    db_session.add(plan)
    await db_session.flush()
    active = await make_account(
        is_premium=True, premium_plan_id=plan.id, premium_expires_at=NOW + timedelta(days=1)
    )
    expired = await make_account(
        is_premium=True, premium_plan_id=plan.id, premium_expires_at=NOW - timedelta(days=1)
    )

    tier = await policies.get_tier_policy_for(db_session, active, now=NOW)

    assert tier is not None
    assert tier.request_limit == 75
    assert tier.advanced_features.view_all_users is True
    assert tier.advanced_features.can_view_fields == {ProfileField.OCCUPATION: False}
    assert await policies.get_tier_policy_for(db_session, expired, now=NOW) is None


@pytest.mark.asyncio
async def test_unknown_matrix_keys_are_dropped(db_session, caplog) -> None:
    plan = _plan(
        "1 Month Premium", 1, 50,
        advanced_features={"can_view_fields": {"about": False, "shoe_size": False}},
    )
    db_session.add(plan)
    await db_session.flush()

    with caplog.at_level(logging.WARNING):
        tier = await policies.get_plan(db_session, plan.id)

    assert tier is not None
    assert tier.advanced_features.can_view_fields == {ProfileField.ABOUT: False}
    assert "shoe_size" in caplog.text
