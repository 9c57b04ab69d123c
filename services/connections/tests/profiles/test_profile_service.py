import uuid
from datetime import datetime, timezone

import pytest

from app.accounts import service as accounts
from app.accounts.constants import AccountStatus, Gender
from app.connections import service as ledger
from app.connections.constants import RequestDirection, RequestKind, RequestStatus, ResponseAction
from app.exceptions import AccountNotApproved, AccountNotFound
from app.notifications.outbox import EventOutbox
from app.policies import service as policies
from app.policies.schemas import DisplayPolicyUpdate
from app.profiles import service as profiles
from app.profiles.controller import to_response
from app.profiles.schemas import FeedFilters


async def _connect(db_session, a, b) -> None:
    request = (await ledger.submit(db_session, a, b.id, RequestKind.FOLLOW, EventOutbox())).request
    await ledger.respond(db_session, b, request.id, ResponseAction.ACCEPT, EventOutbox())


# ── Profile view ───────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_view_own_profile_shows_everything(db_session, make_account) -> None:
    me = await make_account()

    resolved = await profiles.view_profile(db_session, me, me.id)

    assert resolved.fields["contact"] == me.contact
    assert resolved.fields["id_number"] == me.id_number


@pytest.mark.asyncio
async def test_view_own_profile_honours_display_policy(db_session, make_account) -> None:
    me = await make_account()
    await policies.update_display_policy(
        db_session, DisplayPolicyUpdate(profile_display_fields={"about": False})
    )

    resolved = await profiles.view_profile(db_session, me, me.id)

    assert "about" not in resolved.fields
    assert resolved.fields["contact"] == me.contact


@pytest.mark.asyncio
async def test_private_stranger_sees_name_only_data(db_session, make_account) -> None:
    viewer = await make_account()
    target = await make_account(gender=Gender.FEMALE)

    resolved = await profiles.view_profile(db_session, viewer, target.id)

    assert resolved.fields["name"] == target.name
    assert "age" not in resolved.fields
    assert "profile_photo" not in resolved.fields
    assert "contact" not in resolved.fields
    assert resolved.connect_request is None


@pytest.mark.asyncio
async def test_public_target_with_about_hidden_by_display_policy(db_session, make_account) -> None:
    viewer = await make_account()
    target = await make_account(gender=Gender.FEMALE, is_public=True)
    await policies.update_display_policy(
        db_session, DisplayPolicyUpdate(profile_display_fields={"about": False})
    )

    resolved = await profiles.view_profile(db_session, viewer, target.id)

    assert resolved.fields["age"] == target.age
    assert resolved.fields["profile_photo"] == target.profile_photo
    assert "about" not in resolved.fields


@pytest.mark.asyncio
async def test_connected_viewer_sees_demographics_and_flags(db_session, make_account) -> None:
    viewer = await make_account()
    target = await make_account(gender=Gender.FEMALE)
    await _connect(db_session, viewer, target)

    resolved = await profiles.view_profile(db_session, viewer, target.id)

    assert resolved.is_connected is True
    assert resolved.fields["occupation"] == target.occupation
    assert "profile_photo" not in resolved.fields
    assert resolved.connect_request.status is RequestStatus.ACCEPTED


@pytest.mark.asyncio
async def test_pending_request_direction_is_reported(db_session, make_account) -> None:
    viewer = await make_account()
    target = await make_account(gender=Gender.FEMALE)
    await ledger.submit(db_session, target, viewer.id, RequestKind.CHAT, EventOutbox())

    resolved = await profiles.view_profile(db_session, viewer, target.id)
    response = to_response(resolved)

    assert response.request_status == "pending"
    assert response.request_direction is RequestDirection.RECEIVED


@pytest.mark.asyncio
async def test_blocked_viewer_sees_name_and_blocked_flag(db_session, make_account) -> None:
    a = await make_account()
    b = await make_account(gender=Gender.FEMALE, is_public=True)
    await accounts.block(db_session, a.id, b.id, EventOutbox())

    resolved = await profiles.view_profile(db_session, b, a.id)
    body = to_response(resolved).model_dump(exclude_unset=True)

    assert body == {"id": a.id, "name": a.name, "blocked": True}


@pytest.mark.asyncio
async def test_unapproved_target_is_not_found(db_session, make_account) -> None:
    viewer = await make_account()
    pending = await make_account(status=AccountStatus.PENDING)
    admin = await make_account(is_admin=True)

    with pytest.raises(AccountNotFound):
        await profiles.view_profile(db_session, viewer, pending.id)
    with pytest.raises(AccountNotFound):
        await profiles.view_profile(db_session, viewer, uuid.uuid4())
    resolved = await profiles.view_profile(db_session, admin, pending.id)
    assert resolved.fields["contact"] == pending.contact


@pytest.mark.asyncio
async def test_unapproved_viewer_is_refused(db_session, make_account) -> None:
    viewer = await make_account(status=AccountStatus.PENDING)
    target = await make_account()

    with pytest.raises(AccountNotApproved):
        await profiles.view_profile(db_session, viewer, target.id)


# ── Discovery feed ─────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_feed_exclusions(db_session, make_account) -> None:
    viewer = await make_account(gender=Gender.MALE)
    visible = await make_account(gender=Gender.FEMALE)
    await make_account(gender=Gender.MALE)
    await make_account(gender=Gender.FEMALE, status=AccountStatus.PENDING)
    await make_account(gender=Gender.FEMALE, is_admin=True)
    rejected = await make_account(gender=Gender.FEMALE)
    blocked_me = await make_account(gender=Gender.FEMALE)
    connected = await make_account(gender=Gender.FEMALE)
    await accounts.reject_from_feed(db_session, viewer.id, rejected.id)
    await accounts.block(db_session, blocked_me.id, viewer.id, EventOutbox())
    await _connect(db_session, viewer, connected)

    page, total = await profiles.list_feed(db_session, viewer, FeedFilters(), page=1, size=10)

    assert total == 1
    assert [p.account_id for p in page] == [visible.id]


@pytest.mark.asyncio
async def test_feed_orders_by_priority_then_newest(db_session, make_account) -> None:
    viewer = await make_account(gender=Gender.FEMALE)
    old = await make_account(created_at=datetime(2026, 1, 1, tzinfo=timezone.utc))
    new = await make_account(created_at=datetime(2026, 2, 1, tzinfo=timezone.utc))
    boosted = await make_account(
        display_priority=5, created_at=datetime(2025, 6, 1, tzinfo=timezone.utc)
    )

    page, total = await profiles.list_feed(db_session, viewer, FeedFilters(), page=1, size=10)

    assert total == 3
    assert [p.account_id for p in page] == [boosted.id, new.id, old.id]


@pytest.mark.asyncio
async def test_feed_filters_and_pagination(db_session, make_account) -> None:
    viewer = await make_account(gender=Gender.MALE)
    for age in (24, 28, 31):
        await make_account(gender=Gender.FEMALE, age=age, location="Thrissur")
    await make_account(gender=Gender.FEMALE, age=29, location="Kannur")

    filters = FeedFilters(location="thrissur", min_age=25)
    first, total = await profiles.list_feed(db_session, viewer, filters, page=1, size=1)
    second, _ = await profiles.list_feed(db_session, viewer, filters, page=2, size=1)
    empty, _ = await profiles.list_feed(db_session, viewer, filters, page=3, size=1)

    assert total == 2
    assert len(first) == 1 and len(second) == 1
    assert first[0].account_id != second[0].account_id
    assert empty == []


@pytest.mark.asyncio
async def test_feed_cards_are_resolved(db_session, make_account) -> None:
    viewer = await make_account(gender=Gender.MALE)
    await make_account(gender=Gender.FEMALE, is_public=False)

    page, _ = await profiles.list_feed(db_session, viewer, FeedFilters(), page=1, size=10)

    assert "name" in page[0].fields
    assert "age" not in page[0].fields
    assert "contact" not in page[0].fields
