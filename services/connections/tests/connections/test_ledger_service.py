import uuid
from datetime import datetime, timezone

import pytest
import pytest_asyncio
import sqlalchemy as sa

from shared.events.schemas import LifecycleEventType
from app.accounts.constants import AccountStatus
from app.accounts.models import AccountBlock
from app.connections import service as ledger
from app.connections.constants import (
    RequestKind,
    RequestStatus,
    ResponseAction,
    connect_slot,
)
from app.connections.models import ConnectionRequest, Conversation
from app.exceptions import (
    AccountNotApproved,
    AccountNotFound,
    AdminNotAllowed,
    CannotRequestSelf,
    ConnectionNotFound,
    PairBlocked,
    RequestAlreadyResolved,
    RequestLimitReached,
    RequestNotFound,
    ResponderMismatch,
    TargetRequired,
)
from app.notifications.outbox import EventOutbox
from app.policies import service as policies
from app.policies.schemas import DisplayPolicyUpdate


@pytest_asyncio.fixture(autouse=True)
async def default_limits(db_session) -> None:
    await policies.update_display_policy(
        db_session, DisplayPolicyUpdate(free_request_limit=2, premium_request_limit=20)
    )


async def _connect_records(db_session, a, b) -> list[ConnectionRequest]:
    result = await db_session.execute(
        sa.select(ConnectionRequest).where(
            ConnectionRequest.slot.in_([connect_slot(a.id, b.id), connect_slot(b.id, a.id)])
        )
    )
    return list(result.scalars().all())


# ── Submit ─────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_submit_creates_pending_request(db_session, make_account, outbox) -> None:
    a = await make_account()
    b = await make_account()

    outcome = await ledger.submit(db_session, a, b.id, RequestKind.FOLLOW, outbox)

    assert outcome.created is True
    assert outcome.request.status is RequestStatus.PENDING
    assert outcome.request.kind is RequestKind.FOLLOW
    assert outcome.quota_remaining == 1
    assert a.requests_today == 1
    assert outbox.event_types_for(b.id) == [LifecycleEventType.REQUEST_RECEIVED]
    assert b.id in outbox.invalidations


@pytest.mark.asyncio
async def test_same_kind_resubmission_is_idempotent(db_session, make_account, outbox) -> None:
    a = await make_account()
    b = await make_account()

    first = await ledger.submit(db_session, a, b.id, RequestKind.FOLLOW, outbox)
    second = await ledger.submit(db_session, a, b.id, RequestKind.FOLLOW, outbox)

    assert second.created is False
    assert second.request.id == first.request.id
    assert a.requests_today == 1
    assert len(await _connect_records(db_session, a, b)) == 1


@pytest.mark.asyncio
async def test_follow_then_chat_merges_into_both(db_session, make_account, outbox) -> None:
    a = await make_account()
    b = await make_account()

    first = await ledger.submit(db_session, a, b.id, RequestKind.FOLLOW, outbox)
    merged = await ledger.submit(db_session, a, b.id, RequestKind.CHAT, outbox)

    assert merged.created is False
    assert merged.request.id == first.request.id
    assert merged.request.kind is RequestKind.BOTH
    assert a.requests_today == 1
    assert outbox.event_types_for(b.id) == [
        LifecycleEventType.REQUEST_RECEIVED,
        LifecycleEventType.REQUEST_RECEIVED,
    ]


@pytest.mark.asyncio
async def test_both_absorbs_later_follow(db_session, make_account, outbox) -> None:
    a = await make_account()
    b = await make_account()

    await ledger.submit(db_session, a, b.id, RequestKind.BOTH, outbox)
    again = await ledger.submit(db_session, a, b.id, RequestKind.FOLLOW, outbox)

    assert again.request.kind is RequestKind.BOTH
    assert len(outbox.event_types_for(b.id)) == 1


@pytest.mark.asyncio
async def test_photo_request_does_not_consume_quota(db_session, make_account, outbox) -> None:
    a = await make_account()
    b = await make_account()

    outcome = await ledger.submit(db_session, a, b.id, RequestKind.PHOTO, outbox)

    assert outcome.created is True
    assert outcome.quota_remaining is None
    assert a.requests_today == 0
    assert outbox.event_types_for(b.id) == [LifecycleEventType.PHOTO_REQUESTED]


@pytest.mark.asyncio
async def test_photo_slot_is_shared_by_both_directions(db_session, make_account, outbox) -> None:
    a = await make_account()
    b = await make_account()

    first = await ledger.submit(db_session, a, b.id, RequestKind.PHOTO, outbox)
    reverse = await ledger.submit(db_session, b, a.id, RequestKind.PHOTO, outbox)

    assert reverse.created is False
    assert reverse.request.id == first.request.id
    assert reverse.request.from_id == a.id


@pytest.mark.asyncio
async def test_opposite_directions_are_separate_records(db_session, make_account, outbox) -> None:
    a = await make_account()
    b = await make_account()

    ab = await ledger.submit(db_session, a, b.id, RequestKind.FOLLOW, outbox)
    ba = await ledger.submit(db_session, b, a.id, RequestKind.CHAT, outbox)

    assert ab.created and ba.created
    assert ab.request.id != ba.request.id
    assert len(await _connect_records(db_session, a, b)) == 2


@pytest.mark.asyncio
async def test_lost_insert_race_returns_existing_record(
    db_session, make_account, outbox, monkeypatch
) -> None:
    a = await make_account()
    b = await make_account()
    first = await ledger.submit(db_session, a, b.id, RequestKind.FOLLOW, outbox)

    real_lookup = ledger._get_by_slot
    calls = {"n": 0}

    async def stale_first_read(session, slot):
        # The first read misses the row another transaction just inserted
        calls["n"] += 1
        if calls["n"] == 1:
            return None
        return await real_lookup(session, slot)

    monkeypatch.setattr(ledger, "_get_by_slot", stale_first_read)

    second = await ledger.submit(db_session, a, b.id, RequestKind.FOLLOW, outbox)

    assert calls["n"] == 2
    assert second.created is False
    assert second.request.id == first.request.id
    assert a.requests_today == 1


@pytest.mark.asyncio
async def test_submit_validation_order(db_session, make_account, outbox) -> None:
    a = await make_account()
    admin = await make_account(is_admin=True)
    pending = await make_account(status=AccountStatus.PENDING)

    with pytest.raises(TargetRequired):
        await ledger.submit(db_session, a, None, RequestKind.FOLLOW, outbox)
    with pytest.raises(CannotRequestSelf):
        await ledger.submit(db_session, a, a.id, RequestKind.FOLLOW, outbox)
    with pytest.raises(AccountNotFound):
        await ledger.submit(db_session, a, uuid.uuid4(), RequestKind.FOLLOW, outbox)
    with pytest.raises(AdminNotAllowed):
        await ledger.submit(db_session, a, admin.id, RequestKind.FOLLOW, outbox)
    with pytest.raises(AdminNotAllowed):
        await ledger.submit(db_session, admin, a.id, RequestKind.FOLLOW, outbox)
    with pytest.raises(AccountNotApproved):
        await ledger.submit(db_session, pending, a.id, RequestKind.FOLLOW, outbox)
    assert outbox.events == []


@pytest.mark.asyncio
async def test_submit_between_blocked_pair_is_refused(db_session, make_account, outbox) -> None:
    a = await make_account()
    b = await make_account()
    db_session.add(AccountBlock(blocker_id=b.id, blocked_id=a.id))
    await db_session.flush()

    with pytest.raises(PairBlocked):
        await ledger.submit(db_session, a, b.id, RequestKind.FOLLOW, outbox)
    with pytest.raises(PairBlocked):
        await ledger.submit(db_session, b, a.id, RequestKind.PHOTO, outbox)


# ── Quota ──────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_third_request_hits_free_limit(db_session, make_account, outbox) -> None:
    sender = await make_account()
    targets = [await make_account() for _ in range(3)]

    first = await ledger.submit(db_session, sender, targets[0].id, RequestKind.FOLLOW, outbox)
    second = await ledger.submit(db_session, sender, targets[1].id, RequestKind.FOLLOW, outbox)
    with pytest.raises(RequestLimitReached) as exc_info:
        await ledger.submit(db_session, sender, targets[2].id, RequestKind.FOLLOW, outbox)

    assert (first.quota_remaining, second.quota_remaining) == (1, 0)
    assert exc_info.value.status_code == 429
    assert exc_info.value.limit == 2
    assert exc_info.value.remaining == 0
    assert exc_info.value.is_premium is False


@pytest.mark.asyncio
async def test_photo_request_allowed_after_limit(db_session, make_account, outbox) -> None:
    sender = await make_account(
        requests_today=2, requests_today_at=datetime.now(timezone.utc)
    )
    target = await make_account()

    outcome = await ledger.submit(db_session, sender, target.id, RequestKind.PHOTO, outbox)

    assert outcome.created is True
    assert sender.requests_today == 2


@pytest.mark.asyncio
async def test_counter_resets_at_utc_midnight(db_session, make_account, outbox) -> None:
    sender = await make_account(
        requests_today=2,
        requests_today_at=datetime(2026, 3, 1, 23, 59, tzinfo=timezone.utc),
    )
    target = await make_account()

    outcome = await ledger.submit(
        db_session, sender, target.id, RequestKind.FOLLOW, outbox,
        now=datetime(2026, 3, 2, 0, 1, tzinfo=timezone.utc),
    )

    assert outcome.created is True
    assert sender.requests_today == 1
    assert outcome.quota_remaining == 1


# ── Respond ────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_accept_chat_records_mutual_follow(db_session, make_account, outbox) -> None:
    a = await make_account()
    b = await make_account()
    request = (await ledger.submit(db_session, a, b.id, RequestKind.CHAT, outbox)).request

    outcome = await ledger.respond(db_session, b, request.id, ResponseAction.ACCEPT, outbox)

    assert outcome.status is RequestStatus.ACCEPTED
    assert outcome.requested_kind is RequestKind.CHAT
    assert outcome.conversation is not None
    records = await _connect_records(db_session, a, b)
    assert len(records) == 2
    assert {(r.from_id, r.to_id) for r in records} == {(a.id, b.id), (b.id, a.id)}
    assert all(r.kind is RequestKind.FOLLOW for r in records)
    assert all(r.status is RequestStatus.ACCEPTED for r in records)


@pytest.mark.asyncio
async def test_accept_rewrites_reverse_pending_request(db_session, make_account, outbox) -> None:
    a = await make_account()
    b = await make_account()
    await ledger.submit(db_session, b, a.id, RequestKind.CHAT, outbox)
    request = (await ledger.submit(db_session, a, b.id, RequestKind.FOLLOW, outbox)).request

    await ledger.respond(db_session, b, request.id, ResponseAction.ACCEPT, outbox)

    records = await _connect_records(db_session, a, b)
    assert len(records) == 2
    assert all(r.kind is RequestKind.FOLLOW for r in records)
    assert all(r.status is RequestStatus.ACCEPTED for r in records)


@pytest.mark.asyncio
async def test_accept_notifies_both_parties(db_session, make_account) -> None:
    a = await make_account()
    b = await make_account()
    request = (await ledger.submit(db_session, a, b.id, RequestKind.FOLLOW, EventOutbox())).request

    outbox = EventOutbox()
    await ledger.respond(db_session, b, request.id, ResponseAction.ACCEPT, outbox)

    assert outbox.event_types_for(a.id) == [LifecycleEventType.REQUEST_ACCEPTED]
    assert outbox.event_types_for(b.id) == [LifecycleEventType.REQUEST_ACCEPTED]
    assert outbox.invalidations == {a.id, b.id}


@pytest.mark.asyncio
async def test_accept_photo_opens_no_conversation(db_session, make_account, outbox) -> None:
    a = await make_account()
    b = await make_account()
    request = (await ledger.submit(db_session, a, b.id, RequestKind.PHOTO, outbox)).request

    outcome = await ledger.respond(db_session, b, request.id, ResponseAction.ACCEPT, outbox)

    assert outcome.status is RequestStatus.ACCEPTED
    assert outcome.conversation is None
    assert await _connect_records(db_session, a, b) == []
    assert LifecycleEventType.PHOTO_APPROVED in outbox.event_types_for(a.id)


@pytest.mark.asyncio
async def test_reject_deletes_and_allows_resubmission(db_session, make_account, outbox) -> None:
    a = await make_account()
    b = await make_account()
    request = (await ledger.submit(db_session, a, b.id, RequestKind.FOLLOW, outbox)).request
    request_id = request.id

    outcome = await ledger.respond(db_session, b, request_id, ResponseAction.REJECT, outbox)

    assert outcome.status is RequestStatus.REJECTED
    assert await db_session.get(ConnectionRequest, request_id) is None
    again = await ledger.submit(db_session, a, b.id, RequestKind.FOLLOW, outbox)
    assert again.created is True
    assert again.request.id != request_id


@pytest.mark.asyncio
async def test_respond_check_order(db_session, make_account, outbox) -> None:
    a = await make_account()
    b = await make_account()
    request = (await ledger.submit(db_session, a, b.id, RequestKind.FOLLOW, outbox)).request

    with pytest.raises(RequestNotFound):
        await ledger.respond(db_session, b, uuid.uuid4(), ResponseAction.ACCEPT, outbox)
    with pytest.raises(ResponderMismatch):
        await ledger.respond(db_session, a, request.id, ResponseAction.ACCEPT, outbox)

    await ledger.respond(db_session, b, request.id, ResponseAction.ACCEPT, outbox)
    with pytest.raises(RequestAlreadyResolved):
        await ledger.respond(db_session, b, request.id, ResponseAction.REJECT, outbox)


@pytest.mark.asyncio
async def test_conversation_is_one_per_pair(db_session, make_account) -> None:
    a = await make_account()
    b = await make_account()

    first = await ledger.ensure_conversation(db_session, a.id, b.id)
    second = await ledger.ensure_conversation(db_session, b.id, a.id)

    assert first.id == second.id
    count = await db_session.execute(sa.select(sa.func.count()).select_from(Conversation))
    assert count.scalar_one() == 1


# ── Withdraw / disconnect ──────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_withdraw_cancels_my_pending_request(db_session, make_account, outbox) -> None:
    a = await make_account()
    b = await make_account()
    await ledger.submit(db_session, a, b.id, RequestKind.FOLLOW, outbox)

    result = await ledger.withdraw(db_session, a, b.id, EventOutbox())

    assert result is None
    assert await _connect_records(db_session, a, b) == []


@pytest.mark.asyncio
async def test_withdraw_rejects_their_pending_request(db_session, make_account) -> None:
    a = await make_account()
    b = await make_account()
    await ledger.submit(db_session, b, a.id, RequestKind.CHAT, EventOutbox())

    outbox = EventOutbox()
    result = await ledger.withdraw(db_session, a, b.id, outbox)

    assert result is ResponseAction.REJECT
    assert await _connect_records(db_session, a, b) == []
    assert outbox.event_types_for(b.id) == [LifecycleEventType.REQUEST_REJECTED]


@pytest.mark.asyncio
async def test_withdraw_photo_request(db_session, make_account, outbox) -> None:
    a = await make_account()
    b = await make_account()
    await ledger.submit(db_session, a, b.id, RequestKind.PHOTO, outbox)
    await ledger.submit(db_session, a, b.id, RequestKind.FOLLOW, outbox)

    result = await ledger.withdraw(db_session, a, b.id, outbox, kind=RequestKind.PHOTO)

    assert result is None
    # The connect request is untouched
    assert len(await _connect_records(db_session, a, b)) == 1


@pytest.mark.asyncio
async def test_withdraw_without_pending_request(db_session, make_account, outbox) -> None:
    a = await make_account()
    b = await make_account()

    with pytest.raises(RequestNotFound):
        await ledger.withdraw(db_session, a, b.id, outbox)


@pytest.mark.asyncio
async def test_disconnect_removes_both_directions(db_session, make_account, outbox) -> None:
    a = await make_account()
    b = await make_account()
    request = (await ledger.submit(db_session, a, b.id, RequestKind.FOLLOW, outbox)).request
    await ledger.respond(db_session, b, request.id, ResponseAction.ACCEPT, outbox)

    await ledger.disconnect(db_session, b, a.id, outbox)

    assert await _connect_records(db_session, a, b) == []
    with pytest.raises(ConnectionNotFound):
        await ledger.disconnect(db_session, a, b.id, outbox)


# ── Listings ───────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_list_incoming_newest_first(db_session, make_account, outbox) -> None:
    me = await make_account()
    early = await make_account()
    late = await make_account()
    await ledger.submit(
        db_session, early, me.id, RequestKind.FOLLOW, outbox,
        now=datetime(2026, 5, 1, 9, 0, tzinfo=timezone.utc),
    )
    await ledger.submit(
        db_session, late, me.id, RequestKind.CHAT, outbox,
        now=datetime(2026, 5, 1, 10, 0, tzinfo=timezone.utc),
    )

    rows = await ledger.list_incoming(db_session, me)

    assert [sender.id for _, sender in rows] == [late.id, early.id]
    assert [req.kind for req, _ in rows] == [RequestKind.CHAT, RequestKind.FOLLOW]


@pytest.mark.asyncio
async def test_admin_pending_overview(db_session, make_account, outbox) -> None:
    a = await make_account()
    b = await make_account()
    c = await make_account()
    await ledger.submit(db_session, a, b.id, RequestKind.FOLLOW, outbox)
    accepted = (await ledger.submit(db_session, c, b.id, RequestKind.FOLLOW, outbox)).request
    await ledger.respond(db_session, b, accepted.id, ResponseAction.ACCEPT, outbox)

    rows = await ledger.admin_list_pending(db_session)

    assert [(s.id, r.id) for _, s, r in rows] == [(a.id, b.id)]
