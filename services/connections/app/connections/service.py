"""
Connections domain — the request ledger (zero FastAPI imports).

State rules:
  submit:     one record per slot (see constants); a same-kind resubmission is
              idempotent, a follow/chat mix in one direction merges into BOTH
  respond:    only the recipient answers a pending record, exactly once;
              reject deletes the record so the sender can resubmit
  accept:     non-photo acceptance opens a conversation and rewrites both connect
              slots of the pair to accepted FOLLOW (the mutual connection)
  withdraw:   cancels my pending request, else rejects theirs
  admins:     never send, receive or answer requests

Quota is consumed in a separate UPDATE after the ledger insert.  A crash between
the two leaves them out of step; no transaction is held across both accounts.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from shared.events.schemas import LifecycleEventType
from app.accounts import service as accounts
from app.accounts.models import Account
from app.connections.constants import (
    ADMIN_PENDING_LIMIT,
    CONNECT_KINDS,
    MAX_SUBMIT_ATTEMPTS,
    RequestKind,
    RequestStatus,
    ResponseAction,
    connect_slot,
    pair_key,
    photo_slot,
    slot_for,
)
from app.connections.models import Conversation, ConnectionRequest
from app.exceptions import (
    AdminNotAllowed,
    CannotRequestSelf,
    ConnectionNotFound,
    PairBlocked,
    RequestAlreadyResolved,
    RequestNotFound,
    ResponderMismatch,
    TargetRequired,
)
from app.notifications.outbox import EventOutbox
from app.quota import service as quota_svc
from app.quota.tracker import QuotaSnapshot
from app.timeutils import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmitOutcome:
    request: ConnectionRequest
    created: bool
    quota_remaining: int | None


@dataclass(frozen=True)
class RespondOutcome:
    request_id: uuid.UUID
    status: RequestStatus
    requested_kind: RequestKind
    conversation: Conversation | None = None


# ── Helpers ────────────────────────────────────────────────────────────────────

def _ensure_participant(account: Account) -> None:
    if account.is_admin:
        raise AdminNotAllowed()
    accounts.ensure_approved(account)


async def _get_by_slot(session: AsyncSession, slot: str) -> ConnectionRequest | None:
    result = await session.execute(
        sa.select(ConnectionRequest).where(ConnectionRequest.slot == slot)
    )
    return result.scalar_one_or_none()


def _merged_kind(existing: RequestKind, requested: RequestKind) -> RequestKind:
    """Kind after a non-photo resubmission in the same direction."""
    if existing is requested or existing is RequestKind.BOTH:
        return existing
    return RequestKind.BOTH


def _received_event(kind: RequestKind) -> LifecycleEventType:
    if kind is RequestKind.PHOTO:
        return LifecycleEventType.PHOTO_REQUESTED
    return LifecycleEventType.REQUEST_RECEIVED


def _answered_event(kind: RequestKind, action: ResponseAction) -> LifecycleEventType:
    if kind is RequestKind.PHOTO:
        if action is ResponseAction.ACCEPT:
            return LifecycleEventType.PHOTO_APPROVED
        return LifecycleEventType.PHOTO_REJECTED
    if action is ResponseAction.ACCEPT:
        return LifecycleEventType.REQUEST_ACCEPTED
    return LifecycleEventType.REQUEST_REJECTED


# ── Submit ─────────────────────────────────────────────────────────────────────

async def submit(
    session: AsyncSession,
    sender: Account,
    to_id: uuid.UUID | None,
    kind: RequestKind,
    outbox: EventOutbox,
    *,
    now: datetime | None = None,
) -> SubmitOutcome:
    now = now or utcnow()
    if to_id is None:
        raise TargetRequired()
    _ensure_participant(sender)
    if to_id == sender.id:
        raise CannotRequestSelf()
    target = await accounts.require_account(session, to_id)
    if target.is_admin:
        raise AdminNotAllowed()
    if await accounts.is_pair_blocked(session, sender.id, to_id):
        raise PairBlocked()

    counted = kind is not RequestKind.PHOTO
    quota: QuotaSnapshot | None = None
    if counted:
        quota = await quota_svc.ensure_within_quota(session, sender, now=now)

    slot = slot_for(kind, sender.id, to_id)
    for attempt in range(1, MAX_SUBMIT_ATTEMPTS + 1):
        existing = await _get_by_slot(session, slot)
        if existing is not None:
            return await _resubmit(session, existing, kind, outbox, quota)

        record = ConnectionRequest(
            from_id=sender.id,
            to_id=to_id,
            kind=kind,
            status=RequestStatus.PENDING,
            slot=slot,
            created_at=now,
            updated_at=now,
        )
        try:
            async with session.begin_nested():
                session.add(record)
        except IntegrityError:
            logger.info(
                "Slot %s taken concurrently (attempt %d/%d); re-reading",
                slot, attempt, MAX_SUBMIT_ATTEMPTS,
            )
            continue
        break
    else:
        raise RuntimeError(f"Could not settle request slot {slot}")

    remaining: int | None = None
    if counted:
        used = await quota_svc.consume(session, sender, now=now)
        remaining = max(0, quota.limit - used)

    outbox.emit(
        _received_event(kind),
        to=to_id,
        actor=sender.id,
        request_id=record.id,
        kind=kind.value,
        status=record.status.value,
    )
    outbox.invalidate(to_id)
    logger.info("Request %s created: %s -> %s (%s)", record.id, sender.id, to_id, kind.value)
    return SubmitOutcome(request=record, created=True, quota_remaining=remaining)


async def _resubmit(
    session: AsyncSession,
    existing: ConnectionRequest,
    kind: RequestKind,
    outbox: EventOutbox,
    quota: QuotaSnapshot | None,
) -> SubmitOutcome:
    """Idempotent return or follow/chat merge.  Never consumes quota."""
    remaining = quota.remaining if quota is not None else None
    if kind is RequestKind.PHOTO:
        return SubmitOutcome(request=existing, created=False, quota_remaining=remaining)

    merged = _merged_kind(existing.kind, kind)
    if merged is not existing.kind:
        existing.kind = merged
        await session.flush()
        logger.info("Request %s merged into %s", existing.id, merged.value)
        if existing.status is RequestStatus.PENDING:
            outbox.emit(
                LifecycleEventType.REQUEST_RECEIVED,
                to=existing.to_id,
                actor=existing.from_id,
                request_id=existing.id,
                kind=merged.value,
                status=existing.status.value,
            )
            outbox.invalidate(existing.to_id)
    return SubmitOutcome(request=existing, created=False, quota_remaining=remaining)


# ── Respond ────────────────────────────────────────────────────────────────────

async def respond(
    session: AsyncSession,
    responder: Account,
    request_id: uuid.UUID,
    action: ResponseAction,
    outbox: EventOutbox,
) -> RespondOutcome:
    _ensure_participant(responder)
    record = await session.get(ConnectionRequest, request_id)
    if record is None:
        raise RequestNotFound()
    if record.to_id != responder.id:
        raise ResponderMismatch()
    if record.status is not RequestStatus.PENDING:
        raise RequestAlreadyResolved()

    requested_kind = record.kind
    sender_id, recipient_id = record.from_id, record.to_id
    event_type = _answered_event(requested_kind, action)

    if action is ResponseAction.REJECT:
        await session.delete(record)
        await session.flush()
        status = RequestStatus.REJECTED
        conversation = None
    else:
        record.status = RequestStatus.ACCEPTED
        conversation = None
        if requested_kind is not RequestKind.PHOTO:
            conversation = await ensure_conversation(session, sender_id, recipient_id)
            await _materialize_mutual(session, sender_id, recipient_id)
        await session.flush()
        status = RequestStatus.ACCEPTED

    for to, actor in ((sender_id, recipient_id), (recipient_id, sender_id)):
        outbox.emit(
            event_type,
            to=to,
            actor=actor,
            request_id=request_id,
            kind=requested_kind.value,
            status=status.value,
        )
    outbox.invalidate(sender_id, recipient_id)
    logger.info("Request %s %s by %s", request_id, status.value, responder.id)
    return RespondOutcome(
        request_id=request_id,
        status=status,
        requested_kind=requested_kind,
        conversation=conversation,
    )


async def _upsert_accepted_follow(
    session: AsyncSession,
    from_id: uuid.UUID,
    to_id: uuid.UUID,
) -> ConnectionRequest:
    slot = connect_slot(from_id, to_id)
    for _ in range(MAX_SUBMIT_ATTEMPTS):
        record = await _get_by_slot(session, slot)
        if record is not None:
            record.kind = RequestKind.FOLLOW
            record.status = RequestStatus.ACCEPTED
            return record
        record = ConnectionRequest(
            from_id=from_id,
            to_id=to_id,
            kind=RequestKind.FOLLOW,
            status=RequestStatus.ACCEPTED,
            slot=slot,
        )
        try:
            async with session.begin_nested():
                session.add(record)
        except IntegrityError:
            continue
        return record
    raise RuntimeError(f"Could not settle request slot {slot}")


async def _materialize_mutual(
    session: AsyncSession,
    a: uuid.UUID,
    b: uuid.UUID,
) -> None:
    """Exactly one accepted FOLLOW record in each direction, whatever existed before."""
    await _upsert_accepted_follow(session, a, b)
    await _upsert_accepted_follow(session, b, a)


async def ensure_conversation(
    session: AsyncSession,
    a: uuid.UUID,
    b: uuid.UUID,
) -> Conversation:
    key = pair_key(a, b)
    existing = await get_conversation(session, a, b)
    if existing is not None:
        return existing
    lo, hi = sorted((a, b), key=str)
    conversation = Conversation(pair_key=key, account_a_id=lo, account_b_id=hi)
    try:
        async with session.begin_nested():
            session.add(conversation)
    except IntegrityError:
        # Opened concurrently by the other party
        existing = await get_conversation(session, a, b)
        if existing is None:
            raise
        return existing
    logger.info("Conversation %s opened for %s", conversation.id, key)
    return conversation


async def get_conversation(
    session: AsyncSession,
    a: uuid.UUID,
    b: uuid.UUID,
) -> Conversation | None:
    result = await session.execute(
        sa.select(Conversation).where(Conversation.pair_key == pair_key(a, b))
    )
    return result.scalar_one_or_none()


# ── Withdraw / disconnect ──────────────────────────────────────────────────────

async def withdraw(
    session: AsyncSession,
    requester: Account,
    other_id: uuid.UUID,
    outbox: EventOutbox,
    *,
    kind: RequestKind | None = None,
) -> ResponseAction | None:
    """Cancel my pending request to ``other_id``, else reject theirs to me.

    Returns None for a cancellation and ``ResponseAction.REJECT`` when the
    other party's pending request was rejected instead.
    """
    _ensure_participant(requester)
    is_photo = kind is RequestKind.PHOTO

    if is_photo:
        record = await _get_by_slot(session, photo_slot(requester.id, other_id))
        mine = record if record is not None and record.from_id == requester.id else None
        theirs = record if record is not None and record.from_id == other_id else None
    else:
        mine = await _get_by_slot(session, connect_slot(requester.id, other_id))
        theirs = await _get_by_slot(session, connect_slot(other_id, requester.id))

    if mine is not None and mine.status is RequestStatus.PENDING:
        await session.delete(mine)
        await session.flush()
        outbox.invalidate(other_id)
        logger.info("Request %s withdrawn by %s", mine.id, requester.id)
        return None

    if theirs is not None and theirs.status is RequestStatus.PENDING:
        request_id, theirs_kind = theirs.id, theirs.kind
        await session.delete(theirs)
        await session.flush()
        outbox.emit(
            _answered_event(theirs_kind, ResponseAction.REJECT),
            to=other_id,
            actor=requester.id,
            request_id=request_id,
            kind=theirs_kind.value,
            status=RequestStatus.REJECTED.value,
        )
        outbox.invalidate(requester.id, other_id)
        logger.info("Incoming request %s rejected through withdraw by %s", request_id, requester.id)
        return ResponseAction.REJECT

    raise RequestNotFound()


async def disconnect(
    session: AsyncSession,
    requester: Account,
    other_id: uuid.UUID,
    outbox: EventOutbox,
) -> None:
    _ensure_participant(requester)
    result = await session.execute(
        sa.delete(ConnectionRequest).where(
            ConnectionRequest.slot.in_([
                connect_slot(requester.id, other_id),
                connect_slot(other_id, requester.id),
            ]),
            ConnectionRequest.status == RequestStatus.ACCEPTED,
        )
    )
    if not result.rowcount:
        raise ConnectionNotFound()
    outbox.invalidate(requester.id, other_id)
    logger.info("Account %s disconnected from %s", requester.id, other_id)


# ── Listings ───────────────────────────────────────────────────────────────────

async def list_incoming(
    session: AsyncSession,
    account: Account,
) -> list[tuple[ConnectionRequest, Account]]:
    """Pending requests addressed to ``account``, newest first, with their senders."""
    _ensure_participant(account)
    result = await session.execute(
        sa.select(ConnectionRequest, Account)
        .join(Account, Account.id == ConnectionRequest.from_id)
        .where(
            ConnectionRequest.to_id == account.id,
            ConnectionRequest.status == RequestStatus.PENDING,
        )
        .order_by(ConnectionRequest.created_at.desc(), ConnectionRequest.id)
    )
    return [tuple(row) for row in result.all()]


async def admin_list_pending(
    session: AsyncSession,
) -> list[tuple[ConnectionRequest, Account, Account]]:
    sender = aliased(Account)
    recipient = aliased(Account)
    result = await session.execute(
        sa.select(ConnectionRequest, sender, recipient)
        .join(sender, sender.id == ConnectionRequest.from_id)
        .join(recipient, recipient.id == ConnectionRequest.to_id)
        .where(ConnectionRequest.status == RequestStatus.PENDING)
        .order_by(ConnectionRequest.created_at.desc())
        .limit(ADMIN_PENDING_LIMIT)
    )
    return [tuple(row) for row in result.all()]


# ── Relation lookups (visibility resolver / feed) ──────────────────────────────

def _between(viewer_id: uuid.UUID, other_ids: list[uuid.UUID]) -> sa.ColumnElement[bool]:
    return sa.or_(
        sa.and_(ConnectionRequest.from_id == viewer_id, ConnectionRequest.to_id.in_(other_ids)),
        sa.and_(ConnectionRequest.to_id == viewer_id, ConnectionRequest.from_id.in_(other_ids)),
    )


async def records_between(
    session: AsyncSession,
    viewer_id: uuid.UUID,
    other_ids: list[uuid.UUID],
) -> dict[uuid.UUID, list[ConnectionRequest]]:
    """Every record between the viewer and each of ``other_ids``, keyed by the other id."""
    grouped: dict[uuid.UUID, list[ConnectionRequest]] = {oid: [] for oid in other_ids}
    if not other_ids:
        return grouped
    result = await session.execute(
        sa.select(ConnectionRequest).where(_between(viewer_id, other_ids))
    )
    for record in result.scalars().all():
        other = record.to_id if record.from_id == viewer_id else record.from_id
        grouped.setdefault(other, []).append(record)
    return grouped


def connected_ids_subquery(account_id: uuid.UUID) -> sa.CompoundSelect:
    """Accounts holding an accepted non-photo record with ``account_id``."""
    connect = list(CONNECT_KINDS)
    outgoing = sa.select(ConnectionRequest.to_id.label("other_id")).where(
        ConnectionRequest.from_id == account_id,
        ConnectionRequest.status == RequestStatus.ACCEPTED,
        ConnectionRequest.kind.in_(connect),
    )
    incoming = sa.select(ConnectionRequest.from_id.label("other_id")).where(
        ConnectionRequest.to_id == account_id,
        ConnectionRequest.status == RequestStatus.ACCEPTED,
        ConnectionRequest.kind.in_(connect),
    )
    return sa.union(outgoing, incoming)
