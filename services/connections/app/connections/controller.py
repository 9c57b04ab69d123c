"""
Connections domain — request orchestration.

Service calls append events and cache invalidations to a per-request outbox;
the dispatcher commits the session and flushes the outbox in the background.
"""
from __future__ import annotations

import logging
import uuid

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.accounts.controller import account_ref
from app.accounts.models import Account
from app.accounts.schemas import MessageResponse
from app.connections import service as svc
from app.connections.constants import ResponseAction
from app.connections.schemas import (
    AdminPendingItem,
    AdminPendingListResponse,
    IncomingRequestItem,
    IncomingRequestListResponse,
    QuotaStatusResponse,
    RespondBody,
    RespondResult,
    SubmitRequestBody,
    SubmitResult,
    WithdrawBody,
)
from app.notifications.dependencies import OutboxDispatcher
from app.notifications.outbox import EventOutbox
from app.notifications.publisher import NotificationCache
from app.quota import service as quota_svc
from app.timeutils import utcnow

logger = logging.getLogger(__name__)


async def submit_request(
    session: AsyncSession,
    account: Account,
    body: SubmitRequestBody,
    dispatcher: OutboxDispatcher,
) -> SubmitResult:
    outbox = EventOutbox()
    outcome = await svc.submit(session, account, body.to_account_id, body.kind, outbox)
    await dispatcher.dispatch(session, outbox)
    return SubmitResult(
        request_id=outcome.request.id,
        status=outcome.request.status,
        kind=outcome.request.kind,
        created=outcome.created,
        quota_remaining=outcome.quota_remaining,
    )


async def respond_to_request(
    session: AsyncSession,
    account: Account,
    request_id: uuid.UUID,
    body: RespondBody,
    dispatcher: OutboxDispatcher,
) -> RespondResult:
    outbox = EventOutbox()
    outcome = await svc.respond(session, account, request_id, body.action, outbox)
    await dispatcher.dispatch(session, outbox)
    return RespondResult(
        request_id=outcome.request_id,
        status=outcome.status,
        requested_kind=outcome.requested_kind,
        conversation_id=outcome.conversation.id if outcome.conversation else None,
    )


async def withdraw_request(
    session: AsyncSession,
    account: Account,
    body: WithdrawBody,
    dispatcher: OutboxDispatcher,
) -> MessageResponse:
    outbox = EventOutbox()
    result = await svc.withdraw(session, account, body.account_id, outbox, kind=body.kind)
    await dispatcher.dispatch(session, outbox)
    if result is ResponseAction.REJECT:
        return MessageResponse(message="Incoming request rejected.")
    return MessageResponse(message="Request withdrawn.")


async def disconnect(
    session: AsyncSession,
    account: Account,
    other_id: uuid.UUID,
    dispatcher: OutboxDispatcher,
) -> None:
    outbox = EventOutbox()
    await svc.disconnect(session, account, other_id, outbox)
    await dispatcher.dispatch(session, outbox)


async def list_incoming(
    session: AsyncSession,
    account: Account,
    cache: NotificationCache,
) -> IncomingRequestListResponse:
    cached = await cache.get_incoming(account.id)
    if cached is not None:
        try:
            items = [IncomingRequestItem.model_validate(i) for i in cached]
        except ValidationError:
            logger.warning("Discarding malformed incoming cache for %s", account.id)
        else:
            return IncomingRequestListResponse(items=items, total=len(items))

    rows = await svc.list_incoming(session, account)
    items = [
        IncomingRequestItem(
            id=req.id,
            kind=req.kind,
            status=req.status,
            sender=account_ref(sender),
            created_at=req.created_at,
        )
        for req, sender in rows
    ]
    await cache.set_incoming(account.id, [i.model_dump(mode="json") for i in items])
    return IncomingRequestListResponse(items=items, total=len(items))


async def get_quota(session: AsyncSession, account: Account) -> QuotaStatusResponse:
    quota = await quota_svc.get_quota_status(session, account, now=utcnow())
    return QuotaStatusResponse(
        limit=quota.limit,
        used=quota.used,
        remaining=quota.remaining,
        is_premium=quota.is_premium,
        resets_at=quota.resets_at,
    )


async def admin_list_pending(session: AsyncSession) -> AdminPendingListResponse:
    rows = await svc.admin_list_pending(session)
    items = [
        AdminPendingItem(
            id=req.id,
            kind=req.kind,
            sender=account_ref(sender),
            recipient=account_ref(recipient),
            created_at=req.created_at,
        )
        for req, sender, recipient in rows
    ]
    return AdminPendingListResponse(items=items, total=len(items))
