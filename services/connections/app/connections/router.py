"""
Connections domain — user-facing routes.

All routes prefixed /api/v1/connections.

Routes:
  POST   /requests                        Submit a follow/chat/photo/both request (30/minute)
  POST   /requests/{request_id}/respond   Accept or reject a request addressed to me
  POST   /requests/withdraw               Cancel my pending request, or reject theirs
  GET    /requests/incoming               Pending requests addressed to me, newest first
  GET    /quota                           Today's request quota
  DELETE /{account_id}                    Remove an accepted connection in both directions

Only HTTP concerns live here.  No postponed annotations in this module: the
slowapi wrapper must not hide the parameter types from FastAPI.
"""
import uuid

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.accounts.models import Account
from app.accounts.schemas import MessageResponse
from app.auth.dependencies import get_approved_account
from app.connections import controller as ctrl
from app.connections.schemas import (
    IncomingRequestListResponse,
    QuotaStatusResponse,
    RespondBody,
    RespondResult,
    SubmitRequestBody,
    SubmitResult,
    WithdrawBody,
)
from app.database import get_db
from app.notifications.dependencies import (
    OutboxDispatcher,
    get_dispatcher,
    get_notification_cache,
)
from app.notifications.publisher import NotificationCache
from app.rate_limit import limiter

router = APIRouter(prefix="/connections", tags=["connections"])


# ── Requests ───────────────────────────────────────────────────────────────────

@router.post(
    "/requests",
    response_model=SubmitResult,
    status_code=status.HTTP_200_OK,
    summary="Submit a connection request",
    description=(
        "Idempotent per direction and kind. A follow and a chat request in the same "
        "direction merge into one 'both' request. Photo requests do not count against "
        "the daily quota. Exhausted quota returns 429 with the limit in the error details."
    ),
)
@limiter.limit("30/minute")
async def submit_request(
    request: Request,
    body: SubmitRequestBody,
    account: Account = Depends(get_approved_account),
    session: AsyncSession = Depends(get_db),
    dispatcher: OutboxDispatcher = Depends(get_dispatcher),
) -> SubmitResult:
    return await ctrl.submit_request(session, account, body, dispatcher)


@router.post(
    "/requests/withdraw",
    response_model=MessageResponse,
    summary="Withdraw a request",
    description=(
        "Deletes my pending request to the account. When there is none, rejects that "
        "account's pending request to me instead."
    ),
)
async def withdraw_request(
    body: WithdrawBody,
    account: Account = Depends(get_approved_account),
    session: AsyncSession = Depends(get_db),
    dispatcher: OutboxDispatcher = Depends(get_dispatcher),
) -> MessageResponse:
    return await ctrl.withdraw_request(session, account, body, dispatcher)


@router.get(
    "/requests/incoming",
    response_model=IncomingRequestListResponse,
    summary="List pending requests addressed to me",
)
async def list_incoming(
    account: Account = Depends(get_approved_account),
    session: AsyncSession = Depends(get_db),
    cache: NotificationCache = Depends(get_notification_cache),
) -> IncomingRequestListResponse:
    return await ctrl.list_incoming(session, account, cache)


@router.post(
    "/requests/{request_id}/respond",
    response_model=RespondResult,
    summary="Accept or reject a request",
    description=(
        "Accepting a follow/chat/both request opens a conversation and records a mutual "
        "follow in both directions. Rejecting deletes the request so it can be sent again."
    ),
)
async def respond_to_request(
    request_id: uuid.UUID,
    body: RespondBody,
    account: Account = Depends(get_approved_account),
    session: AsyncSession = Depends(get_db),
    dispatcher: OutboxDispatcher = Depends(get_dispatcher),
) -> RespondResult:
    return await ctrl.respond_to_request(session, account, request_id, body, dispatcher)


# ── Quota / connections ────────────────────────────────────────────────────────

@router.get(
    "/quota",
    response_model=QuotaStatusResponse,
    summary="Today's request quota",
    description="The counter resets at midnight UTC.",
)
async def get_quota(
    account: Account = Depends(get_approved_account),
    session: AsyncSession = Depends(get_db),
) -> QuotaStatusResponse:
    return await ctrl.get_quota(session, account)


@router.delete(
    "/{account_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a connection",
)
async def disconnect(
    account_id: uuid.UUID,
    account: Account = Depends(get_approved_account),
    session: AsyncSession = Depends(get_db),
    dispatcher: OutboxDispatcher = Depends(get_dispatcher),
) -> None:
    await ctrl.disconnect(session, account, account_id, dispatcher)
