"""
Profiles domain — request orchestration.
"""
from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from shared.models.pagination import PaginatedResponse
from app.accounts.models import Account
from app.connections.constants import RequestStatus
from app.profiles import service as svc
from app.profiles.resolver import RequestState, ResolvedProfile
from app.profiles.schemas import FeedFilters, ProfileResponse, RequestStateOut


def _state_out(state: RequestState | None) -> RequestStateOut | None:
    if state is None:
        return None
    return RequestStateOut(direction=state.direction, status=state.status)


def to_response(profile: ResolvedProfile) -> ProfileResponse:
    """Build a response whose only set fields are the visible ones."""
    if profile.blocked:
        return ProfileResponse(id=profile.account_id, blocked=True, **profile.fields)

    connect = profile.connect_request
    request_status = "none"
    if connect is not None:
        request_status = "accepted" if connect.status is RequestStatus.ACCEPTED else "pending"
    return ProfileResponse(
        id=profile.account_id,
        **profile.fields,
        blocked=False,
        is_connected=profile.is_connected,
        is_photo_accessible=profile.is_photo_accessible,
        is_blocked_by_me=profile.is_blocked_by_me,
        is_blocked_by_them=profile.is_blocked_by_them,
        request_status=request_status,
        request_direction=connect.direction if connect is not None else None,
        photo_request=_state_out(profile.photo_request),
    )


async def view_profile(
    session: AsyncSession,
    viewer: Account,
    target_id: uuid.UUID,
) -> ProfileResponse:
    return to_response(await svc.view_profile(session, viewer, target_id))


async def list_feed(
    session: AsyncSession,
    viewer: Account,
    filters: FeedFilters,
    *,
    page: int,
    size: int,
) -> PaginatedResponse[ProfileResponse]:
    profiles, total = await svc.list_feed(session, viewer, filters, page=page, size=size)
    return PaginatedResponse[ProfileResponse](
        items=[to_response(p) for p in profiles],
        total=total,
        page=page,
        size=size,
    )
