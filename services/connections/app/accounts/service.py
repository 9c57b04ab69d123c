"""
Accounts domain — pure business logic (zero FastAPI imports).

State rules:
  block:    cannot block self; deletes every connection record between the
            pair (pending and accepted, both lanes) so that an unblock needs a
            fresh request cycle
  reject:   soft feed exclusion only; idempotent; reversible by admins only
  edits:    submitted as a typed diff, stored as JSON, applied on admin approval
"""
from __future__ import annotations

import logging
import uuid

import sqlalchemy as sa
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.accounts.constants import AccountStatus
from app.accounts.models import Account, AccountBlock, FeedRejection
from app.accounts.schemas import ProfileEdits
from app.connections.models import ConnectionRequest
from app.exceptions import (
    AccountNotApproved,
    AccountNotFound,
    AlreadyBlocked,
    CannotBlockSelf,
    CannotRejectSelf,
    FeedRejectionNotFound,
    InvalidProfileEdit,
    NoPendingEdits,
    NotBlocked,
)
from app.notifications.outbox import EventOutbox

logger = logging.getLogger(__name__)


# ── Account store ──────────────────────────────────────────────────────────────

async def get_account(session: AsyncSession, account_id: uuid.UUID) -> Account | None:
    return await session.get(Account, account_id)


async def require_account(session: AsyncSession, account_id: uuid.UUID | None) -> Account:
    account = await get_account(session, account_id) if account_id is not None else None
    if account is None:
        raise AccountNotFound()
    return account


def ensure_approved(account: Account) -> None:
    """Admins are exempt; everyone else must be approved to use the platform."""
    if account.is_admin:
        return
    if account.status is not AccountStatus.APPROVED:
        raise AccountNotApproved()


async def update_visibility(session: AsyncSession, account: Account, is_public: bool) -> Account:
    account.is_public = is_public
    await session.flush()
    return account


# ── Block registry ─────────────────────────────────────────────────────────────

async def _block_exists(
    session: AsyncSession, blocker_id: uuid.UUID, blocked_id: uuid.UUID
) -> bool:
    result = await session.execute(
        sa.select(sa.exists().where(
            AccountBlock.blocker_id == blocker_id,
            AccountBlock.blocked_id == blocked_id,
        ))
    )
    return result.scalar_one()


async def block_state(
    session: AsyncSession, viewer_id: uuid.UUID, other_id: uuid.UUID
) -> tuple[bool, bool]:
    """Return (viewer blocked other, other blocked viewer) in one round-trip."""
    result = await session.execute(
        sa.select(AccountBlock.blocker_id).where(
            sa.or_(
                sa.and_(AccountBlock.blocker_id == viewer_id, AccountBlock.blocked_id == other_id),
                sa.and_(AccountBlock.blocker_id == other_id, AccountBlock.blocked_id == viewer_id),
            )
        )
    )
    blockers = {row[0] for row in result.all()}
    return viewer_id in blockers, other_id in blockers


async def is_pair_blocked(session: AsyncSession, a: uuid.UUID, b: uuid.UUID) -> bool:
    by_a, by_b = await block_state(session, a, b)
    return by_a or by_b


def blocked_either_way_subquery(account_id: uuid.UUID) -> sa.CompoundSelect:
    """Accounts that blocked ``account_id`` or were blocked by it."""
    return sa.union(
        sa.select(AccountBlock.blocked_id.label("other_id")).where(AccountBlock.blocker_id == account_id),
        sa.select(AccountBlock.blocker_id.label("other_id")).where(AccountBlock.blocked_id == account_id),
    )


async def block(
    session: AsyncSession,
    blocker_id: uuid.UUID,
    blocked_id: uuid.UUID,
    outbox: EventOutbox,
) -> AccountBlock:
    if blocker_id == blocked_id:
        raise CannotBlockSelf()
    await require_account(session, blocked_id)
    if await _block_exists(session, blocker_id, blocked_id):
        raise AlreadyBlocked()
    edge = AccountBlock(blocker_id=blocker_id, blocked_id=blocked_id)
    session.add(edge)
    # Remove request records in both directions, both lanes
    deleted = await session.execute(
        sa.delete(ConnectionRequest).where(
            sa.or_(
                sa.and_(ConnectionRequest.from_id == blocker_id, ConnectionRequest.to_id == blocked_id),
                sa.and_(ConnectionRequest.from_id == blocked_id, ConnectionRequest.to_id == blocker_id),
            )
        )
    )
    await session.flush()
    outbox.invalidate(blocker_id, blocked_id)
    logger.info(
        "Account %s blocked %s (%d request record(s) removed)",
        blocker_id, blocked_id, deleted.rowcount or 0,
    )
    return edge


async def unblock(
    session: AsyncSession,
    blocker_id: uuid.UUID,
    blocked_id: uuid.UUID,
) -> None:
    if not await _block_exists(session, blocker_id, blocked_id):
        raise NotBlocked()
    await session.execute(
        sa.delete(AccountBlock).where(
            AccountBlock.blocker_id == blocker_id,
            AccountBlock.blocked_id == blocked_id,
        )
    )


async def get_blocked(
    session: AsyncSession,
    account_id: uuid.UUID,
    *,
    page: int,
    size: int,
) -> tuple[list[tuple[AccountBlock, Account]], int]:
    total_r = await session.execute(
        sa.select(sa.func.count()).select_from(AccountBlock).where(AccountBlock.blocker_id == account_id)
    )
    total = total_r.scalar_one()
    rows_r = await session.execute(
        sa.select(AccountBlock, Account)
        .join(Account, Account.id == AccountBlock.blocked_id)
        .where(AccountBlock.blocker_id == account_id)
        .order_by(AccountBlock.created_at.desc())
        .limit(size)
        .offset((page - 1) * size)
    )
    return [tuple(row) for row in rows_r.all()], total


# ── Feed rejections ────────────────────────────────────────────────────────────

async def reject_from_feed(
    session: AsyncSession,
    account_id: uuid.UUID,
    rejected_id: uuid.UUID,
) -> None:
    if account_id == rejected_id:
        raise CannotRejectSelf()
    await require_account(session, rejected_id)
    exists = await session.execute(
        sa.select(sa.exists().where(
            FeedRejection.account_id == account_id,
            FeedRejection.rejected_id == rejected_id,
        ))
    )
    if exists.scalar_one():
        return
    session.add(FeedRejection(account_id=account_id, rejected_id=rejected_id))
    await session.flush()


async def restore_to_feed(
    session: AsyncSession,
    account_id: uuid.UUID,
    rejected_id: uuid.UUID,
) -> None:
    result = await session.execute(
        sa.delete(FeedRejection).where(
            FeedRejection.account_id == account_id,
            FeedRejection.rejected_id == rejected_id,
        )
    )
    if not result.rowcount:
        raise FeedRejectionNotFound()


def rejected_ids_subquery(account_id: uuid.UUID) -> sa.Select:
    return sa.select(FeedRejection.rejected_id).where(FeedRejection.account_id == account_id)


# ── Profile edits ──────────────────────────────────────────────────────────────

async def submit_profile_edits(
    session: AsyncSession,
    account: Account,
    edits: ProfileEdits,
) -> Account:
    diff = edits.model_dump(mode="json", exclude_unset=True)
    if not diff:
        raise InvalidProfileEdit("No profile fields were provided.")
    account.pending_edits = {**(account.pending_edits or {}), **diff}
    account.has_pending_edits = True
    await session.flush()
    return account


async def approve_profile_edits(session: AsyncSession, account_id: uuid.UUID) -> Account:
    account = await require_account(session, account_id)
    if not account.has_pending_edits or not account.pending_edits:
        raise NoPendingEdits()
    try:
        edits = ProfileEdits.model_validate(account.pending_edits)
    except ValidationError as exc:
        raise InvalidProfileEdit(f"Stored edits no longer validate: {exc.error_count()} error(s).")
    for key, value in edits.model_dump(exclude_unset=True).items():
        setattr(account, key, value)
    account.pending_edits = None
    account.has_pending_edits = False
    await session.flush()
    logger.info("Applied pending profile edits for account %s", account_id)
    return account


async def reject_profile_edits(session: AsyncSession, account_id: uuid.UUID) -> Account:
    account = await require_account(session, account_id)
    if not account.has_pending_edits:
        raise NoPendingEdits()
    account.pending_edits = None
    account.has_pending_edits = False
    await session.flush()
    return account
