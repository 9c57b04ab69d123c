"""
Connections service — auth-specific FastAPI dependencies.

These wrap the shared JWT dependencies and add service context: the token's
``sub`` is resolved to an Account row, and admin routes are guarded by the
account's ``is_admin`` flag rather than a token role.
"""
from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from shared.auth.dependencies import get_current_user_required
from shared.models.user import CurrentUser
from app.accounts import service as accounts
from app.accounts.models import Account
from app.database import get_db
from app.exceptions import AdminRequired


# ── Base user dependencies ────────────────────────────────────────────────────

# Routes import from here, not from shared directly.
get_current_user = get_current_user_required


async def get_current_account(
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> Account:
    """Load the Account behind the bearer token; 404 when it no longer exists."""
    return await accounts.require_account(session, current_user.id)


async def get_approved_account(
    account: Account = Depends(get_current_account),
) -> Account:
    accounts.ensure_approved(account)
    return account


# ── Role guards ───────────────────────────────────────────────────────────────

async def require_admin(
    account: Account = Depends(get_current_account),
) -> Account:
    """Raise 403 unless the authenticated account is an administrator."""
    if not account.is_admin:
        raise AdminRequired()
    return account
