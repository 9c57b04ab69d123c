"""Pure quota rules — no I/O, no framework imports.

Daily request counters roll over at UTC midnight regardless of the account's
local time zone.  The stored counter is reset lazily: a counter stamped before
the start of the current UTC day counts as zero until the next write resets it.

Limit resolution, first match wins:
  1. unexpired premium with a known plan  → plan.request_limit
  2. unexpired premium without a plan     → display policy premium default
  3. everyone else                        → display policy free default
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from app.accounts.models import Account
from app.policies.schemas import DisplayPolicy, TierPolicy
from app.timeutils import as_utc, next_utc_midnight, start_of_utc_day


@dataclass(frozen=True)
class QuotaSnapshot:
    limit: int
    used: int
    is_premium: bool
    resets_at: datetime

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.used)

    @property
    def exhausted(self) -> bool:
        return self.used >= self.limit


def has_active_premium(account: Account, now: datetime) -> bool:
    if not account.is_premium:
        return False
    if account.premium_expires_at is None:
        return True
    return as_utc(account.premium_expires_at) > as_utc(now)


def consumed_today(account: Account, now: datetime) -> int:
    stamped = account.requests_today_at
    if stamped is None or as_utc(stamped) < start_of_utc_day(now):
        return 0
    return account.requests_today or 0


def effective_limit(
    account: Account,
    tier: TierPolicy | None,
    display: DisplayPolicy,
    now: datetime,
) -> int:
    if has_active_premium(account, now):
        if tier is not None:
            return tier.request_limit
        return display.premium_request_limit
    return display.free_request_limit


def snapshot(
    account: Account,
    tier: TierPolicy | None,
    display: DisplayPolicy,
    now: datetime,
) -> QuotaSnapshot:
    return QuotaSnapshot(
        limit=effective_limit(account, tier, display, now),
        used=consumed_today(account, now),
        is_premium=has_active_premium(account, now),
        resets_at=next_utc_midnight(now),
    )
