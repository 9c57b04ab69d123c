"""
Policies domain — Pydantic V2 snapshots and admin request/response schemas.

TierPolicy and DisplayPolicy are immutable snapshots handed to the quota tracker
and the visibility resolver for the duration of one request.
"""
from __future__ import annotations

import uuid
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.accounts.constants import DEFAULT_DISPLAY_FIELDS, ProfileField


class _Base(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


def _check_display_keys(fields: dict[str, bool]) -> dict[str, bool]:
    unknown = set(fields) - set(DEFAULT_DISPLAY_FIELDS)
    if unknown:
        raise ValueError(f"Unknown display field(s): {', '.join(sorted(unknown))}")
    return fields


# ── Tier policy ────────────────────────────────────────────────────────────────

class AdvancedFeatures(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    view_all_users: bool = False
    view_all_photos: bool = False
    can_message_without_follow: bool = False
    can_view_fields: dict[ProfileField, bool] = Field(default_factory=dict)


class TierPolicy(BaseModel):
    """Capabilities granted by one premium plan."""

    model_config = ConfigDict(frozen=True)

    plan_id: uuid.UUID
    name: str
    request_limit: int
    advanced_features: AdvancedFeatures = Field(default_factory=AdvancedFeatures)


# ── Display policy ─────────────────────────────────────────────────────────────

class DisplayPolicy(BaseModel):
    """Global admin-controlled display flags and quota defaults."""

    model_config = ConfigDict(frozen=True)

    profile_display_fields: dict[str, bool] = Field(
        default_factory=lambda: dict(DEFAULT_DISPLAY_FIELDS)
    )
    free_request_limit: int = Field(2, ge=0)
    premium_request_limit: int = Field(20, ge=0)

    def shows(self, field: ProfileField, default: bool = True) -> bool:
        return self.profile_display_fields.get(field.value, default)


class DisplayPolicyUpdate(_Base):
    """Partial admin update; only provided keys are written."""

    profile_display_fields: dict[str, bool] | None = None
    free_request_limit: int | None = Field(None, ge=0)
    premium_request_limit: int | None = Field(None, ge=0)

    @field_validator("profile_display_fields")
    @classmethod
    def _known_keys(cls, value: dict[str, bool] | None) -> dict[str, bool] | None:
        if value is None:
            return value
        return _check_display_keys(value)


# ── Plans ──────────────────────────────────────────────────────────────────────

class PlanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    duration_months: int
    price: Decimal
    discount: int
    request_limit: int
    features: list[str]
    advanced_features: AdvancedFeatures
