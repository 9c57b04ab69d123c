"""
Accounts domain — Pydantic V2 request/response schemas.
"""
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from app.accounts.constants import (
    MAX_GALLERY_IMAGES,
    AccountStatus,
    Gender,
    MaritalStatus,
)


class _Base(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


# ── Embedded account reference (used inside list items) ───────────────────────

class AccountRef(BaseModel):
    """Minimal account card embedded in request/block list items."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    age: int | None = None
    location: str | None = None
    about: str | None = None
    profile_photo: str | None = None


# ── Own account ────────────────────────────────────────────────────────────────

class OwnAccountResponse(BaseModel):
    """Everything the account owner may see about themselves."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    father_name: str | None
    mother_name: str | None
    age: int | None
    date_of_birth: date | None
    gender: Gender | None
    marital_status: MaritalStatus
    disability: str | None
    country_of_origin: str | None
    location: str | None
    state: str | None
    district: str | None
    city: str | None
    education: str | None
    occupation: str | None
    languages_known: list[str]
    number_of_siblings: int | None
    about: str | None
    looking_for: str | None
    profile_photo: str | None
    gallery_images: list[str]
    contact: str
    email: str | None
    id_number: str | None
    id_card_photo: str | None
    status: AccountStatus
    is_public: bool
    is_premium: bool
    premium_tier: str | None
    premium_expires_at: datetime | None
    has_pending_edits: bool
    pending_edits: dict | None
    created_at: datetime


# ── Profile edits (admin-approved) ─────────────────────────────────────────────

class ProfileEdits(_Base):
    """Editable profile keys.  Unknown keys are rejected at the boundary.

    Submitted edits are stored as the JSON dump of the provided keys only and
    applied when an administrator approves them.
    """

    name: str | None = Field(None, min_length=1, max_length=150)
    father_name: str | None = Field(None, max_length=150)
    mother_name: str | None = Field(None, max_length=150)
    age: int | None = Field(None, ge=18, le=100)
    date_of_birth: date | None = None
    marital_status: MaritalStatus | None = None
    disability: str | None = Field(None, max_length=255)
    country_of_origin: str | None = Field(None, max_length=100)
    location: str | None = Field(None, max_length=150)
    state: str | None = Field(None, max_length=100)
    district: str | None = Field(None, max_length=100)
    city: str | None = Field(None, max_length=100)
    education: str | None = Field(None, max_length=150)
    occupation: str | None = Field(None, max_length=150)
    languages_known: list[str] | None = None
    number_of_siblings: int | None = Field(None, ge=0, le=30)
    about: str | None = None
    looking_for: str | None = None
    profile_photo: str | None = Field(None, max_length=500)
    gallery_images: list[str] | None = Field(None, max_length=MAX_GALLERY_IMAGES)


class VisibilityUpdate(_Base):
    is_public: bool


class MessageResponse(BaseModel):
    message: str


# ── Block list ────────────────────────────────────────────────────────────────

class BlockedAccountItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID           # block id
    account: AccountRef
    created_at: datetime
