"""
Accounts domain — SQLAlchemy ORM models.

Tables:
  accounts         Profile data plus the connection-relevant attributes
                   (visibility mode, premium tier, daily request counter)
  account_blocks   Block edges (blocker blocks blocked)
  feed_rejections  Soft feed exclusions (account no longer sees rejected in discovery)
"""
from __future__ import annotations

import uuid
from datetime import date, datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from shared.database.postgres import Base
from app.accounts.constants import AccountStatus, Gender, MaritalStatus
from app.timeutils import utcnow


def _enum(enum_cls: type, name: str) -> sa.Enum:
    return sa.Enum(
        enum_cls,
        name=name,
        native_enum=False,
        length=20,
        values_callable=lambda e: [x.value for x in e],
    )


class Account(Base):
    __tablename__ = "accounts"
    __table_args__ = (
        sa.CheckConstraint("requests_today >= 0", name="ck_accounts_requests_today_non_negative"),
        sa.Index("ix_accounts_discovery", "gender", "status", "is_admin"),
    )

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(), primary_key=True, default=uuid.uuid4)

    # ── Profile fields ────────────────────────────────────────────────────────
    name: Mapped[str] = mapped_column(sa.String(150), nullable=False, index=True)
    father_name: Mapped[str | None] = mapped_column(sa.String(150), nullable=True)
    mother_name: Mapped[str | None] = mapped_column(sa.String(150), nullable=True)
    age: Mapped[int | None] = mapped_column(sa.SmallInteger(), nullable=True, index=True)
    date_of_birth: Mapped[date | None] = mapped_column(sa.Date(), nullable=True)
    gender: Mapped[Gender | None] = mapped_column(_enum(Gender, "gender"), nullable=True)
    marital_status: Mapped[MaritalStatus] = mapped_column(
        _enum(MaritalStatus, "maritalstatus"),
        nullable=False,
        default=MaritalStatus.SINGLE,
    )
    disability: Mapped[str | None] = mapped_column(sa.String(255), nullable=True)
    country_of_origin: Mapped[str | None] = mapped_column(sa.String(100), nullable=True)
    # Summary location kept alongside the cascading state/district/city fields
    location: Mapped[str | None] = mapped_column(sa.String(150), nullable=True)
    state: Mapped[str | None] = mapped_column(sa.String(100), nullable=True)
    district: Mapped[str | None] = mapped_column(sa.String(100), nullable=True)
    city: Mapped[str | None] = mapped_column(sa.String(100), nullable=True)
    education: Mapped[str | None] = mapped_column(sa.String(150), nullable=True, index=True)
    occupation: Mapped[str | None] = mapped_column(sa.String(150), nullable=True, index=True)
    languages_known: Mapped[list[str]] = mapped_column(sa.JSON(), nullable=False, default=list)
    number_of_siblings: Mapped[int | None] = mapped_column(sa.SmallInteger(), nullable=True)
    about: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    looking_for: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    profile_photo: Mapped[str | None] = mapped_column(sa.String(500), nullable=True)
    gallery_images: Mapped[list[str]] = mapped_column(sa.JSON(), nullable=False, default=list)

    # ── Sensitive identifiers ─────────────────────────────────────────────────
    contact: Mapped[str] = mapped_column(sa.String(20), unique=True, nullable=False)
    email: Mapped[str | None] = mapped_column(sa.String(255), nullable=True, index=True)
    id_number: Mapped[str | None] = mapped_column(sa.String(50), unique=True, nullable=True)
    id_card_photo: Mapped[str | None] = mapped_column(sa.String(500), nullable=True)

    # ── Account state ─────────────────────────────────────────────────────────
    status: Mapped[AccountStatus] = mapped_column(
        _enum(AccountStatus, "accountstatus"),
        nullable=False,
        default=AccountStatus.PENDING,
        index=True,
    )
    # False = private (details hidden until connected), True = any approved account can view
    is_public: Mapped[bool] = mapped_column(sa.Boolean(), nullable=False, default=False)
    is_admin: Mapped[bool] = mapped_column(sa.Boolean(), nullable=False, default=False)
    # Higher values surface first in the discovery feed
    display_priority: Mapped[int] = mapped_column(sa.Integer(), nullable=False, default=0)

    # ── Premium subscription ──────────────────────────────────────────────────
    is_premium: Mapped[bool] = mapped_column(sa.Boolean(), nullable=False, default=False, index=True)
    premium_tier: Mapped[str | None] = mapped_column(sa.String(50), nullable=True)
    premium_plan_id: Mapped[uuid.UUID | None] = mapped_column(
        sa.Uuid(),
        sa.ForeignKey("premium_plans.id", ondelete="SET NULL"),
        nullable=True,
    )
    premium_expires_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )

    # ── Daily request quota (lazy UTC-midnight reset) ─────────────────────────
    requests_today: Mapped[int] = mapped_column(sa.Integer(), nullable=False, default=0)
    requests_today_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )

    # ── Profile edits awaiting admin approval ─────────────────────────────────
    pending_edits: Mapped[dict | None] = mapped_column(sa.JSON(), nullable=True)
    has_pending_edits: Mapped[bool] = mapped_column(
        sa.Boolean(), nullable=False, default=False, index=True
    )

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class AccountBlock(Base):
    __tablename__ = "account_blocks"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(), primary_key=True, default=uuid.uuid4)
    blocker_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid(),
        sa.ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )
    blocked_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid(),
        sa.ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        sa.UniqueConstraint("blocker_id", "blocked_id", name="uq_account_blocks_pair"),
        sa.CheckConstraint("blocker_id != blocked_id", name="ck_account_blocks_no_self"),
        sa.Index("idx_account_blocks_blocker_id", "blocker_id"),
        sa.Index("idx_account_blocks_blocked_id", "blocked_id"),
    )


class FeedRejection(Base):
    """Account chose not to see ``rejected_id`` in discovery.  Not a block."""

    __tablename__ = "feed_rejections"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(), primary_key=True, default=uuid.uuid4)
    account_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid(),
        sa.ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )
    rejected_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid(),
        sa.ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        sa.UniqueConstraint("account_id", "rejected_id", name="uq_feed_rejections_pair"),
        sa.Index("idx_feed_rejections_account_id", "account_id"),
    )
