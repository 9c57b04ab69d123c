"""
Policies domain — SQLAlchemy ORM models.

Tables:
  premium_plans  Subscription plans: daily request limit plus the advanced
                 feature flags / field-visibility matrix (JSON)
  app_settings   Single-row global settings owned by administrators
"""
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from shared.database.postgres import Base
from app.timeutils import utcnow

# Primary key of the only app_settings row
APP_SETTINGS_ID: int = 1


class PremiumPlan(Base):
    __tablename__ = "premium_plans"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(sa.String(100), nullable=False, unique=True)
    duration_months: Mapped[int] = mapped_column(sa.SmallInteger(), nullable=False)
    price: Mapped[Decimal] = mapped_column(sa.Numeric(10, 2), nullable=False)
    discount: Mapped[int] = mapped_column(sa.SmallInteger(), nullable=False, default=0)
    request_limit: Mapped[int] = mapped_column(sa.Integer(), nullable=False)
    is_active: Mapped[bool] = mapped_column(sa.Boolean(), nullable=False, default=True)
    features: Mapped[list[str]] = mapped_column(sa.JSON(), nullable=False, default=list)
    # {"view_all_users": bool, "view_all_photos": bool,
    #  "can_message_without_follow": bool, "can_view_fields": {field: bool}}
    advanced_features: Mapped[dict] = mapped_column(sa.JSON(), nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        sa.CheckConstraint("request_limit >= 0", name="ck_premium_plans_request_limit"),
    )


class AppSettings(Base):
    __tablename__ = "app_settings"

    id: Mapped[int] = mapped_column(sa.Integer(), primary_key=True, default=APP_SETTINGS_ID)
    free_user_request_limit: Mapped[int] = mapped_column(sa.Integer(), nullable=False)
    premium_user_request_limit: Mapped[int] = mapped_column(sa.Integer(), nullable=False)
    profile_display_fields: Mapped[dict] = mapped_column(sa.JSON(), nullable=False, default=dict)
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
