"""Initial connections schema

Revision ID: 001
Revises:
Create Date: 2026-10-17

Tables created:
  - premium_plans        Subscription plans (request limit + capability matrix JSON)
  - app_settings         Single-row display policy and quota defaults
  - accounts             Profile data, visibility mode, premium state, daily counter
  - account_blocks       Block edges (blocker blocks blocked)
  - feed_rejections      Soft discovery exclusions
  - connection_requests  Request ledger; unique ``slot`` enforces one record per
                         ordered pair (connect lane) / unordered pair (photo lane)
  - conversations        One chat room per unordered pair

Enum columns are stored as VARCHAR(20) (non-native enums), so no
PostgreSQL ENUM types are created.
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("NOW()"),
    )


def _updated_at() -> sa.Column:
    return sa.Column(
        "updated_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("NOW()"),
    )


# ─────────────────────────────────────────────────────────────────────────────
#  UPGRADE
# ─────────────────────────────────────────────────────────────────────────────

def upgrade() -> None:
    # ── 1. premium_plans ──────────────────────────────────────────────────────
    op.create_table(
        "premium_plans",
        sa.Column("id", sa.Uuid(), nullable=False, server_default=sa.text("gen_random_uuid()")),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("duration_months", sa.SmallInteger(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("discount", sa.SmallInteger(), nullable=False, server_default="0"),
        sa.Column("request_limit", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("features", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("advanced_features", sa.JSON(), nullable=False, server_default=sa.text("'{}'")),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_premium_plans"),
        sa.UniqueConstraint("name", name="uq_premium_plans_name"),
        sa.CheckConstraint("request_limit >= 0", name="ck_premium_plans_request_limit"),
    )

    # ── 2. app_settings ───────────────────────────────────────────────────────
    op.create_table(
        "app_settings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("free_user_request_limit", sa.Integer(), nullable=False),
        sa.Column("premium_user_request_limit", sa.Integer(), nullable=False),
        sa.Column(
            "profile_display_fields", sa.JSON(), nullable=False, server_default=sa.text("'{}'")
        ),
        _updated_at(),
        sa.PrimaryKeyConstraint("id", name="pk_app_settings"),
    )

    # ── 3. accounts ───────────────────────────────────────────────────────────
    op.create_table(
        "accounts",
        sa.Column("id", sa.Uuid(), nullable=False, server_default=sa.text("gen_random_uuid()")),
        # Profile
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("father_name", sa.String(150), nullable=True),
        sa.Column("mother_name", sa.String(150), nullable=True),
        sa.Column("age", sa.SmallInteger(), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("gender", sa.String(20), nullable=True),
        sa.Column("marital_status", sa.String(20), nullable=False, server_default="single"),
        sa.Column("disability", sa.String(255), nullable=True),
        sa.Column("country_of_origin", sa.String(100), nullable=True),
        sa.Column("location", sa.String(150), nullable=True),
        sa.Column("state", sa.String(100), nullable=True),
        sa.Column("district", sa.String(100), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("education", sa.String(150), nullable=True),
        sa.Column("occupation", sa.String(150), nullable=True),
        sa.Column("languages_known", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("number_of_siblings", sa.SmallInteger(), nullable=True),
        sa.Column("about", sa.Text(), nullable=True),
        sa.Column("looking_for", sa.Text(), nullable=True),
        sa.Column("profile_photo", sa.String(500), nullable=True),
        sa.Column("gallery_images", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        # Sensitive identifiers
        sa.Column("contact", sa.String(20), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("id_number", sa.String(50), nullable=True),
        sa.Column("id_card_photo", sa.String(500), nullable=True),
        # State
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("display_priority", sa.Integer(), nullable=False, server_default="0"),
        # Premium
        sa.Column("is_premium", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("premium_tier", sa.String(50), nullable=True),
        sa.Column("premium_plan_id", sa.Uuid(), nullable=True),
        sa.Column("premium_expires_at", sa.DateTime(timezone=True), nullable=True),
        # Quota
        sa.Column("requests_today", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("requests_today_at", sa.DateTime(timezone=True), nullable=True),
        # Pending edits
        sa.Column("pending_edits", sa.JSON(), nullable=True),
        sa.Column("has_pending_edits", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint("id", name="pk_accounts"),
        sa.UniqueConstraint("contact", name="uq_accounts_contact"),
        sa.UniqueConstraint("id_number", name="uq_accounts_id_number"),
        sa.ForeignKeyConstraint(
            ["premium_plan_id"], ["premium_plans.id"],
            name="fk_accounts_premium_plan_id",
            ondelete="SET NULL",
        ),
        sa.CheckConstraint(
            "requests_today >= 0", name="ck_accounts_requests_today_non_negative"
        ),
    )
    op.create_index("ix_accounts_name", "accounts", ["name"])
    op.create_index("ix_accounts_age", "accounts", ["age"])
    op.create_index("ix_accounts_education", "accounts", ["education"])
    op.create_index("ix_accounts_occupation", "accounts", ["occupation"])
    op.create_index("ix_accounts_email", "accounts", ["email"])
    op.create_index("ix_accounts_status", "accounts", ["status"])
    op.create_index("ix_accounts_is_premium", "accounts", ["is_premium"])
    op.create_index("ix_accounts_has_pending_edits", "accounts", ["has_pending_edits"])
    op.create_index("ix_accounts_discovery", "accounts", ["gender", "status", "is_admin"])

    # ── 4. account_blocks ─────────────────────────────────────────────────────
    op.create_table(
        "account_blocks",
        sa.Column("id", sa.Uuid(), nullable=False, server_default=sa.text("gen_random_uuid()")),
        sa.Column("blocker_id", sa.Uuid(), nullable=False),
        sa.Column("blocked_id", sa.Uuid(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_account_blocks"),
        sa.ForeignKeyConstraint(
            ["blocker_id"], ["accounts.id"], name="fk_account_blocks_blocker_id", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["blocked_id"], ["accounts.id"], name="fk_account_blocks_blocked_id", ondelete="CASCADE"
        ),
        sa.UniqueConstraint("blocker_id", "blocked_id", name="uq_account_blocks_pair"),
        sa.CheckConstraint("blocker_id != blocked_id", name="ck_account_blocks_no_self"),
    )
    op.create_index("idx_account_blocks_blocker_id", "account_blocks", ["blocker_id"])
    op.create_index("idx_account_blocks_blocked_id", "account_blocks", ["blocked_id"])

    # ── 5. feed_rejections ────────────────────────────────────────────────────
    op.create_table(
        "feed_rejections",
        sa.Column("id", sa.Uuid(), nullable=False, server_default=sa.text("gen_random_uuid()")),
        sa.Column("account_id", sa.Uuid(), nullable=False),
        sa.Column("rejected_id", sa.Uuid(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_feed_rejections"),
        sa.ForeignKeyConstraint(
            ["account_id"], ["accounts.id"], name="fk_feed_rejections_account_id", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["rejected_id"], ["accounts.id"], name="fk_feed_rejections_rejected_id", ondelete="CASCADE"
        ),
        sa.UniqueConstraint("account_id", "rejected_id", name="uq_feed_rejections_pair"),
    )
    op.create_index("idx_feed_rejections_account_id", "feed_rejections", ["account_id"])

    # ── 6. connection_requests ────────────────────────────────────────────────
    op.create_table(
        "connection_requests",
        sa.Column("id", sa.Uuid(), nullable=False, server_default=sa.text("gen_random_uuid()")),
        sa.Column("from_id", sa.Uuid(), nullable=False),
        sa.Column("to_id", sa.Uuid(), nullable=False),
        sa.Column("kind", sa.String(20), nullable=False, server_default="follow"),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("slot", sa.String(120), nullable=False),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint("id", name="pk_connection_requests"),
        sa.ForeignKeyConstraint(
            ["from_id"], ["accounts.id"], name="fk_connection_requests_from_id", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["to_id"], ["accounts.id"], name="fk_connection_requests_to_id", ondelete="CASCADE"
        ),
        sa.UniqueConstraint("slot", name="uq_connection_requests_slot"),
        sa.CheckConstraint("from_id != to_id", name="ck_connection_requests_no_self"),
    )
    op.create_index(
        "idx_connection_requests_to_status", "connection_requests", ["to_id", "status"]
    )
    op.create_index(
        "idx_connection_requests_from_status", "connection_requests", ["from_id", "status"]
    )

    # ── 7. conversations ──────────────────────────────────────────────────────
    op.create_table(
        "conversations",
        sa.Column("id", sa.Uuid(), nullable=False, server_default=sa.text("gen_random_uuid()")),
        sa.Column("pair_key", sa.String(80), nullable=False),
        sa.Column("account_a_id", sa.Uuid(), nullable=False),
        sa.Column("account_b_id", sa.Uuid(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_conversations"),
        sa.UniqueConstraint("pair_key", name="uq_conversations_pair_key"),
        sa.ForeignKeyConstraint(
            ["account_a_id"], ["accounts.id"], name="fk_conversations_account_a_id", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["account_b_id"], ["accounts.id"], name="fk_conversations_account_b_id", ondelete="CASCADE"
        ),
    )


# ─────────────────────────────────────────────────────────────────────────────
#  DOWNGRADE
# ─────────────────────────────────────────────────────────────────────────────

def downgrade() -> None:
    op.drop_table("conversations")
    op.drop_index("idx_connection_requests_from_status", table_name="connection_requests")
    op.drop_index("idx_connection_requests_to_status", table_name="connection_requests")
    op.drop_table("connection_requests")
    op.drop_index("idx_feed_rejections_account_id", table_name="feed_rejections")
    op.drop_table("feed_rejections")
    op.drop_index("idx_account_blocks_blocked_id", table_name="account_blocks")
    op.drop_index("idx_account_blocks_blocker_id", table_name="account_blocks")
    op.drop_table("account_blocks")
    op.drop_table("accounts")
    op.drop_table("app_settings")
    op.drop_table("premium_plans")
