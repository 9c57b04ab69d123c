"""
Connections domain — SQLAlchemy ORM models.

Tables:
  connection_requests  Directional request records (follow / chat / photo / both)
  conversations        One chat room per unordered pair, created on acceptance
"""
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.database.postgres import Base
from app.connections.constants import RequestKind, RequestStatus
from app.timeutils import utcnow


def _enum(enum_cls: type, name: str) -> sa.Enum:
    return sa.Enum(
        enum_cls,
        name=name,
        native_enum=False,
        length=20,
        values_callable=lambda e: [x.value for x in e],
    )


class ConnectionRequest(Base):
    __tablename__ = "connection_requests"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(), primary_key=True, default=uuid.uuid4)
    from_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid(),
        sa.ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )
    to_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid(),
        sa.ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )
    kind: Mapped[RequestKind] = mapped_column(
        _enum(RequestKind, "requestkind"), nullable=False, default=RequestKind.FOLLOW
    )
    status: Mapped[RequestStatus] = mapped_column(
        _enum(RequestStatus, "requeststatus"), nullable=False, default=RequestStatus.PENDING
    )
    # See constants.slot_for: one unique column covers the ordered and unordered lanes
    slot: Mapped[str] = mapped_column(sa.String(120), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    sender = relationship("Account", foreign_keys=[from_id], lazy="raise")
    recipient = relationship("Account", foreign_keys=[to_id], lazy="raise")

    __table_args__ = (
        sa.UniqueConstraint("slot", name="uq_connection_requests_slot"),
        sa.CheckConstraint("from_id != to_id", name="ck_connection_requests_no_self"),
        sa.Index("idx_connection_requests_to_status", "to_id", "status"),
        sa.Index("idx_connection_requests_from_status", "from_id", "status"),
    )


class Conversation(Base):
    __tablename__ = "conversations"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(), primary_key=True, default=uuid.uuid4)
    # Sorted "{lo}:{hi}": one room per pair regardless of who accepted
    pair_key: Mapped[str] = mapped_column(sa.String(80), nullable=False, unique=True)
    account_a_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid(),
        sa.ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )
    account_b_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid(),
        sa.ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utcnow
    )
