"""Visibility resolver — pure, no I/O and no framework imports.

Layers, applied in order.  After the bypass, a layer may hide fields but never
re-reveal one hidden earlier (layer 5 is the single sanctioned exception for
the connected-sensitive fields hidden by layer 2):

  1. self and admins skip to layer 6 with nothing hidden
  2. contact / email / id_number / id_card_photo hidden
  3. target blocked viewer → only {name, blocked}; viewer blocked target → about hidden
  4. private profile: demographics need a connection (or view_all_users);
     photos need connection + accepted photo request (or view_all_photos)
  5. connected viewers get email / contact / id_number back where the display
     policy opts in
  6. the viewer's plan matrix (can_view_fields) removes every field it sets false
  7. the display policy's base flags remove every field they set false
"""
from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from app.accounts.constants import (
    ALL_PROFILE_FIELDS,
    ALWAYS_HIDDEN_FIELDS,
    BASE_DISPLAY_FIELDS,
    CONNECTED_SENSITIVE_FIELDS,
    DEMOGRAPHIC_FIELDS,
    PHOTO_FIELDS,
    ProfileField,
)
from app.accounts.models import Account
from app.connections.constants import (
    CONNECT_KINDS,
    RequestDirection,
    RequestKind,
    RequestStatus,
)
from app.connections.models import ConnectionRequest
from app.policies.schemas import AdvancedFeatures, DisplayPolicy, TierPolicy


@dataclass(frozen=True)
class ViewerContext:
    account_id: uuid.UUID
    is_admin: bool = False
    # Only set while the viewer's premium subscription is active
    tier: TierPolicy | None = None

    @property
    def features(self) -> AdvancedFeatures:
        if self.tier is None:
            return AdvancedFeatures()
        return self.tier.advanced_features


@dataclass(frozen=True)
class RequestState:
    direction: RequestDirection | None
    status: RequestStatus


@dataclass(frozen=True)
class PairRelation:
    connected: bool = False
    photo_allowed: bool = False
    blocked_by_viewer: bool = False
    blocked_by_target: bool = False
    # Connect lane as seen by the viewer (accepted beats pending)
    connect_request: RequestState | None = None
    photo_request: RequestState | None = None


@dataclass(frozen=True)
class ResolvedProfile:
    account_id: uuid.UUID
    fields: dict[str, Any] = field(default_factory=dict)
    blocked: bool = False
    is_connected: bool = False
    is_photo_accessible: bool = False
    is_blocked_by_me: bool = False
    is_blocked_by_them: bool = False
    connect_request: RequestState | None = None
    photo_request: RequestState | None = None


def summarize(
    viewer_id: uuid.UUID,
    records: Iterable[ConnectionRequest],
    *,
    blocked_by_viewer: bool = False,
    blocked_by_target: bool = False,
) -> PairRelation:
    """Collapse every ledger record between the viewer and one account."""
    connected = False
    photo_allowed = False
    connect_pending: RequestState | None = None
    photo_request: RequestState | None = None
    for record in records:
        direction = RequestDirection.SENT if record.from_id == viewer_id else RequestDirection.RECEIVED
        state = RequestState(direction=direction, status=record.status)
        if record.kind is RequestKind.PHOTO:
            photo_request = state
            photo_allowed = record.status is RequestStatus.ACCEPTED
        elif record.kind in CONNECT_KINDS:
            if record.status is RequestStatus.ACCEPTED:
                connected = True
            elif record.status is RequestStatus.PENDING and connect_pending is None:
                connect_pending = state
    connect_request = connect_pending
    if connected:
        connect_request = RequestState(direction=None, status=RequestStatus.ACCEPTED)
    return PairRelation(
        connected=connected,
        photo_allowed=photo_allowed,
        blocked_by_viewer=blocked_by_viewer,
        blocked_by_target=blocked_by_target,
        connect_request=connect_request,
        photo_request=photo_request,
    )


def visible_fields(
    viewer: ViewerContext,
    target: Account,
    relation: PairRelation,
    display: DisplayPolicy,
) -> set[ProfileField] | None:
    """Return the visible field set, or None when the target has blocked the viewer."""
    visible = set(ALL_PROFILE_FIELDS)

    # 1. self / admin bypass: straight to layer 6 with nothing hidden
    is_self = viewer.account_id == target.id

    if not (is_self or viewer.is_admin):
        # 2. always-hidden core
        visible -= ALWAYS_HIDDEN_FIELDS

        # 3. block veto
        if relation.blocked_by_target:
            return None
        if relation.blocked_by_viewer:
            visible.discard(ProfileField.ABOUT)

        # 4. connection / public gating
        features = viewer.features
        if not target.is_public:
            if not relation.connected and not features.view_all_users:
                visible -= DEMOGRAPHIC_FIELDS
            if not (relation.connected and relation.photo_allowed) and not features.view_all_photos:
                visible -= PHOTO_FIELDS

        # 5. connected-sensitive re-enable
        if relation.connected:
            for f in CONNECTED_SENSITIVE_FIELDS:
                if display.shows(f, default=False):
                    visible.add(f)

    # 6. tier capability matrix
    for f, allowed in viewer.features.can_view_fields.items():
        if not allowed:
            visible.discard(f)

    # 7. global display defaults
    for f in BASE_DISPLAY_FIELDS:
        if not display.shows(f):
            visible.discard(f)

    return visible


def resolve_profile(
    viewer: ViewerContext,
    target: Account,
    relation: PairRelation,
    display: DisplayPolicy,
) -> ResolvedProfile:
    visible = visible_fields(viewer, target, relation, display)
    if visible is None:
        return ResolvedProfile(
            account_id=target.id,
            fields={ProfileField.NAME.value: target.name},
            blocked=True,
            is_blocked_by_me=relation.blocked_by_viewer,
            is_blocked_by_them=True,
        )
    fields = {f.value: getattr(target, f.value) for f in ALL_PROFILE_FIELDS if f in visible}
    return ResolvedProfile(
        account_id=target.id,
        fields=fields,
        is_connected=relation.connected,
        is_photo_accessible=ProfileField.PROFILE_PHOTO in visible,
        is_blocked_by_me=relation.blocked_by_viewer,
        is_blocked_by_them=relation.blocked_by_target,
        connect_request=relation.connect_request,
        photo_request=relation.photo_request,
    )
