"""
Profiles domain — Pydantic V2 schemas.

A ProfileResponse carries only the fields that survived visibility resolution:
hidden fields are never set, and the routes serialise with
``response_model_exclude_unset`` so they are absent rather than null.
"""
from __future__ import annotations

import uuid
from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from app.accounts.constants import Gender, MaritalStatus
from app.connections.constants import RequestDirection, RequestStatus


class RequestStateOut(BaseModel):
    direction: RequestDirection | None
    status: RequestStatus


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID

    # Visible fields (set only when visible)
    name: str | None = None
    father_name: str | None = None
    mother_name: str | None = None
    age: int | None = None
    date_of_birth: date | None = None
    gender: Gender | None = None
    marital_status: MaritalStatus | None = None
    disability: str | None = None
    country_of_origin: str | None = None
    location: str | None = None
    state: str | None = None
    district: str | None = None
    city: str | None = None
    education: str | None = None
    occupation: str | None = None
    languages_known: list[str] | None = None
    number_of_siblings: int | None = None
    about: str | None = None
    looking_for: str | None = None
    profile_photo: str | None = None
    gallery_images: list[str] | None = None
    contact: str | None = None
    email: str | None = None
    id_number: str | None = None
    id_card_photo: str | None = None
    is_public: bool | None = None

    # Computed flags
    blocked: bool = False
    is_connected: bool = False
    is_photo_accessible: bool = False
    is_blocked_by_me: bool = False
    is_blocked_by_them: bool = False
    request_status: Literal["none", "pending", "accepted"] = "none"
    request_direction: RequestDirection | None = None
    photo_request: RequestStateOut | None = None


class FeedFilters(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    location: str | None = None
    min_age: int | None = Field(None, ge=18, le=100)
    max_age: int | None = Field(None, ge=18, le=100)
    education: str | None = None
    occupation: str | None = None
    marital_status: MaritalStatus | None = None
    name: str | None = None
