"""
Event Schemas.
"""

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from eventdesk.backend.schemas.base import ORMModel

EventStatus = Literal["draft", "published", "completed", "cancelled"]


class EventCreate(BaseModel):
    """Schema for creating an event."""

    name: str = Field(..., min_length=1, max_length=255, examples=["Annual Cardiology Conference 2026"])
    slug: str = Field(
        ...,
        min_length=1,
        max_length=120,
        pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$",
        examples=["cardiocon-2026"],
    )
    short_name: str | None = Field(default=None, max_length=100)
    description: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    venue_name: str | None = Field(default=None, max_length=255)
    city: str | None = Field(default=None, max_length=120)
    timezone: str = "Asia/Kolkata"
    status: EventStatus = "draft"
    registration_open: bool = True
    razorpay_key_id: str | None = None
    razorpay_key_secret: str | None = None
    razorpay_webhook_secret: str | None = None
    settings: dict[str, Any] = Field(default_factory=dict)


class EventUpdate(BaseModel):
    """Partial update; only fields that are sent are changed."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    short_name: str | None = None
    description: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    venue_name: str | None = None
    city: str | None = None
    timezone: str | None = None
    status: EventStatus | None = None
    registration_open: bool | None = None
    razorpay_key_id: str | None = None
    razorpay_key_secret: str | None = None
    razorpay_webhook_secret: str | None = None
    settings: dict[str, Any] | None = None


class EventResponse(ORMModel):
    """Event as returned to staff. Gateway secrets are never echoed."""

    id: str
    name: str
    short_name: str | None
    slug: str
    description: str | None
    start_date: date | None
    end_date: date | None
    venue_name: str | None
    city: str | None
    timezone: str
    status: str
    registration_open: bool
    razorpay_key_id: str | None
    settings: dict[str, Any]
    created_at: datetime
    updated_at: datetime


class EventSummary(ORMModel):
    """Public subset of an event used by portals and the program page."""

    id: str
    name: str
    short_name: str | None
    start_date: date | None
    end_date: date | None
    venue_name: str | None
    city: str | None


class EventSettingsUpdate(BaseModel):
    customize_registration_id: bool | None = None
    registration_prefix: str | None = Field(default=None, max_length=50)
    registration_start_number: int | None = Field(default=None, ge=0)
    registration_suffix: str | None = Field(default=None, max_length=50)
    require_approval: bool | None = None


class EventSettingsResponse(ORMModel):
    event_id: str
    customize_registration_id: bool
    registration_prefix: str | None
    registration_start_number: int
    registration_suffix: str | None
    current_registration_number: int
    require_approval: bool
