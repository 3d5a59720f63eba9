"""
Check-in Schemas.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from eventdesk.backend.schemas.base import ORMModel


class CheckinListCreate(BaseModel):
    event_id: str
    name: str = Field(..., min_length=1, max_length=255, examples=["Main Hall Entry"])
    description: str | None = None
    ticket_type_ids: list[str] = Field(default_factory=list)
    addon_ids: list[str] = Field(default_factory=list)
    allow_multiple_checkins: bool = False
    is_active: bool = True
    sort_order: int = 0


class CheckinListStats(BaseModel):
    total: int
    checked_in: int
    remaining: int
    percentage: int


class CheckinListResponse(ORMModel):
    id: str
    event_id: str
    name: str
    description: str | None
    ticket_type_ids: list[str]
    addon_ids: list[str]
    allow_multiple_checkins: bool
    is_active: bool
    sort_order: int
    stats: CheckinListStats | None = None


class AttendeeRow(BaseModel):
    id: str
    registration_number: str
    attendee_name: str
    attendee_email: str
    attendee_phone: str | None = None
    attendee_institution: str | None = None
    ticket_type_id: str | None = None
    ticket_type_name: str | None = None
    status: str
    checked_in: bool = False
    checked_in_at: datetime | None = None
    checked_out_at: datetime | None = None


class ScanRequest(BaseModel):
    event_id: str | None = None
    checkin_list_id: str | None = None
    registration_id: str | None = None
    registration_number: str | None = None
    action: Literal["check_in", "check_out", "toggle"] = "check_in"
    performed_by: str | None = None


class ScanResult(BaseModel):
    outcome: Literal["checked_in", "already_checked_in", "checked_out", "already_checked_out"]
    registration: AttendeeRow
    checked_in_at: datetime | None = None
    checked_out_at: datetime | None = None


class BulkCheckinRequest(BaseModel):
    event_id: str | None = None
    checkin_list_id: str | None = None
    registration_ids: list[str] = Field(default_factory=list)
    action: Literal["check_in", "check_out"] = "check_in"
    performed_by: str | None = None


class BulkCheckinResult(BaseModel):
    count: int
    skipped: int = 0


class TicketTypeBreakdown(BaseModel):
    ticket_type_id: str | None
    name: str
    total: int
    checked_in: int


class RecentCheckin(BaseModel):
    registration_id: str
    attendee_name: str
    registration_number: str
    checked_in_at: datetime


class CheckinStats(BaseModel):
    total: int
    checked_in: int
    not_checked_in: int
    percentage: int
    by_ticket_type: list[TicketTypeBreakdown]
    recent_checkins: list[RecentCheckin]
    hourly_distribution: list[int]
    today_checkins: int
