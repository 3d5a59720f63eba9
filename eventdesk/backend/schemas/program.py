"""
Program Session Schemas.
"""

from datetime import date, time
from typing import Any

from pydantic import BaseModel, Field

from eventdesk.backend.schemas.base import ORMModel
from eventdesk.backend.schemas.event import EventSummary


class SessionCreate(BaseModel):
    event_id: str
    session_name: str = Field(..., min_length=1, max_length=500)
    session_type: str | None = None
    session_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None
    hall: str | None = None
    description: str | None = Field(default=None, examples=["Dr. Asha Rao | asha@example.com | 9876543210"])
    specialty_track: str | None = None
    speakers_text: str | None = Field(default=None, examples=["Asha Rao (asha@example.com, 98765) | Vikram Shah"])
    chairpersons_text: str | None = None
    moderators_text: str | None = None


class SessionUpdate(BaseModel):
    session_name: str | None = Field(default=None, min_length=1, max_length=500)
    session_type: str | None = None
    session_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None
    hall: str | None = None
    description: str | None = None
    specialty_track: str | None = None
    speakers_text: str | None = None
    chairpersons_text: str | None = None
    moderators_text: str | None = None


class SessionResponse(ORMModel):
    id: str
    event_id: str
    session_name: str
    session_type: str | None
    session_date: date | None
    start_time: time | None
    end_time: time | None
    hall: str | None
    description: str | None
    specialty_track: str | None
    speakers_text: str | None
    chairpersons_text: str | None
    moderators_text: str | None


class ProgramDay(BaseModel):
    date: date | None
    halls: list[str]
    sessions: list[SessionResponse]


class PublicProgram(BaseModel):
    event: EventSummary
    days: list[ProgramDay]


class SyncAssignmentsResult(BaseModel):
    created: int
    skipped: int
    failed: int
    total: int
    first_error: str | None = None
    sample_errors: list[str] = Field(default_factory=list)


class SendInvitationsRequest(BaseModel):
    assignment_ids: list[str] = Field(default_factory=list)
    subject: str | None = None
    body: str | None = None


class SendResult(BaseModel):
    sent: int
    failed: int
    errors: list[str] = Field(default_factory=list)


class SpeakerRegistrationsRequest(BaseModel):
    event_id: str | None = None


class SpeakerRegistrationsResult(BaseModel):
    created: int
    skipped: int
    total: int
    ticket_type_id: str | None = None
    details: list[dict[str, Any]] = Field(default_factory=list)
