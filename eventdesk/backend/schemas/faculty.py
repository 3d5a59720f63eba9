"""
Faculty Assignment and Speaker Portal Schemas.
"""

from datetime import date, datetime, time
from typing import Any

from pydantic import BaseModel, Field

from eventdesk.backend.schemas.base import ORMModel
from eventdesk.backend.schemas.event import EventSummary
from eventdesk.backend.schemas.program import SessionResponse
from eventdesk.backend.schemas.registration import RegistrationResponse


class AssignmentResponse(ORMModel):
    id: str
    event_id: str
    session_id: str | None
    registration_id: str | None
    faculty_name: str
    faculty_email: str | None
    faculty_phone: str | None
    role: str
    topic_title: str | None
    session_name: str | None
    session_date: date | None
    start_time: time | None
    end_time: time | None
    hall: str | None
    status: str
    invitation_sent_at: datetime | None
    responded_at: datetime | None
    response_notes: str | None
    change_request_details: str | None


class FacultyContact(BaseModel):
    name: str
    email: str | None = None
    phone: str | None = None


class RespondPortal(BaseModel):
    faculty: FacultyContact
    assignments: list[AssignmentResponse]
    event: EventSummary | None


class RespondRequest(BaseModel):
    """
    Either a global_response applied to every assignment, or per-assignment
    responses keyed by assignment id. With global_response, notes is a
    single string; otherwise a map of assignment id to text.
    """

    global_response: str | None = None
    responses: dict[str, str] = Field(default_factory=dict)
    notes: str | dict[str, str] | None = None


class RespondResult(BaseModel):
    updated: int


class SpeakerPortal(BaseModel):
    registration: RegistrationResponse | None
    assignments: list[AssignmentResponse]
    sessions: list[SessionResponse]
    event: EventSummary | None
    matched_by: str


class SpeakerAction(BaseModel):
    action: str = Field(..., examples=["accept", "decline", "update"])
    data: dict[str, Any] = Field(default_factory=dict)


class SpeakerActionResult(BaseModel):
    registration: RegistrationResponse | None
    assignments_updated: int = 0
