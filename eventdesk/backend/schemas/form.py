"""
Form Schemas.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from eventdesk.backend.schemas.base import ORMModel

FormStatus = Literal["draft", "published", "archived"]
SubmissionStatus = Literal["pending", "reviewed", "approved", "rejected"]


class FormCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(..., min_length=1, max_length=120, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: str | None = None
    form_type: str = "general"
    event_id: str | None = None
    status: FormStatus = "draft"
    is_public: bool = True
    allow_multiple_submissions: bool = True
    submit_button_text: str = "Submit"
    success_message: str | None = None
    notify_on_submission: bool = False
    notification_emails: list[str] = Field(default_factory=list)
    max_submissions: int | None = Field(default=None, ge=1)
    submission_deadline: datetime | None = None


class FormUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    form_type: str | None = None
    status: FormStatus | None = None
    is_public: bool | None = None
    allow_multiple_submissions: bool | None = None
    submit_button_text: str | None = None
    success_message: str | None = None
    notify_on_submission: bool | None = None
    notification_emails: list[str] | None = None
    max_submissions: int | None = Field(default=None, ge=1)
    submission_deadline: datetime | None = None


class FieldCreate(BaseModel):
    field_type: str = "text"
    label: str = Field(..., min_length=1, max_length=255)
    placeholder: str | None = None
    help_text: str | None = None
    is_required: bool = False
    min_length: int | None = Field(default=None, ge=0)
    max_length: int | None = Field(default=None, ge=1)
    pattern: str | None = None
    options: list[Any] = Field(default_factory=list)
    sort_order: int = 0
    settings: dict[str, Any] = Field(default_factory=dict)


class FieldResponse(ORMModel):
    id: str
    form_id: str
    field_type: str
    label: str
    placeholder: str | None
    help_text: str | None
    is_required: bool
    min_length: int | None
    max_length: int | None
    pattern: str | None
    options: list[Any]
    sort_order: int
    settings: dict[str, Any]


class FormResponse(ORMModel):
    id: str
    name: str
    slug: str
    description: str | None
    form_type: str
    event_id: str | None
    status: str
    is_public: bool
    allow_multiple_submissions: bool
    submit_button_text: str
    success_message: str | None
    notify_on_submission: bool
    notification_emails: list[str]
    max_submissions: int | None
    submission_deadline: datetime | None
    created_at: datetime


class FormDetail(FormResponse):
    fields: list[FieldResponse] = Field(default_factory=list)


class SubmissionCreate(BaseModel):
    form_id: str | None = None
    responses: dict[str, Any] | None = None
    submitter_email: str | None = None
    submitter_name: str | None = None
    verified_emails: list[str] = Field(default_factory=list)


class SubmissionResponse(ORMModel):
    id: str
    form_id: str
    submitter_email: str | None
    submitter_name: str | None
    submitter_ip: str | None
    user_agent: str | None
    responses: dict[str, Any]
    status: str
    submitted_at: datetime
    reviewed_at: datetime | None


class SubmissionStatusUpdate(BaseModel):
    status: SubmissionStatus
