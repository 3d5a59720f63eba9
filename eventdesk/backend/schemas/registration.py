"""
Registration Schemas.

Create and import bodies keep their required fields optional so the
service can answer with one 400 listing everything that is missing.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from eventdesk.backend.schemas.base import ORMModel
from eventdesk.backend.schemas.payment import PaymentResponse

PaymentMethod = Literal["razorpay", "cash", "bank_transfer", "free"]


class RegistrationCreate(BaseModel):
    event_id: str | None = None
    ticket_type_id: str | None = None
    attendee_name: str | None = None
    attendee_email: str | None = None
    attendee_phone: str | None = None
    attendee_institution: str | None = None
    attendee_designation: str | None = None
    attendee_city: str | None = None
    attendee_state: str | None = None
    attendee_country: str | None = None
    quantity: int = Field(default=1, ge=1)
    discount_code: str | None = None
    payment_method: PaymentMethod = "razorpay"
    custom_fields: dict[str, Any] = Field(default_factory=dict)
    notes: str | None = None


class RegistrationResponse(ORMModel):
    id: str
    event_id: str
    ticket_type_id: str | None
    registration_number: str
    attendee_name: str
    attendee_email: str
    attendee_phone: str | None
    attendee_institution: str | None
    attendee_designation: str | None
    attendee_city: str | None
    attendee_state: str | None
    attendee_country: str | None
    quantity: int
    unit_price: float
    tax_amount: float
    discount_amount: float
    total_amount: float
    status: str
    payment_status: str
    payment_id: str | None
    confirmed_at: datetime | None
    custom_fields: dict[str, Any]
    notes: str | None
    created_at: datetime


class RegistrationCreated(BaseModel):
    registration: RegistrationResponse
    payment: PaymentResponse | None
    requires_payment: bool


class CancelRequest(BaseModel):
    reason: str | None = None
    cancellation_fee: float = Field(default=0, ge=0)
    subtract_tax: bool = False


class CancelResult(BaseModel):
    registration: RegistrationResponse
    refund_amount: float
    refund_status: str


class ImportRequest(BaseModel):
    """
    Bulk import body.

    Each row is a dict of CSV columns: ticket, name, email, phone,
    designation, institution, city, state, country, status, notify and
    any number of "Q:<question>" columns.
    """

    event_id: str | None = None
    registrations: list[dict[str, Any]] = Field(default_factory=list)
    ticket_type_id: str | None = None


class ImportSummary(BaseModel):
    total: int
    created: int
    skipped: int
    failed: int
    notifications_queued: int


class ImportedRow(BaseModel):
    row: int
    registration_number: str
    name: str
    email: str


class ImportResult(BaseModel):
    summary: ImportSummary
    created: list[ImportedRow]
    errors: list[str]
