"""
Sponsor Schemas.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from eventdesk.backend.schemas.base import ORMModel

SponsorStatus = Literal["pending", "confirmed", "cancelled"]
SponsorPaymentStatus = Literal["pending", "partial", "paid"]


class TierCreate(BaseModel):
    event_id: str
    name: str = Field(..., min_length=1, max_length=120, examples=["Platinum"])
    color: str | None = None
    display_order: int = 0
    benefits: list[str] = Field(default_factory=list)
    logo_size: str | None = None
    stall_size: str | None = None
    complimentary_passes: int = Field(default=0, ge=0)
    price: float = Field(default=0, ge=0)


class TierResponse(ORMModel):
    id: str
    event_id: str
    name: str
    color: str | None
    display_order: int
    benefits: list[str]
    logo_size: str | None
    stall_size: str | None
    complimentary_passes: int
    price: float


class SponsorCreate(BaseModel):
    event_id: str
    tier_id: str | None = None
    name: str = Field(..., min_length=1, max_length=255)
    logo_url: str | None = None
    website: str | None = None
    description: str | None = None
    company_address: str | None = None
    company_phone: str | None = None
    company_email: str | None = None
    status: SponsorStatus = "pending"
    amount_agreed: float = Field(default=0, ge=0)
    amount_paid: float = Field(default=0, ge=0)
    payment_status: SponsorPaymentStatus = "pending"
    stall_number: str | None = None
    notes: str | None = None


class SponsorUpdate(BaseModel):
    tier_id: str | None = None
    name: str | None = Field(default=None, min_length=1, max_length=255)
    logo_url: str | None = None
    website: str | None = None
    description: str | None = None
    company_address: str | None = None
    company_phone: str | None = None
    company_email: str | None = None
    status: SponsorStatus | None = None
    amount_agreed: float | None = Field(default=None, ge=0)
    amount_paid: float | None = Field(default=None, ge=0)
    payment_status: SponsorPaymentStatus | None = None
    stall_number: str | None = None
    notes: str | None = None


class ContactCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    designation: str | None = None
    email: str | None = None
    phone: str | None = None
    is_primary: bool = False


class ContactResponse(ORMModel):
    id: str
    sponsor_id: str
    name: str
    designation: str | None
    email: str | None
    phone: str | None
    is_primary: bool


class SponsorResponse(ORMModel):
    id: str
    event_id: str
    tier_id: str | None
    name: str
    logo_url: str | None
    website: str | None
    description: str | None
    company_address: str | None
    company_phone: str | None
    company_email: str | None
    status: str
    amount_agreed: float
    amount_paid: float
    payment_status: str
    stall_number: str | None
    notes: str | None
    confirmed_at: datetime | None
    created_at: datetime


class SponsorDetail(SponsorResponse):
    contacts: list[ContactResponse] = Field(default_factory=list)


class TierBreakdown(BaseModel):
    tier_id: str | None
    name: str
    count: int
    amount: float


class SponsorStats(BaseModel):
    total: int
    confirmed: int
    pending: int
    cancelled: int
    total_agreed: float
    total_paid: float
    outstanding: float
    by_tier: list[TierBreakdown]
    stalls_assigned: int
