"""
Ticketing Schemas.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from eventdesk.backend.schemas.base import ORMModel

TicketStatus = Literal["active", "paused", "sold_out", "hidden"]


class TicketTypeCreate(BaseModel):
    event_id: str
    name: str = Field(..., min_length=1, max_length=255, examples=["Delegate"])
    description: str | None = None
    price: float = Field(default=0, ge=0)
    currency: str = Field(default="INR", min_length=3, max_length=3)
    tax_percentage: float = Field(default=0, ge=0, le=100)
    quantity_total: int | None = Field(default=None, ge=0, description="Omit for unlimited")
    min_per_order: int = Field(default=1, ge=1)
    max_per_order: int = Field(default=10, ge=1)
    status: TicketStatus = "active"
    requires_approval: bool = False
    sort_order: int = 0


class TicketTypeUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    price: float | None = Field(default=None, ge=0)
    tax_percentage: float | None = Field(default=None, ge=0, le=100)
    quantity_total: int | None = Field(default=None, ge=0)
    min_per_order: int | None = Field(default=None, ge=1)
    max_per_order: int | None = Field(default=None, ge=1)
    status: TicketStatus | None = None
    requires_approval: bool | None = None
    sort_order: int | None = None


class TicketTypeResponse(ORMModel):
    id: str
    event_id: str
    name: str
    description: str | None
    price: float
    currency: str
    tax_percentage: float
    quantity_total: int | None
    quantity_sold: int
    min_per_order: int
    max_per_order: int
    status: str
    requires_approval: bool
    sort_order: int
    created_at: datetime


class DiscountCodeCreate(BaseModel):
    event_id: str
    code: str = Field(..., min_length=1, max_length=50, examples=["EARLYBIRD"])
    discount_type: Literal["percentage", "fixed"] = "percentage"
    discount_value: float = Field(..., gt=0)
    max_discount_amount: float | None = Field(default=None, gt=0)
    max_uses: int | None = Field(default=None, ge=1)
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    is_active: bool = True


class DiscountCodeResponse(ORMModel):
    id: str
    event_id: str
    code: str
    discount_type: str
    discount_value: float
    max_discount_amount: float | None
    max_uses: int | None
    current_uses: int
    valid_from: datetime | None
    valid_until: datetime | None
    is_active: bool


class DiscountValidateRequest(BaseModel):
    event_id: str
    code: str
    subtotal: float = Field(..., ge=0)


class DiscountValidateResponse(BaseModel):
    valid: bool = True
    discount_code_id: str
    code: str
    discount_type: str
    discount_amount: float
