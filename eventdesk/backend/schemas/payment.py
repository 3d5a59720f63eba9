"""
Payment Schemas.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from eventdesk.backend.schemas.base import ORMModel


class PaymentResponse(ORMModel):
    id: str
    payment_number: str
    event_id: str | None
    payment_type: str
    payment_method: str
    payer_name: str
    payer_email: str
    amount: float
    tax_amount: float
    discount_amount: float
    net_amount: float
    currency: str
    status: str
    razorpay_order_id: str | None
    razorpay_payment_id: str | None
    completed_at: datetime | None
    failure_reason: str | None
    details: dict[str, Any]
    created_at: datetime


class OrderTicket(BaseModel):
    ticket_type_id: str
    quantity: int = Field(default=1, ge=1)


class CreateOrderRequest(BaseModel):
    event_id: str
    payer_name: str = Field(..., min_length=1)
    payer_email: str = Field(..., min_length=3)
    payer_phone: str | None = None
    tickets: list[OrderTicket] = Field(..., min_length=1)
    discount_code: str | None = None
    registration_ids: list[str] = Field(
        default_factory=list,
        description="Pending registrations to confirm when this order is paid",
    )


class CreateOrderResponse(BaseModel):
    order_id: str
    amount: int = Field(description="Amount in paise")
    currency: str
    key_id: str
    payment_id: str
    payment_number: str
    is_duplicate: bool = False


class VerifyPaymentRequest(BaseModel):
    razorpay_order_id: str | None = None
    razorpay_payment_id: str | None = None
    razorpay_signature: str | None = None
    payment_id: str | None = None


class VerifyPaymentResponse(BaseModel):
    success: bool = True
    is_duplicate: bool = False
    payment_id: str
    status: str
    registrations_confirmed: int = 0


class WebhookAck(BaseModel):
    received: bool = True
    event: str | None
