"""
Payments API Endpoints.

Razorpay checkout: order creation, client-side verification and the
server-to-server webhook.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request

from eventdesk.backend.core.dependencies import CurrentStaff, DbSession, OptionalStaff
from eventdesk.backend.integrations.razorpay import RazorpayClient, get_razorpay_client
from eventdesk.backend.schemas.base import ApiResponse
from eventdesk.backend.schemas.payment import (
    CreateOrderRequest,
    CreateOrderResponse,
    PaymentResponse,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
    WebhookAck,
)
from eventdesk.backend.services.payment import PaymentService

router = APIRouter()

Gateway = Annotated[RazorpayClient, Depends(get_razorpay_client)]


@router.post(
    "/razorpay/create-order",
    response_model=ApiResponse[CreateOrderResponse],
    summary="Create a Razorpay order",
    description="The amount is computed from ticket prices, tax and discount; client amounts are ignored.",
)
async def create_order(
    data: CreateOrderRequest,
    db: DbSession,
    gateway: Gateway,
) -> ApiResponse[CreateOrderResponse]:
    service = PaymentService(db, gateway=gateway)
    result = await service.create_order(data)
    return ApiResponse(data=CreateOrderResponse.model_validate(result))


@router.post(
    "/razorpay/verify",
    response_model=ApiResponse[VerifyPaymentResponse],
    summary="Verify a Razorpay checkout",
)
async def verify_payment(
    data: VerifyPaymentRequest,
    db: DbSession,
    staff: OptionalStaff,
) -> ApiResponse[VerifyPaymentResponse]:
    service = PaymentService(db)
    result = await service.verify_payment(data, actor=staff.display_name if staff else None)
    return ApiResponse(data=VerifyPaymentResponse.model_validate(result))


@router.post(
    "/razorpay/webhook",
    response_model=ApiResponse[WebhookAck],
    summary="Razorpay webhook",
    description="Signed with X-Razorpay-Signature over the raw body.",
)
async def razorpay_webhook(
    request: Request,
    db: DbSession,
    x_razorpay_signature: str | None = Header(None),
) -> ApiResponse[WebhookAck]:
    body = await request.body()
    service = PaymentService(db)
    result = await service.handle_webhook(body, x_razorpay_signature)
    return ApiResponse(data=WebhookAck.model_validate(result))


@router.get(
    "/{payment_id}",
    response_model=ApiResponse[PaymentResponse],
    summary="Get a payment",
)
async def get_payment(
    payment_id: str,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[PaymentResponse]:
    service = PaymentService(db)
    payment = await service.get_payment(payment_id)
    return ApiResponse(data=PaymentResponse.model_validate(payment))
