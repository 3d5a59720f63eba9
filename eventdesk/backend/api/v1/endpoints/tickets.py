"""
Ticketing API Endpoints.

Ticket types and discount codes. Mounted at the API root because the
two resources live under separate prefixes.
"""

from fastapi import APIRouter, Query

from eventdesk.backend.core.dependencies import CurrentStaff, DbSession
from eventdesk.backend.schemas.base import ApiResponse
from eventdesk.backend.schemas.ticket import (
    DiscountCodeCreate,
    DiscountCodeResponse,
    DiscountValidateRequest,
    DiscountValidateResponse,
    TicketTypeCreate,
    TicketTypeResponse,
    TicketTypeUpdate,
)
from eventdesk.backend.services.ticket import TicketService

router = APIRouter()


@router.post(
    "/ticket-types",
    response_model=ApiResponse[TicketTypeResponse],
    status_code=201,
    summary="Create a ticket type",
    tags=["tickets"],
)
async def create_ticket_type(
    data: TicketTypeCreate,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[TicketTypeResponse]:
    service = TicketService(db)
    ticket = await service.create_ticket_type(data)
    return ApiResponse(data=TicketTypeResponse.model_validate(ticket))


@router.get(
    "/ticket-types",
    response_model=ApiResponse[list[TicketTypeResponse]],
    summary="List ticket types",
    description="Ticket types of an event ordered by sort_order then price.",
    tags=["tickets"],
)
async def list_ticket_types(
    db: DbSession,
    event_id: str = Query(..., description="Event ID"),
) -> ApiResponse[list[TicketTypeResponse]]:
    service = TicketService(db)
    tickets = await service.list_ticket_types(event_id)
    return ApiResponse(data=[TicketTypeResponse.model_validate(t) for t in tickets])


@router.patch(
    "/ticket-types/{ticket_type_id}",
    response_model=ApiResponse[TicketTypeResponse],
    summary="Update a ticket type",
    tags=["tickets"],
)
async def update_ticket_type(
    ticket_type_id: str,
    data: TicketTypeUpdate,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[TicketTypeResponse]:
    service = TicketService(db)
    ticket = await service.update_ticket_type(ticket_type_id, data)
    return ApiResponse(data=TicketTypeResponse.model_validate(ticket))


@router.post(
    "/discount-codes",
    response_model=ApiResponse[DiscountCodeResponse],
    status_code=201,
    summary="Create a discount code",
    tags=["tickets"],
)
async def create_discount_code(
    data: DiscountCodeCreate,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[DiscountCodeResponse]:
    service = TicketService(db)
    discount = await service.create_discount_code(data)
    return ApiResponse(data=DiscountCodeResponse.model_validate(discount))


@router.get(
    "/discount-codes",
    response_model=ApiResponse[list[DiscountCodeResponse]],
    summary="List discount codes",
    tags=["tickets"],
)
async def list_discount_codes(
    db: DbSession,
    staff: CurrentStaff,
    event_id: str = Query(..., description="Event ID"),
) -> ApiResponse[list[DiscountCodeResponse]]:
    service = TicketService(db)
    discounts = await service.list_discount_codes(event_id)
    return ApiResponse(data=[DiscountCodeResponse.model_validate(d) for d in discounts])


@router.post(
    "/discount-codes/validate",
    response_model=ApiResponse[DiscountValidateResponse],
    summary="Validate a discount code",
    description="Check a code against an order subtotal and return the discount amount.",
    tags=["tickets"],
)
async def validate_discount_code(
    data: DiscountValidateRequest,
    db: DbSession,
) -> ApiResponse[DiscountValidateResponse]:
    service = TicketService(db)
    discount, amount = await service.validate_discount(data.event_id, data.code, data.subtotal)
    return ApiResponse(
        data=DiscountValidateResponse(
            discount_code_id=discount.id,
            code=discount.code,
            discount_type=discount.discount_type,
            discount_amount=amount,
        )
    )
