"""
Ticket Service.

Ticket types, discount codes and the pricing rules shared by
registration and payment order creation.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.backend.core.exceptions import ConflictError, ValidationError
from eventdesk.backend.core.utils import utc_now
from eventdesk.backend.models.ticket import DiscountCode, TicketType
from eventdesk.backend.repositories.event import EventRepository
from eventdesk.backend.repositories.ticket import DiscountCodeRepository, TicketTypeRepository
from eventdesk.backend.schemas.ticket import DiscountCodeCreate, TicketTypeCreate, TicketTypeUpdate
from eventdesk.backend.services.base import BaseService


@dataclass
class PriceBreakdown:
    subtotal: float
    tax: float
    discount: float
    total: float
    discount_code: DiscountCode | None = None


def calculate_discount(discount: DiscountCode, subtotal: float) -> float:
    """
    Discount amount for a subtotal.

    Percentage discounts are capped at max_discount_amount when set; no
    discount exceeds the subtotal.
    """
    if discount.discount_type == "percentage":
        amount = subtotal * discount.discount_value / 100
        if discount.max_discount_amount is not None:
            amount = min(amount, discount.max_discount_amount)
    else:
        amount = discount.discount_value
    return round(min(amount, subtotal), 2)


def check_discount_usable(discount: DiscountCode) -> None:
    """Raise ValidationError when a code is inactive, out of window or used up."""
    now = utc_now()
    if not discount.is_active:
        raise ValidationError("Discount code is not active")
    if discount.valid_from and now < discount.valid_from:
        raise ValidationError("Discount code is not yet valid")
    if discount.valid_until and now > discount.valid_until:
        raise ValidationError("Discount code has expired")
    if discount.max_uses is not None and discount.current_uses >= discount.max_uses:
        raise ValidationError("Discount code usage limit reached")


def check_ticket_available(ticket: TicketType, quantity: int) -> None:
    if ticket.status != "active":
        raise ValidationError(f"Ticket type '{ticket.name}' is not available")
    if ticket.quantity_total is not None and ticket.quantity_sold + quantity > ticket.quantity_total:
        raise ValidationError(
            f"Only {ticket.available()} tickets left for '{ticket.name}'",
            details={"available": ticket.available(), "requested": quantity},
        )


class TicketService(BaseService):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = TicketTypeRepository(session)
        self.discounts = DiscountCodeRepository(session)
        self.events = EventRepository(session)

    async def create_ticket_type(self, data: TicketTypeCreate) -> TicketType:
        await self.events.get_by_id(data.event_id)
        if data.max_per_order < data.min_per_order:
            raise ValidationError("max_per_order must be at least min_per_order")

        self._log_operation("Creating ticket type", event_id=data.event_id, name=data.name)
        return await self._execute_db_operation(
            "create_ticket_type",
            self.repo.create(**data.model_dump()),
        )

    async def update_ticket_type(self, ticket_type_id: str, data: TicketTypeUpdate) -> TicketType:
        update_data = data.model_dump(exclude_unset=True)
        if not update_data:
            return await self.repo.get_by_id(ticket_type_id)
        return await self._execute_db_operation(
            "update_ticket_type",
            self.repo.update(ticket_type_id, **update_data),
        )

    async def list_ticket_types(self, event_id: str) -> list[TicketType]:
        return await self.repo.list_for_event_ordered(event_id)

    async def create_discount_code(self, data: DiscountCodeCreate) -> DiscountCode:
        await self.events.get_by_id(data.event_id)
        code = data.code.strip().upper()
        if await self.discounts.get_by_code(data.event_id, code):
            raise ConflictError(f"Discount code '{code}' already exists for this event")

        return await self._execute_db_operation(
            "create_discount_code",
            self.discounts.create(**{**data.model_dump(), "code": code}),
            conflict_message=f"Discount code '{code}' already exists for this event",
        )

    async def list_discount_codes(self, event_id: str) -> list[DiscountCode]:
        return await self.discounts.list_for_event(event_id, DiscountCode.code)

    async def validate_discount(
        self,
        event_id: str,
        code: str,
        subtotal: float,
    ) -> tuple[DiscountCode, float]:
        """
        Look up a code and compute its discount on `subtotal`.

        Raises:
            ValidationError: Unknown code, or code inactive, not yet valid, expired or exhausted
        """
        discount = await self.discounts.get_by_code(event_id, code)
        if discount is None:
            raise ValidationError("Invalid discount code")
        check_discount_usable(discount)
        return discount, calculate_discount(discount, subtotal)

    async def price(
        self,
        event_id: str,
        lines: list[tuple[TicketType, int]],
        discount_code: str | None = None,
    ) -> PriceBreakdown:
        """Subtotal, tax, discount and total for ticket lines."""
        subtotal = round(sum(ticket.price * quantity for ticket, quantity in lines), 2)
        tax = round(
            sum(ticket.price * quantity * ticket.tax_percentage / 100 for ticket, quantity in lines),
            2,
        )
        discount, discount_amount = None, 0.0
        if discount_code:
            discount, discount_amount = await self.validate_discount(event_id, discount_code, subtotal)
        total = round(max(subtotal + tax - discount_amount, 0), 2)
        return PriceBreakdown(
            subtotal=subtotal,
            tax=tax,
            discount=discount_amount,
            total=total,
            discount_code=discount,
        )
