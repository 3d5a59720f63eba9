"""
Ticketing Repositories.
"""

from sqlalchemy import func, select

from eventdesk.backend.models.ticket import DiscountCode, TicketType
from eventdesk.backend.repositories.base import BaseRepository


class TicketTypeRepository(BaseRepository[TicketType]):
    model = TicketType

    async def list_for_event_ordered(self, event_id: str) -> list[TicketType]:
        return await self.list_for_event(event_id, TicketType.sort_order, TicketType.price)

    async def get_for_event(self, ticket_type_id: str, event_id: str) -> TicketType | None:
        result = await self.session.execute(
            select(TicketType).where(
                TicketType.id == ticket_type_id,
                TicketType.event_id == event_id,
            )
        )
        return result.scalar_one_or_none()

    async def increment_sold(self, ticket_type_id: str, quantity: int = 1) -> None:
        await self.increment(ticket_type_id, "quantity_sold", quantity)

    async def decrement_sold(self, ticket_type_id: str, quantity: int = 1) -> None:
        await self.increment(ticket_type_id, "quantity_sold", -quantity, floor=0)


class DiscountCodeRepository(BaseRepository[DiscountCode]):
    model = DiscountCode

    async def get_by_code(self, event_id: str, code: str) -> DiscountCode | None:
        result = await self.session.execute(
            select(DiscountCode).where(
                DiscountCode.event_id == event_id,
                func.upper(DiscountCode.code) == code.strip().upper(),
            )
        )
        return result.scalar_one_or_none()

    async def record_use(self, discount_code_id: str) -> None:
        await self.increment(discount_code_id, "current_uses", 1)
