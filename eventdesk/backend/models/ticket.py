"""
Ticketing Models.

Ticket types with inventory, discount codes and purchasable add-ons.
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from eventdesk.backend.models.base import Base, Money, TimestampMixin, UUIDMixin


class TicketType(UUIDMixin, TimestampMixin, Base):
    """
    A purchasable category for an event.

    quantity_total of None means unlimited inventory. quantity_sold is only
    ever changed through TicketTypeRepository.increment_sold so concurrent
    writers cannot lose updates.
    """

    __tablename__ = "ticket_types"

    event_id: Mapped[str] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    price: Mapped[float] = mapped_column(Money, default=0, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="INR", nullable=False)
    tax_percentage: Mapped[float] = mapped_column(Money, default=0, nullable=False)
    quantity_total: Mapped[int | None] = mapped_column(Integer)
    quantity_sold: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    min_per_order: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    max_per_order: Mapped[int] = mapped_column(Integer, default=10, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="active", nullable=False)
    requires_approval: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    @property
    def is_free(self) -> bool:
        return not self.price

    def available(self, pending: int = 0) -> int | None:
        """Seats left after `pending` unsaved sales, or None when unlimited."""
        if self.quantity_total is None:
            return None
        return max(0, self.quantity_total - self.quantity_sold - pending)

    def __repr__(self) -> str:
        return f"<TicketType(id={self.id}, name={self.name!r})>"


class DiscountCode(UUIDMixin, TimestampMixin, Base):
    """A promo code; code is stored upper-case and unique per event."""

    __tablename__ = "discount_codes"
    __table_args__ = (UniqueConstraint("event_id", "code", name="uq_discount_codes_event_code"),)

    event_id: Mapped[str] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    discount_type: Mapped[str] = mapped_column(String(20), default="percentage", nullable=False)
    discount_value: Mapped[float] = mapped_column(Money, nullable=False)
    max_discount_amount: Mapped[float | None] = mapped_column(Money)
    max_uses: Mapped[int | None] = mapped_column(Integer)
    current_uses: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    valid_from: Mapped[datetime | None] = mapped_column(DateTime)
    valid_until: Mapped[datetime | None] = mapped_column(DateTime)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class Addon(UUIDMixin, TimestampMixin, Base):
    """An extra purchasable with a registration (workshop seat, dinner)."""

    __tablename__ = "addons"

    event_id: Mapped[str] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price: Mapped[float] = mapped_column(Money, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
