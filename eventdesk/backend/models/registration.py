"""
Registration Models.
"""

from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from eventdesk.backend.models.base import Base, Money, TimestampMixin, UUIDMixin

REGISTRATION_STATUSES = (
    "pending",
    "confirmed",
    "cancelled",
    "refunded",
    "waitlisted",
    "declined",
)


class Registration(UUIDMixin, TimestampMixin, Base):
    """
    One attendee's sign-up for an event.

    custom_fields holds free-form data: imported CSV columns, speaker portal
    state (portal_token, travel_details) and form answers. Always assign a
    new dict when changing it so the ORM sees the change.
    """

    __tablename__ = "registrations"

    event_id: Mapped[str] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    ticket_type_id: Mapped[str | None] = mapped_column(
        ForeignKey("ticket_types.id", ondelete="SET NULL"),
        index=True,
    )
    registration_number: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)

    attendee_name: Mapped[str] = mapped_column(String(255), nullable=False)
    attendee_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    attendee_phone: Mapped[str | None] = mapped_column(String(50))
    attendee_institution: Mapped[str | None] = mapped_column(String(255))
    attendee_designation: Mapped[str | None] = mapped_column(String(255))
    attendee_city: Mapped[str | None] = mapped_column(String(120))
    attendee_state: Mapped[str | None] = mapped_column(String(120))
    attendee_country: Mapped[str | None] = mapped_column(String(120))

    quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    unit_price: Mapped[float] = mapped_column(Money, default=0, nullable=False)
    tax_amount: Mapped[float] = mapped_column(Money, default=0, nullable=False)
    discount_amount: Mapped[float] = mapped_column(Money, default=0, nullable=False)
    total_amount: Mapped[float] = mapped_column(Money, default=0, nullable=False)
    discount_code_id: Mapped[str | None] = mapped_column(
        ForeignKey("discount_codes.id", ondelete="SET NULL"),
    )

    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False, index=True)
    payment_status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    payment_id: Mapped[str | None] = mapped_column(
        ForeignKey("payments.id", ondelete="SET NULL"),
        index=True,
    )
    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime)
    custom_fields: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)

    def __repr__(self) -> str:
        return f"<Registration(id={self.id}, number={self.registration_number!r})>"


class RegistrationAddon(UUIDMixin, TimestampMixin, Base):
    """An add-on held by a registration."""

    __tablename__ = "registration_addons"

    registration_id: Mapped[str] = mapped_column(
        ForeignKey("registrations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    addon_id: Mapped[str] = mapped_column(
        ForeignKey("addons.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
