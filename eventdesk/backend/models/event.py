"""
Event Models.

An event is the root of every other record: tickets, registrations,
sessions, abstracts, sponsors and check-in lists all carry an event_id.
"""

from datetime import date

from sqlalchemy import JSON, Boolean, Date, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from eventdesk.backend.models.base import Base, TimestampMixin, UUIDMixin


class Event(UUIDMixin, TimestampMixin, Base):
    """An event that attendees register for."""

    __tablename__ = "events"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    short_name: Mapped[str | None] = mapped_column(String(100))
    slug: Mapped[str] = mapped_column(String(120), unique=True, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text)
    start_date: Mapped[date | None] = mapped_column(Date)
    end_date: Mapped[date | None] = mapped_column(Date)
    venue_name: Mapped[str | None] = mapped_column(String(255))
    city: Mapped[str | None] = mapped_column(String(120))
    timezone: Mapped[str] = mapped_column(String(64), default="Asia/Kolkata", nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="draft", nullable=False)
    registration_open: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Per-event payment account; falls back to the default keys in config/.env
    razorpay_key_id: Mapped[str | None] = mapped_column(String(100))
    razorpay_key_secret: Mapped[str | None] = mapped_column(String(255))
    razorpay_webhook_secret: Mapped[str | None] = mapped_column(String(255))

    settings: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, name={self.name!r})>"


class EventSettings(UUIDMixin, TimestampMixin, Base):
    """Registration numbering and approval settings, one row per event."""

    __tablename__ = "event_settings"

    event_id: Mapped[str] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    customize_registration_id: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    registration_prefix: Mapped[str | None] = mapped_column(String(50))
    registration_start_number: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    registration_suffix: Mapped[str | None] = mapped_column(String(50))
    current_registration_number: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    require_approval: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
