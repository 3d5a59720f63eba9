"""
Sponsor Models.
"""

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from eventdesk.backend.models.base import Base, Money, TimestampMixin, UUIDMixin


class SponsorTier(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "sponsor_tiers"

    event_id: Mapped[str] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    color: Mapped[str | None] = mapped_column(String(20))
    display_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    benefits: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    logo_size: Mapped[str | None] = mapped_column(String(20))
    stall_size: Mapped[str | None] = mapped_column(String(50))
    complimentary_passes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    price: Mapped[float] = mapped_column(Money, default=0, nullable=False)


class Sponsor(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "sponsors"

    event_id: Mapped[str] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tier_id: Mapped[str | None] = mapped_column(
        ForeignKey("sponsor_tiers.id", ondelete="SET NULL"),
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    logo_url: Mapped[str | None] = mapped_column(String(500))
    website: Mapped[str | None] = mapped_column(String(500))
    description: Mapped[str | None] = mapped_column(Text)
    company_address: Mapped[str | None] = mapped_column(Text)
    company_phone: Mapped[str | None] = mapped_column(String(50))
    company_email: Mapped[str | None] = mapped_column(String(255))
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    amount_agreed: Mapped[float] = mapped_column(Money, default=0, nullable=False)
    amount_paid: Mapped[float] = mapped_column(Money, default=0, nullable=False)
    payment_status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    stall_number: Mapped[str | None] = mapped_column(String(50))
    notes: Mapped[str | None] = mapped_column(Text)
    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime)


class SponsorContact(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "sponsor_contacts"

    sponsor_id: Mapped[str] = mapped_column(
        ForeignKey("sponsors.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    designation: Mapped[str | None] = mapped_column(String(255))
    email: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(50))
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
