"""
Payment Model.
"""

from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from eventdesk.backend.models.base import Base, Money, TimestampMixin, UUIDMixin


class Payment(UUIDMixin, TimestampMixin, Base):
    """
    A payment against one or more registrations.

    Amounts are in rupees (or the event currency), not paise. `details`
    keeps gateway data and refund bookkeeping; updates must preserve the
    existing keys.
    """

    __tablename__ = "payments"

    payment_number: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    event_id: Mapped[str | None] = mapped_column(
        ForeignKey("events.id", ondelete="SET NULL"),
        index=True,
    )
    payment_type: Mapped[str] = mapped_column(String(30), default="registration", nullable=False)
    payment_method: Mapped[str] = mapped_column(String(30), default="razorpay", nullable=False)

    payer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    payer_email: Mapped[str] = mapped_column(String(255), nullable=False)
    payer_phone: Mapped[str | None] = mapped_column(String(50))

    amount: Mapped[float] = mapped_column(Money, default=0, nullable=False)
    tax_amount: Mapped[float] = mapped_column(Money, default=0, nullable=False)
    discount_amount: Mapped[float] = mapped_column(Money, default=0, nullable=False)
    net_amount: Mapped[float] = mapped_column(Money, default=0, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="INR", nullable=False)

    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False, index=True)
    razorpay_order_id: Mapped[str | None] = mapped_column(String(100), index=True)
    razorpay_payment_id: Mapped[str | None] = mapped_column(String(100), index=True)
    razorpay_signature: Mapped[str | None] = mapped_column(String(255))

    completed_at: Mapped[datetime | None] = mapped_column(DateTime)
    failed_at: Mapped[datetime | None] = mapped_column(DateTime)
    failure_reason: Mapped[str | None] = mapped_column(Text)
    details: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
