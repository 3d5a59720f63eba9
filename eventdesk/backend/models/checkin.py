"""
Check-in Models.
"""

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from eventdesk.backend.core.utils import utc_now
from eventdesk.backend.models.base import Base, TimestampMixin, UUIDMixin


class CheckinList(UUIDMixin, TimestampMixin, Base):
    """
    A scanning station scope.

    Empty ticket_type_ids admits every ticket; non-empty addon_ids requires
    the attendee to hold at least one of those add-ons.
    """

    __tablename__ = "checkin_lists"

    event_id: Mapped[str] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    ticket_type_ids: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    addon_ids: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    allow_multiple_checkins: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class CheckinRecord(UUIDMixin, TimestampMixin, Base):
    """One entry through a check-in list; open while checked_out_at is null."""

    __tablename__ = "checkin_records"

    checkin_list_id: Mapped[str] = mapped_column(
        ForeignKey("checkin_lists.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    registration_id: Mapped[str] = mapped_column(
        ForeignKey("registrations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    checked_in_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
    checked_in_by: Mapped[str | None] = mapped_column(String(255))
    checked_out_at: Mapped[datetime | None] = mapped_column(DateTime)
    checked_out_by: Mapped[str | None] = mapped_column(String(255))

    @property
    def is_open(self) -> bool:
        return self.checked_out_at is None
