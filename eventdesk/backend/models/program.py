"""
Program Session Model.
"""

from datetime import date, time

from sqlalchemy import Date, ForeignKey, String, Text, Time
from sqlalchemy.orm import Mapped, mapped_column

from eventdesk.backend.models.base import Base, TimestampMixin, UUIDMixin


class Session(UUIDMixin, TimestampMixin, Base):
    """
    A slot in the event program.

    speakers_text, chairpersons_text and moderators_text hold
    "Name (email, phone) | Name2 (email2, phone2)" as entered by organisers;
    description may hold "Name | email | phone" for the speaker.
    """

    __tablename__ = "sessions"

    event_id: Mapped[str] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    session_name: Mapped[str] = mapped_column(String(500), nullable=False)
    session_type: Mapped[str | None] = mapped_column(String(50))
    session_date: Mapped[date | None] = mapped_column(Date, index=True)
    start_time: Mapped[time | None] = mapped_column(Time)
    end_time: Mapped[time | None] = mapped_column(Time)
    hall: Mapped[str | None] = mapped_column(String(120))
    description: Mapped[str | None] = mapped_column(Text)
    specialty_track: Mapped[str | None] = mapped_column(String(255))
    speakers_text: Mapped[str | None] = mapped_column(Text)
    chairpersons_text: Mapped[str | None] = mapped_column(Text)
    moderators_text: Mapped[str | None] = mapped_column(Text)

    def __repr__(self) -> str:
        return f"<Session(id={self.id}, name={self.session_name!r})>"
