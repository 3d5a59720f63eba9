"""
Faculty Assignment Models.
"""

from datetime import date, datetime, time

from sqlalchemy import Date, DateTime, ForeignKey, String, Text, Time
from sqlalchemy.orm import Mapped, mapped_column

from eventdesk.backend.models.base import Base, TimestampMixin, UUIDMixin

RESPONSE_STATUSES = ("confirmed", "declined", "change_requested")


class FacultyAssignment(UUIDMixin, TimestampMixin, Base):
    """
    Links a speaker or faculty member to a session.

    Session name, date, times and hall are copied at creation so emails and
    the respond portal do not depend on later session edits.
    """

    __tablename__ = "faculty_assignments"

    event_id: Mapped[str] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    session_id: Mapped[str | None] = mapped_column(
        ForeignKey("sessions.id", ondelete="CASCADE"),
        index=True,
    )
    registration_id: Mapped[str | None] = mapped_column(
        ForeignKey("registrations.id", ondelete="SET NULL"),
    )

    faculty_name: Mapped[str] = mapped_column(String(255), nullable=False)
    faculty_email: Mapped[str | None] = mapped_column(String(255), index=True)
    faculty_phone: Mapped[str | None] = mapped_column(String(50))
    role: Mapped[str] = mapped_column(String(30), default="speaker", nullable=False)
    topic_title: Mapped[str | None] = mapped_column(String(500))

    session_name: Mapped[str | None] = mapped_column(String(500))
    session_date: Mapped[date | None] = mapped_column(Date)
    start_time: Mapped[time | None] = mapped_column(Time)
    end_time: Mapped[time | None] = mapped_column(Time)
    hall: Mapped[str | None] = mapped_column(String(120))

    status: Mapped[str] = mapped_column(String(30), default="pending", nullable=False)
    invitation_token: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    invitation_sent_at: Mapped[datetime | None] = mapped_column(DateTime)
    responded_at: Mapped[datetime | None] = mapped_column(DateTime)
    response_notes: Mapped[str | None] = mapped_column(Text)
    change_request_details: Mapped[str | None] = mapped_column(Text)


class AssignmentEmail(UUIDMixin, TimestampMixin, Base):
    """Outcome of one email sent about an assignment."""

    __tablename__ = "assignment_emails"

    assignment_id: Mapped[str] = mapped_column(
        ForeignKey("faculty_assignments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    event_id: Mapped[str] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
    )
    email_type: Mapped[str] = mapped_column(String(30), nullable=False)
    recipient_email: Mapped[str] = mapped_column(String(255), nullable=False)
    recipient_name: Mapped[str | None] = mapped_column(String(255))
    subject: Mapped[str | None] = mapped_column(String(500))
    body_preview: Mapped[str | None] = mapped_column(String(200))
    status: Mapped[str] = mapped_column(String(20), default="sent", nullable=False)
    external_id: Mapped[str | None] = mapped_column(String(255))
    error_message: Mapped[str | None] = mapped_column(Text)
    sent_at: Mapped[datetime | None] = mapped_column(DateTime)
