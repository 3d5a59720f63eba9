"""
Configurable Form Models.
"""

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from eventdesk.backend.core.utils import utc_now
from eventdesk.backend.models.base import Base, TimestampMixin, UUIDMixin


class Form(UUIDMixin, TimestampMixin, Base):
    """A form that the public can fill in, optionally scoped to an event."""

    __tablename__ = "forms"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    slug: Mapped[str] = mapped_column(String(120), unique=True, nullable=False, index=True)
    form_type: Mapped[str] = mapped_column(String(30), default="general", nullable=False)
    event_id: Mapped[str | None] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"),
        index=True,
    )
    status: Mapped[str] = mapped_column(String(20), default="draft", nullable=False)
    is_public: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    allow_multiple_submissions: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    submit_button_text: Mapped[str] = mapped_column(String(100), default="Submit", nullable=False)
    success_message: Mapped[str | None] = mapped_column(Text)
    notify_on_submission: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notification_emails: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    max_submissions: Mapped[int | None] = mapped_column(Integer)
    submission_deadline: Mapped[datetime | None] = mapped_column(DateTime)


class FormField(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "form_fields"

    form_id: Mapped[str] = mapped_column(
        ForeignKey("forms.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    field_type: Mapped[str] = mapped_column(String(30), default="text", nullable=False)
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    placeholder: Mapped[str | None] = mapped_column(String(255))
    help_text: Mapped[str | None] = mapped_column(Text)
    is_required: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    min_length: Mapped[int | None] = mapped_column(Integer)
    max_length: Mapped[int | None] = mapped_column(Integer)
    pattern: Mapped[str | None] = mapped_column(String(255))
    options: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    settings: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)


class FormSubmission(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "form_submissions"

    form_id: Mapped[str] = mapped_column(
        ForeignKey("forms.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    submitter_email: Mapped[str | None] = mapped_column(String(255), index=True)
    submitter_name: Mapped[str | None] = mapped_column(String(255))
    submitter_ip: Mapped[str | None] = mapped_column(String(64))
    user_agent: Mapped[str | None] = mapped_column(String(500))
    responses: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    submitted_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime)
