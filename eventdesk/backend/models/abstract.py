"""
Abstract Submission and Review Models.
"""

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from eventdesk.backend.models.base import Base, Money, TimestampMixin, UUIDMixin


class AbstractCategory(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "abstract_categories"

    event_id: Mapped[str] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    is_award_category: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    max_submissions: Mapped[int | None] = mapped_column(Integer)


class AbstractSettings(UUIDMixin, TimestampMixin, Base):
    """Submission window and limits, one row per event."""

    __tablename__ = "abstract_settings"

    event_id: Mapped[str] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    submission_opens_at: Mapped[datetime | None] = mapped_column(DateTime)
    submission_deadline: Mapped[datetime | None] = mapped_column(DateTime)
    word_limit: Mapped[int | None] = mapped_column(Integer)
    max_submissions_per_person: Mapped[int | None] = mapped_column(Integer)
    require_registration: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    allowed_presentation_types: Mapped[list] = mapped_column(
        JSON,
        default=lambda: ["oral", "poster"],
        nullable=False,
    )


class Abstract(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "abstracts"

    event_id: Mapped[str] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    category_id: Mapped[str | None] = mapped_column(
        ForeignKey("abstract_categories.id", ondelete="SET NULL"),
        index=True,
    )
    registration_id: Mapped[str | None] = mapped_column(
        ForeignKey("registrations.id", ondelete="SET NULL"),
    )
    abstract_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    abstract_text: Mapped[str] = mapped_column(Text, nullable=False)
    keywords: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    presentation_type: Mapped[str | None] = mapped_column(String(30))

    presenting_author_name: Mapped[str] = mapped_column(String(255), nullable=False)
    presenting_author_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    presenting_author_affiliation: Mapped[str | None] = mapped_column(String(255))
    presenting_author_phone: Mapped[str | None] = mapped_column(String(50))

    status: Mapped[str] = mapped_column(String(30), default="submitted", nullable=False, index=True)
    accepted_as: Mapped[str | None] = mapped_column(String(20))
    decision_date: Mapped[datetime | None] = mapped_column(DateTime)
    decision_notes: Mapped[str | None] = mapped_column(Text)
    redirected_from_category_id: Mapped[str | None] = mapped_column(
        ForeignKey("abstract_categories.id", ondelete="SET NULL"),
    )
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime)

    def __repr__(self) -> str:
        return f"<Abstract(id={self.id}, number={self.abstract_number!r})>"


class AbstractAuthor(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "abstract_authors"

    abstract_id: Mapped[str] = mapped_column(
        ForeignKey("abstracts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255))
    affiliation: Mapped[str | None] = mapped_column(String(255))
    author_order: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    is_presenting: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class AbstractReview(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "abstract_reviews"

    abstract_id: Mapped[str] = mapped_column(
        ForeignKey("abstracts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    reviewer_id: Mapped[str | None] = mapped_column(String(64))
    reviewer_name: Mapped[str | None] = mapped_column(String(255))
    reviewer_email: Mapped[str | None] = mapped_column(String(255))
    score_originality: Mapped[int | None] = mapped_column(Integer)
    score_methodology: Mapped[int | None] = mapped_column(Integer)
    score_relevance: Mapped[int | None] = mapped_column(Integer)
    score_clarity: Mapped[int | None] = mapped_column(Integer)
    overall_score: Mapped[float | None] = mapped_column(Money)
    recommendation: Mapped[str] = mapped_column(String(20), default="undecided", nullable=False)
    comments_to_author: Mapped[str | None] = mapped_column(Text)
    comments_private: Mapped[str | None] = mapped_column(Text)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime)
