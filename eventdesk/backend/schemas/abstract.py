"""
Abstract Schemas.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from eventdesk.backend.schemas.base import ORMModel


class CategoryCreate(BaseModel):
    event_id: str
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    is_award_category: bool = False
    is_active: bool = True
    sort_order: int = 0
    max_submissions: int | None = Field(default=None, ge=1)


class CategoryResponse(ORMModel):
    id: str
    event_id: str
    name: str
    description: str | None
    is_award_category: bool
    is_active: bool
    sort_order: int
    max_submissions: int | None


class AbstractSettingsUpdate(BaseModel):
    submission_opens_at: datetime | None = None
    submission_deadline: datetime | None = None
    word_limit: int | None = Field(default=None, ge=1)
    max_submissions_per_person: int | None = Field(default=None, ge=1)
    require_registration: bool = False
    allowed_presentation_types: list[str] = Field(default_factory=lambda: ["oral", "poster"])


class AbstractSettingsResponse(BaseModel):
    event_id: str
    submission_opens_at: datetime | None = None
    submission_deadline: datetime | None = None
    word_limit: int | None = None
    max_submissions_per_person: int | None = None
    require_registration: bool = False
    allowed_presentation_types: list[str] = Field(default_factory=lambda: ["oral", "poster"])

    model_config = ConfigDict(from_attributes=True)


class AuthorInput(BaseModel):
    name: str = Field(..., min_length=1)
    email: str | None = None
    affiliation: str | None = None
    is_presenting: bool = False


class AbstractCreate(BaseModel):
    event_id: str | None = None
    category_id: str | None = None
    title: str | None = None
    abstract_text: str | None = None
    keywords: list[str] = Field(default_factory=list)
    presentation_type: str | None = None
    presenting_author_name: str | None = None
    presenting_author_email: str | None = None
    presenting_author_affiliation: str | None = None
    presenting_author_phone: str | None = None
    authors: list[AuthorInput] = Field(default_factory=list)


class AuthorResponse(ORMModel):
    id: str
    name: str
    email: str | None
    affiliation: str | None
    author_order: int
    is_presenting: bool


class ReviewResponse(ORMModel):
    id: str
    abstract_id: str
    reviewer_id: str | None
    reviewer_name: str | None
    reviewer_email: str | None
    score_originality: int | None
    score_methodology: int | None
    score_relevance: int | None
    score_clarity: int | None
    overall_score: float | None
    recommendation: str
    comments_to_author: str | None
    comments_private: str | None = None
    reviewed_at: datetime | None
    created_at: datetime


class AbstractResponse(ORMModel):
    id: str
    event_id: str
    category_id: str | None
    registration_id: str | None
    abstract_number: str
    title: str
    abstract_text: str
    keywords: list[str]
    presentation_type: str | None
    presenting_author_name: str
    presenting_author_email: str
    presenting_author_affiliation: str | None
    presenting_author_phone: str | None
    status: str
    accepted_as: str | None
    decision_date: datetime | None
    decision_notes: str | None
    redirected_from_category_id: str | None
    submitted_at: datetime | None


class AbstractDetail(AbstractResponse):
    authors: list[AuthorResponse] = Field(default_factory=list)
    reviews: list[ReviewResponse] = Field(default_factory=list)


class ReviewCreate(BaseModel):
    reviewer_id: str | None = None
    reviewer_name: str | None = None
    reviewer_email: str | None = None
    score_originality: int | None = None
    score_methodology: int | None = None
    score_relevance: int | None = None
    score_clarity: int | None = None
    recommendation: str = "undecided"
    comments_to_author: str | None = None
    comments_private: str | None = None


class AverageScores(BaseModel):
    originality: float | None
    methodology: float | None
    relevance: float | None
    clarity: float | None
    overall: float | None


class ReviewSummary(BaseModel):
    reviews: list[ReviewResponse]
    average_scores: AverageScores
    total_reviews: int
    completed_reviews: int


class DecisionRequest(BaseModel):
    decision: str
    accepted_as: str | None = None
    notes: str | None = None


class BulkDecisionRequest(BaseModel):
    abstract_ids: list[str] = Field(default_factory=list)
    decision: str
    accepted_as: str | None = None
    notes: str | None = None


class BulkDecisionResult(BaseModel):
    updated: int
    details: dict[str, Any] = Field(default_factory=dict)
