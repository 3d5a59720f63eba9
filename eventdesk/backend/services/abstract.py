"""
Abstract Service.

Categories, submission settings, public submission, peer review and
organiser decisions.
"""

from statistics import mean
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.backend.core.exceptions import ConflictError, NotFoundError, ValidationError
from eventdesk.backend.core.utils import normalize_email, utc_now
from eventdesk.backend.models.abstract import Abstract, AbstractCategory, AbstractReview
from eventdesk.backend.repositories.abstract import (
    AbstractAuthorRepository,
    AbstractCategoryRepository,
    AbstractRepository,
    AbstractReviewRepository,
    AbstractSettingsRepository,
)
from eventdesk.backend.repositories.event import EventRepository
from eventdesk.backend.repositories.registration import RegistrationRepository
from eventdesk.backend.schemas.abstract import (
    AbstractCreate,
    AbstractSettingsUpdate,
    BulkDecisionRequest,
    CategoryCreate,
    DecisionRequest,
    ReviewCreate,
)
from eventdesk.backend.services.activity import ActivityLogService
from eventdesk.backend.services.base import BaseService

DECISIONS = ("accepted", "rejected", "revision_requested", "under_review", "redirected")
PRESENTATION_TYPES = ("oral", "poster", "video")
RECOMMENDATIONS = ("accept", "reject", "revise", "undecided")
SCORE_FIELDS = ("originality", "methodology", "relevance", "clarity")
NUMBER_ATTEMPTS = 3


def abstract_number(year: int, sequence: int) -> str:
    return f"ABS-{year}-{sequence:03d}"


def _round_mean(values: list[float]) -> float | None:
    return round(mean(values), 2) if values else None


class AbstractService(BaseService):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = AbstractRepository(session)
        self.categories = AbstractCategoryRepository(session)
        self.settings = AbstractSettingsRepository(session)
        self.authors = AbstractAuthorRepository(session)
        self.reviews = AbstractReviewRepository(session)
        self.events = EventRepository(session)
        self.registrations = RegistrationRepository(session)
        self.activity = ActivityLogService(session)

    # Categories and settings

    async def create_category(self, data: CategoryCreate) -> AbstractCategory:
        await self.events.get_by_id(data.event_id)
        return await self._execute_db_operation(
            "create_abstract_category",
            self.categories.create(**data.model_dump()),
        )

    async def list_categories(self, event_id: str) -> list[AbstractCategory]:
        return await self.categories.list_ordered(event_id)

    async def get_settings(self, event_id: str) -> Any:
        """Stored settings, or unsaved defaults when the event has none."""
        settings = await self.settings.get_for_event(event_id)
        if settings is None:
            return {"event_id": event_id}
        return settings

    async def upsert_settings(self, event_id: str, data: AbstractSettingsUpdate) -> Any:
        await self.events.get_by_id(event_id)
        settings = await self.settings.get_for_event(event_id)
        if settings is None:
            return await self._execute_db_operation(
                "create_abstract_settings",
                self.settings.create(event_id=event_id, **data.model_dump()),
            )
        return await self.settings.apply(settings, **data.model_dump(exclude_unset=True))

    # Submission

    async def submit(self, data: AbstractCreate) -> dict[str, Any]:
        """
        Public abstract submission.

        Raises:
            ValidationError: Missing fields, bad email, outside the window,
                over the word limit, over the per-person limit, or not registered
            NotFoundError: Event or category not found
        """
        self._validate_required(
            data.model_dump(),
            ["event_id", "title", "abstract_text", "presenting_author_name", "presenting_author_email"],
        )
        self._validate_email(data.presenting_author_email, "presenting_author_email")
        email = normalize_email(data.presenting_author_email)

        event = await self.events.get_by_id(data.event_id)
        if data.category_id:
            category = await self.categories.get_by_id_or_none(data.category_id)
            if category is None or category.event_id != event.id:
                raise NotFoundError("Category not found")

        settings = await self.settings.get_for_event(event.id)
        registration_id = None
        if settings is not None:
            registration_id = await self._check_settings(settings, data, email)

        self._log_operation("Submitting abstract", event_id=event.id, email=email)

        abstract = None
        sequence = await self.repo.count_for_event(event.id) + 1
        year = utc_now().year
        values = {
            "event_id": event.id,
            "category_id": data.category_id,
            "registration_id": registration_id,
            "title": data.title.strip(),
            "abstract_text": data.abstract_text,
            "keywords": data.keywords,
            "presentation_type": data.presentation_type,
            "presenting_author_name": data.presenting_author_name.strip(),
            "presenting_author_email": email,
            "presenting_author_affiliation": data.presenting_author_affiliation,
            "presenting_author_phone": data.presenting_author_phone,
            "status": "submitted",
            "submitted_at": utc_now(),
        }
        for attempt in range(NUMBER_ATTEMPTS):
            try:
                async with self.session.begin_nested():
                    abstract = await self.repo.create(
                        abstract_number=abstract_number(year, sequence + attempt),
                        **values,
                    )
                break
            except IntegrityError:
                self._log_debug("Abstract number taken", attempt=attempt + 1)
        if abstract is None:
            raise ConflictError("Could not allocate an abstract number, please retry")

        authors = data.authors or []
        if not authors:
            authors_data = [
                {
                    "name": abstract.presenting_author_name,
                    "email": email,
                    "affiliation": data.presenting_author_affiliation,
                    "is_presenting": True,
                }
            ]
        else:
            authors_data = [author.model_dump() for author in authors]
        for order, author in enumerate(authors_data, start=1):
            await self.authors.create(abstract_id=abstract.id, author_order=order, **author)

        return {
            **self._abstract_fields(abstract),
            "authors": await self.authors.list_for_abstract(abstract.id),
            "reviews": [],
        }

    async def _check_settings(self, settings: Any, data: AbstractCreate, email: str) -> str | None:
        now = utc_now()
        if settings.submission_opens_at and now < settings.submission_opens_at:
            raise ValidationError("Abstract submission has not opened yet")
        if settings.submission_deadline and now > settings.submission_deadline:
            raise ValidationError("Abstract submission deadline has passed")
        if settings.word_limit:
            words = len(data.abstract_text.split())
            if words > settings.word_limit:
                raise ValidationError(
                    f"Abstract exceeds the word limit of {settings.word_limit}",
                    details={"word_count": words, "word_limit": settings.word_limit},
                )
        if settings.max_submissions_per_person:
            existing = await self.repo.count_active_by_email(settings.event_id, email)
            if existing >= settings.max_submissions_per_person:
                raise ValidationError(
                    f"Maximum of {settings.max_submissions_per_person} submissions per person reached"
                )
        if settings.require_registration:
            registration = await self.registrations.find_by_email(
                settings.event_id,
                email,
                status="confirmed",
            )
            if registration is None:
                raise ValidationError("A confirmed registration is required to submit an abstract")
            return registration.id
        return None

    def _abstract_fields(self, abstract: Abstract) -> dict[str, Any]:
        return {column.key: getattr(abstract, column.key) for column in Abstract.__table__.columns}

    async def list_abstracts(self, **filters: Any) -> tuple[list[Abstract], int]:
        return await self.repo.search(**filters)

    async def get_abstract(self, abstract_id: str, include_private: bool = False) -> dict[str, Any]:
        abstract = await self.repo.get_by_id(abstract_id)
        return {
            **self._abstract_fields(abstract),
            "authors": await self.authors.list_for_abstract(abstract.id),
            "reviews": [
                self._review_view(review, include_private)
                for review in await self.reviews.list_for_abstract(abstract.id)
            ],
        }

    # Reviews

    async def add_review(self, abstract_id: str, data: ReviewCreate) -> AbstractReview:
        abstract = await self.repo.get_by_id(abstract_id)
        scores = {}
        for name in SCORE_FIELDS:
            value = getattr(data, f"score_{name}")
            if value is not None:
                if not 1 <= value <= 10:
                    raise ValidationError(f"score_{name} must be between 1 and 10")
                scores[name] = value
        self._validate_choice(data.recommendation, RECOMMENDATIONS, "recommendation")

        review = await self._execute_db_operation(
            "create_abstract_review",
            self.reviews.create(
                abstract_id=abstract.id,
                **data.model_dump(),
                overall_score=_round_mean(list(scores.values())),
                reviewed_at=utc_now() if scores else None,
            ),
        )
        if abstract.status == "submitted":
            await self.repo.apply(abstract, status="under_review")
        return review

    def _review_view(self, review: AbstractReview, include_private: bool) -> dict[str, Any]:
        view = {column.key: getattr(review, column.key) for column in AbstractReview.__table__.columns}
        if not include_private:
            view["comments_private"] = None
        return view

    async def review_summary(self, abstract_id: str, include_private: bool = False) -> dict[str, Any]:
        await self.repo.get_by_id(abstract_id)
        reviews = await self.reviews.list_for_abstract(abstract_id)
        averages = {
            name: _round_mean([
                getattr(r, f"score_{name}") for r in reviews if getattr(r, f"score_{name}") is not None
            ])
            for name in SCORE_FIELDS
        }
        averages["overall"] = _round_mean([r.overall_score for r in reviews if r.overall_score is not None])
        return {
            "reviews": [self._review_view(r, include_private) for r in reviews],
            "average_scores": averages,
            "total_reviews": len(reviews),
            "completed_reviews": sum(1 for r in reviews if r.reviewed_at is not None),
        }

    # Decisions

    def _validate_decision(self, decision: str, accepted_as: str | None) -> None:
        self._validate_choice(decision, DECISIONS, "decision")
        if accepted_as is not None:
            self._validate_choice(accepted_as, PRESENTATION_TYPES, "accepted_as")

    async def decide(
        self,
        abstract_id: str,
        data: DecisionRequest,
        actor: str | None = None,
    ) -> Abstract:
        self._validate_decision(data.decision, data.accepted_as)
        abstract = await self.repo.get_by_id(abstract_id)
        return await self._apply_decision(abstract, data.decision, data.accepted_as, data.notes, actor)

    async def _apply_decision(
        self,
        abstract: Abstract,
        decision: str,
        accepted_as: str | None,
        notes: str | None,
        actor: str | None,
    ) -> Abstract:
        changes: dict[str, Any] = {
            "status": decision,
            "decision_date": utc_now(),
            "decision_notes": notes,
        }
        if decision == "redirected":
            target = await self.categories.find_redirect_target(abstract.event_id, abstract.category_id)
            if target is None:
                raise ValidationError("No category available to redirect to")
            changes.update(
                status="accepted",
                category_id=target.id,
                redirected_from_category_id=abstract.category_id,
            )
        if decision == "revision_requested":
            changes["accepted_as"] = None
        elif accepted_as is not None:
            changes["accepted_as"] = accepted_as

        abstract = await self.repo.apply(abstract, **changes)
        await self.activity.log(
            "abstract_decision",
            "abstract",
            entity_id=abstract.id,
            event_id=abstract.event_id,
            entity_name=abstract.abstract_number,
            actor=actor,
            description=f"{abstract.abstract_number}: {decision}",
            details={"decision": decision, "accepted_as": changes.get("accepted_as")},
        )
        return abstract

    async def bulk_decide(self, data: BulkDecisionRequest, actor: str | None = None) -> dict[str, Any]:
        """
        Apply one decision to many abstracts of the same event.

        Raises:
            ValidationError: No ids, bad decision, or abstracts from several events
            NotFoundError: Any id missing
        """
        if not data.abstract_ids:
            raise ValidationError("No abstracts selected")
        self._validate_decision(data.decision, data.accepted_as)

        ids = list(dict.fromkeys(data.abstract_ids))
        abstracts = await self.repo.get_many(ids)
        if len(abstracts) != len(ids):
            missing = sorted(set(ids) - {a.id for a in abstracts})
            raise NotFoundError("Abstract not found", details={"missing_ids": missing})
        if len({a.event_id for a in abstracts}) > 1:
            raise ValidationError("All abstracts must belong to the same event")

        for abstract in abstracts:
            await self._apply_decision(abstract, data.decision, data.accepted_as, data.notes, actor)
        return {"updated": len(abstracts), "details": {"decision": data.decision}}
