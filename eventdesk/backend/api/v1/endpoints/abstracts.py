"""
Abstract API Endpoints.

Public submission plus the organiser review and decision workflow.
"""

import uuid
from typing import Any

from fastapi import APIRouter, Depends, Query

from eventdesk.backend.core.dependencies import CurrentStaff, DbSession, OptionalStaff, RequestId
from eventdesk.backend.core.pagination import (
    PaginationParams,
    create_paginated_response,
    get_pagination_params,
)
from eventdesk.backend.schemas.abstract import (
    AbstractCreate,
    AbstractDetail,
    AbstractResponse,
    AbstractSettingsResponse,
    AbstractSettingsUpdate,
    BulkDecisionRequest,
    BulkDecisionResult,
    CategoryCreate,
    CategoryResponse,
    DecisionRequest,
    ReviewCreate,
    ReviewResponse,
    ReviewSummary,
)
from eventdesk.backend.schemas.base import ApiResponse
from eventdesk.backend.services.abstract import AbstractService

router = APIRouter(tags=["abstracts"])


# Categories and settings

@router.post(
    "/abstract-categories",
    response_model=ApiResponse[CategoryResponse],
    status_code=201,
    summary="Create an abstract category",
)
async def create_category(
    data: CategoryCreate,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[CategoryResponse]:
    service = AbstractService(db)
    category = await service.create_category(data)
    return ApiResponse(data=CategoryResponse.model_validate(category))


@router.get(
    "/abstract-categories",
    response_model=ApiResponse[list[CategoryResponse]],
    summary="List abstract categories",
)
async def list_categories(
    db: DbSession,
    event_id: str = Query(...),
) -> ApiResponse[list[CategoryResponse]]:
    service = AbstractService(db)
    categories = await service.list_categories(event_id)
    return ApiResponse(data=[CategoryResponse.model_validate(c) for c in categories])


@router.get(
    "/abstract-settings/{event_id}",
    response_model=ApiResponse[AbstractSettingsResponse],
    summary="Get abstract settings",
    description="Stored settings, or defaults when the event has none.",
)
async def get_settings(
    event_id: str,
    db: DbSession,
) -> ApiResponse[AbstractSettingsResponse]:
    service = AbstractService(db)
    settings = await service.get_settings(event_id)
    return ApiResponse(data=AbstractSettingsResponse.model_validate(settings))


@router.put(
    "/abstract-settings/{event_id}",
    response_model=ApiResponse[AbstractSettingsResponse],
    summary="Save abstract settings",
)
async def upsert_settings(
    event_id: str,
    data: AbstractSettingsUpdate,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[AbstractSettingsResponse]:
    service = AbstractService(db)
    settings = await service.upsert_settings(event_id, data)
    return ApiResponse(data=AbstractSettingsResponse.model_validate(settings))


# Abstracts

@router.post(
    "/abstracts",
    response_model=ApiResponse[AbstractDetail],
    status_code=201,
    summary="Submit an abstract",
    description="Public submission. Numbered ABS-YYYY-NNN within the event.",
)
async def submit_abstract(
    data: AbstractCreate,
    db: DbSession,
) -> ApiResponse[AbstractDetail]:
    service = AbstractService(db)
    abstract = await service.submit(data)
    return ApiResponse(data=AbstractDetail.model_validate(abstract))


@router.get(
    "/abstracts",
    summary="List abstracts (paginated)",
)
async def list_abstracts(
    db: DbSession,
    request_id: RequestId,
    staff: CurrentStaff,
    pagination: PaginationParams = Depends(get_pagination_params),
    event_id: str | None = Query(default=None),
    status: str | None = Query(default=None),
    category_id: uuid.UUID | None = Query(default=None),
    presentation_type: str | None = Query(default=None),
    email: str | None = Query(default=None),
    search: str | None = Query(default=None, description="Title, number or author name"),
) -> dict[str, Any]:
    service = AbstractService(db)
    abstracts, total = await service.list_abstracts(
        event_id=event_id,
        status=status,
        category_id=str(category_id) if category_id else None,
        presentation_type=presentation_type,
        email=email,
        search=search,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    return create_paginated_response(
        items=abstracts,
        item_schema=AbstractResponse,
        total=total,
        limit=pagination.limit,
        offset=pagination.offset,
        request_id=request_id,
    )


@router.post(
    "/abstracts/bulk-decision",
    response_model=ApiResponse[BulkDecisionResult],
    summary="Decide many abstracts at once",
)
async def bulk_decision(
    data: BulkDecisionRequest,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[BulkDecisionResult]:
    service = AbstractService(db)
    result = await service.bulk_decide(data, actor=staff.display_name)
    return ApiResponse(data=BulkDecisionResult.model_validate(result))


@router.get(
    "/abstracts/{abstract_id}",
    response_model=ApiResponse[AbstractDetail],
    summary="Get an abstract with authors and reviews",
)
async def get_abstract(
    abstract_id: str,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[AbstractDetail]:
    service = AbstractService(db)
    abstract = await service.get_abstract(abstract_id, include_private=True)
    return ApiResponse(data=AbstractDetail.model_validate(abstract))


@router.post(
    "/abstracts/{abstract_id}/reviews",
    response_model=ApiResponse[ReviewResponse],
    status_code=201,
    summary="Review an abstract",
)
async def add_review(
    abstract_id: str,
    data: ReviewCreate,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[ReviewResponse]:
    service = AbstractService(db)
    review = await service.add_review(abstract_id, data)
    return ApiResponse(data=ReviewResponse.model_validate(review))


@router.get(
    "/abstracts/{abstract_id}/reviews",
    response_model=ApiResponse[ReviewSummary],
    summary="Reviews and average scores",
    description="Private reviewer comments are only returned to staff.",
)
async def review_summary(
    abstract_id: str,
    db: DbSession,
    staff: OptionalStaff,
) -> ApiResponse[ReviewSummary]:
    service = AbstractService(db)
    summary = await service.review_summary(abstract_id, include_private=staff is not None)
    return ApiResponse(data=ReviewSummary.model_validate(summary))


@router.post(
    "/abstracts/{abstract_id}/decision",
    response_model=ApiResponse[AbstractResponse],
    summary="Record a decision",
)
async def decide(
    abstract_id: str,
    data: DecisionRequest,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[AbstractResponse]:
    service = AbstractService(db)
    abstract = await service.decide(abstract_id, data, actor=staff.display_name)
    return ApiResponse(data=AbstractResponse.model_validate(abstract))
