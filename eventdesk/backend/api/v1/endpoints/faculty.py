"""
Faculty API Endpoints.

Organiser listing of assignments and the public respond portal.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query

from eventdesk.backend.core.dependencies import CurrentStaff, DbSession, RequestId
from eventdesk.backend.core.pagination import (
    PaginationParams,
    create_paginated_response,
    get_pagination_params,
)
from eventdesk.backend.schemas.base import ApiResponse
from eventdesk.backend.schemas.faculty import (
    AssignmentResponse,
    RespondPortal,
    RespondRequest,
    RespondResult,
)
from eventdesk.backend.services.faculty import FacultyService

router = APIRouter()


@router.get(
    "/faculty-assignments",
    summary="List faculty assignments (paginated)",
    tags=["faculty"],
)
async def list_assignments(
    db: DbSession,
    request_id: RequestId,
    staff: CurrentStaff,
    pagination: PaginationParams = Depends(get_pagination_params),
    event_id: str | None = Query(default=None),
    status: str | None = Query(default=None),
    role: str | None = Query(default=None),
) -> dict[str, Any]:
    service = FacultyService(db)
    assignments, total = await service.list_assignments(
        event_id=event_id,
        status=status,
        role=role,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    return create_paginated_response(
        items=assignments,
        item_schema=AssignmentResponse,
        total=total,
        limit=pagination.limit,
        offset=pagination.offset,
        request_id=request_id,
    )


@router.get(
    "/respond/{token}",
    response_model=ApiResponse[RespondPortal],
    summary="Faculty respond portal",
    description="All assignments of the invited faculty member. No authentication.",
    tags=["faculty"],
)
async def get_respond_portal(
    token: str,
    db: DbSession,
) -> ApiResponse[RespondPortal]:
    service = FacultyService(db)
    portal = await service.get_portal(token)
    return ApiResponse(data=RespondPortal.model_validate(portal, from_attributes=True))


@router.post(
    "/respond/{token}",
    response_model=ApiResponse[RespondResult],
    summary="Respond to invitations",
    tags=["faculty"],
)
async def respond(
    token: str,
    data: RespondRequest,
    db: DbSession,
) -> ApiResponse[RespondResult]:
    service = FacultyService(db)
    result = await service.respond(token, data)
    return ApiResponse(data=RespondResult.model_validate(result))
