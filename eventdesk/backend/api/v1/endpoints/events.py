"""
Events API Endpoints.

Event CRUD and per-event settings.
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
from eventdesk.backend.schemas.event import (
    EventCreate,
    EventResponse,
    EventSettingsResponse,
    EventSettingsUpdate,
    EventUpdate,
)
from eventdesk.backend.services.event import EventService

router = APIRouter()


@router.post(
    "",
    response_model=ApiResponse[EventResponse],
    status_code=201,
    summary="Create an event",
    description="Create a new event. The slug must be unique.",
)
async def create_event(
    data: EventCreate,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[EventResponse]:
    service = EventService(db)
    event = await service.create_event(data)
    return ApiResponse(data=EventResponse.model_validate(event))


@router.get(
    "",
    summary="List events (paginated)",
)
async def list_events(
    db: DbSession,
    request_id: RequestId,
    staff: CurrentStaff,
    pagination: PaginationParams = Depends(get_pagination_params),
    status: str | None = Query(default=None, description="Filter by event status"),
) -> dict[str, Any]:
    service = EventService(db)
    events, total = await service.list_events(
        status=status,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    return create_paginated_response(
        items=events,
        item_schema=EventResponse,
        total=total,
        limit=pagination.limit,
        offset=pagination.offset,
        request_id=request_id,
    )


@router.get(
    "/{event_id}",
    response_model=ApiResponse[EventResponse],
    summary="Get an event",
)
async def get_event(
    event_id: str,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[EventResponse]:
    service = EventService(db)
    event = await service.get_event(event_id)
    return ApiResponse(data=EventResponse.model_validate(event))


@router.patch(
    "/{event_id}",
    response_model=ApiResponse[EventResponse],
    summary="Update an event",
    description="Update an existing event. Only provided fields are updated.",
)
async def update_event(
    event_id: str,
    data: EventUpdate,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[EventResponse]:
    service = EventService(db)
    event = await service.update_event(event_id, data)
    return ApiResponse(data=EventResponse.model_validate(event))


@router.get(
    "/{event_id}/settings",
    response_model=ApiResponse[EventSettingsResponse],
    summary="Get event settings",
    description="Registration numbering and approval settings; created on first access.",
)
async def get_event_settings(
    event_id: str,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[EventSettingsResponse]:
    service = EventService(db)
    settings = await service.get_settings(event_id)
    return ApiResponse(data=EventSettingsResponse.model_validate(settings))


@router.put(
    "/{event_id}/settings",
    response_model=ApiResponse[EventSettingsResponse],
    summary="Update event settings",
)
async def update_event_settings(
    event_id: str,
    data: EventSettingsUpdate,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[EventSettingsResponse]:
    service = EventService(db)
    settings = await service.update_settings(event_id, data)
    return ApiResponse(data=EventSettingsResponse.model_validate(settings))
