"""
Check-in API Endpoints.

Check-in lists, attendee search, scanning, bulk actions and stats.
"""

import uuid
from typing import Any

from fastapi import APIRouter, Query

from eventdesk.backend.core.dependencies import CurrentStaff, DbSession, RequestId
from eventdesk.backend.core.pagination import create_paginated_response
from eventdesk.backend.schemas.base import ApiResponse
from eventdesk.backend.schemas.checkin import (
    AttendeeRow,
    BulkCheckinRequest,
    BulkCheckinResult,
    CheckinListCreate,
    CheckinListResponse,
    CheckinStats,
    ScanRequest,
    ScanResult,
)
from eventdesk.backend.services.checkin import CheckinService

router = APIRouter()


@router.post(
    "/checkin-lists",
    response_model=ApiResponse[CheckinListResponse],
    status_code=201,
    summary="Create a check-in list",
    tags=["checkin"],
)
async def create_checkin_list(
    data: CheckinListCreate,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[CheckinListResponse]:
    service = CheckinService(db)
    checkin_list = await service.create_list(data)
    return ApiResponse(data=CheckinListResponse.model_validate(checkin_list))


@router.get(
    "/checkin-lists",
    response_model=ApiResponse[list[CheckinListResponse]],
    summary="List check-in lists with stats",
    tags=["checkin"],
)
async def list_checkin_lists(
    db: DbSession,
    staff: CurrentStaff,
    event_id: str = Query(...),
    active_only: bool = Query(default=False),
) -> ApiResponse[list[CheckinListResponse]]:
    service = CheckinService(db)
    lists = await service.list_lists(event_id, active_only)
    return ApiResponse(data=[CheckinListResponse.model_validate(item) for item in lists])


@router.get(
    "/checkin",
    summary="Search attendees for check-in",
    tags=["checkin"],
)
async def search_attendees(
    db: DbSession,
    request_id: RequestId,
    staff: CurrentStaff,
    event_id: str | None = Query(default=None),
    checkin_list_id: uuid.UUID | None = Query(default=None),
    q: str | None = Query(default=None, max_length=100),
    ticket_type_id: uuid.UUID | None = Query(default=None),
    checked_in: bool | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> dict[str, Any]:
    service = CheckinService(db)
    rows, total = await service.search_attendees(
        event_id=event_id,
        checkin_list_id=str(checkin_list_id) if checkin_list_id else None,
        q=q,
        ticket_type_id=str(ticket_type_id) if ticket_type_id else None,
        checked_in=checked_in,
        limit=limit,
        offset=offset,
    )
    return create_paginated_response(
        items=rows,
        item_schema=AttendeeRow,
        total=total,
        limit=limit,
        offset=offset,
        request_id=request_id,
    )


@router.post(
    "/checkin",
    response_model=ApiResponse[ScanResult],
    summary="Scan an attendee",
    description="check_in, check_out or toggle one attendee on a list.",
    tags=["checkin"],
)
async def scan(
    data: ScanRequest,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[ScanResult]:
    if data.performed_by is None:
        data.performed_by = staff.display_name
    service = CheckinService(db)
    result = await service.scan(data)
    return ApiResponse(data=ScanResult.model_validate(result))


@router.patch(
    "/checkin",
    response_model=ApiResponse[BulkCheckinResult],
    summary="Bulk check-in or check-out",
    tags=["checkin"],
)
async def bulk_checkin(
    data: BulkCheckinRequest,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[BulkCheckinResult]:
    if data.performed_by is None:
        data.performed_by = staff.display_name
    service = CheckinService(db)
    result = await service.bulk(data, actor=staff.display_name)
    return ApiResponse(data=BulkCheckinResult.model_validate(result))


@router.get(
    "/checkin/stats",
    response_model=ApiResponse[CheckinStats],
    summary="Check-in statistics",
    tags=["checkin"],
)
async def checkin_stats(
    db: DbSession,
    staff: CurrentStaff,
    event_id: str | None = Query(default=None),
    checkin_list_id: uuid.UUID | None = Query(default=None),
) -> ApiResponse[CheckinStats]:
    service = CheckinService(db)
    stats = await service.stats(event_id, str(checkin_list_id) if checkin_list_id else None)
    return ApiResponse(data=CheckinStats.model_validate(stats))
