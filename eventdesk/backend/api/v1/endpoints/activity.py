"""
Activity Log API Endpoints.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query

from eventdesk.backend.core.dependencies import CurrentStaff, DbSession, RequestId
from eventdesk.backend.core.pagination import (
    PaginationParams,
    create_paginated_response,
    get_pagination_params,
)
from eventdesk.backend.schemas.activity import ActivityLogResponse
from eventdesk.backend.services.activity import ActivityLogService

router = APIRouter()


@router.get(
    "",
    summary="List activity logs (paginated)",
    description="Newest first.",
)
async def list_activity_logs(
    db: DbSession,
    request_id: RequestId,
    staff: CurrentStaff,
    pagination: PaginationParams = Depends(get_pagination_params),
    event_id: str | None = Query(default=None),
    entity_type: str | None = Query(default=None),
) -> dict[str, Any]:
    service = ActivityLogService(db)
    logs, total = await service.list_logs(
        event_id=event_id,
        entity_type=entity_type,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    return create_paginated_response(
        items=logs,
        item_schema=ActivityLogResponse,
        total=total,
        limit=pagination.limit,
        offset=pagination.offset,
        request_id=request_id,
    )
