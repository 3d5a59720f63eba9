"""
Registrations API Endpoints.

Single registration, listing, cancellation and bulk CSV import.
"""

from typing import Any, Literal

from fastapi import APIRouter, Depends, Query, Response

from eventdesk.backend.core.dependencies import CurrentStaff, DbSession, RequestId
from eventdesk.backend.core.pagination import (
    PaginationParams,
    create_paginated_response,
    get_pagination_params,
)
from eventdesk.backend.schemas.base import ApiResponse
from eventdesk.backend.schemas.registration import (
    CancelRequest,
    CancelResult,
    ImportRequest,
    ImportResult,
    RegistrationCreate,
    RegistrationCreated,
    RegistrationResponse,
)
from eventdesk.backend.services.registration import RegistrationService
from eventdesk.backend.services.registration_import import (
    IMPORT_HELP,
    RegistrationImportService,
    import_template_csv,
)

router = APIRouter()


@router.post(
    "",
    response_model=ApiResponse[RegistrationCreated],
    status_code=201,
    summary="Register an attendee",
    description="Price the ticket server-side and create the registration with its payment row.",
)
async def create_registration(
    data: RegistrationCreate,
    db: DbSession,
) -> ApiResponse[RegistrationCreated]:
    service = RegistrationService(db)
    result = await service.create_registration(data)
    return ApiResponse(data=RegistrationCreated.model_validate(result, from_attributes=True))


@router.get(
    "",
    summary="List registrations (paginated)",
    description="Newest first. Search matches name, email or registration number.",
)
async def list_registrations(
    db: DbSession,
    request_id: RequestId,
    staff: CurrentStaff,
    pagination: PaginationParams = Depends(get_pagination_params),
    event_id: str | None = Query(default=None),
    status: str | None = Query(default=None, description="A status, or 'all'"),
    search: str | None = Query(default=None, max_length=100),
) -> dict[str, Any]:
    service = RegistrationService(db)
    registrations, total = await service.list_registrations(
        event_id=event_id,
        status=status,
        search=search,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    return create_paginated_response(
        items=registrations,
        item_schema=RegistrationResponse,
        total=total,
        limit=pagination.limit,
        offset=pagination.offset,
        request_id=request_id,
    )


@router.get(
    "/import",
    summary="Import help or CSV template",
    response_model=None,
)
async def import_template(
    db: DbSession,
    staff: CurrentStaff,
    format: Literal["json", "csv"] = Query(default="json"),
    event_id: str | None = Query(default=None, description="Fill the CSV example rows with this event's tickets"),
) -> Any:
    if format == "csv":
        if event_id:
            content = await RegistrationImportService(db).template_csv(event_id)
        else:
            content = import_template_csv()
        return Response(
            content=content,
            media_type="text/csv",
            headers={"Content-Disposition": 'attachment; filename="registrations-template.csv"'},
        )
    return ApiResponse(data=IMPORT_HELP)


@router.post(
    "/import",
    response_model=ApiResponse[ImportResult],
    summary="Bulk import registrations",
    description="Rows are validated one by one; bad rows are reported and skipped.",
)
async def import_registrations(
    data: ImportRequest,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[ImportResult]:
    service = RegistrationImportService(db)
    result = await service.import_registrations(data, actor=staff.display_name)
    return ApiResponse(data=ImportResult.model_validate(result))


@router.get(
    "/{registration_id}",
    response_model=ApiResponse[RegistrationResponse],
    summary="Get a registration",
)
async def get_registration(
    registration_id: str,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[RegistrationResponse]:
    service = RegistrationService(db)
    registration = await service.get_registration(registration_id)
    return ApiResponse(data=RegistrationResponse.model_validate(registration))


@router.post(
    "/{registration_id}/cancel",
    response_model=ApiResponse[CancelResult],
    summary="Cancel a registration",
    description="Cancel and schedule a refund of net paid, less tax if asked, less the fee.",
)
async def cancel_registration(
    registration_id: str,
    data: CancelRequest,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[CancelResult]:
    service = RegistrationService(db)
    result = await service.cancel_registration(registration_id, data, actor=staff.display_name)
    return ApiResponse(data=CancelResult.model_validate(result, from_attributes=True))
