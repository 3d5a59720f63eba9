"""
Form API Endpoints.

Form building for organisers and public submission.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query

from eventdesk.backend.core.dependencies import Client, CurrentStaff, DbSession, RequestId
from eventdesk.backend.core.pagination import (
    PaginationParams,
    create_paginated_response,
    get_pagination_params,
)
from eventdesk.backend.integrations.email import EmailClient, get_email_client
from eventdesk.backend.schemas.base import ApiResponse
from eventdesk.backend.schemas.form import (
    FieldCreate,
    FieldResponse,
    FormCreate,
    FormDetail,
    FormResponse,
    FormUpdate,
    SubmissionCreate,
    SubmissionResponse,
    SubmissionStatusUpdate,
)
from eventdesk.backend.services.form import FormService

router = APIRouter()


@router.post(
    "",
    response_model=ApiResponse[FormResponse],
    status_code=201,
    summary="Create a form",
)
async def create_form(
    data: FormCreate,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[FormResponse]:
    service = FormService(db)
    form = await service.create_form(data)
    return ApiResponse(data=FormResponse.model_validate(form))


@router.get(
    "",
    response_model=ApiResponse[list[FormResponse]],
    summary="List forms",
)
async def list_forms(
    db: DbSession,
    staff: CurrentStaff,
    event_id: str | None = Query(default=None),
    status: str | None = Query(default=None),
) -> ApiResponse[list[FormResponse]]:
    service = FormService(db)
    forms = await service.list_forms(event_id, status)
    return ApiResponse(data=[FormResponse.model_validate(f) for f in forms])


@router.post(
    "/submissions",
    response_model=ApiResponse[SubmissionResponse],
    status_code=201,
    summary="Submit a form",
    description="Public. Answers are keyed by field id.",
)
async def submit_form(
    data: SubmissionCreate,
    db: DbSession,
    client: Client,
    email: EmailClient = Depends(get_email_client),
) -> ApiResponse[SubmissionResponse]:
    service = FormService(db, email=email)
    submission = await service.submit(data, submitter_ip=client.ip, user_agent=client.user_agent)
    return ApiResponse(data=SubmissionResponse.model_validate(submission))


@router.get(
    "/submissions",
    summary="List submissions (paginated)",
)
async def list_submissions(
    db: DbSession,
    request_id: RequestId,
    staff: CurrentStaff,
    pagination: PaginationParams = Depends(get_pagination_params),
    form_id: str | None = Query(default=None),
    status: str | None = Query(default=None),
) -> dict[str, Any]:
    service = FormService(db)
    submissions, total = await service.list_submissions(
        form_id=form_id,
        status=status,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    return create_paginated_response(
        items=submissions,
        item_schema=SubmissionResponse,
        total=total,
        limit=pagination.limit,
        offset=pagination.offset,
        request_id=request_id,
    )


@router.patch(
    "/submissions/{submission_id}",
    response_model=ApiResponse[SubmissionResponse],
    summary="Set a submission's review status",
)
async def update_submission(
    submission_id: str,
    data: SubmissionStatusUpdate,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[SubmissionResponse]:
    service = FormService(db)
    submission = await service.update_submission_status(submission_id, data.status)
    return ApiResponse(data=SubmissionResponse.model_validate(submission))


@router.get(
    "/{form_id}",
    response_model=ApiResponse[FormDetail],
    summary="Get a form with its fields",
)
async def get_form(
    form_id: str,
    db: DbSession,
) -> ApiResponse[FormDetail]:
    service = FormService(db)
    form = await service.get_form(form_id)
    return ApiResponse(data=FormDetail.model_validate(form))


@router.patch(
    "/{form_id}",
    response_model=ApiResponse[FormResponse],
    summary="Update a form",
)
async def update_form(
    form_id: str,
    data: FormUpdate,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[FormResponse]:
    service = FormService(db)
    form = await service.update_form(form_id, data)
    return ApiResponse(data=FormResponse.model_validate(form))


@router.post(
    "/{form_id}/fields",
    response_model=ApiResponse[FieldResponse],
    status_code=201,
    summary="Add a field",
)
async def add_field(
    form_id: str,
    data: FieldCreate,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[FieldResponse]:
    service = FormService(db)
    field = await service.add_field(form_id, data)
    return ApiResponse(data=FieldResponse.model_validate(field))
