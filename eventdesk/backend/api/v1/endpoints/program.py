"""
Program API Endpoints.

Sessions, the public program and the organiser tools that turn session
text into faculty assignments, invitations and speaker registrations.
"""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from eventdesk.backend.core.dependencies import CurrentStaff, DbSession
from eventdesk.backend.integrations.email import EmailClient, get_email_client
from eventdesk.backend.schemas.base import ApiResponse
from eventdesk.backend.schemas.program import (
    PublicProgram,
    SendInvitationsRequest,
    SendResult,
    SessionCreate,
    SessionResponse,
    SessionUpdate,
    SpeakerRegistrationsRequest,
    SpeakerRegistrationsResult,
    SyncAssignmentsResult,
)
from eventdesk.backend.services.program import ProgramService

router = APIRouter()

Email = Annotated[EmailClient, Depends(get_email_client)]


@router.post(
    "/sessions",
    response_model=ApiResponse[SessionResponse],
    status_code=201,
    summary="Create a session",
    tags=["program"],
)
async def create_session(
    data: SessionCreate,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[SessionResponse]:
    service = ProgramService(db)
    program_session = await service.create_session(data)
    return ApiResponse(data=SessionResponse.model_validate(program_session))


@router.get(
    "/sessions",
    response_model=ApiResponse[list[SessionResponse]],
    summary="List sessions",
    description="Sessions of an event ordered by date and start time.",
    tags=["program"],
)
async def list_sessions(
    db: DbSession,
    staff: CurrentStaff,
    event_id: str = Query(...),
    session_date: date | None = Query(default=None, alias="date"),
    hall: str | None = Query(default=None),
) -> ApiResponse[list[SessionResponse]]:
    service = ProgramService(db)
    sessions = await service.list_sessions(event_id, session_date, hall)
    return ApiResponse(data=[SessionResponse.model_validate(s) for s in sessions])


@router.patch(
    "/sessions/{session_id}",
    response_model=ApiResponse[SessionResponse],
    summary="Update a session",
    tags=["program"],
)
async def update_session(
    session_id: str,
    data: SessionUpdate,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[SessionResponse]:
    service = ProgramService(db)
    program_session = await service.update_session(session_id, data)
    return ApiResponse(data=SessionResponse.model_validate(program_session))


@router.get(
    "/program/{event_id}",
    response_model=ApiResponse[PublicProgram],
    summary="Public program",
    description="Sessions grouped by day with the halls in use. No authentication.",
    tags=["program"],
)
async def public_program(
    event_id: str,
    db: DbSession,
) -> ApiResponse[PublicProgram]:
    service = ProgramService(db)
    program = await service.public_program(event_id)
    return ApiResponse(data=PublicProgram.model_validate(program, from_attributes=True))


@router.post(
    "/program/create-speaker-registrations",
    response_model=ApiResponse[SpeakerRegistrationsResult],
    summary="Create speaker registrations",
    description='Register every speaker named as "Name | email | phone" in session descriptions.',
    tags=["program"],
)
async def create_speaker_registrations(
    data: SpeakerRegistrationsRequest,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[SpeakerRegistrationsResult]:
    service = ProgramService(db)
    result = await service.create_speaker_registrations(data.event_id)
    return ApiResponse(data=SpeakerRegistrationsResult.model_validate(result))


@router.post(
    "/events/{event_id}/program/sync-assignments",
    response_model=ApiResponse[SyncAssignmentsResult],
    summary="Sync faculty assignments from sessions",
    tags=["program"],
)
async def sync_assignments(
    event_id: str,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[SyncAssignmentsResult]:
    service = ProgramService(db)
    result = await service.sync_assignments(event_id)
    return ApiResponse(data=SyncAssignmentsResult.model_validate(result))


@router.post(
    "/events/{event_id}/program/send-invitations",
    response_model=ApiResponse[SendResult],
    summary="Email faculty invitations",
    tags=["program"],
)
async def send_invitations(
    event_id: str,
    data: SendInvitationsRequest,
    db: DbSession,
    staff: CurrentStaff,
    email: Email,
) -> ApiResponse[SendResult]:
    service = ProgramService(db, email=email)
    result = await service.send_invitations(event_id, data)
    return ApiResponse(data=SendResult.model_validate(result))
