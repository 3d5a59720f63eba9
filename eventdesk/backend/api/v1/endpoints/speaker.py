"""
Speaker Portal API Endpoints.

Public, token-addressed; the token may be a registration portal token
or a faculty invitation token.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from eventdesk.backend.core.dependencies import DbSession
from eventdesk.backend.integrations.webhooks import WebhookDispatcher, get_webhook_dispatcher
from eventdesk.backend.schemas.base import ApiResponse
from eventdesk.backend.schemas.faculty import SpeakerAction, SpeakerActionResult, SpeakerPortal
from eventdesk.backend.services.speaker import SpeakerPortalService

router = APIRouter()

Webhooks = Annotated[WebhookDispatcher, Depends(get_webhook_dispatcher)]


@router.get(
    "/{token}",
    response_model=ApiResponse[SpeakerPortal],
    summary="Speaker portal",
)
async def get_speaker_portal(
    token: str,
    db: DbSession,
) -> ApiResponse[SpeakerPortal]:
    service = SpeakerPortalService(db)
    portal = await service.get_portal(token)
    return ApiResponse(data=SpeakerPortal.model_validate(portal, from_attributes=True))


@router.put(
    "/{token}",
    response_model=ApiResponse[SpeakerActionResult],
    summary="Accept, decline or update",
)
async def speaker_action(
    token: str,
    data: SpeakerAction,
    db: DbSession,
    webhooks: Webhooks,
) -> ApiResponse[SpeakerActionResult]:
    service = SpeakerPortalService(db, webhooks=webhooks)
    result = await service.act(token, data)
    return ApiResponse(data=SpeakerActionResult.model_validate(result, from_attributes=True))
