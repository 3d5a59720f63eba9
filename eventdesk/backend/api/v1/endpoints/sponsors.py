"""
Sponsor API Endpoints.
"""

import uuid

from fastapi import APIRouter, Query

from eventdesk.backend.core.dependencies import CurrentStaff, DbSession
from eventdesk.backend.schemas.base import ApiResponse
from eventdesk.backend.schemas.sponsor import (
    ContactCreate,
    ContactResponse,
    SponsorCreate,
    SponsorDetail,
    SponsorResponse,
    SponsorStats,
    SponsorUpdate,
    TierCreate,
    TierResponse,
)
from eventdesk.backend.services.sponsor import SponsorService

router = APIRouter(tags=["sponsors"])


@router.post(
    "/sponsor-tiers",
    response_model=ApiResponse[TierResponse],
    status_code=201,
    summary="Create a sponsor tier",
)
async def create_tier(
    data: TierCreate,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[TierResponse]:
    service = SponsorService(db)
    tier = await service.create_tier(data)
    return ApiResponse(data=TierResponse.model_validate(tier))


@router.get(
    "/sponsor-tiers",
    response_model=ApiResponse[list[TierResponse]],
    summary="List sponsor tiers",
)
async def list_tiers(
    db: DbSession,
    staff: CurrentStaff,
    event_id: str = Query(...),
) -> ApiResponse[list[TierResponse]]:
    service = SponsorService(db)
    tiers = await service.list_tiers(event_id)
    return ApiResponse(data=[TierResponse.model_validate(t) for t in tiers])


@router.post(
    "/sponsors",
    response_model=ApiResponse[SponsorResponse],
    status_code=201,
    summary="Create a sponsor",
)
async def create_sponsor(
    data: SponsorCreate,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[SponsorResponse]:
    service = SponsorService(db)
    sponsor = await service.create_sponsor(data)
    return ApiResponse(data=SponsorResponse.model_validate(sponsor))


@router.get(
    "/sponsors",
    response_model=ApiResponse[list[SponsorResponse]],
    summary="List sponsors",
)
async def list_sponsors(
    db: DbSession,
    staff: CurrentStaff,
    event_id: str | None = Query(default=None),
    status: str | None = Query(default=None),
    tier_id: uuid.UUID | None = Query(default=None),
) -> ApiResponse[list[SponsorResponse]]:
    service = SponsorService(db)
    sponsors = await service.list_sponsors(event_id, status, str(tier_id) if tier_id else None)
    return ApiResponse(data=[SponsorResponse.model_validate(s) for s in sponsors])


@router.get(
    "/sponsors/stats",
    response_model=ApiResponse[SponsorStats],
    summary="Sponsorship totals for an event",
)
async def sponsor_stats(
    db: DbSession,
    staff: CurrentStaff,
    event_id: str = Query(...),
) -> ApiResponse[SponsorStats]:
    service = SponsorService(db)
    stats = await service.stats(event_id)
    return ApiResponse(data=SponsorStats.model_validate(stats))


@router.get(
    "/sponsors/{sponsor_id}",
    response_model=ApiResponse[SponsorDetail],
    summary="Get a sponsor with contacts",
)
async def get_sponsor(
    sponsor_id: str,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[SponsorDetail]:
    service = SponsorService(db)
    sponsor = await service.get_sponsor(sponsor_id)
    return ApiResponse(data=SponsorDetail.model_validate(sponsor))


@router.patch(
    "/sponsors/{sponsor_id}",
    response_model=ApiResponse[SponsorResponse],
    summary="Update a sponsor",
)
async def update_sponsor(
    sponsor_id: str,
    data: SponsorUpdate,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[SponsorResponse]:
    service = SponsorService(db)
    sponsor = await service.update_sponsor(sponsor_id, data)
    return ApiResponse(data=SponsorResponse.model_validate(sponsor))


@router.delete(
    "/sponsors/{sponsor_id}",
    response_model=ApiResponse[dict],
    summary="Delete a sponsor",
)
async def delete_sponsor(
    sponsor_id: str,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[dict]:
    service = SponsorService(db)
    await service.delete_sponsor(sponsor_id)
    return ApiResponse(data={"deleted": True, "id": sponsor_id})


@router.post(
    "/sponsors/{sponsor_id}/contacts",
    response_model=ApiResponse[ContactResponse],
    status_code=201,
    summary="Add a sponsor contact",
)
async def add_contact(
    sponsor_id: str,
    data: ContactCreate,
    db: DbSession,
    staff: CurrentStaff,
) -> ApiResponse[ContactResponse]:
    service = SponsorService(db)
    contact = await service.add_contact(sponsor_id, data)
    return ApiResponse(data=ContactResponse.model_validate(contact))
