"""
Sponsor Service.
"""

from collections import defaultdict
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.backend.core.exceptions import NotFoundError
from eventdesk.backend.core.utils import utc_now
from eventdesk.backend.models.sponsor import Sponsor, SponsorContact, SponsorTier
from eventdesk.backend.repositories.event import EventRepository
from eventdesk.backend.repositories.sponsor import (
    SponsorContactRepository,
    SponsorRepository,
    SponsorTierRepository,
)
from eventdesk.backend.schemas.sponsor import ContactCreate, SponsorCreate, SponsorUpdate, TierCreate
from eventdesk.backend.services.base import BaseService


class SponsorService(BaseService):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = SponsorRepository(session)
        self.tiers = SponsorTierRepository(session)
        self.contacts = SponsorContactRepository(session)
        self.events = EventRepository(session)

    async def create_tier(self, data: TierCreate) -> SponsorTier:
        await self.events.get_by_id(data.event_id)
        return await self._execute_db_operation(
            "create_sponsor_tier",
            self.tiers.create(**data.model_dump()),
        )

    async def list_tiers(self, event_id: str) -> list[SponsorTier]:
        return await self.tiers.list_ordered(event_id)

    async def _check_tier(self, tier_id: str | None, event_id: str) -> None:
        if tier_id:
            tier = await self.tiers.get_by_id_or_none(tier_id)
            if tier is None or tier.event_id != event_id:
                raise NotFoundError("Tier not found")

    async def create_sponsor(self, data: SponsorCreate) -> Sponsor:
        await self.events.get_by_id(data.event_id)
        await self._check_tier(data.tier_id, data.event_id)
        self._log_operation("Creating sponsor", event_id=data.event_id, name=data.name)
        return await self._execute_db_operation(
            "create_sponsor",
            self.repo.create(
                **data.model_dump(),
                confirmed_at=utc_now() if data.status == "confirmed" else None,
            ),
        )

    async def update_sponsor(self, sponsor_id: str, data: SponsorUpdate) -> Sponsor:
        sponsor = await self.repo.get_by_id(sponsor_id)
        update_data = data.model_dump(exclude_unset=True)
        if not update_data:
            return sponsor
        if "tier_id" in update_data:
            await self._check_tier(update_data["tier_id"], sponsor.event_id)
        if update_data.get("status") == "confirmed" and sponsor.status != "confirmed":
            update_data["confirmed_at"] = utc_now()
        return await self._execute_db_operation(
            "update_sponsor",
            self.repo.apply(sponsor, **update_data),
        )

    async def list_sponsors(
        self,
        event_id: str | None = None,
        status: str | None = None,
        tier_id: str | None = None,
    ) -> list[Sponsor]:
        return await self.repo.list_filtered(event_id, status, tier_id)

    async def get_sponsor(self, sponsor_id: str) -> dict[str, Any]:
        sponsor = await self.repo.get_by_id(sponsor_id)
        return {
            **{column.key: getattr(sponsor, column.key) for column in Sponsor.__table__.columns},
            "contacts": await self.contacts.list_for_sponsor(sponsor.id),
        }

    async def delete_sponsor(self, sponsor_id: str) -> None:
        self._log_operation("Deleting sponsor", sponsor_id=sponsor_id)
        await self.repo.delete(sponsor_id)

    async def add_contact(self, sponsor_id: str, data: ContactCreate) -> SponsorContact:
        sponsor = await self.repo.get_by_id(sponsor_id)
        if data.email:
            self._validate_email(data.email, "email")
        if data.is_primary:
            await self.contacts.clear_primary(sponsor.id)
        return await self._execute_db_operation(
            "create_sponsor_contact",
            self.contacts.create(sponsor_id=sponsor.id, **data.model_dump()),
        )

    async def stats(self, event_id: str) -> dict[str, Any]:
        sponsors = await self.repo.list_filtered(event_id)
        tiers = {tier.id: tier for tier in await self.tiers.list_ordered(event_id)}
        active = [s for s in sponsors if s.status != "cancelled"]

        total_agreed = round(sum(s.amount_agreed for s in active), 2)
        total_paid = round(sum(s.amount_paid for s in active), 2)

        counts: dict[str | None, int] = defaultdict(int)
        amounts: dict[str | None, float] = defaultdict(float)
        for sponsor in active:
            counts[sponsor.tier_id] += 1
            amounts[sponsor.tier_id] += sponsor.amount_agreed

        ordered = [tier_id for tier_id in tiers if tier_id in counts]
        if None in counts:
            ordered.append(None)
        by_tier = [
            {
                "tier_id": tier_id,
                "name": tiers[tier_id].name if tier_id in tiers else "No tier",
                "count": counts[tier_id],
                "amount": round(amounts[tier_id], 2),
            }
            for tier_id in ordered
        ]

        return {
            "total": len(sponsors),
            "confirmed": sum(1 for s in sponsors if s.status == "confirmed"),
            "pending": sum(1 for s in sponsors if s.status == "pending"),
            "cancelled": sum(1 for s in sponsors if s.status == "cancelled"),
            "total_agreed": total_agreed,
            "total_paid": total_paid,
            "outstanding": round(total_agreed - total_paid, 2),
            "by_tier": by_tier,
            "stalls_assigned": sum(1 for s in active if s.stall_number),
        }
