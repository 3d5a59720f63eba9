"""
Sponsor Repositories.
"""

from typing import Any

from sqlalchemy import select, update

from eventdesk.backend.models.sponsor import Sponsor, SponsorContact, SponsorTier
from eventdesk.backend.repositories.base import BaseRepository


class SponsorTierRepository(BaseRepository[SponsorTier]):
    model = SponsorTier

    async def list_ordered(self, event_id: str) -> list[SponsorTier]:
        return await self.list_for_event(event_id, SponsorTier.display_order, SponsorTier.name)


class SponsorRepository(BaseRepository[Sponsor]):
    model = Sponsor

    async def list_filtered(
        self,
        event_id: str | None = None,
        status: str | None = None,
        tier_id: str | None = None,
    ) -> list[Sponsor]:
        conditions: list[Any] = []
        if event_id:
            conditions.append(Sponsor.event_id == event_id)
        if status:
            conditions.append(Sponsor.status == status)
        if tier_id:
            conditions.append(Sponsor.tier_id == tier_id)
        result = await self.session.execute(
            select(Sponsor).where(*conditions).order_by(Sponsor.name)
        )
        return list(result.scalars().all())


class SponsorContactRepository(BaseRepository[SponsorContact]):
    model = SponsorContact

    async def list_for_sponsor(self, sponsor_id: str) -> list[SponsorContact]:
        result = await self.session.execute(
            select(SponsorContact)
            .where(SponsorContact.sponsor_id == sponsor_id)
            .order_by(SponsorContact.is_primary.desc(), SponsorContact.name)
        )
        return list(result.scalars().all())

    async def clear_primary(self, sponsor_id: str) -> None:
        await self.session.execute(
            update(SponsorContact)
            .where(SponsorContact.sponsor_id == sponsor_id)
            .values(is_primary=False)
            .execution_options(synchronize_session="evaluate")
        )
