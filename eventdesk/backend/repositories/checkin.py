"""
Check-in Repositories.
"""

from datetime import datetime

from sqlalchemy import select

from eventdesk.backend.models.checkin import CheckinList, CheckinRecord
from eventdesk.backend.repositories.base import BaseRepository


class CheckinListRepository(BaseRepository[CheckinList]):
    model = CheckinList

    async def list_for_event_filtered(self, event_id: str, active_only: bool = False) -> list[CheckinList]:
        stmt = select(CheckinList).where(CheckinList.event_id == event_id)
        if active_only:
            stmt = stmt.where(CheckinList.is_active.is_(True))
        result = await self.session.execute(stmt.order_by(CheckinList.sort_order, CheckinList.name))
        return list(result.scalars().all())

    async def get_in_event(self, checkin_list_id: str, event_id: str) -> CheckinList | None:
        result = await self.session.execute(
            select(CheckinList).where(
                CheckinList.id == checkin_list_id,
                CheckinList.event_id == event_id,
            )
        )
        return result.scalar_one_or_none()


class CheckinRecordRepository(BaseRepository[CheckinRecord]):
    model = CheckinRecord

    async def get_open(self, checkin_list_id: str, registration_id: str) -> CheckinRecord | None:
        result = await self.session.execute(
            select(CheckinRecord)
            .where(
                CheckinRecord.checkin_list_id == checkin_list_id,
                CheckinRecord.registration_id == registration_id,
                CheckinRecord.checked_out_at.is_(None),
            )
            .order_by(CheckinRecord.checked_in_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_open(self, checkin_list_id: str, registration_ids: list[str]) -> list[CheckinRecord]:
        if not registration_ids:
            return []
        result = await self.session.execute(
            select(CheckinRecord).where(
                CheckinRecord.checkin_list_id == checkin_list_id,
                CheckinRecord.registration_id.in_(registration_ids),
                CheckinRecord.checked_out_at.is_(None),
            )
        )
        return list(result.scalars().all())

    async def get_latest(self, checkin_list_id: str, registration_id: str) -> CheckinRecord | None:
        """Most recent record for a registration on a list, open or closed."""
        result = await self.session.execute(
            select(CheckinRecord)
            .where(
                CheckinRecord.checkin_list_id == checkin_list_id,
                CheckinRecord.registration_id == registration_id,
            )
            .order_by(CheckinRecord.checked_in_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def registrations_with_records(self, checkin_list_id: str, registration_ids: list[str]) -> set[str]:
        if not registration_ids:
            return set()
        result = await self.session.execute(
            select(CheckinRecord.registration_id)
            .where(
                CheckinRecord.checkin_list_id == checkin_list_id,
                CheckinRecord.registration_id.in_(registration_ids),
            )
            .distinct()
        )
        return set(result.scalars().all())

    async def latest_by_registration(self, checkin_list_id: str) -> dict[str, CheckinRecord]:
        """Most recent record per registration on a list."""
        result = await self.session.execute(
            select(CheckinRecord)
            .where(CheckinRecord.checkin_list_id == checkin_list_id)
            .order_by(CheckinRecord.checked_in_at)
        )
        latest: dict[str, CheckinRecord] = {}
        for record in result.scalars().all():
            latest[record.registration_id] = record
        return latest

    async def list_for_lists(
        self,
        checkin_list_ids: list[str],
        since: datetime | None = None,
    ) -> list[CheckinRecord]:
        if not checkin_list_ids:
            return []
        stmt = select(CheckinRecord).where(CheckinRecord.checkin_list_id.in_(checkin_list_ids))
        if since is not None:
            stmt = stmt.where(CheckinRecord.checked_in_at >= since)
        result = await self.session.execute(stmt.order_by(CheckinRecord.checked_in_at.desc()))
        return list(result.scalars().all())
