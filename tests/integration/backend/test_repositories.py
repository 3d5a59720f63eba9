"""
Integration Tests for the repository layer.

Runs against the test database fixtures: each test gets a fresh schema and
its session is rolled back afterwards.
"""

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.backend.core.exceptions import NotFoundError
from eventdesk.backend.models.event import Event
from eventdesk.backend.models.ticket import TicketType
from eventdesk.backend.repositories.event import EventRepository, EventSettingsRepository
from eventdesk.backend.repositories.ticket import TicketTypeRepository


@pytest.fixture
async def stored_event(db_session: AsyncSession) -> Event:
    return await EventRepository(db_session).create(name="Repo Meet", slug="repo-meet")


class TestDatabaseSession:
    """Tests for the db_session fixture."""

    @pytest.mark.asyncio
    async def test_create_sets_mixins(self, db_session: AsyncSession, stored_event: Event):
        assert len(stored_event.id) == 36  # UUID format: 8-4-4-4-12
        assert stored_event.created_at is not None
        assert abs((stored_event.updated_at - stored_event.created_at).total_seconds()) < 1

    @pytest.mark.asyncio
    async def test_first_test_creates_row(self, db_session: AsyncSession):
        db_session.add(Event(name="Leaky", slug="leaky"))
        await db_session.flush()

    @pytest.mark.asyncio
    async def test_second_test_has_clean_database(self, db_session: AsyncSession):
        result = await db_session.execute(select(Event))
        assert result.scalars().all() == []


class TestBaseRepository:
    """Tests for BaseRepository operations."""

    @pytest.mark.asyncio
    async def test_get_by_id_missing_uses_readable_name(self, db_session: AsyncSession):
        with pytest.raises(NotFoundError, match="Ticket type not found"):
            await TicketTypeRepository(db_session).get_by_id("00000000-0000-0000-0000-000000000000")

    @pytest.mark.asyncio
    async def test_apply_and_exists(self, db_session: AsyncSession, stored_event: Event):
        repo = EventRepository(db_session)

        updated = await repo.apply(stored_event, city="Pune", unknown_column="ignored")

        assert updated.city == "Pune"
        assert await repo.exists(stored_event.id) is True
        assert await repo.get_by_slug("repo-meet") is not None

    @pytest.mark.asyncio
    async def test_paginate_returns_total(self, db_session: AsyncSession):
        repo = EventRepository(db_session)
        for i in range(4):
            await repo.create(name=f"Meet {i}", slug=f"meet-{i}", status="published" if i % 2 else "draft")

        rows, total = await repo.paginate(Event.status == "published", order_by=(Event.slug,), limit=1)

        assert total == 2
        assert [row.slug for row in rows] == ["meet-1"]

    @pytest.mark.asyncio
    async def test_delete(self, db_session: AsyncSession, stored_event: Event):
        repo = EventRepository(db_session)

        await repo.delete(stored_event.id)

        assert await repo.get_by_id_or_none(stored_event.id) is None


class TestAtomicCounters:
    """Tests for single-statement counter updates."""

    @pytest.mark.asyncio
    async def test_increment_refreshes_loaded_row(self, db_session: AsyncSession, stored_event: Event):
        repo = TicketTypeRepository(db_session)
        ticket = await repo.create(event_id=stored_event.id, name="Delegate", price=1000)

        await repo.increment_sold(ticket.id, 3)

        assert ticket.quantity_sold == 3

    @pytest.mark.asyncio
    async def test_decrement_never_below_zero(self, db_session: AsyncSession, stored_event: Event):
        repo = TicketTypeRepository(db_session)
        ticket = await repo.create(event_id=stored_event.id, name="Delegate", quantity_sold=1)

        await repo.decrement_sold(ticket.id, 5)

        reloaded = await db_session.get(TicketType, ticket.id)
        assert reloaded.quantity_sold == 0

    @pytest.mark.asyncio
    async def test_claim_registration_number_starts_at_start(
        self,
        db_session: AsyncSession,
        stored_event: Event,
    ):
        repo = EventSettingsRepository(db_session)
        settings = await repo.get_or_create(stored_event.id)
        await repo.apply(settings, registration_start_number=500)

        claimed = [await repo.claim_registration_number(stored_event.id) for _ in range(3)]

        assert claimed == [500, 501, 502]
