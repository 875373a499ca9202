"""
Tests for the background replenishment scheduler.
"""

import asyncio
from datetime import date, datetime
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy import func, select

from ticketing.models.override import DateOverride
from ticketing.models.replenishment import GenerationState
from ticketing.models.ticket import TicketDefinition, TicketKind
from ticketing.services import scheduler as scheduler_module
from ticketing.services.override_service import get_or_create
from ticketing.services.scheduler import ReplenishmentScheduler

BANGKOK = ZoneInfo("Asia/Bangkok")
CHECK_TIME = datetime(2030, 1, 15, 1, 5, tzinfo=BANGKOK)


async def _count(db, model) -> int:
    result = await db.execute(select(func.count()).select_from(model))
    return result.scalar_one()


@pytest.mark.asyncio
async def test_tick_outside_check_hour_does_nothing(db_session, session_factory):
    scheduler = ReplenishmentScheduler(session_factory=session_factory)

    ran = await scheduler.tick(datetime(2030, 1, 15, 14, 0, tzinfo=BANGKOK))

    assert ran is False
    assert await _count(db_session, TicketDefinition) == 0


@pytest.mark.asyncio
async def test_tick_generates_and_purges(db_session, session_factory, friday_ticket):
    await get_or_create(db_session, "lumpinee", friday_ticket.id, TicketKind.REGULAR, date(2030, 1, 4))
    await get_or_create(db_session, "lumpinee", friday_ticket.id, TicketKind.REGULAR, date(2030, 1, 18))
    await db_session.commit()

    scheduler = ReplenishmentScheduler(session_factory=session_factory)
    assert await scheduler.tick(CHECK_TIME) is True

    state = await db_session.get(GenerationState, "rajadamnern")
    assert state.month_key == "2030-01"
    assert await _count(db_session, TicketDefinition) == 1 + 28 * 8

    remaining = await db_session.execute(
        select(DateOverride.date).where(DateOverride.stadium_id == "lumpinee")
    )
    assert remaining.scalars().all() == [date(2030, 1, 18)]


@pytest.mark.asyncio
async def test_repeated_tick_in_same_month_is_noop(db_session, session_factory):
    scheduler = ReplenishmentScheduler(session_factory=session_factory)
    await scheduler.tick(CHECK_TIME)
    await scheduler.tick(datetime(2030, 1, 16, 1, 0, tzinfo=BANGKOK))

    assert await _count(db_session, TicketDefinition) == 28 * 8


@pytest.mark.asyncio
async def test_failed_generation_still_purges(db_session, session_factory, friday_ticket, monkeypatch):
    await get_or_create(db_session, "lumpinee", friday_ticket.id, TicketKind.REGULAR, date(2030, 1, 4))
    await db_session.commit()

    async def broken(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(scheduler_module, "run_monthly_generation", broken)

    scheduler = ReplenishmentScheduler(session_factory=session_factory)
    assert await scheduler.tick(CHECK_TIME) is True
    assert await _count(db_session, DateOverride) == 0


@pytest.mark.asyncio
async def test_loop_survives_failing_ticks(session_factory):
    scheduler = ReplenishmentScheduler(session_factory=session_factory, interval_seconds=0.01)
    calls = []

    async def flaky_tick(now=None):
        calls.append(now)
        raise RuntimeError("tick failed")

    scheduler.tick = flaky_tick
    scheduler.start()
    assert scheduler.running

    await asyncio.sleep(0.1)
    await scheduler.stop()

    assert len(calls) >= 2
    assert not scheduler.running
