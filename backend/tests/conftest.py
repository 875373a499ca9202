"""
Pytest fixtures for the test database, sessions, client and sample tickets.

Each test gets its own SQLite file with the schema created from the model
metadata, so sessions opened by concurrent tasks see each other's commits.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import AsyncGenerator
from zoneinfo import ZoneInfo

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from ticketing.db.base import Base
from ticketing.db.session import create_engine, get_db
from ticketing.main import app
from ticketing.models.ticket import TicketDefinition, TicketKind
from ticketing.schemas.ticket import TicketCreate
from ticketing.services.catalog_service import create_ticket

STADIUM = "lumpinee"
BANGKOK = ZoneInfo("Asia/Bangkok")

# 2030-01-04 is a Friday (weekday 5 with Sunday = 0)
FRIDAY = date(2030, 1, 4)
NOW = datetime(2030, 1, 1, 12, 0, tzinfo=BANGKOK)


@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'ticketing.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest_asyncio.fixture
async def friday_ticket(db_session: AsyncSession) -> TicketDefinition:
    """Regular ticket sold every Friday, 5 units per date."""
    ticket = await create_ticket(db_session, STADIUM, TicketCreate(
        kind=TicketKind.REGULAR,
        name="Ringside",
        base_price=Decimal("2000"),
        base_quantity=5,
        weekdays=[5],
    ))
    await db_session.commit()
    return ticket


@pytest_asyncio.fixture
async def special_ticket(db_session: AsyncSession) -> TicketDefinition:
    """One-off ticket for a single Friday."""
    ticket = await create_ticket(db_session, STADIUM, TicketCreate(
        kind=TicketKind.SPECIAL,
        name="Title Fight Night",
        base_price=Decimal("5000"),
        base_quantity=2,
        display_order=1,
        date=FRIDAY,
    ))
    await db_session.commit()
    return ticket
