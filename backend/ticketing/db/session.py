"""
Async engine and session management.

One AsyncSession is one unit of work: `session_scope` commits when the block
finishes and rolls back on any error. Operational failures of the store are
re-raised as StoreUnavailableError so callers can tell "the database is down"
apart from domain outcomes.
"""

from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncGenerator, Optional

from sqlalchemy import event
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from ticketing.core.config import get_settings
from ticketing.core.errors import StoreUnavailableError
from ticketing.core.logging import get_logger

logger = get_logger(__name__)


def create_engine(url: Optional[str] = None) -> AsyncEngine:
    """
    Create the async engine for `url` (defaults to DATABASE_URL).
    PostgreSQL gets a sized connection pool; SQLite gets serialized writers.
    """
    settings = get_settings()
    url = url or settings.DATABASE_URL

    if url.startswith("sqlite"):
        engine = create_async_engine(
            url,
            connect_args={"timeout": settings.SQLITE_BUSY_TIMEOUT},
        )
        configure_sqlite(engine)
        return engine

    return create_async_engine(
        url,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,
    )


def configure_sqlite(engine: AsyncEngine) -> None:
    """
    SQLite only takes the write lock when a transaction first writes, and a
    reader that later tries to write can fail instead of waiting. Starting
    every transaction with BEGIN IMMEDIATE makes writers queue on the busy
    timeout. Foreign keys are off by default per connection.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Take over BEGIN from the driver
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


@lru_cache()
def get_engine() -> AsyncEngine:
    return create_engine()


@lru_cache()
def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(get_engine(), class_=AsyncSession, expire_on_commit=False)


@asynccontextmanager
async def session_scope(
    factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> AsyncGenerator[AsyncSession, None]:
    """Transactional scope: commit on success, rollback on error."""
    factory = factory or get_sessionmaker()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except (OperationalError, InterfaceError) as exc:
            await session.rollback()
            logger.error("store_unavailable", error=str(exc.orig or exc))
            raise StoreUnavailableError(str(exc.orig or exc)) from exc
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency-style session provider for request handlers."""
    async with session_scope() as session:
        yield session


async def dispose_engine() -> None:
    if get_engine.cache_info().currsize:
        await get_engine().dispose()


_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def dialect_insert(db: AsyncSession, model):
    """INSERT construct of the session's dialect, for ON CONFLICT clauses."""
    dialect = db.bind.dialect.name
    try:
        return _INSERT_BY_DIALECT[dialect](model)
    except KeyError:
        raise NotImplementedError(f"Upserts are not supported on {dialect}") from None
