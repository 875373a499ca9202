"""
Stadium Ticketing - host process for the inventory engine.

Serves health and metrics endpoints and runs the monthly replenishment
scheduler. Booking and administration flows call the services in
`ticketing.services` directly with a session from `ticketing.db.session`.
"""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.api.middleware import install
from ticketing.core.config import get_settings
from ticketing.core.logging import setup_logging, get_logger
from ticketing.core.metrics import metrics_endpoint
from ticketing.db.session import dispose_engine, get_db
from ticketing.services.scheduler import ReplenishmentScheduler

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    scheduler = ReplenishmentScheduler()
    if settings.SCHEDULER_ENABLED:
        scheduler.start()
    else:
        logger.warning("scheduler_disabled")
    app.state.scheduler = scheduler

    yield

    await scheduler.stop()
    await dispose_engine()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Ticket inventory and availability engine",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

install(app)


@app.get("/health", tags=["Health"])
async def health_check(db: AsyncSession = Depends(get_db)):
    """Health check endpoint for Docker and load balancers."""
    await db.execute(text("SELECT 1"))
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "database": "ok",
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
