"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, HTTPException, Request, Response, status
from sqlalchemy import text

from tutordesk.core.config import get_settings
from tutordesk.core.database import SessionLocal, close_engine
from tutordesk.core.metrics import build_metrics_response, instrument_http_request
from tutordesk.modules.catalog.router import router as catalog_router
from tutordesk.modules.feedback.router import router as feedback_router
from tutordesk.modules.identity.router import router as identity_router
from tutordesk.modules.notifications.reminders import ReminderScheduler
from tutordesk.modules.notifications.router import router as notifications_router
from tutordesk.modules.tutoring.router import router as tutoring_router
from tutordesk.shared.exceptions import register_exception_handlers
from tutordesk.shared.utils import utc_now

settings = get_settings()
logger = logging.getLogger(__name__)


def build_reminder_scheduler() -> ReminderScheduler:
    return ReminderScheduler(
        SessionLocal,
        poll_seconds=settings.reminder_poll_seconds,
        day_before=timedelta(hours=settings.reminder_day_before_hours),
        short_lead=timedelta(minutes=settings.reminder_short_lead_minutes),
    )


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Application startup and shutdown hooks."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    logger.info("Starting %s", settings.app_name)

    scheduler: ReminderScheduler | None = None
    if settings.reminder_scheduler_enabled:
        scheduler = build_reminder_scheduler()
        scheduler.start()

    yield

    logger.info("Shutting down %s", settings.app_name)
    if scheduler is not None:
        await scheduler.stop()
    await close_engine()


app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    lifespan=lifespan,
)
app.middleware("http")(instrument_http_request)

register_exception_handlers(app)

app.include_router(identity_router, prefix=settings.api_prefix)
app.include_router(catalog_router, prefix=settings.api_prefix)
app.include_router(tutoring_router, prefix=settings.api_prefix)
app.include_router(notifications_router, prefix=settings.api_prefix)
app.include_router(feedback_router, prefix=settings.api_prefix)


@app.get("/health")
async def healthcheck() -> dict[str, str]:
    """Liveness probe endpoint."""
    return {"status": "ok"}


async def _is_database_ready() -> bool:
    """Return True if DB accepts basic queries."""
    try:
        async with SessionLocal() as session:
            await session.execute(text("SELECT 1"))
        return True
    except Exception:
        logger.exception("Database readiness check failed")
        return False


@app.get("/ready")
async def readiness_check() -> dict[str, str]:
    """Readiness probe endpoint with DB dependency check."""
    if not await _is_database_ready():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database is not ready",
        )
    return {
        "status": "ready",
        "database": "ok",
        "timestamp": utc_now().isoformat(),
    }


@app.get("/metrics", include_in_schema=False)
async def metrics_endpoint(_: Request) -> Response:
    """Prometheus metrics endpoint."""
    return build_metrics_response()
