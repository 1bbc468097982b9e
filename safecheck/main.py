"""SafeCheck FastAPI application."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from safecheck.api import alerts, check_in, health, status, tasks
from safecheck.core.config import settings
from safecheck.core.scheduler import create_scheduler
from safecheck.db.session import SessionLocal

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    scheduler = None
    if settings.scheduler_enabled:
        scheduler = create_scheduler(SessionLocal)
        scheduler.start()
        logger.info(
            "Scheduler started: reminders every %s min, escalation every %s min",
            settings.reminder_pass_minutes,
            settings.escalation_pass_minutes,
        )
    yield
    if scheduler is not None:
        logger.info("Shutting down scheduler...")
        scheduler.shutdown(wait=False)


app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(check_in.router)
app.include_router(status.router)
app.include_router(alerts.router)
app.include_router(tasks.router)
