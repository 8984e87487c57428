"""Executable worker for tutor reminder sweeps outside the API process."""

from __future__ import annotations

import asyncio
import logging
import os
from datetime import timedelta

from tutordesk.core.config import get_settings
from tutordesk.core.database import SessionLocal, close_engine
from tutordesk.modules.notifications.reminders import ReminderScheduler

logger = logging.getLogger(__name__)


def build_scheduler() -> ReminderScheduler:
    settings = get_settings()
    return ReminderScheduler(
        SessionLocal,
        poll_seconds=int(os.getenv("REMINDER_WORKER_POLL_SECONDS", str(settings.reminder_poll_seconds))),
        day_before=timedelta(hours=settings.reminder_day_before_hours),
        short_lead=timedelta(minutes=settings.reminder_short_lead_minutes),
    )


async def main() -> None:
    """Run one sweep or keep sweeping according to worker mode."""
    logging.basicConfig(level=os.getenv("REMINDER_WORKER_LOG_LEVEL", "INFO"))
    mode = os.getenv("REMINDER_WORKER_MODE", "once").strip().lower()
    scheduler = build_scheduler()

    try:
        if mode == "once":
            stats = await scheduler.run_tick()
            logger.info("Reminder worker stats: %s", stats)
            return

        scheduler.start()
        while scheduler.is_running:
            await asyncio.sleep(scheduler.poll_seconds)
    finally:
        await scheduler.stop()
        await close_engine()


if __name__ == "__main__":
    asyncio.run(main())
