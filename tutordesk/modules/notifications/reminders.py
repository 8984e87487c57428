"""Periodic tutor reminders for upcoming confirmed sessions."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from contextlib import suppress
from datetime import datetime, timedelta
from time import perf_counter
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from tutordesk.core.enums import ReminderKindEnum
from tutordesk.core.metrics import (
    REMINDER_SWEEP_DURATION_SECONDS,
    REMINDER_SWEEP_FAILURES_TOTAL,
    REMINDERS_SENT_TOTAL,
)
from tutordesk.modules.notifications.repository import NotificationsRepository
from tutordesk.modules.notifications.service import NotificationsService
from tutordesk.modules.tutoring.models import REMINDER_MARKERS, Tutoring
from tutordesk.modules.tutoring.repository import TutoringRepository
from tutordesk.shared.utils import platform_now, session_start, utc_now

logger = logging.getLogger(__name__)


def reminder_message(tutoring: Tutoring) -> str:
    return (
        f"Tutoring session with {tutoring.student.username} for {tutoring.subject.name} "
        f"on {tutoring.meeting_date.isoformat()} at {tutoring.meeting_time.strftime('%H:%M')}"
    )


class TutoringReminderSweep:
    """Emit day-before and short-lead reminders to tutors, at most once each."""

    def __init__(
        self,
        tutoring_repository: TutoringRepository,
        notifications_service: NotificationsService,
        *,
        day_before: timedelta = timedelta(hours=24),
        short_lead: timedelta = timedelta(minutes=30),
        now_provider: Callable[[], datetime] = platform_now,
    ) -> None:
        self.tutoring_repository = tutoring_repository
        self.notifications_service = notifications_service
        self.leads = (
            (ReminderKindEnum.ONE_DAY, day_before),
            (ReminderKindEnum.THIRTY_MINUTES, short_lead),
        )
        self.now_provider = now_provider

    async def run_once(self) -> dict[str, int]:
        """Run one sweep over every tutor with sessions today or later."""
        now = self.now_provider()
        stats = {"tutors": 0, "scanned": 0}
        stats.update({kind.value: 0 for kind, _ in self.leads})

        tutor_ids = await self.tutoring_repository.list_tutor_ids_with_future_tutorings(now.date())
        stats["tutors"] = len(tutor_ids)
        for tutor_id in tutor_ids:
            tutorings = await self.tutoring_repository.list_upcoming_confirmed_by_tutor(tutor_id, now.date())
            for tutoring in tutorings:
                stats["scanned"] += 1
                starts_at = session_start(tutoring.meeting_date, tutoring.meeting_time)
                if starts_at <= now:
                    continue
                for kind, lead in self.leads:
                    if starts_at - lead > now:
                        continue
                    if await self._send_once(tutoring, kind):
                        stats[kind.value] += 1
        return stats

    async def _send_once(self, tutoring: Tutoring, kind: ReminderKindEnum) -> bool:
        if getattr(tutoring, REMINDER_MARKERS[kind]) is not None:
            return False
        sent_at = utc_now()
        claimed = await self.tutoring_repository.mark_reminder_sent(tutoring, kind, sent_at)
        if not claimed:
            return False

        notification = await self.notifications_service.notify(
            tutoring.tutor_id,
            reminder_message(tutoring),
            kind.notification_type,
        )
        if notification is None:
            await self.tutoring_repository.release_reminder(tutoring, kind, sent_at)
            logger.warning("Released %s claim for tutoring %s; retrying next sweep", kind.value, tutoring.id)
            return False
        REMINDERS_SENT_TOTAL.labels(kind=kind.value).inc()
        return True


def _default_sweep_factory(session: AsyncSession, **options: Any) -> TutoringReminderSweep:
    return TutoringReminderSweep(
        tutoring_repository=TutoringRepository(session),
        notifications_service=NotificationsService(NotificationsRepository(session)),
        **options,
    )


class ReminderScheduler:
    """Run the reminder sweep on a fixed-rate asyncio background task."""

    def __init__(
        self,
        session_factory: Callable[[], Any],
        *,
        poll_seconds: float = 60,
        day_before: timedelta = timedelta(hours=24),
        short_lead: timedelta = timedelta(minutes=30),
        sweep_factory: Callable[..., Any] = _default_sweep_factory,
    ) -> None:
        self.session_factory = session_factory
        self.poll_seconds = poll_seconds
        self.sweep_options = {"day_before": day_before, "short_lead": short_lead}
        self.sweep_factory = sweep_factory
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the loop on the running event loop; first tick runs immediately."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run(), name="tutoring-reminders")
        logger.info("Reminder scheduler started (every %ss)", self.poll_seconds)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
        logger.info("Reminder scheduler stopped")

    async def run_tick(self) -> dict[str, int] | None:
        """Run one sweep in its own session and transaction."""
        started_at = perf_counter()
        try:
            async with self.session_factory() as session:
                sweep = self.sweep_factory(session, **self.sweep_options)
                stats = await sweep.run_once()
                await session.commit()
        except Exception:
            REMINDER_SWEEP_FAILURES_TOTAL.inc()
            logger.exception("Reminder sweep failed")
            return None
        finally:
            REMINDER_SWEEP_DURATION_SECONDS.observe(perf_counter() - started_at)

        logger.info("Reminder sweep stats: %s", stats)
        return stats

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        while True:
            tick_started = loop.time()
            await self.run_tick()
            elapsed = loop.time() - tick_started
            await asyncio.sleep(max(self.poll_seconds - elapsed, 0))
