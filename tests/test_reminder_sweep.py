from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from types import SimpleNamespace
from uuid import UUID, uuid4

import pytest
from prometheus_client import REGISTRY

from tutordesk.core.enums import NotificationTypeEnum, ReminderKindEnum, TutoringStatusEnum
from tutordesk.modules.notifications.reminders import ReminderScheduler, TutoringReminderSweep
from tutordesk.modules.notifications.service import NotificationsService
from tutordesk.modules.tutoring.models import REMINDER_MARKERS

NOW = datetime(2026, 10, 18, 9, 0)


@dataclass
class FakeTutoring:
    id: UUID
    tutor_id: UUID
    meeting_date: date
    meeting_time: time
    status: TutoringStatusEnum = TutoringStatusEnum.CONFIRMED
    student: SimpleNamespace = field(default_factory=lambda: SimpleNamespace(username="ana"))
    subject: SimpleNamespace = field(default_factory=lambda: SimpleNamespace(name="Mathematics"))
    reminder_1day_sent_at: datetime | None = None
    reminder_30min_sent_at: datetime | None = None


class FakeTutoringRepository:
    def __init__(self, tutorings: list[FakeTutoring]) -> None:
        self.tutorings = tutorings
        self.claims: list[tuple[UUID, ReminderKindEnum]] = []
        self.releases: list[tuple[UUID, ReminderKindEnum]] = []

    async def list_tutor_ids_with_future_tutorings(self, today: date) -> list[UUID]:
        return list(dict.fromkeys(t.tutor_id for t in self.tutorings if t.meeting_date >= today))

    async def list_upcoming_confirmed_by_tutor(self, tutor_id: UUID, today: date) -> list[FakeTutoring]:
        return [
            t
            for t in self.tutorings
            if t.tutor_id == tutor_id and t.meeting_date >= today and t.status == TutoringStatusEnum.CONFIRMED
        ]

    async def mark_reminder_sent(self, tutoring: FakeTutoring, kind: ReminderKindEnum, sent_at: datetime) -> bool:
        marker = REMINDER_MARKERS[kind]
        if tutoring.status != TutoringStatusEnum.CONFIRMED or getattr(tutoring, marker) is not None:
            return False
        setattr(tutoring, marker, sent_at)
        self.claims.append((tutoring.id, kind))
        return True

    async def release_reminder(self, tutoring: FakeTutoring, kind: ReminderKindEnum, sent_at: datetime) -> bool:
        marker = REMINDER_MARKERS[kind]
        if getattr(tutoring, marker) != sent_at:
            return False
        setattr(tutoring, marker, None)
        self.releases.append((tutoring.id, kind))
        return True


class FakeNotificationsRepository:
    def __init__(self, failures: int = 0) -> None:
        self.created: list[dict] = []
        self.failures = failures

    async def create_notification(self, user_id: UUID, notification_type, message: str) -> dict:
        if self.failures:
            self.failures -= 1
            raise RuntimeError("notification store unavailable")
        record = {"user_id": user_id, "type": notification_type, "message": message}
        self.created.append(record)
        return record


def starting_in(delta: timedelta, tutor_id: UUID | None = None, **kwargs) -> FakeTutoring:
    starts_at = NOW + delta
    return FakeTutoring(
        id=uuid4(),
        tutor_id=tutor_id or uuid4(),
        meeting_date=starts_at.date(),
        meeting_time=starts_at.time(),
        **kwargs,
    )


def _day_before_reminders_sent() -> float:
    return REGISTRY.get_sample_value("tutordesk_reminders_sent_total", {"kind": "reminder_1day"}) or 0.0


def make_sweep(
    tutorings: list[FakeTutoring],
    notification_failures: int = 0,
) -> tuple[TutoringReminderSweep, FakeTutoringRepository, FakeNotificationsRepository]:
    tutoring_repo = FakeTutoringRepository(tutorings)
    notifications_repo = FakeNotificationsRepository(failures=notification_failures)
    sweep = TutoringReminderSweep(
        tutoring_repository=tutoring_repo,
        notifications_service=NotificationsService(notifications_repo),
        now_provider=lambda: NOW,
    )
    return sweep, tutoring_repo, notifications_repo


@pytest.mark.asyncio
async def test_day_before_reminder_is_sent_once_within_24_hours() -> None:
    tutoring = starting_in(timedelta(hours=20))
    sweep, _, notifications_repo = make_sweep([tutoring])

    first = await sweep.run_once()
    second = await sweep.run_once()

    assert first == {"tutors": 1, "scanned": 1, "reminder_1day": 1, "reminder_30min": 0}
    assert second["reminder_1day"] == 0
    assert len(notifications_repo.created) == 1
    notification = notifications_repo.created[0]
    assert notification["user_id"] == tutoring.tutor_id
    assert notification["type"] == NotificationTypeEnum.REMINDER_1DAY
    assert notification["message"] == "Tutoring session with ana for Mathematics on 2026-10-19 at 05:00"
    assert tutoring.reminder_1day_sent_at is not None


@pytest.mark.asyncio
async def test_short_lead_window_sends_both_reminders_once() -> None:
    tutoring = starting_in(timedelta(minutes=20))
    sweep, tutoring_repo, notifications_repo = make_sweep([tutoring])

    first = await sweep.run_once()
    second = await sweep.run_once()

    assert first["reminder_1day"] == 1
    assert first["reminder_30min"] == 1
    assert second["reminder_1day"] == second["reminder_30min"] == 0
    assert [n["type"] for n in notifications_repo.created] == [
        NotificationTypeEnum.REMINDER_1DAY,
        NotificationTypeEnum.REMINDER_30MIN,
    ]
    assert len(tutoring_repo.claims) == 2


@pytest.mark.asyncio
async def test_threshold_boundary_fires_at_exact_lead() -> None:
    exactly_a_day = starting_in(timedelta(hours=24))
    just_outside = starting_in(timedelta(hours=24, minutes=1))
    sweep, _, notifications_repo = make_sweep([exactly_a_day, just_outside])

    stats = await sweep.run_once()

    assert stats["reminder_1day"] == 1
    assert notifications_repo.created[0]["user_id"] == exactly_a_day.tutor_id


@pytest.mark.asyncio
async def test_sessions_already_started_or_unconfirmed_are_skipped() -> None:
    started = starting_in(timedelta(minutes=-5))
    pending = starting_in(timedelta(minutes=10), status=TutoringStatusEnum.UNCONFIRMED)
    sweep, _, notifications_repo = make_sweep([started, pending])

    stats = await sweep.run_once()

    assert stats["tutors"] == 2
    assert stats["scanned"] == 1
    assert notifications_repo.created == []


@pytest.mark.asyncio
async def test_previously_claimed_marker_is_respected() -> None:
    tutoring = starting_in(timedelta(minutes=25), reminder_1day_sent_at=NOW - timedelta(hours=10))
    sweep, _, notifications_repo = make_sweep([tutoring])

    stats = await sweep.run_once()

    assert stats["reminder_1day"] == 0
    assert stats["reminder_30min"] == 1
    assert [n["type"] for n in notifications_repo.created] == [NotificationTypeEnum.REMINDER_30MIN]


@pytest.mark.asyncio
async def test_failed_reminder_write_is_released_and_retried_next_sweep() -> None:
    tutoring = starting_in(timedelta(hours=20))
    sweep, tutoring_repo, notifications_repo = make_sweep([tutoring], notification_failures=1)
    sent_before = _day_before_reminders_sent()

    first = await sweep.run_once()

    assert first["reminder_1day"] == 0
    assert tutoring.reminder_1day_sent_at is None
    assert notifications_repo.created == []
    assert tutoring_repo.releases == [(tutoring.id, ReminderKindEnum.ONE_DAY)]
    assert _day_before_reminders_sent() == sent_before

    second = await sweep.run_once()
    third = await sweep.run_once()

    assert second["reminder_1day"] == 1
    assert third["reminder_1day"] == 0
    assert tutoring.reminder_1day_sent_at is not None
    assert [n["type"] for n in notifications_repo.created] == [NotificationTypeEnum.REMINDER_1DAY]
    assert _day_before_reminders_sent() == sent_before + 1


@pytest.mark.asyncio
async def test_reminders_are_grouped_per_tutor() -> None:
    tutor_id = uuid4()
    morning = starting_in(timedelta(hours=2), tutor_id=tutor_id)
    evening = starting_in(timedelta(hours=8), tutor_id=tutor_id)
    sweep, _, notifications_repo = make_sweep([morning, evening])

    stats = await sweep.run_once()

    assert stats["tutors"] == 1
    assert stats["reminder_1day"] == 2
    assert {n["user_id"] for n in notifications_repo.created} == {tutor_id}


class FakeSession:
    def __init__(self) -> None:
        self.commits = 0

    async def __aenter__(self) -> "FakeSession":
        return self

    async def __aexit__(self, *_exc) -> None:
        return None

    async def commit(self) -> None:
        self.commits += 1


class FakeSweep:
    def __init__(self, outcomes: list) -> None:
        self.outcomes = outcomes

    async def run_once(self) -> dict[str, int]:
        outcome = self.outcomes.pop(0) if self.outcomes else {"tutors": 0}
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def make_scheduler(outcomes: list, sessions: list[FakeSession], poll_seconds: float = 0.01) -> ReminderScheduler:
    sweep = FakeSweep(outcomes)

    def _session_factory() -> FakeSession:
        session = FakeSession()
        sessions.append(session)
        return session

    return ReminderScheduler(
        _session_factory,
        poll_seconds=poll_seconds,
        sweep_factory=lambda _session, **_options: sweep,
    )


@pytest.mark.asyncio
async def test_scheduler_tick_commits_and_returns_stats() -> None:
    sessions: list[FakeSession] = []
    scheduler = make_scheduler([{"tutors": 3}], sessions)

    stats = await scheduler.run_tick()

    assert stats == {"tutors": 3}
    assert [session.commits for session in sessions] == [1]


@pytest.mark.asyncio
async def test_scheduler_tick_failure_is_logged_and_not_raised() -> None:
    sessions: list[FakeSession] = []
    scheduler = make_scheduler([RuntimeError("database down")], sessions)

    stats = await scheduler.run_tick()

    assert stats is None
    assert sessions[0].commits == 0


@pytest.mark.asyncio
async def test_scheduler_keeps_running_after_failed_tick() -> None:
    sessions: list[FakeSession] = []
    scheduler = make_scheduler([RuntimeError("boom"), {"tutors": 1}, {"tutors": 1}], sessions)

    scheduler.start()
    for _ in range(100):
        if len(sessions) >= 3:
            break
        await asyncio.sleep(0.01)
    still_running = scheduler.is_running
    await scheduler.stop()

    assert still_running is True
    assert len(sessions) >= 3
    assert scheduler.is_running is False


@pytest.mark.asyncio
async def test_scheduler_runs_first_tick_immediately_and_start_is_idempotent() -> None:
    sessions: list[FakeSession] = []
    scheduler = make_scheduler([], sessions, poll_seconds=3600)

    scheduler.start()
    first_task = scheduler._task
    scheduler.start()
    await asyncio.sleep(0.05)

    assert scheduler._task is first_task
    assert len(sessions) == 1
    await scheduler.stop()
    await scheduler.stop()
    assert scheduler.is_running is False
