from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from uuid import UUID, uuid4

import pytest
from prometheus_client import REGISTRY

from tutordesk.core.enums import NotificationTypeEnum
from tutordesk.modules.notifications.service import NotificationsService
from tutordesk.shared.exceptions import NotFoundException, UnauthorizedException

BASE_TIME = datetime(2026, 10, 18, 8, 0, tzinfo=timezone.utc)


@dataclass
class FakeNotification:
    id: UUID
    user_id: UUID
    type: NotificationTypeEnum
    message: str
    created_at: datetime
    is_read: bool = False
    read_at: datetime | None = None


class FakeNotificationsRepository:
    def __init__(self, notifications: list[FakeNotification] | None = None) -> None:
        self.notifications = notifications or []

    async def create_notification(self, user_id: UUID, notification_type, message: str) -> FakeNotification:
        notification = FakeNotification(uuid4(), user_id, notification_type, message, BASE_TIME)
        self.notifications.append(notification)
        return notification

    async def get_notification_by_id(self, notification_id: UUID) -> FakeNotification | None:
        return next((n for n in self.notifications if n.id == notification_id), None)

    def _latest(self, user_id: UUID, unread_only: bool) -> list[FakeNotification]:
        items = [n for n in self.notifications if n.user_id == user_id and not (unread_only and n.is_read)]
        return sorted(items, key=lambda n: n.created_at, reverse=True)

    async def list_unread_for_user(self, user_id: UUID, limit: int) -> list[FakeNotification]:
        return self._latest(user_id, unread_only=True)[:limit]

    async def list_for_user(self, user_id: UUID, limit: int) -> list[FakeNotification]:
        return self._latest(user_id, unread_only=False)[:limit]

    async def count_unread_for_user(self, user_id: UUID) -> int:
        return len(self._latest(user_id, unread_only=True))

    async def mark_read(self, notifications: list[FakeNotification], read_at: datetime) -> None:
        for notification in notifications:
            if not notification.is_read:
                notification.is_read = True
                notification.read_at = read_at

    async def mark_all_read(self, user_id: UUID, read_at: datetime) -> int:
        unread = self._latest(user_id, unread_only=True)
        await self.mark_read(unread, read_at)
        return len(unread)


class BrokenNotificationsRepository:
    async def create_notification(self, user_id: UUID, notification_type, message: str) -> None:
        raise RuntimeError("insert failed")


def make_actor() -> SimpleNamespace:
    return SimpleNamespace(id=uuid4())


def seed(repository: FakeNotificationsRepository, user_id: UUID, count: int) -> list[FakeNotification]:
    items = [
        FakeNotification(
            uuid4(),
            user_id,
            NotificationTypeEnum.TUTORING_REQUEST,
            f"message {index}",
            BASE_TIME + timedelta(minutes=index),
        )
        for index in range(count)
    ]
    repository.notifications.extend(items)
    return items


@pytest.mark.asyncio
async def test_notify_records_notification() -> None:
    repository = FakeNotificationsRepository()
    service = NotificationsService(repository)
    user_id = uuid4()

    stored = await service.notify(user_id, "hello", NotificationTypeEnum.TUTORING_CONFIRMED)

    assert stored is repository.notifications[0]
    assert len(repository.notifications) == 1
    assert repository.notifications[0].type == NotificationTypeEnum.TUTORING_CONFIRMED


@pytest.mark.asyncio
async def test_notify_swallows_store_failures_and_counts_them() -> None:
    service = NotificationsService(BrokenNotificationsRepository())
    labels = {"type": NotificationTypeEnum.TUTORING_CANCELED.value}
    before = REGISTRY.get_sample_value("tutordesk_notifications_dropped_total", labels) or 0.0

    stored = await service.notify(uuid4(), "lost", NotificationTypeEnum.TUTORING_CANCELED)

    assert stored is None
    assert REGISTRY.get_sample_value("tutordesk_notifications_dropped_total", labels) == before + 1


@pytest.mark.asyncio
async def test_default_listing_returns_latest_unread_and_marks_them_read() -> None:
    repository = FakeNotificationsRepository()
    service = NotificationsService(repository)
    actor = make_actor()
    items = seed(repository, actor.id, 12)
    seed(repository, uuid4(), 3)

    listed = await service.list_my_notifications(actor)

    assert [n.message for n in listed] == [f"message {index}" for index in range(11, 1, -1)]
    assert all(n.is_read for n in listed)
    assert items[0].is_read is False
    assert await service.unread_count(actor) == 2


@pytest.mark.asyncio
async def test_explicit_limit_includes_already_read_notifications() -> None:
    repository = FakeNotificationsRepository()
    service = NotificationsService(repository)
    actor = make_actor()
    items = seed(repository, actor.id, 3)
    items[2].is_read = True

    listed = await service.list_my_notifications(actor, limit=2)

    assert [n.message for n in listed] == ["message 2", "message 1"]
    assert items[0].is_read is False


@pytest.mark.asyncio
async def test_mark_read_is_limited_to_recipient() -> None:
    repository = FakeNotificationsRepository()
    service = NotificationsService(repository)
    actor = make_actor()
    (notification,) = seed(repository, actor.id, 1)

    with pytest.raises(UnauthorizedException):
        await service.mark_read(notification.id, make_actor())
    with pytest.raises(NotFoundException):
        await service.mark_read(uuid4(), actor)

    updated = await service.mark_read(notification.id, actor)
    assert updated.is_read is True
    assert updated.read_at is not None


@pytest.mark.asyncio
async def test_mark_all_read_reports_updated_count() -> None:
    repository = FakeNotificationsRepository()
    service = NotificationsService(repository)
    actor = make_actor()
    seed(repository, actor.id, 4)

    assert await service.mark_all_read(actor) == 4
    assert await service.unread_count(actor) == 0
    assert await service.mark_all_read(actor) == 0
