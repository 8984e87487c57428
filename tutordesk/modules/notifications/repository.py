"""Notifications repository layer."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tutordesk.core.enums import NotificationTypeEnum
from tutordesk.modules.notifications.models import Notification


class NotificationsRepository:
    """DB operations for notifications domain."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_notification(
        self,
        user_id: UUID,
        notification_type: NotificationTypeEnum,
        message: str,
    ) -> Notification:
        notification = Notification(user_id=user_id, type=notification_type, message=message)
        async with self.session.begin_nested():
            self.session.add(notification)
            await self.session.flush()
        return notification

    async def get_notification_by_id(self, notification_id: UUID) -> Notification | None:
        stmt = select(Notification).where(Notification.id == notification_id)
        return await self.session.scalar(stmt)

    async def list_unread_for_user(self, user_id: UUID, limit: int) -> list[Notification]:
        stmt = (
            select(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .order_by(Notification.created_at.desc())
            .limit(limit)
        )
        return list((await self.session.scalars(stmt)).all())

    async def list_for_user(self, user_id: UUID, limit: int) -> list[Notification]:
        stmt = (
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
            .limit(limit)
        )
        return list((await self.session.scalars(stmt)).all())

    async def count_unread_for_user(self, user_id: UUID) -> int:
        stmt = select(func.count(Notification.id)).where(
            Notification.user_id == user_id,
            Notification.is_read.is_(False),
        )
        return int((await self.session.scalar(stmt)) or 0)

    async def mark_read(self, notifications: list[Notification], read_at: datetime) -> None:
        for notification in notifications:
            if not notification.is_read:
                notification.is_read = True
                notification.read_at = read_at
        await self.session.flush()

    async def mark_all_read(self, user_id: UUID, read_at: datetime) -> int:
        stmt = (
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True, read_at=read_at)
        )
        result = await self.session.execute(stmt)
        return int(result.rowcount or 0)
