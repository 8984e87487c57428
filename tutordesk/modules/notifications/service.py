"""Notifications business logic layer."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tutordesk.core.config import get_settings
from tutordesk.core.database import get_db_session
from tutordesk.core.enums import NotificationTypeEnum
from tutordesk.core.metrics import NOTIFICATIONS_DROPPED_TOTAL
from tutordesk.modules.identity.models import User
from tutordesk.modules.notifications.models import Notification
from tutordesk.modules.notifications.repository import NotificationsRepository
from tutordesk.shared.exceptions import NotFoundException, UnauthorizedException
from tutordesk.shared.utils import utc_now

logger = logging.getLogger(__name__)
settings = get_settings()


class NotificationsService:
    """Notifications domain service."""

    def __init__(self, repository: NotificationsRepository) -> None:
        self.repository = repository

    async def notify(
        self,
        user_id: UUID,
        message: str,
        notification_type: NotificationTypeEnum,
    ) -> Notification | None:
        """Record a notification for a user.

        A failure is logged and counted but never reaches the caller, whose own
        work must not be rolled back by it. Returns None when nothing was stored.
        """
        try:
            return await self.repository.create_notification(
                user_id=user_id,
                notification_type=notification_type,
                message=message,
            )
        except Exception:
            NOTIFICATIONS_DROPPED_TOTAL.labels(type=notification_type.value).inc()
            logger.exception("Failed to record %s notification for user %s", notification_type, user_id)
            return None

    async def list_my_notifications(self, actor: User, limit: int | None = None) -> list[Notification]:
        """Return latest unread notifications, or the latest ``limit`` of any state.

        Returned notifications are marked as read.
        """
        if limit is None:
            notifications = await self.repository.list_unread_for_user(
                actor.id,
                settings.notifications_default_limit,
            )
        else:
            notifications = await self.repository.list_for_user(actor.id, limit)

        await self.repository.mark_read(notifications, utc_now())
        return notifications

    async def mark_read(self, notification_id: UUID, actor: User) -> Notification:
        """Mark one notification as read (recipient only)."""
        notification = await self.repository.get_notification_by_id(notification_id)
        if notification is None:
            raise NotFoundException("Notification not found")
        if notification.user_id != actor.id:
            raise UnauthorizedException("Only the recipient can update this notification")

        await self.repository.mark_read([notification], utc_now())
        return notification

    async def mark_all_read(self, actor: User) -> int:
        return await self.repository.mark_all_read(actor.id, utc_now())

    async def unread_count(self, actor: User) -> int:
        return await self.repository.count_unread_for_user(actor.id)


async def get_notifications_service(session: AsyncSession = Depends(get_db_session)) -> NotificationsService:
    """Dependency provider for notifications service."""
    return NotificationsService(repository=NotificationsRepository(session))
