"""Notifications API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from tutordesk.modules.identity.service import get_current_user
from tutordesk.modules.notifications.schemas import MarkAllReadResult, NotificationRead, UnreadCountRead
from tutordesk.modules.notifications.service import NotificationsService, get_notifications_service

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/my", response_model=list[NotificationRead])
async def list_my_notifications(
    limit: int | None = Query(default=None, ge=1, le=100),
    service: NotificationsService = Depends(get_notifications_service),
    current_user=Depends(get_current_user),
) -> list[NotificationRead]:
    """List latest notifications for current user and mark them read."""
    notifications = await service.list_my_notifications(current_user, limit)
    return [NotificationRead.model_validate(item) for item in notifications]


@router.get("/my/unread-count", response_model=UnreadCountRead)
async def get_unread_count(
    service: NotificationsService = Depends(get_notifications_service),
    current_user=Depends(get_current_user),
) -> UnreadCountRead:
    """Return number of unread notifications."""
    return UnreadCountRead(unread=await service.unread_count(current_user))


@router.post("/my/read-all", response_model=MarkAllReadResult)
async def mark_all_read(
    service: NotificationsService = Depends(get_notifications_service),
    current_user=Depends(get_current_user),
) -> MarkAllReadResult:
    """Mark every notification of current user as read."""
    return MarkAllReadResult(updated=await service.mark_all_read(current_user))


@router.post("/{notification_id}/read", response_model=NotificationRead)
async def mark_notification_read(
    notification_id: UUID,
    service: NotificationsService = Depends(get_notifications_service),
    current_user=Depends(get_current_user),
) -> NotificationRead:
    """Mark single notification as read."""
    notification = await service.mark_read(notification_id, current_user)
    return NotificationRead.model_validate(notification)
