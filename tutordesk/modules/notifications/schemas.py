"""Notifications schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from tutordesk.core.enums import NotificationTypeEnum


class NotificationRead(BaseModel):
    """Notification response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    type: NotificationTypeEnum
    message: str
    is_read: bool
    read_at: datetime | None
    created_at: datetime


class UnreadCountRead(BaseModel):
    """Unread notifications counter."""

    unread: int


class MarkAllReadResult(BaseModel):
    """Number of notifications flipped to read."""

    updated: int
