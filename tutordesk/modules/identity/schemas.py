"""Identity schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from tutordesk.core.enums import RoleEnum


class UserCreate(BaseModel):
    """Admin request to provision a platform user."""

    username: str = Field(min_length=3, max_length=64, pattern=r"^[A-Za-z0-9_.-]+$")
    email: EmailStr | None = None
    role: RoleEnum = RoleEnum.STUDENT


class UserRead(BaseModel):
    """User output schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    email: EmailStr | None
    role: RoleEnum
    is_active: bool
    created_at: datetime
    updated_at: datetime
