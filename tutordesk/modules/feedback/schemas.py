"""Session feedback schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FeedbackCreate(BaseModel):
    """Rating with a mandatory comment."""

    rating: int = Field(ge=1, le=5)
    comment: str = Field(min_length=1, max_length=2000)

    @field_validator("comment")
    @classmethod
    def comment_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Comment cannot be empty")
        return value


class FeedbackRead(BaseModel):
    """Session feedback response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tutoring_id: UUID
    student_id: UUID
    tutor_id: UUID
    rating: int
    comment: str
    is_tutor_observation: bool
    created_at: datetime


class FeedbackSummaryRead(BaseModel):
    """Feedback received by current user."""

    average_rating: float | None
    count: int
    items: list[FeedbackRead]
