"""Tutoring schemas."""

from __future__ import annotations

from datetime import date, datetime, time
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tutordesk.core.enums import TutoringStatusEnum


def _to_minute(value: time | None) -> time | None:
    if value is None:
        return None
    return value.replace(second=0, microsecond=0, tzinfo=None)


class TutoringRequestCreate(BaseModel):
    """Student request for a tutoring session."""

    tutor: str = Field(min_length=1, max_length=64, description="Tutor username or id.")
    subject: str = Field(min_length=1, max_length=128, description="Subject id or name.")
    topic: str | None = Field(default=None, max_length=128, description="Topic id or name.")
    meeting_date: date
    meeting_time: time

    @field_validator("meeting_time")
    @classmethod
    def truncate_meeting_time(cls, value: time) -> time:
        """Slots are compared at minute resolution."""
        return _to_minute(value)

    @field_validator("topic")
    @classmethod
    def blank_topic_as_none(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value


class TutoringUpdate(BaseModel):
    """Student reschedule request; omitted fields keep their current value."""

    meeting_date: date | None = None
    meeting_time: time | None = None
    topic: str | None = Field(default=None, max_length=128)

    @field_validator("meeting_time")
    @classmethod
    def truncate_meeting_time(cls, value: time | None) -> time | None:
        return _to_minute(value)

    @field_validator("topic")
    @classmethod
    def blank_topic_as_none(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value


class TutoringCancelRequest(BaseModel):
    """Cancel tutoring request."""

    reason: str | None = Field(default=None, max_length=512)


class TutoringHistoryFilters(BaseModel):
    """Filters for a student's past sessions."""

    status: TutoringStatusEnum | None = None
    subject: str | None = Field(default=None, max_length=128)
    limit: int | None = Field(default=None, ge=1, le=100)

    @field_validator("status")
    @classmethod
    def only_finished_statuses(cls, value: TutoringStatusEnum | None) -> TutoringStatusEnum | None:
        if value is not None and not value.is_terminal:
            raise ValueError("History can only be filtered by completed or canceled")
        return value


class TutoringAdminFilters(BaseModel):
    """Filters for the admin listing of all sessions."""

    student: str | None = Field(default=None, max_length=64)
    tutor: str | None = Field(default=None, max_length=64)
    subject: str | None = Field(default=None, max_length=128)
    status: TutoringStatusEnum | None = None


class TutoringRead(BaseModel):
    """Tutoring response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    student_id: UUID
    student_username: str
    tutor_id: UUID
    tutor_username: str
    subject_id: int
    subject_name: str
    topic_id: int | None
    topic_name: str | None
    meeting_date: date
    meeting_time: time
    status: TutoringStatusEnum
    confirmed_at: datetime | None
    canceled_at: datetime | None
    completed_at: datetime | None
    cancellation_reason: str | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_tutoring(cls, tutoring) -> "TutoringRead":
        """Flatten a tutoring with loaded participants, subject and topic."""
        return cls(
            id=tutoring.id,
            student_id=tutoring.student_id,
            student_username=tutoring.student.username,
            tutor_id=tutoring.tutor_id,
            tutor_username=tutoring.tutor.username,
            subject_id=tutoring.subject_id,
            subject_name=tutoring.subject.name,
            topic_id=tutoring.topic_id,
            topic_name=tutoring.topic.name if tutoring.topic is not None else None,
            meeting_date=tutoring.meeting_date,
            meeting_time=tutoring.meeting_time,
            status=tutoring.status,
            confirmed_at=tutoring.confirmed_at,
            canceled_at=tutoring.canceled_at,
            completed_at=tutoring.completed_at,
            cancellation_reason=tutoring.cancellation_reason,
            created_at=tutoring.created_at,
            updated_at=tutoring.updated_at,
        )
