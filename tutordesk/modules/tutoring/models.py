"""Tutoring session ORM models."""

from __future__ import annotations

from datetime import date, datetime, time
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Date, DateTime, ForeignKey, Index, String, Time, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tutordesk.core.database import Base, BaseModelMixin, enum_type
from tutordesk.core.enums import ReminderKindEnum, TutoringStatusEnum

if TYPE_CHECKING:
    from tutordesk.modules.catalog.models import Subject, Topic
    from tutordesk.modules.identity.models import User

CONFIRMED_SLOT_PREDICATE = text("status = 'confirmed'")


class Tutoring(BaseModelMixin, Base):
    """Scheduled meeting between one student and one tutor."""

    __tablename__ = "tutorings"
    __table_args__ = (
        Index("ix_tutorings_tutor_id_status", "tutor_id", "status"),
        Index("ix_tutorings_schedule", "tutor_id", "meeting_date", "meeting_time", "status"),
        Index(
            "uq_tutorings_confirmed_slot",
            "tutor_id",
            "meeting_date",
            "meeting_time",
            unique=True,
            postgresql_where=CONFIRMED_SLOT_PREDICATE,
            sqlite_where=CONFIRMED_SLOT_PREDICATE,
        ),
    )

    student_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    tutor_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    subject_id: Mapped[int] = mapped_column(ForeignKey("subjects.id", ondelete="RESTRICT"), nullable=False, index=True)
    topic_id: Mapped[int | None] = mapped_column(ForeignKey("topics.id", ondelete="SET NULL"), nullable=True)

    meeting_date: Mapped[date] = mapped_column(Date, nullable=False)
    meeting_time: Mapped[time] = mapped_column(Time, nullable=False)
    status: Mapped[TutoringStatusEnum] = mapped_column(
        enum_type(TutoringStatusEnum, "tutoring_status_enum"),
        default=TutoringStatusEnum.UNCONFIRMED,
        nullable=False,
    )

    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    canceled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(String(512), nullable=True)

    reminder_1day_sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reminder_30min_sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    student: Mapped["User"] = relationship(back_populates="tutorings_as_student", foreign_keys=[student_id])
    tutor: Mapped["User"] = relationship(back_populates="tutorings_as_tutor", foreign_keys=[tutor_id])
    subject: Mapped["Subject"] = relationship()
    topic: Mapped["Topic | None"] = relationship()


REMINDER_MARKERS: dict[ReminderKindEnum, str] = {
    ReminderKindEnum.ONE_DAY: "reminder_1day_sent_at",
    ReminderKindEnum.THIRTY_MINUTES: "reminder_30min_sent_at",
}
