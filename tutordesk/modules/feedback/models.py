"""Session feedback ORM models."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, SmallInteger, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from tutordesk.core.database import Base, BaseModelMixin


class SessionFeedback(BaseModelMixin, Base):
    """Rating left on a completed tutoring, by the student or as a tutor observation."""

    __tablename__ = "session_feedback"
    __table_args__ = (
        UniqueConstraint("tutoring_id", "is_tutor_observation"),
        CheckConstraint("rating BETWEEN 1 AND 5", name="rating_range"),
    )

    tutoring_id: Mapped[UUID] = mapped_column(ForeignKey("tutorings.id", ondelete="CASCADE"), nullable=False)
    student_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    tutor_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    rating: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    comment: Mapped[str] = mapped_column(Text, nullable=False)
    is_tutor_observation: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
