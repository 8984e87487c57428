"""Catalog ORM models."""

from __future__ import annotations

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tutordesk.core.database import Base, TimestampMixin


class Subject(TimestampMixin, Base):
    """Subject a tutoring session is about."""

    __tablename__ = "subjects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)

    topics: Mapped[list["Topic"]] = relationship(
        back_populates="subject",
        order_by="Topic.name",
        cascade="all, delete-orphan",
    )


class Topic(TimestampMixin, Base):
    """Optional narrower topic within a subject."""

    __tablename__ = "topics"
    __table_args__ = (UniqueConstraint("subject_id", "name", name="uq_topics_subject_id_name"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    subject_id: Mapped[int] = mapped_column(
        ForeignKey("subjects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(128), nullable=False)

    subject: Mapped[Subject] = relationship(back_populates="topics")
