"""Identity ORM models."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tutordesk.core.database import Base, BaseModelMixin, enum_type
from tutordesk.core.enums import RoleEnum

if TYPE_CHECKING:
    from tutordesk.modules.notifications.models import Notification
    from tutordesk.modules.tutoring.models import Tutoring


class User(BaseModelMixin, Base):
    """Platform user model."""

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    role: Mapped[RoleEnum] = mapped_column(enum_type(RoleEnum, "role_enum"), nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    tutorings_as_student: Mapped[list["Tutoring"]] = relationship(
        back_populates="student",
        foreign_keys="Tutoring.student_id",
    )
    tutorings_as_tutor: Mapped[list["Tutoring"]] = relationship(
        back_populates="tutor",
        foreign_keys="Tutoring.tutor_id",
    )
    notifications: Mapped[list["Notification"]] = relationship(back_populates="user")
