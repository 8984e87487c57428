"""Session feedback repository layer."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import exists, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tutordesk.modules.feedback.models import SessionFeedback


class FeedbackRepository:
    """DB operations for session feedback."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def exists_for_tutoring(self, tutoring_id: UUID, is_tutor_observation: bool) -> bool:
        stmt = select(
            exists().where(
                SessionFeedback.tutoring_id == tutoring_id,
                SessionFeedback.is_tutor_observation.is_(is_tutor_observation),
            )
        )
        return bool(await self.session.scalar(stmt))

    async def create_feedback(
        self,
        tutoring_id: UUID,
        student_id: UUID,
        tutor_id: UUID,
        rating: int,
        comment: str,
        is_tutor_observation: bool,
    ) -> SessionFeedback | None:
        """Insert feedback; None when the same side already rated this tutoring."""
        feedback = SessionFeedback(
            tutoring_id=tutoring_id,
            student_id=student_id,
            tutor_id=tutor_id,
            rating=rating,
            comment=comment,
            is_tutor_observation=is_tutor_observation,
        )
        try:
            async with self.session.begin_nested():
                self.session.add(feedback)
                await self.session.flush()
        except IntegrityError:
            return None
        return feedback

    async def list_about_tutor(self, tutor_id: UUID) -> list[SessionFeedback]:
        stmt = (
            select(SessionFeedback)
            .where(SessionFeedback.tutor_id == tutor_id, SessionFeedback.is_tutor_observation.is_(False))
            .order_by(SessionFeedback.created_at.desc())
        )
        return list((await self.session.scalars(stmt)).all())

    async def list_about_student(self, student_id: UUID) -> list[SessionFeedback]:
        stmt = (
            select(SessionFeedback)
            .where(SessionFeedback.student_id == student_id, SessionFeedback.is_tutor_observation.is_(True))
            .order_by(SessionFeedback.created_at.desc())
        )
        return list((await self.session.scalars(stmt)).all())
