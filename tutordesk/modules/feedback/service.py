"""Session feedback business logic layer."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tutordesk.core.database import get_db_session
from tutordesk.core.enums import RoleEnum, TutoringStatusEnum
from tutordesk.modules.feedback.models import SessionFeedback
from tutordesk.modules.feedback.repository import FeedbackRepository
from tutordesk.modules.feedback.schemas import FeedbackCreate, FeedbackRead, FeedbackSummaryRead
from tutordesk.modules.identity.models import User
from tutordesk.modules.tutoring.repository import TutoringRepository
from tutordesk.shared.exceptions import (
    ConflictException,
    InvalidStateException,
    NotFoundException,
    UnauthorizedException,
)


class FeedbackService:
    """Ratings exchanged after completed tutorings."""

    def __init__(self, feedback_repository: FeedbackRepository, tutoring_repository: TutoringRepository) -> None:
        self.feedback_repository = feedback_repository
        self.tutoring_repository = tutoring_repository

    async def add_feedback(self, tutoring_id: UUID, payload: FeedbackCreate, actor: User) -> SessionFeedback:
        """Student rates the tutor, or tutor leaves an observation on the student."""
        tutoring = await self.tutoring_repository.get_tutoring_by_id(tutoring_id)
        if tutoring is None:
            raise NotFoundException("Tutoring session not found.")

        if actor.role == RoleEnum.STUDENT:
            if tutoring.student_id != actor.id:
                raise UnauthorizedException("The tutoring does not belong to this student.")
            is_tutor_observation = False
            already_rated = "This tutoring session has already been evaluated."
        elif actor.role == RoleEnum.TUTOR:
            if tutoring.tutor_id != actor.id:
                raise UnauthorizedException("This tutoring session does not belong to this tutor.")
            is_tutor_observation = True
            already_rated = "You have already evaluated this student."
        else:
            raise UnauthorizedException("Only participants can evaluate a tutoring.")

        if tutoring.status != TutoringStatusEnum.COMPLETED:
            raise InvalidStateException("Only completed tutorings can be evaluated.")
        if await self.feedback_repository.exists_for_tutoring(tutoring.id, is_tutor_observation):
            raise ConflictException(already_rated)

        feedback = await self.feedback_repository.create_feedback(
            tutoring_id=tutoring.id,
            student_id=tutoring.student_id,
            tutor_id=tutoring.tutor_id,
            rating=payload.rating,
            comment=payload.comment,
            is_tutor_observation=is_tutor_observation,
        )
        if feedback is None:
            raise ConflictException(already_rated)
        return feedback

    async def list_received(self, actor: User) -> FeedbackSummaryRead:
        """Feedback about the actor: student ratings for tutors, observations for students."""
        if actor.role == RoleEnum.TUTOR:
            items = await self.feedback_repository.list_about_tutor(actor.id)
        else:
            items = await self.feedback_repository.list_about_student(actor.id)

        average = round(sum(item.rating for item in items) / len(items), 2) if items else None
        return FeedbackSummaryRead(
            average_rating=average,
            count=len(items),
            items=[FeedbackRead.model_validate(item) for item in items],
        )


async def get_feedback_service(session: AsyncSession = Depends(get_db_session)) -> FeedbackService:
    """Dependency provider for feedback service."""
    return FeedbackService(FeedbackRepository(session), TutoringRepository(session))
