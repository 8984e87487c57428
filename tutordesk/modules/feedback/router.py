"""Session feedback API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status

from tutordesk.core.enums import RoleEnum
from tutordesk.modules.feedback.schemas import FeedbackCreate, FeedbackRead, FeedbackSummaryRead
from tutordesk.modules.feedback.service import FeedbackService, get_feedback_service
from tutordesk.modules.identity.service import require_roles

router = APIRouter(prefix="/feedback", tags=["feedback"])


@router.post("/tutorings/{tutoring_id}", response_model=FeedbackRead, status_code=status.HTTP_201_CREATED)
async def add_feedback(
    tutoring_id: UUID,
    payload: FeedbackCreate,
    service: FeedbackService = Depends(get_feedback_service),
    current_user=Depends(require_roles(RoleEnum.STUDENT, RoleEnum.TUTOR)),
) -> FeedbackRead:
    """Rate a completed tutoring."""
    feedback = await service.add_feedback(tutoring_id, payload, current_user)
    return FeedbackRead.model_validate(feedback)


@router.get("/my", response_model=FeedbackSummaryRead)
async def list_my_feedback(
    service: FeedbackService = Depends(get_feedback_service),
    current_user=Depends(require_roles(RoleEnum.STUDENT, RoleEnum.TUTOR)),
) -> FeedbackSummaryRead:
    """Feedback received by current user."""
    return await service.list_received(current_user)
