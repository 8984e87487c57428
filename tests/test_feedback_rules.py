from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import SimpleNamespace
from uuid import UUID, uuid4

import pytest
from pydantic import ValidationError

from tutordesk.core.enums import RoleEnum, TutoringStatusEnum
from tutordesk.modules.feedback.schemas import FeedbackCreate
from tutordesk.modules.feedback.service import FeedbackService
from tutordesk.shared.exceptions import (
    ConflictException,
    InvalidStateException,
    NotFoundException,
    UnauthorizedException,
)


@dataclass
class FakeFeedback:
    id: UUID
    tutoring_id: UUID
    student_id: UUID
    tutor_id: UUID
    rating: int
    comment: str
    is_tutor_observation: bool
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class FakeFeedbackRepository:
    def __init__(self) -> None:
        self.items: list[FakeFeedback] = []

    async def exists_for_tutoring(self, tutoring_id: UUID, is_tutor_observation: bool) -> bool:
        return any(
            item.tutoring_id == tutoring_id and item.is_tutor_observation == is_tutor_observation
            for item in self.items
        )

    async def create_feedback(self, **values) -> FakeFeedback:
        feedback = FakeFeedback(id=uuid4(), **values)
        self.items.append(feedback)
        return feedback

    async def list_about_tutor(self, tutor_id: UUID) -> list[FakeFeedback]:
        return [item for item in self.items if item.tutor_id == tutor_id and not item.is_tutor_observation]

    async def list_about_student(self, student_id: UUID) -> list[FakeFeedback]:
        return [item for item in self.items if item.student_id == student_id and item.is_tutor_observation]


class FakeTutoringRepository:
    def __init__(self, tutorings: list[SimpleNamespace]) -> None:
        self._tutorings = {tutoring.id: tutoring for tutoring in tutorings}

    async def get_tutoring_by_id(self, tutoring_id: UUID) -> SimpleNamespace | None:
        return self._tutorings.get(tutoring_id)


def make_users() -> tuple[SimpleNamespace, SimpleNamespace]:
    student = SimpleNamespace(id=uuid4(), role=RoleEnum.STUDENT)
    tutor = SimpleNamespace(id=uuid4(), role=RoleEnum.TUTOR)
    return student, tutor


def make_tutoring(student, tutor, status=TutoringStatusEnum.COMPLETED) -> SimpleNamespace:
    return SimpleNamespace(id=uuid4(), student_id=student.id, tutor_id=tutor.id, status=status)


def make_service(*tutorings) -> tuple[FeedbackService, FakeFeedbackRepository]:
    repository = FakeFeedbackRepository()
    return FeedbackService(repository, FakeTutoringRepository(list(tutorings))), repository


@pytest.mark.asyncio
async def test_student_and_tutor_each_rate_once() -> None:
    student, tutor = make_users()
    tutoring = make_tutoring(student, tutor)
    service, repository = make_service(tutoring)

    student_feedback = await service.add_feedback(tutoring.id, FeedbackCreate(rating=5, comment="Great"), student)
    tutor_feedback = await service.add_feedback(tutoring.id, FeedbackCreate(rating=4, comment="Focused"), tutor)

    assert student_feedback.is_tutor_observation is False
    assert tutor_feedback.is_tutor_observation is True
    assert len(repository.items) == 2

    with pytest.raises(ConflictException):
        await service.add_feedback(tutoring.id, FeedbackCreate(rating=1, comment="Again"), student)
    with pytest.raises(ConflictException):
        await service.add_feedback(tutoring.id, FeedbackCreate(rating=1, comment="Again"), tutor)


@pytest.mark.asyncio
async def test_only_completed_tutorings_can_be_rated() -> None:
    student, tutor = make_users()
    tutoring = make_tutoring(student, tutor, status=TutoringStatusEnum.CONFIRMED)
    service, _ = make_service(tutoring)

    with pytest.raises(InvalidStateException):
        await service.add_feedback(tutoring.id, FeedbackCreate(rating=5, comment="Early"), student)


@pytest.mark.asyncio
async def test_only_participants_can_rate() -> None:
    student, tutor = make_users()
    outsider_student, outsider_tutor = make_users()
    admin = SimpleNamespace(id=uuid4(), role=RoleEnum.ADMIN)
    tutoring = make_tutoring(student, tutor)
    service, _ = make_service(tutoring)

    for actor in (outsider_student, outsider_tutor, admin):
        with pytest.raises(UnauthorizedException):
            await service.add_feedback(tutoring.id, FeedbackCreate(rating=3, comment="Hmm"), actor)
    with pytest.raises(NotFoundException):
        await service.add_feedback(uuid4(), FeedbackCreate(rating=3, comment="Hmm"), student)


@pytest.mark.parametrize(("rating", "comment"), [(0, "ok"), (6, "ok"), (3, "   ")])
def test_rating_range_and_comment_are_validated(rating: int, comment: str) -> None:
    with pytest.raises(ValidationError):
        FeedbackCreate(rating=rating, comment=comment)


@pytest.mark.asyncio
async def test_received_feedback_average_per_side() -> None:
    student, tutor = make_users()
    first = make_tutoring(student, tutor)
    second = make_tutoring(student, tutor)
    service, _ = make_service(first, second)

    await service.add_feedback(first.id, FeedbackCreate(rating=5, comment="Clear"), student)
    await service.add_feedback(second.id, FeedbackCreate(rating=4, comment="Good"), student)
    await service.add_feedback(first.id, FeedbackCreate(rating=2, comment="Late"), tutor)

    tutor_summary = await service.list_received(tutor)
    student_summary = await service.list_received(student)

    assert tutor_summary.count == 2
    assert tutor_summary.average_rating == 4.5
    assert student_summary.count == 1
    assert student_summary.average_rating == 2.0


@pytest.mark.asyncio
async def test_received_feedback_is_empty_without_ratings() -> None:
    student, _ = make_users()
    service, _ = make_service()

    summary = await service.list_received(student)

    assert summary.count == 0
    assert summary.average_rating is None
    assert summary.items == []
