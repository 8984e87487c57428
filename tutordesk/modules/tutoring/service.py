"""Tutoring lifecycle: request intake, tutor decisions, cancellation, completion, rescheduling."""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tutordesk.core.database import get_db_session
from tutordesk.core.enums import NotificationTypeEnum, RoleEnum, TutoringStatusEnum
from tutordesk.core.metrics import TUTORING_ACTIONS_TOTAL
from tutordesk.modules.catalog.repository import CatalogRepository
from tutordesk.modules.catalog.service import CatalogService
from tutordesk.modules.identity.models import User
from tutordesk.modules.identity.repository import IdentityRepository
from tutordesk.modules.notifications.repository import NotificationsRepository
from tutordesk.modules.notifications.service import NotificationsService
from tutordesk.modules.tutoring.conflicts import Slot
from tutordesk.modules.tutoring.models import Tutoring
from tutordesk.modules.tutoring.repository import TutoringRepository
from tutordesk.modules.tutoring.schemas import (
    TutoringAdminFilters,
    TutoringHistoryFilters,
    TutoringRequestCreate,
    TutoringUpdate,
)
from tutordesk.shared.exceptions import (
    AppException,
    BusinessRuleException,
    ConflictException,
    InvalidStateException,
    NotFoundException,
    UnauthorizedException,
)
from tutordesk.shared.results import ActionResult
from tutordesk.shared.utils import platform_now, session_start, utc_now

logger = logging.getLogger(__name__)

_OPEN_STATUSES = (TutoringStatusEnum.UNCONFIRMED, TutoringStatusEnum.CONFIRMED)


def _when(tutoring: Tutoring) -> str:
    return f"{tutoring.meeting_date.isoformat()} at {tutoring.meeting_time.strftime('%H:%M')}"


class TutoringService:
    """Booking state machine.

    Every state-changing operation returns an :class:`ActionResult`; rule
    violations are raised internally and folded into a failed result here.
    """

    def __init__(
        self,
        tutoring_repository: TutoringRepository,
        identity_repository: IdentityRepository,
        catalog_service: CatalogService,
        notifications_service: NotificationsService,
    ) -> None:
        self.tutoring_repository = tutoring_repository
        self.identity_repository = identity_repository
        self.catalog_service = catalog_service
        self.notifications_service = notifications_service

    async def _execute(self, action: str, operation: Awaitable[ActionResult]) -> ActionResult:
        try:
            result = await operation
        except AppException as exc:
            TUTORING_ACTIONS_TOTAL.labels(action=action, outcome=exc.code).inc()
            logger.info("Tutoring %s refused (%s): %s", action, exc.code, exc.message)
            return ActionResult.failed(exc)

        TUTORING_ACTIONS_TOTAL.labels(action=action, outcome="success").inc()
        return result

    async def _get_tutoring(self, tutoring_id: UUID) -> Tutoring:
        tutoring = await self.tutoring_repository.get_tutoring_with_relations(tutoring_id)
        if tutoring is None:
            raise NotFoundException("Tutoring not found.")
        return tutoring

    async def _get_for_tutor(self, tutor_id: UUID, tutoring_id: UUID) -> Tutoring:
        tutoring = await self._get_tutoring(tutoring_id)
        if tutoring.tutor_id != tutor_id:
            raise UnauthorizedException("Only the assigned tutor can manage this tutoring.")
        return tutoring

    async def _get_for_student(self, student_id: UUID, tutoring_id: UUID) -> Tutoring:
        tutoring = await self._get_tutoring(tutoring_id)
        if tutoring.student_id != student_id:
            raise UnauthorizedException("Only the requesting student can manage this tutoring.")
        return tutoring

    async def _resolve_tutor(self, reference: str) -> User | None:
        value = reference.strip()
        try:
            user_id = UUID(value)
        except ValueError:
            return await self.identity_repository.get_user_by_username(value)
        return await self.identity_repository.get_user_by_id(user_id)

    async def create_request(self, student_id: UUID, payload: TutoringRequestCreate) -> ActionResult:
        """Student asks a tutor for a session; it starts unconfirmed."""
        return await self._execute("create", self._create_request(student_id, payload))

    async def _create_request(self, student_id: UUID, payload: TutoringRequestCreate) -> ActionResult:
        if payload.meeting_date < platform_now().date():
            raise BusinessRuleException("Cannot create tutoring for past dates.")

        student = await self.identity_repository.get_user_by_id(student_id)
        if student is None:
            raise BusinessRuleException("Student not found.")

        tutor = await self._resolve_tutor(payload.tutor)
        if tutor is None:
            raise BusinessRuleException(f"Tutor not found: {payload.tutor}")
        if tutor.role != RoleEnum.TUTOR:
            raise BusinessRuleException(f"{tutor.username} is not a tutor.")
        if tutor.id == student.id:
            raise BusinessRuleException("Cannot request a tutoring with yourself.")

        subject = await self.catalog_service.resolve_subject(payload.subject)
        if subject is None:
            raise BusinessRuleException(f"Subject not found: {payload.subject}")

        topic = None
        if payload.topic is not None:
            topic = await self.catalog_service.resolve_topic(subject, payload.topic)
            if topic is None:
                raise BusinessRuleException(f"Topic not found: {payload.topic}")

        slot = Slot(tutor.id, payload.meeting_date, payload.meeting_time)
        if await self.tutoring_repository.has_confirmed_conflict(slot):
            raise ConflictException("Tutor already has a confirmed session at that time.")

        tutoring = await self.tutoring_repository.create_tutoring(
            student_id=student.id,
            tutor_id=tutor.id,
            subject_id=subject.id,
            topic_id=topic.id if topic is not None else None,
            meeting_date=payload.meeting_date,
            meeting_time=payload.meeting_time,
        )
        await self.notifications_service.notify(
            tutor.id,
            f"New tutoring request from {student.username} for {subject.name} on {_when(tutoring)}",
            NotificationTypeEnum.TUTORING_REQUEST,
        )
        return ActionResult.ok("Tutoring requested successfully.", tutoring)

    async def accept(self, tutor_id: UUID, tutoring_id: UUID) -> ActionResult:
        """Tutor confirms a pending request; the first accept on a slot wins."""
        return await self._execute("accept", self._accept(tutor_id, tutoring_id))

    async def _accept(self, tutor_id: UUID, tutoring_id: UUID) -> ActionResult:
        tutoring = await self._get_for_tutor(tutor_id, tutoring_id)
        if tutoring.status != TutoringStatusEnum.UNCONFIRMED:
            raise InvalidStateException("This tutoring is not pending.")

        if await self.tutoring_repository.has_confirmed_conflict(Slot.of(tutoring), exclude_id=tutoring.id):
            raise ConflictException("Schedule conflict detected.")
        if not await self.tutoring_repository.confirm_if_slot_free(tutoring, utc_now()):
            raise ConflictException("Schedule conflict detected.")

        await self.notifications_service.notify(
            tutoring.student_id,
            f"{tutoring.tutor.username} confirmed your {tutoring.subject.name} tutoring on {_when(tutoring)}",
            NotificationTypeEnum.TUTORING_CONFIRMED,
        )
        return ActionResult.ok("Tutoring accepted.", tutoring)

    async def reject(self, tutor_id: UUID, tutoring_id: UUID) -> ActionResult:
        """Tutor declines a pending request."""
        return await self._execute("reject", self._reject(tutor_id, tutoring_id))

    async def _reject(self, tutor_id: UUID, tutoring_id: UUID) -> ActionResult:
        tutoring = await self._get_for_tutor(tutor_id, tutoring_id)
        if tutoring.status != TutoringStatusEnum.UNCONFIRMED:
            raise InvalidStateException("This tutoring is not pending.")

        rejected = await self.tutoring_repository.update_status(
            tutoring,
            [TutoringStatusEnum.UNCONFIRMED],
            TutoringStatusEnum.CANCELED,
            canceled_at=utc_now(),
        )
        if not rejected:
            raise InvalidStateException("This tutoring is not pending.")

        await self.notifications_service.notify(
            tutoring.student_id,
            f"{tutoring.tutor.username} rejected your {tutoring.subject.name} tutoring on {_when(tutoring)}",
            NotificationTypeEnum.TUTORING_REJECTED,
        )
        return ActionResult.ok("Tutoring rejected.", tutoring)

    async def cancel(self, student_id: UUID, tutoring_id: UUID, reason: str | None = None) -> ActionResult:
        """Student withdraws a pending or confirmed session."""
        return await self._execute("cancel", self._cancel(student_id, tutoring_id, reason))

    async def _cancel(self, student_id: UUID, tutoring_id: UUID, reason: str | None) -> ActionResult:
        tutoring = await self._get_for_student(student_id, tutoring_id)
        if tutoring.status == TutoringStatusEnum.CANCELED:
            raise InvalidStateException("Tutoring is already canceled.")
        if tutoring.status == TutoringStatusEnum.COMPLETED:
            raise InvalidStateException("Cannot cancel a completed tutoring.")

        message = (
            f"{tutoring.student.username} canceled the {tutoring.subject.name} tutoring on {_when(tutoring)}"
        )
        if reason:
            message = f"{message}. Reason: {reason}"

        canceled = await self.tutoring_repository.update_status(
            tutoring,
            _OPEN_STATUSES,
            TutoringStatusEnum.CANCELED,
            canceled_at=utc_now(),
            cancellation_reason=reason,
        )
        if not canceled:
            raise InvalidStateException("Tutoring can no longer be canceled.")

        await self.notifications_service.notify(
            tutoring.tutor_id,
            message,
            NotificationTypeEnum.TUTORING_CANCELED,
        )
        return ActionResult.ok("Tutoring canceled.", tutoring)

    async def complete(self, actor_id: UUID, tutoring_id: UUID) -> ActionResult:
        """Mark a confirmed session completed on behalf of whichever participant asks."""
        return await self._execute("complete", self._complete_by_participant(actor_id, tutoring_id))

    async def complete_as_student(self, student_id: UUID, tutoring_id: UUID) -> ActionResult:
        """Student completion; only once the scheduled time has passed."""
        return await self._execute("complete", self._complete_as_student(student_id, tutoring_id))

    async def complete_as_tutor(self, tutor_id: UUID, tutoring_id: UUID) -> ActionResult:
        """Tutor completion; allowed at any time while confirmed."""
        return await self._execute("complete", self._complete_as_tutor(tutor_id, tutoring_id))

    async def _complete_by_participant(self, actor_id: UUID, tutoring_id: UUID) -> ActionResult:
        tutoring = await self._get_tutoring(tutoring_id)
        if tutoring.student_id == actor_id:
            return await self._complete(tutoring, by_student=True)
        if tutoring.tutor_id == actor_id:
            return await self._complete(tutoring, by_student=False)
        raise UnauthorizedException("Only participants can complete this tutoring.")

    async def _complete_as_student(self, student_id: UUID, tutoring_id: UUID) -> ActionResult:
        tutoring = await self._get_for_student(student_id, tutoring_id)
        return await self._complete(tutoring, by_student=True)

    async def _complete_as_tutor(self, tutor_id: UUID, tutoring_id: UUID) -> ActionResult:
        tutoring = await self._get_for_tutor(tutor_id, tutoring_id)
        return await self._complete(tutoring, by_student=False)

    async def _complete(self, tutoring: Tutoring, *, by_student: bool) -> ActionResult:
        if tutoring.status != TutoringStatusEnum.CONFIRMED:
            raise InvalidStateException("Can only complete confirmed tutorings.")
        if by_student and session_start(tutoring.meeting_date, tutoring.meeting_time) > platform_now():
            raise InvalidStateException("Cannot mark as completed before the session time.")

        completed = await self.tutoring_repository.update_status(
            tutoring,
            [TutoringStatusEnum.CONFIRMED],
            TutoringStatusEnum.COMPLETED,
            completed_at=utc_now(),
        )
        if not completed:
            raise InvalidStateException("Can only complete confirmed tutorings.")

        if by_student:
            recipient_id, actor_name = tutoring.tutor_id, tutoring.student.username
        else:
            recipient_id, actor_name = tutoring.student_id, tutoring.tutor.username
        await self.notifications_service.notify(
            recipient_id,
            f"{actor_name} marked the {tutoring.subject.name} tutoring on {_when(tutoring)} as completed",
            NotificationTypeEnum.TUTORING_COMPLETED,
        )
        return ActionResult.ok("Tutoring completed.", tutoring)

    async def update(self, student_id: UUID, tutoring_id: UUID, payload: TutoringUpdate) -> ActionResult:
        """Student changes date, time or topic of an open session."""
        return await self._execute("update", self._update(student_id, tutoring_id, payload))

    async def _update(self, student_id: UUID, tutoring_id: UUID, payload: TutoringUpdate) -> ActionResult:
        tutoring = await self._get_for_student(student_id, tutoring_id)
        if tutoring.status == TutoringStatusEnum.COMPLETED:
            raise InvalidStateException("Cannot update a completed tutoring.")
        if tutoring.status == TutoringStatusEnum.CANCELED:
            raise InvalidStateException("Cannot update a canceled tutoring.")

        now = platform_now()
        if session_start(tutoring.meeting_date, tutoring.meeting_time) <= now:
            raise InvalidStateException("Cannot update a tutoring that has already passed.")

        meeting_date = payload.meeting_date if payload.meeting_date is not None else tutoring.meeting_date
        meeting_time = payload.meeting_time if payload.meeting_time is not None else tutoring.meeting_time
        if meeting_date < now.date():
            raise BusinessRuleException("Cannot schedule tutoring for past dates.")

        topic_id = tutoring.topic_id
        if payload.topic is not None:
            topic = await self.catalog_service.resolve_topic(tutoring.subject, payload.topic)
            if topic is None:
                raise BusinessRuleException(f"Topic not found: {payload.topic}")
            topic_id = topic.id

        new_slot = Slot(tutoring.tutor_id, meeting_date, meeting_time)
        if await self.tutoring_repository.has_confirmed_conflict(new_slot, exclude_id=tutoring.id):
            raise ConflictException("Tutor already has a session at the new time.")

        moved = new_slot != Slot.of(tutoring)
        updated = await self.tutoring_repository.update_schedule(
            tutoring,
            _OPEN_STATUSES,
            meeting_date=meeting_date,
            meeting_time=meeting_time,
            topic_id=topic_id,
            reset_confirmation=moved,
        )
        if not updated:
            raise ConflictException("Tutoring changed concurrently, please retry.")

        await self.notifications_service.notify(
            tutoring.tutor_id,
            f"{tutoring.student.username} updated the {tutoring.subject.name} tutoring, now on {_when(tutoring)}",
            NotificationTypeEnum.TUTORING_UPDATED,
        )
        return ActionResult.ok("Tutoring updated.", tutoring)

    async def get_tutoring(self, tutoring_id: UUID, actor: User) -> Tutoring:
        tutoring = await self._get_tutoring(tutoring_id)
        if actor.role == RoleEnum.ADMIN or actor.id in (tutoring.student_id, tutoring.tutor_id):
            return tutoring
        raise UnauthorizedException("You cannot view this tutoring.")

    async def list_upcoming_for_student(self, actor: User) -> list[Tutoring]:
        """Open and completed sessions dated today or later."""
        return await self.tutoring_repository.list_upcoming_by_student(actor.id, platform_now().date())

    async def list_history_for_student(self, actor: User, filters: TutoringHistoryFilters) -> list[Tutoring]:
        """Finished sessions dated before today, newest first."""
        return await self.tutoring_repository.list_history_by_student(
            actor.id,
            platform_now().date(),
            status=filters.status,
            subject_name=filters.subject,
            limit=filters.limit,
        )

    async def list_pending_for_tutor(self, actor: User) -> list[Tutoring]:
        return await self.tutoring_repository.list_pending_by_tutor(actor.id)

    async def list_upcoming_for_tutor(self, actor: User) -> list[Tutoring]:
        return await self.tutoring_repository.list_upcoming_confirmed_by_tutor(actor.id, platform_now().date())

    async def list_tutorings(
        self,
        actor: User,
        filters: TutoringAdminFilters,
        limit: int,
        offset: int,
    ) -> tuple[list[Tutoring], int]:
        if actor.role != RoleEnum.ADMIN:
            raise UnauthorizedException("Only admin can list all tutorings")
        return await self.tutoring_repository.list_tutorings(
            limit=limit,
            offset=offset,
            student_name=filters.student,
            tutor_name=filters.tutor,
            subject_name=filters.subject,
            status=filters.status,
        )


async def get_tutoring_service(session: AsyncSession = Depends(get_db_session)) -> TutoringService:
    """Dependency provider for tutoring service."""
    return TutoringService(
        tutoring_repository=TutoringRepository(session),
        identity_repository=IdentityRepository(session),
        catalog_service=CatalogService(CatalogRepository(session)),
        notifications_service=NotificationsService(NotificationsRepository(session)),
    )
