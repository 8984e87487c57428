"""Tutoring repository layer."""

from __future__ import annotations

from collections.abc import Collection
from datetime import date, datetime, time
from typing import Any
from uuid import UUID

from sqlalchemy import Select, exists, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased, selectinload

from tutordesk.core.enums import ReminderKindEnum, TutoringStatusEnum
from tutordesk.modules.catalog.models import Subject
from tutordesk.modules.identity.models import User
from tutordesk.modules.tutoring.conflicts import Slot, conflict_clause
from tutordesk.modules.tutoring.models import REMINDER_MARKERS, Tutoring


def _with_relations(stmt: Select[tuple[Tutoring]]) -> Select[tuple[Tutoring]]:
    return stmt.options(
        selectinload(Tutoring.student),
        selectinload(Tutoring.tutor),
        selectinload(Tutoring.subject),
        selectinload(Tutoring.topic),
    )


class TutoringRepository:
    """DB operations for tutoring sessions."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_tutoring(
        self,
        student_id: UUID,
        tutor_id: UUID,
        subject_id: int,
        topic_id: int | None,
        meeting_date: date,
        meeting_time: time,
    ) -> Tutoring:
        tutoring = Tutoring(
            student_id=student_id,
            tutor_id=tutor_id,
            subject_id=subject_id,
            topic_id=topic_id,
            meeting_date=meeting_date,
            meeting_time=meeting_time,
            status=TutoringStatusEnum.UNCONFIRMED,
        )
        self.session.add(tutoring)
        await self.session.flush()
        await self.session.refresh(tutoring, attribute_names=["student", "tutor", "subject", "topic"])
        return tutoring

    async def get_tutoring_by_id(self, tutoring_id: UUID) -> Tutoring | None:
        stmt = select(Tutoring).where(Tutoring.id == tutoring_id)
        return await self.session.scalar(stmt)

    async def get_tutoring_with_relations(self, tutoring_id: UUID) -> Tutoring | None:
        stmt = _with_relations(select(Tutoring)).where(Tutoring.id == tutoring_id)
        return await self.session.scalar(stmt)

    async def has_confirmed_conflict(self, slot: Slot, exclude_id: UUID | None = None) -> bool:
        stmt = select(exists().where(conflict_clause(Tutoring, slot, exclude_id)))
        return bool(await self.session.scalar(stmt))

    async def confirm_if_slot_free(self, tutoring: Tutoring, confirmed_at: datetime) -> bool:
        """Move an unconfirmed session to confirmed only while its slot is free.

        The slot check and the status write are one statement; the partial
        unique index on confirmed slots rejects whichever concurrent writer
        commits second.
        """
        holder = aliased(Tutoring)
        slot_taken = exists().where(conflict_clause(holder, Slot.of(tutoring), exclude_id=tutoring.id))
        return await self._conditional_update(
            tutoring,
            [Tutoring.status == TutoringStatusEnum.UNCONFIRMED, ~slot_taken],
            status=TutoringStatusEnum.CONFIRMED,
            confirmed_at=confirmed_at,
        )

    async def update_status(
        self,
        tutoring: Tutoring,
        expected: Collection[TutoringStatusEnum],
        new_status: TutoringStatusEnum,
        **values: Any,
    ) -> bool:
        """Set a new status if the row is still in one of ``expected``."""
        return await self._conditional_update(
            tutoring,
            [Tutoring.status.in_(list(expected))],
            status=new_status,
            **values,
        )

    async def update_schedule(
        self,
        tutoring: Tutoring,
        expected: Collection[TutoringStatusEnum],
        meeting_date: date,
        meeting_time: time,
        topic_id: int | None,
        reset_confirmation: bool,
    ) -> bool:
        """Apply new date/time/topic; a moved session goes back to unconfirmed."""
        values: dict[str, Any] = {
            "meeting_date": meeting_date,
            "meeting_time": meeting_time,
            "topic_id": topic_id,
        }
        if reset_confirmation:
            values.update(
                status=TutoringStatusEnum.UNCONFIRMED,
                confirmed_at=None,
                reminder_1day_sent_at=None,
                reminder_30min_sent_at=None,
            )
        return await self._conditional_update(
            tutoring,
            [Tutoring.status.in_(list(expected))],
            **values,
        )

    async def mark_reminder_sent(
        self,
        tutoring: Tutoring,
        kind: ReminderKindEnum,
        sent_at: datetime,
    ) -> bool:
        """Claim a reminder for a confirmed session; False if already claimed."""
        marker = getattr(Tutoring, REMINDER_MARKERS[kind])
        return await self._conditional_update(
            tutoring,
            [Tutoring.status == TutoringStatusEnum.CONFIRMED, marker.is_(None)],
            **{REMINDER_MARKERS[kind]: sent_at},
        )

    async def release_reminder(self, tutoring: Tutoring, kind: ReminderKindEnum, sent_at: datetime) -> bool:
        """Undo a claim whose notification was not stored, so a later sweep retries it."""
        marker = getattr(Tutoring, REMINDER_MARKERS[kind])
        return await self._conditional_update(
            tutoring,
            [marker == sent_at],
            **{REMINDER_MARKERS[kind]: None},
        )

    async def list_upcoming_confirmed_by_tutor(self, tutor_id: UUID, today: date) -> list[Tutoring]:
        stmt = (
            _with_relations(select(Tutoring))
            .where(
                Tutoring.tutor_id == tutor_id,
                Tutoring.meeting_date >= today,
                Tutoring.status == TutoringStatusEnum.CONFIRMED,
            )
            .order_by(Tutoring.meeting_date.asc(), Tutoring.meeting_time.asc())
        )
        return list((await self.session.scalars(stmt)).all())

    async def list_tutor_ids_with_future_tutorings(self, today: date) -> list[UUID]:
        stmt = select(Tutoring.tutor_id).where(Tutoring.meeting_date >= today).distinct()
        return list((await self.session.scalars(stmt)).all())

    async def list_pending_by_tutor(self, tutor_id: UUID) -> list[Tutoring]:
        stmt = (
            _with_relations(select(Tutoring))
            .where(
                Tutoring.tutor_id == tutor_id,
                Tutoring.status == TutoringStatusEnum.UNCONFIRMED,
            )
            .order_by(Tutoring.meeting_date.asc(), Tutoring.meeting_time.asc())
        )
        return list((await self.session.scalars(stmt)).all())

    async def list_upcoming_by_student(self, student_id: UUID, today: date) -> list[Tutoring]:
        stmt = (
            _with_relations(select(Tutoring))
            .where(
                Tutoring.student_id == student_id,
                Tutoring.meeting_date >= today,
                Tutoring.status != TutoringStatusEnum.CANCELED,
            )
            .order_by(Tutoring.meeting_date.asc(), Tutoring.meeting_time.asc())
        )
        return list((await self.session.scalars(stmt)).all())

    async def list_history_by_student(
        self,
        student_id: UUID,
        today: date,
        status: TutoringStatusEnum | None = None,
        subject_name: str | None = None,
        limit: int | None = None,
    ) -> list[Tutoring]:
        finished = (TutoringStatusEnum.COMPLETED, TutoringStatusEnum.CANCELED)
        stmt = _with_relations(select(Tutoring)).where(
            Tutoring.student_id == student_id,
            Tutoring.meeting_date < today,
            Tutoring.status.in_(finished),
        )
        if status is not None:
            stmt = stmt.where(Tutoring.status == status)
        if subject_name:
            stmt = stmt.join(Subject, Subject.id == Tutoring.subject_id).where(
                func.lower(Subject.name) == subject_name.strip().lower(),
            )
        stmt = stmt.order_by(Tutoring.meeting_date.desc(), Tutoring.meeting_time.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        return list((await self.session.scalars(stmt)).all())

    async def list_tutorings(
        self,
        limit: int,
        offset: int,
        student_name: str | None = None,
        tutor_name: str | None = None,
        subject_name: str | None = None,
        status: TutoringStatusEnum | None = None,
    ) -> tuple[list[Tutoring], int]:
        student = aliased(User)
        tutor = aliased(User)
        base_stmt: Select[tuple[Tutoring]] = (
            select(Tutoring)
            .join(student, student.id == Tutoring.student_id)
            .join(tutor, tutor.id == Tutoring.tutor_id)
            .join(Subject, Subject.id == Tutoring.subject_id)
        )
        if student_name:
            base_stmt = base_stmt.where(student.username.ilike(f"%{student_name}%"))
        if tutor_name:
            base_stmt = base_stmt.where(tutor.username.ilike(f"%{tutor_name}%"))
        if subject_name:
            base_stmt = base_stmt.where(Subject.name.ilike(f"%{subject_name}%"))
        if status is not None:
            base_stmt = base_stmt.where(Tutoring.status == status)

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = (
            _with_relations(base_stmt)
            .order_by(Tutoring.meeting_date.desc(), Tutoring.meeting_time.desc())
            .limit(limit)
            .offset(offset)
        )
        items = list((await self.session.scalars(stmt)).all())
        return items, total

    async def _conditional_update(self, tutoring: Tutoring, criteria: list, **values: Any) -> bool:
        stmt = (
            update(Tutoring)
            .where(Tutoring.id == tutoring.id, *criteria)
            .values(**values)
            .execution_options(synchronize_session="fetch")
        )
        try:
            async with self.session.begin_nested():
                result = await self.session.execute(stmt)
        except IntegrityError:
            return False
        return result.rowcount == 1
