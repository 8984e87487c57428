"""Slot conflict rules.

A slot is the exact (tutor, date, time) triple. Only ``confirmed`` sessions
occupy a slot; pending requests may pile up on the same one.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, time
from typing import Any, Protocol
from uuid import UUID

from sqlalchemy import ColumnElement, and_

from tutordesk.core.enums import TutoringStatusEnum


class SlotHolder(Protocol):
    id: UUID
    tutor_id: UUID
    meeting_date: date
    meeting_time: time
    status: TutoringStatusEnum


@dataclass(frozen=True, slots=True)
class Slot:
    tutor_id: UUID
    meeting_date: date
    meeting_time: time

    @classmethod
    def of(cls, tutoring: SlotHolder) -> "Slot":
        return cls(tutoring.tutor_id, tutoring.meeting_date, tutoring.meeting_time)


def occupies(tutoring: SlotHolder, slot: Slot, exclude_id: UUID | None = None) -> bool:
    """Return True if the session holds the slot."""
    if exclude_id is not None and tutoring.id == exclude_id:
        return False
    return (
        tutoring.status == TutoringStatusEnum.CONFIRMED
        and tutoring.tutor_id == slot.tutor_id
        and tutoring.meeting_date == slot.meeting_date
        and tutoring.meeting_time == slot.meeting_time
    )


def has_conflict(
    tutorings: Iterable[SlotHolder],
    slot: Slot,
    exclude_id: UUID | None = None,
) -> bool:
    """Return True if any confirmed session other than ``exclude_id`` holds the slot."""
    return any(occupies(tutoring, slot, exclude_id) for tutoring in tutorings)


def conflict_clause(model: Any, slot: Slot, exclude_id: UUID | None = None) -> ColumnElement[bool]:
    """SQL rendering of :func:`occupies` against a mapped class or alias."""
    criteria = [
        model.tutor_id == slot.tutor_id,
        model.meeting_date == slot.meeting_date,
        model.meeting_time == slot.meeting_time,
        model.status == TutoringStatusEnum.CONFIRMED,
    ]
    if exclude_id is not None:
        criteria.append(model.id != exclude_id)
    return and_(*criteria)
