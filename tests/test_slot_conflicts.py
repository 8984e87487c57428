from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from uuid import UUID, uuid4

from sqlalchemy.dialects import postgresql

from tutordesk.core.enums import TutoringStatusEnum
from tutordesk.modules.tutoring.conflicts import Slot, conflict_clause, has_conflict, occupies
from tutordesk.modules.tutoring.models import Tutoring

TUTOR_ID = uuid4()
DAY = date(2026, 11, 2)
FOUR_PM = time(16, 0)


@dataclass
class FakeTutoring:
    id: UUID
    tutor_id: UUID
    meeting_date: date
    meeting_time: time
    status: TutoringStatusEnum


def make_tutoring(
    status: TutoringStatusEnum = TutoringStatusEnum.CONFIRMED,
    *,
    tutor_id: UUID = TUTOR_ID,
    meeting_date: date = DAY,
    meeting_time: time = FOUR_PM,
) -> FakeTutoring:
    return FakeTutoring(uuid4(), tutor_id, meeting_date, meeting_time, status)


def test_confirmed_tutoring_at_exact_slot_conflicts() -> None:
    assert has_conflict([make_tutoring()], Slot(TUTOR_ID, DAY, FOUR_PM)) is True


def test_only_confirmed_status_occupies_a_slot() -> None:
    slot = Slot(TUTOR_ID, DAY, FOUR_PM)
    for status in (TutoringStatusEnum.UNCONFIRMED, TutoringStatusEnum.CANCELED, TutoringStatusEnum.COMPLETED):
        assert has_conflict([make_tutoring(status)], slot) is False


def test_any_difference_in_tutor_date_or_time_means_no_conflict() -> None:
    slot = Slot(TUTOR_ID, DAY, FOUR_PM)
    tutorings = [
        make_tutoring(tutor_id=uuid4()),
        make_tutoring(meeting_date=date(2026, 11, 3)),
        make_tutoring(meeting_time=time(16, 1)),
    ]

    assert has_conflict(tutorings, slot) is False


def test_exclusion_ignores_only_the_excluded_tutoring() -> None:
    own = make_tutoring()
    other = make_tutoring()
    slot = Slot.of(own)

    assert has_conflict([own], slot, exclude_id=own.id) is False
    assert has_conflict([own, other], slot, exclude_id=own.id) is True
    assert has_conflict([own, other], slot, exclude_id=other.id) is True


def test_excluded_row_does_not_occupy_even_when_confirmed() -> None:
    own = make_tutoring()

    assert occupies(own, Slot.of(own)) is True
    assert occupies(own, Slot.of(own), exclude_id=own.id) is False


def test_empty_collection_has_no_conflict() -> None:
    assert has_conflict([], Slot(TUTOR_ID, DAY, FOUR_PM)) is False


def test_conflict_clause_renders_exact_match_on_confirmed_rows() -> None:
    excluded = uuid4()
    clause = conflict_clause(Tutoring, Slot(TUTOR_ID, DAY, FOUR_PM), exclude_id=excluded)

    compiled = clause.compile(dialect=postgresql.dialect())
    sql = str(compiled)
    params = list(compiled.params.values())

    assert "tutorings.tutor_id = " in sql
    assert "tutorings.meeting_date = " in sql
    assert "tutorings.meeting_time = " in sql
    assert "tutorings.status = " in sql
    assert "tutorings.id != " in sql
    assert TutoringStatusEnum.CONFIRMED in params
    assert excluded in params
    assert FOUR_PM in params


def test_conflict_clause_without_exclusion_has_no_id_filter() -> None:
    clause = conflict_clause(Tutoring, Slot(TUTOR_ID, DAY, FOUR_PM))

    sql = str(clause.compile(dialect=postgresql.dialect()))

    assert "tutorings.id" not in sql
