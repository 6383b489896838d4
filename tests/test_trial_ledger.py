from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, time
from uuid import UUID, uuid4

import pytest
from sqlalchemy.exc import SQLAlchemyError

import app.modules.trials.service as trials_service_module
from app.core.enums import CourseTypeEnum, DurationTypeEnum, RoleEnum, SessionAudienceEnum, SessionKindEnum
from app.core.security import AuthContext
from app.modules.calendar.service import CalendarService
from app.modules.trials.schemas import TrialRequest, TrialSlot
from app.modules.trials.service import TrialLedgerService
from app.shared.exceptions import NotFoundException, TrialRequiredError, UnauthorizedException


@dataclass
class FakeStudent:
    id: UUID
    full_name: str = "Ada"
    trial_course_ids: list[UUID] = field(default_factory=list)


@dataclass
class FakeBooking:
    student_id: UUID
    course_id: UUID
    teacher_id: UUID | None
    slot: dict | None
    id: UUID = field(default_factory=uuid4)
    booked_at: datetime = field(default_factory=lambda: datetime(2026, 10, 19, 9, 0))


@dataclass
class FakeCourse:
    id: UUID = field(default_factory=uuid4)
    title: str = "Violin Basics"
    course_type: CourseTypeEnum = CourseTypeEnum.SOLO
    duration_type: DurationTypeEnum = DurationTypeEnum.RECURRING
    class_type_id: UUID | None = None


class FakeTrialRepository:
    def __init__(self, students: list[FakeStudent], bookings: list[FakeBooking] | None = None) -> None:
        self.students = {student.id: student for student in students}
        self.bookings = list(bookings or [])
        self.fail_on_sync = False
        self.locked: list[UUID] = []

    @asynccontextmanager
    async def savepoint(self):
        yield

    async def get_student_by_id(self, student_id: UUID) -> FakeStudent | None:
        return self.students.get(student_id)

    async def get_student_for_update(self, student_id: UUID) -> FakeStudent | None:
        self.locked.append(student_id)
        return self.students.get(student_id)

    async def add_trial_course(self, student: FakeStudent, course_id: UUID) -> FakeStudent:
        if self.fail_on_sync:
            raise SQLAlchemyError("could not serialize access")
        student.trial_course_ids = [*student.trial_course_ids, course_id]
        return student

    async def find_trial_booking(self, student_id: UUID, course_id: UUID) -> FakeBooking | None:
        return next(
            (item for item in self.bookings if item.student_id == student_id and item.course_id == course_id),
            None,
        )

    async def create_trial_booking(
        self,
        student_id: UUID,
        course_id: UUID,
        teacher_id: UUID | None,
        slot: dict | None,
    ) -> FakeBooking:
        booking = FakeBooking(student_id, course_id, teacher_id, slot)
        self.bookings.append(booking)
        return booking


class FakeCatalog:
    def __init__(self, course: FakeCourse) -> None:
        self.course = course

    async def get_course(self, course_id: UUID) -> FakeCourse:
        if course_id != self.course.id:
            raise NotFoundException("Course not found")
        return self.course

    async def get_class_type(self, course: FakeCourse) -> None:
        return None


class FakeCalendarRepository:
    def __init__(self) -> None:
        self.rows: list = []
        self.fail_on_add = False

    @asynccontextmanager
    async def savepoint(self):
        snapshot = list(self.rows)
        try:
            yield
        except Exception:
            self.rows = snapshot
            raise

    async def add_sessions(self, sessions):
        if self.fail_on_add:
            raise SQLAlchemyError("calendar write failed")
        for item in sessions:
            item.id = item.id or uuid4()
        self.rows.extend(sessions)
        return list(sessions)

    async def delete_sessions_for(self, course_id, student_id, teacher_id, kind) -> int:
        kept = [
            row
            for row in self.rows
            if not (
                row.course_id == course_id
                and row.student_id == student_id
                and row.teacher_id == teacher_id
                and row.kind == kind
            )
        ]
        removed = len(self.rows) - len(kept)
        self.rows = kept
        return removed


def _build(
    students: list[FakeStudent],
    bookings: list[FakeBooking] | None = None,
    course: FakeCourse | None = None,
) -> tuple[TrialLedgerService, FakeTrialRepository, FakeCalendarRepository, FakeCourse]:
    course = course or FakeCourse()
    repository = FakeTrialRepository(students, bookings)
    calendar_repository = FakeCalendarRepository()
    service = TrialLedgerService(repository, FakeCatalog(course), CalendarService(calendar_repository))
    return service, repository, calendar_repository, course


def _admin() -> AuthContext:
    return AuthContext(user_id=uuid4(), role=RoleEnum.ADMIN)


@pytest.mark.asyncio
async def test_record_trial_is_idempotent() -> None:
    student = FakeStudent(id=uuid4())
    service, repository, _, course = _build([student])
    payload = TrialRequest(student_id=student.id, course_id=course.id)

    first = await service.record_trial(payload, _admin())
    second = await service.record_trial(payload, _admin())

    assert first.created is True
    assert second.created is False
    assert len(repository.bookings) == 1
    assert student.trial_course_ids == [course.id]
    assert repository.locked == [student.id, student.id]


@pytest.mark.asyncio
async def test_record_trial_for_unknown_student_raises() -> None:
    service, _, _, course = _build([])

    with pytest.raises(NotFoundException):
        await service.record_trial(TrialRequest(student_id=uuid4(), course_id=course.id), _admin())


@pytest.mark.asyncio
async def test_student_cannot_record_trial_for_someone_else() -> None:
    student = FakeStudent(id=uuid4())
    service, repository, _, course = _build([student])
    other = AuthContext(user_id=uuid4(), role=RoleEnum.STUDENT)

    with pytest.raises(UnauthorizedException):
        await service.record_trial(TrialRequest(student_id=student.id, course_id=course.id), other)
    assert repository.bookings == []


@pytest.mark.asyncio
async def test_booking_log_heals_trial_set() -> None:
    student = FakeStudent(id=uuid4())
    course = FakeCourse()
    booking = FakeBooking(student.id, course.id, None, None)
    service, _, _, _ = _build([student], [booking], course)

    assert await service.has_completed_trial(student.id, course.id) is True
    assert student.trial_course_ids == [course.id]


@pytest.mark.asyncio
async def test_failed_sync_still_reports_trial() -> None:
    student = FakeStudent(id=uuid4())
    course = FakeCourse()
    service, repository, _, _ = _build([student], [FakeBooking(student.id, course.id, None, None)], course)
    repository.fail_on_sync = True

    assert await service.has_completed_trial(student.id, course.id) is True
    assert student.trial_course_ids == []


@pytest.mark.asyncio
async def test_booking_for_missing_student_skips_sync() -> None:
    student_id = uuid4()
    course = FakeCourse()
    service, repository, _, _ = _build([], [FakeBooking(student_id, course.id, None, None)], course)

    assert await service.has_completed_trial(student_id, course.id) is True
    assert repository.locked == []


@pytest.mark.asyncio
async def test_trial_gate_rejects_without_trial() -> None:
    student = FakeStudent(id=uuid4())
    service, _, _, course = _build([student])

    assert await service.has_completed_trial(student.id, course.id) is False
    with pytest.raises(TrialRequiredError) as exc:
        await service.ensure_trial_completed(student.id, course.id, "enrollment")
    assert exc.value.code == "trial_required"


@pytest.mark.asyncio
async def test_trial_with_slot_books_session_pair(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(trials_service_module, "local_now", lambda _: datetime(2026, 10, 19, 12, 0))
    student = FakeStudent(id=uuid4())
    teacher_id = uuid4()
    service, _, calendar_repository, course = _build([student])

    result = await service.record_trial(
        TrialRequest(
            student_id=student.id,
            course_id=course.id,
            teacher_id=teacher_id,
            slot=TrialSlot(day_of_week=3, start_time=time(16, 0), end_time=time(17, 0)),
        ),
        _admin(),
    )

    assert result.warnings == []
    assert len(result.sessions) == 2
    assert {row.audience for row in calendar_repository.rows} == {
        SessionAudienceEnum.TEACHER,
        SessionAudienceEnum.STUDENT,
    }
    assert {row.kind for row in calendar_repository.rows} == {SessionKindEnum.TRIAL}
    assert {row.start_at for row in calendar_repository.rows} == {datetime(2026, 10, 21, 16, 0)}
    assert {row.title for row in calendar_repository.rows} == {"Trial Class - Violin Basics"}
    assert result.booking is not None
    assert result.booking.slot["start_time"] == "16:00:00"


@pytest.mark.asyncio
async def test_trial_session_failure_is_a_warning(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(trials_service_module, "local_now", lambda _: datetime(2026, 10, 19, 12, 0))
    student = FakeStudent(id=uuid4())
    service, repository, calendar_repository, course = _build([student])
    calendar_repository.fail_on_add = True

    result = await service.record_trial(
        TrialRequest(
            student_id=student.id,
            course_id=course.id,
            slot=TrialSlot(day_of_week=3, start_time=time(16, 0), end_time=time(17, 0)),
        ),
        _admin(),
    )

    assert result.created is True
    assert [warning.code for warning in result.warnings] == ["trial_session_not_scheduled"]
    assert student.trial_course_ids == [course.id]
    assert len(repository.bookings) == 1
    assert calendar_repository.rows == []
