"""Projection of weekly slots into dated class sessions.

Everything here is pure: the caller supplies "now" so the same inputs always
produce the same sessions. Times are naive local wall-clock values.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Protocol
from uuid import UUID

from app.core.enums import DurationUnitEnum
from app.shared.utils import day_of_week

DEFAULT_SESSION_MINUTES = 60
MAX_SESSION_MINUTES = 366 * 24 * 60

UNIT_MINUTES: dict[DurationUnitEnum, int] = {
    DurationUnitEnum.MINUTES: 1,
    DurationUnitEnum.HOURS: 60,
    DurationUnitEnum.DAYS: 24 * 60,
    DurationUnitEnum.WEEKS: 7 * 24 * 60,
    DurationUnitEnum.MONTHS: 30 * 24 * 60,
}


class WeeklySlotLike(Protocol):
    day_of_week: int
    start_time: time
    slot_id: UUID | None


class ClassTypeLike(Protocol):
    duration_value: int | None
    duration_unit: str | None


class CourseLike(Protocol):
    id: UUID


@dataclass(frozen=True, slots=True)
class ProjectedSession:
    course_id: UUID
    student_id: UUID
    teacher_id: UUID | None
    start_at: datetime
    end_at: datetime
    session_number: int
    total_sessions: int
    source_slot_id: UUID | None = None

    @property
    def duration_minutes(self) -> int:
        return int((self.end_at - self.start_at).total_seconds() // 60)


def session_duration_minutes(
    class_type: ClassTypeLike | None,
    default_minutes: int = DEFAULT_SESSION_MINUTES,
) -> int:
    """Resolve one session's length; malformed class types get the default."""
    if class_type is None:
        return default_minutes

    value = class_type.duration_value
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        return default_minutes

    try:
        unit = DurationUnitEnum(str(class_type.duration_unit or "").strip().lower())
    except ValueError:
        return default_minutes
    minutes = value * UNIT_MINUTES[unit]
    if minutes > MAX_SESSION_MINUTES:
        return default_minutes
    return minutes


def first_occurrence(slot_day: int, start_time: time, now: datetime) -> date:
    """Next date on or after today falling on ``slot_day``.

    Today only counts while the slot start is still ahead of ``now``.
    """
    offset = (slot_day - day_of_week(now)) % 7
    if offset == 0 and start_time <= now.time():
        offset = 7
    return now.date() + timedelta(days=offset)


def project_sessions(
    slot: WeeklySlotLike,
    class_type: ClassTypeLike | None,
    session_count: int,
    course: CourseLike,
    *,
    now: datetime,
    student_id: UUID,
    teacher_id: UUID | None = None,
    default_minutes: int = DEFAULT_SESSION_MINUTES,
) -> list[ProjectedSession]:
    """Project ``session_count`` weekly occurrences of ``slot``."""
    if session_count <= 0:
        return []

    duration = timedelta(minutes=session_duration_minutes(class_type, default_minutes))
    first_date = first_occurrence(slot.day_of_week, slot.start_time, now)

    sessions = []
    for index in range(session_count):
        start_at = datetime.combine(first_date + timedelta(days=7 * index), slot.start_time)
        sessions.append(
            ProjectedSession(
                course_id=course.id,
                student_id=student_id,
                teacher_id=teacher_id,
                start_at=start_at,
                end_at=start_at + duration,
                session_number=index + 1,
                total_sessions=session_count,
                source_slot_id=slot.slot_id,
            ),
        )
    return sessions


def placeholder_session(
    class_type: ClassTypeLike | None,
    course: CourseLike,
    *,
    now: datetime,
    student_id: UUID,
    teacher_id: UUID | None = None,
    days_ahead: int = 7,
    start_time: time = time(14, 0),
    default_minutes: int = DEFAULT_SESSION_MINUTES,
) -> ProjectedSession:
    """Single synthetic session for enrollments that have no weekly slot."""
    start_at = datetime.combine(now.date() + timedelta(days=days_ahead), start_time)
    duration = timedelta(minutes=session_duration_minutes(class_type, default_minutes))
    return ProjectedSession(
        course_id=course.id,
        student_id=student_id,
        teacher_id=teacher_id,
        start_at=start_at,
        end_at=start_at + duration,
        session_number=1,
        total_sessions=1,
    )
