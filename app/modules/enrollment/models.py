"""Enrollment ORM models."""

from __future__ import annotations

from datetime import datetime, time
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, SmallInteger, Time, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, BaseModelMixin
from app.core.enums import EnrollmentIntentStatusEnum


class Enrollment(BaseModelMixin, Base):
    """Student enrolled in a course, with the weekly slot they were placed in."""

    __tablename__ = "enrollments"
    __table_args__ = (UniqueConstraint("course_id", "student_id", name="uq_enrollments_course_student"),)

    course_id: Mapped[UUID] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_id: Mapped[UUID] = mapped_column(
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    teacher_id: Mapped[UUID | None] = mapped_column(PGUUID(as_uuid=True), nullable=True)
    # Consumed slots are deleted, so no foreign key here.
    source_slot_id: Mapped[UUID | None] = mapped_column(PGUUID(as_uuid=True), nullable=True)
    day_of_week: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)
    start_time: Mapped[time | None] = mapped_column(Time(timezone=False), nullable=True)
    end_time: Mapped[time | None] = mapped_column(Time(timezone=False), nullable=True)
    enrolled_by: Mapped[UUID | None] = mapped_column(PGUUID(as_uuid=True), nullable=True)


class EnrollmentIntent(BaseModelMixin, Base):
    """Suspended enrollment waiting for the student to pick a slot."""

    __tablename__ = "enrollment_intents"

    course_id: Mapped[UUID] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
    )
    student_id: Mapped[UUID] = mapped_column(
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    teacher_id: Mapped[UUID | None] = mapped_column(PGUUID(as_uuid=True), nullable=True)
    requested_by: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), nullable=False)
    status: Mapped[EnrollmentIntentStatusEnum] = mapped_column(
        SAEnum(EnrollmentIntentStatusEnum, name="enrollment_intent_status_enum", native_enum=False),
        default=EnrollmentIntentStatusEnum.PENDING,
        nullable=False,
        index=True,
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
