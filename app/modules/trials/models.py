"""Trial ledger ORM models."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, BaseModelMixin
from app.shared.utils import utc_now


class Student(BaseModelMixin, Base):
    """Student profile holding the set of courses with a completed trial."""

    __tablename__ = "students"

    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    trial_course_ids: Mapped[list[UUID]] = mapped_column(
        ARRAY(PGUUID(as_uuid=True)),
        default=list,
        nullable=False,
    )


class TrialBooking(BaseModelMixin, Base):
    """Append-only log of booked trial classes."""

    __tablename__ = "trial_bookings"
    __table_args__ = (Index("ix_trial_bookings_student_course", "student_id", "course_id"),)

    student_id: Mapped[UUID] = mapped_column(
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
    )
    course_id: Mapped[UUID] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
    )
    teacher_id: Mapped[UUID | None] = mapped_column(PGUUID(as_uuid=True), nullable=True)
    booked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)
    slot: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
