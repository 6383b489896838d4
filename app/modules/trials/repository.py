"""Trial ledger repository layer."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, AsyncSessionTransaction

from app.modules.trials.models import Student, TrialBooking


class TrialRepository:
    """DB access for students' trial set and the trial booking log."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def savepoint(self) -> AsyncSessionTransaction:
        return self.session.begin_nested()

    async def get_student_by_id(self, student_id: UUID) -> Student | None:
        stmt = select(Student).where(Student.id == student_id)
        return await self.session.scalar(stmt)

    async def get_student_for_update(self, student_id: UUID) -> Student | None:
        """Read student row holding a row lock until the transaction ends."""
        stmt = (
            select(Student)
            .where(Student.id == student_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return await self.session.scalar(stmt)

    async def add_trial_course(self, student: Student, course_id: UUID) -> Student:
        # Assign a new list so the ARRAY column is flagged dirty.
        student.trial_course_ids = [*student.trial_course_ids, course_id]
        await self.session.flush()
        return student

    async def find_trial_booking(self, student_id: UUID, course_id: UUID) -> TrialBooking | None:
        stmt = (
            select(TrialBooking)
            .where(
                TrialBooking.student_id == student_id,
                TrialBooking.course_id == course_id,
            )
            .order_by(TrialBooking.booked_at.asc())
            .limit(1)
        )
        return await self.session.scalar(stmt)

    async def create_trial_booking(
        self,
        student_id: UUID,
        course_id: UUID,
        teacher_id: UUID | None,
        slot: dict | None,
    ) -> TrialBooking:
        booking = TrialBooking(
            student_id=student_id,
            course_id=course_id,
            teacher_id=teacher_id,
            slot=slot,
        )
        self.session.add(booking)
        await self.session.flush()
        return booking
