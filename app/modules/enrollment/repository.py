"""Enrollment repository layer."""

from __future__ import annotations

from datetime import datetime, time
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import acquire_advisory_xact_lock
from app.core.enums import EnrollmentIntentStatusEnum
from app.modules.enrollment.models import Enrollment, EnrollmentIntent


class EnrollmentRepository:
    """DB access for enrollments and pending enrollment intents."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def lock_pair(self, course_id: UUID, student_id: UUID) -> None:
        """Serialize enrollment work on one (course, student) pair until commit."""
        await acquire_advisory_xact_lock(self.session, "enrollment", course_id, student_id)

    async def get_enrollment(self, course_id: UUID, student_id: UUID) -> Enrollment | None:
        stmt = select(Enrollment).where(
            Enrollment.course_id == course_id,
            Enrollment.student_id == student_id,
        )
        return await self.session.scalar(stmt)

    async def count_for_course(self, course_id: UUID) -> int:
        stmt = select(func.count()).select_from(Enrollment).where(Enrollment.course_id == course_id)
        return int((await self.session.scalar(stmt)) or 0)

    async def create_enrollment(
        self,
        course_id: UUID,
        student_id: UUID,
        teacher_id: UUID | None,
        source_slot_id: UUID | None,
        day_of_week: int | None,
        start_time: time | None,
        end_time: time | None,
        enrolled_by: UUID | None,
    ) -> Enrollment:
        enrollment = Enrollment(
            course_id=course_id,
            student_id=student_id,
            teacher_id=teacher_id,
            source_slot_id=source_slot_id,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
            enrolled_by=enrolled_by,
        )
        self.session.add(enrollment)
        await self.session.flush()
        return enrollment

    async def update_enrollment_slot(
        self,
        enrollment: Enrollment,
        teacher_id: UUID | None,
        source_slot_id: UUID | None,
        day_of_week: int | None,
        start_time: time | None,
        end_time: time | None,
    ) -> Enrollment:
        enrollment.teacher_id = teacher_id
        enrollment.source_slot_id = source_slot_id
        enrollment.day_of_week = day_of_week
        enrollment.start_time = start_time
        enrollment.end_time = end_time
        await self.session.flush()
        return enrollment

    async def delete_enrollment(self, enrollment: Enrollment) -> None:
        await self.session.delete(enrollment)
        await self.session.flush()

    async def create_intent(
        self,
        course_id: UUID,
        student_id: UUID,
        teacher_id: UUID | None,
        requested_by: UUID,
        expires_at: datetime,
    ) -> EnrollmentIntent:
        intent = EnrollmentIntent(
            course_id=course_id,
            student_id=student_id,
            teacher_id=teacher_id,
            requested_by=requested_by,
            status=EnrollmentIntentStatusEnum.PENDING,
            expires_at=expires_at,
        )
        self.session.add(intent)
        await self.session.flush()
        return intent

    async def get_intent_for_update(self, intent_id: UUID) -> EnrollmentIntent | None:
        stmt = select(EnrollmentIntent).where(EnrollmentIntent.id == intent_id).with_for_update()
        return await self.session.scalar(stmt)

    async def set_intent_status(
        self,
        intent: EnrollmentIntent,
        status: EnrollmentIntentStatusEnum,
        completed_at: datetime | None = None,
    ) -> EnrollmentIntent:
        intent.status = status
        intent.completed_at = completed_at
        await self.session.flush()
        return intent

    async def list_expired_intents(self, now: datetime, limit: int = 500) -> list[EnrollmentIntent]:
        stmt = (
            select(EnrollmentIntent)
            .where(
                EnrollmentIntent.status == EnrollmentIntentStatusEnum.PENDING,
                EnrollmentIntent.expires_at <= now,
            )
            .order_by(EnrollmentIntent.expires_at.asc())
            .limit(limit)
            .with_for_update(skip_locked=True)
        )
        return list((await self.session.scalars(stmt)).all())
