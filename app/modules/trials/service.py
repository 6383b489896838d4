"""Trial ledger business logic layer."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db_session
from app.core.enums import RoleEnum
from app.core.metrics import TRIAL_GATE_REJECTIONS_TOTAL
from app.core.security import AuthContext
from app.modules.calendar.projector import project_sessions
from app.modules.calendar.repository import CalendarRepository
from app.modules.calendar.schemas import CalendarSessionRead, SchedulingWarning
from app.modules.calendar.service import CalendarService
from app.modules.catalog.models import Course
from app.modules.catalog.service import SlotCatalogService, build_slot_catalog_service
from app.modules.trials.repository import TrialRepository
from app.modules.trials.schemas import TrialBookingRead, TrialRecordResult, TrialRequest, TrialSlot
from app.shared.exceptions import NotFoundException, TrialRequiredError, UnauthorizedException
from app.shared.utils import local_now

logger = logging.getLogger(__name__)

settings = get_settings()


class TrialLedgerService:
    """Tracks which courses a student completed a trial for."""

    def __init__(
        self,
        repository: TrialRepository,
        catalog: SlotCatalogService,
        calendar: CalendarService,
    ) -> None:
        self.repository = repository
        self.catalog = catalog
        self.calendar = calendar

    async def has_completed_trial(self, student_id: UUID, course_id: UUID) -> bool:
        """Check trial set first, then fall back to the booking log."""
        student = await self.repository.get_student_by_id(student_id)
        if student is not None and course_id in student.trial_course_ids:
            return True

        booking = await self.repository.find_trial_booking(student_id, course_id)
        if booking is None:
            return False

        if student is None:
            logger.warning(
                "Trial booking %s found for unknown student %s, skipping trial set sync",
                booking.id,
                student_id,
            )
        else:
            await self._sync_trial_set(student_id, course_id)
        return True

    async def _sync_trial_set(self, student_id: UUID, course_id: UUID) -> None:
        try:
            async with self.repository.savepoint():
                student = await self.repository.get_student_for_update(student_id)
                if student is not None and course_id not in student.trial_course_ids:
                    await self.repository.add_trial_course(student, course_id)
                    logger.info("Synced trial set of student %s with course %s", student_id, course_id)
        except SQLAlchemyError:
            logger.warning(
                "Failed to sync trial set of student %s with course %s",
                student_id,
                course_id,
                exc_info=True,
            )

    async def ensure_trial_completed(self, student_id: UUID, course_id: UUID, operation: str) -> None:
        """Raise unless the student has a trial for the course."""
        if await self.has_completed_trial(student_id, course_id):
            return
        TRIAL_GATE_REJECTIONS_TOTAL.labels(operation=operation).inc()
        logger.info("Refused %s for student %s course %s: no trial", operation, student_id, course_id)
        raise TrialRequiredError("Student must complete a trial class for this course first")

    async def record_trial(self, payload: TrialRequest, actor: AuthContext) -> TrialRecordResult:
        """Record a trial for the pair; repeated calls leave the ledger unchanged."""
        if actor.role != RoleEnum.TEACHER and not actor.can_act_for(payload.student_id):
            raise UnauthorizedException("You cannot book trials for this student")

        course = await self.catalog.get_course(payload.course_id)
        student = await self.repository.get_student_for_update(payload.student_id)
        if student is None:
            raise NotFoundException("Student not found")

        if payload.course_id in student.trial_course_ids:
            logger.info("Trial for student %s course %s already recorded", student.id, course.id)
            return TrialRecordResult(created=False)

        booking = await self.repository.create_trial_booking(
            student_id=student.id,
            course_id=course.id,
            teacher_id=payload.teacher_id,
            slot=payload.slot.model_dump(mode="json") if payload.slot is not None else None,
        )
        await self.repository.add_trial_course(student, course.id)
        logger.info("Recorded trial %s for student %s course %s", booking.id, student.id, course.id)

        result = TrialRecordResult(created=True, booking=TrialBookingRead.model_validate(booking))
        if payload.slot is not None:
            await self._schedule_trial_session(course, payload, payload.slot, result)
        return result

    async def _schedule_trial_session(
        self,
        course: Course,
        payload: TrialRequest,
        slot: TrialSlot,
        result: TrialRecordResult,
    ) -> None:
        class_type = await self.catalog.get_class_type(course)
        projected = project_sessions(
            slot,
            class_type,
            1,
            course,
            now=local_now(settings.school_timezone),
            student_id=payload.student_id,
            teacher_id=payload.teacher_id,
            default_minutes=settings.default_session_minutes,
        )
        try:
            created = await self.calendar.add_trial_sessions(course.title, projected)
        except SQLAlchemyError:
            logger.warning(
                "Trial recorded but its session could not be scheduled for student %s course %s",
                payload.student_id,
                course.id,
                exc_info=True,
            )
            result.warnings.append(
                SchedulingWarning(
                    code="trial_session_not_scheduled",
                    message="Trial recorded, but the calendar session could not be created",
                ),
            )
            return
        result.sessions = [CalendarSessionRead.model_validate(item) for item in created]


def build_trial_ledger_service(session: AsyncSession) -> TrialLedgerService:
    """Create trial ledger bound to a DB session."""
    return TrialLedgerService(
        repository=TrialRepository(session),
        catalog=build_slot_catalog_service(session),
        calendar=CalendarService(CalendarRepository(session)),
    )


async def get_trial_ledger_service(session: AsyncSession = Depends(get_db_session)) -> TrialLedgerService:
    """Dependency provider for trial ledger service."""
    return build_trial_ledger_service(session)
