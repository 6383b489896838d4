"""Enrollment engine: trial gate, slot resolution, enrollment and session projection."""

from __future__ import annotations

import logging
from datetime import timedelta
from uuid import UUID

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import get_cache_backend
from app.core.config import get_settings
from app.core.database import get_db_session
from app.core.enums import CourseTypeEnum, EnrollmentIntentStatusEnum, EnrollmentStateEnum, RoleEnum
from app.core.metrics import ENROLLMENT_OUTCOMES_TOTAL
from app.core.security import AuthContext
from app.modules.audit.repository import AuditRepository
from app.modules.availability.repository import AvailabilityRepository
from app.modules.availability.service import AvailabilityService
from app.modules.calendar.models import CalendarSession
from app.modules.calendar.projector import placeholder_session, project_sessions
from app.modules.calendar.repository import CalendarRepository
from app.modules.calendar.schemas import CalendarSessionRead, SchedulingWarning
from app.modules.calendar.service import CalendarService
from app.modules.catalog.models import ClassType, Course
from app.modules.catalog.schemas import BookableSlot
from app.modules.catalog.service import (
    SlotCatalogService,
    build_slot_catalog_service,
    consumes_slot,
    is_recurring,
)
from app.modules.enrollment.models import Enrollment, EnrollmentIntent
from app.modules.enrollment.repository import EnrollmentRepository
from app.modules.enrollment.schemas import (
    EnrollmentDecision,
    EnrollmentIntentRead,
    EnrollmentRead,
    EnrollmentRequest,
    EnrollmentResult,
    IntentCompleteRequest,
    SlotSelection,
)
from app.modules.notifications.sink import NotificationOutcome, NotificationSink, OutboxNotificationSink
from app.modules.trials.service import TrialLedgerService, build_trial_ledger_service
from app.shared.exceptions import (
    BusinessRuleException,
    NotFoundException,
    SlotUnavailableError,
    TrialRequiredError,
    UnauthorizedException,
)
from app.shared.utils import DAY_NAMES, format_wall_time, local_now, utc_now

logger = logging.getLogger(__name__)

settings = get_settings()


def _matches(candidate: BookableSlot, selection: SlotSelection) -> bool:
    if selection.slot_id is not None and candidate.slot_id == selection.slot_id:
        return True
    return (
        candidate.day_of_week == selection.day_of_week
        and candidate.start_time == selection.start_time
        and candidate.end_time == selection.end_time
    )


def _same_weekly_slot(enrollment: Enrollment, selection: SlotSelection) -> bool:
    return (
        enrollment.day_of_week == selection.day_of_week
        and enrollment.start_time == selection.start_time
        and enrollment.end_time == selection.end_time
    )


def _slot_of_enrollment(enrollment: Enrollment) -> BookableSlot | None:
    if enrollment.day_of_week is None or enrollment.start_time is None or enrollment.end_time is None:
        return None
    return BookableSlot(
        day_of_week=enrollment.day_of_week,
        start_time=enrollment.start_time,
        end_time=enrollment.end_time,
        teacher_ids=[enrollment.teacher_id] if enrollment.teacher_id is not None else [],
        slot_id=enrollment.source_slot_id,
    )


class EnrollmentService:
    """Drives an enrollment from request to projected calendar sessions."""

    def __init__(
        self,
        repository: EnrollmentRepository,
        trials: TrialLedgerService,
        catalog: SlotCatalogService,
        availability: AvailabilityService,
        calendar: CalendarService,
        notifications: NotificationSink,
    ) -> None:
        self.repository = repository
        self.trials = trials
        self.catalog = catalog
        self.availability = availability
        self.calendar = calendar
        self.notifications = notifications

    @staticmethod
    def _transition(state: EnrollmentStateEnum, course_id: UUID, student_id: UUID) -> EnrollmentStateEnum:
        logger.info("Enrollment of student %s in course %s: %s", student_id, course_id, state.value)
        return state

    @staticmethod
    def _ensure_can_enroll(student_id: UUID, actor: AuthContext) -> None:
        if actor.role != RoleEnum.TEACHER and not actor.can_act_for(student_id):
            raise UnauthorizedException("You cannot manage enrollments of this student")

    async def _verify(self, course_id: UUID, student_id: UUID) -> Course:
        self._transition(EnrollmentStateEnum.REQUESTED, course_id, student_id)
        try:
            await self.trials.ensure_trial_completed(student_id, course_id, "enrollment")
            course = await self.catalog.get_course(course_id)
        except (TrialRequiredError, NotFoundException):
            self._transition(EnrollmentStateEnum.ABORTED, course_id, student_id)
            ENROLLMENT_OUTCOMES_TOTAL.labels(outcome=EnrollmentStateEnum.ABORTED.value).inc()
            raise
        self._transition(EnrollmentStateEnum.TRIAL_VERIFIED, course_id, student_id)
        return course

    async def _begin(
        self,
        payload: EnrollmentRequest,
        actor: AuthContext,
    ) -> tuple[EnrollmentDecision, Course, SlotSelection | None]:
        self._ensure_can_enroll(payload.student_id, actor)
        course = await self._verify(payload.course_id, payload.student_id)

        selection = payload.slot
        if selection is None and is_recurring(course):
            existing = await self.repository.get_enrollment(course.id, payload.student_id)
            previous = _slot_of_enrollment(existing) if existing is not None else None
            if previous is not None:
                selection = SlotSelection(
                    day_of_week=previous.day_of_week,
                    start_time=previous.start_time,
                    end_time=previous.end_time,
                    slot_id=previous.slot_id,
                )

        if selection is None and is_recurring(course):
            candidates = await self.catalog.slots_for_course(course, payload.teacher_id)
            intent = await self.repository.create_intent(
                course_id=course.id,
                student_id=payload.student_id,
                teacher_id=payload.teacher_id,
                requested_by=actor.user_id,
                expires_at=utc_now() + timedelta(minutes=settings.enrollment_intent_ttl_minutes),
            )
            state = self._transition(EnrollmentStateEnum.NEEDS_SLOT_SELECTION, course.id, payload.student_id)
            ENROLLMENT_OUTCOMES_TOTAL.labels(outcome=state.value).inc()
            decision = EnrollmentDecision(
                state=state,
                proceed=False,
                intent=EnrollmentIntentRead.model_validate(intent),
                candidate_slots=candidates,
            )
            return decision, course, None

        return EnrollmentDecision(state=EnrollmentStateEnum.TRIAL_VERIFIED, proceed=True), course, selection

    async def begin_enrollment(self, payload: EnrollmentRequest, actor: AuthContext) -> EnrollmentDecision:
        """Verify the trial and decide whether a slot choice is still needed."""
        decision, _, _ = await self._begin(payload, actor)
        return decision

    async def enroll(self, payload: EnrollmentRequest, actor: AuthContext) -> EnrollmentResult:
        """Enroll a student, suspending when a recurring course needs a slot choice."""
        decision, course, selection = await self._begin(payload, actor)
        if not decision.proceed:
            return EnrollmentResult(
                state=decision.state,
                intent=decision.intent,
                candidate_slots=decision.candidate_slots,
            )
        return await self._complete(course, payload.student_id, payload.teacher_id, selection, actor)

    async def complete_enrollment(
        self,
        intent_id: UUID,
        payload: IntentCompleteRequest,
        actor: AuthContext,
    ) -> EnrollmentResult:
        """Resume a suspended enrollment with the chosen slot."""
        intent = await self.repository.get_intent_for_update(intent_id)
        if intent is None:
            raise NotFoundException("Enrollment intent not found")
        self._ensure_can_enroll(intent.student_id, actor)

        if intent.status != EnrollmentIntentStatusEnum.PENDING:
            raise BusinessRuleException(f"Enrollment intent is {intent.status.value}")
        if intent.expires_at <= utc_now():
            raise BusinessRuleException("Enrollment intent expired, start the enrollment again")

        course = await self._verify(intent.course_id, intent.student_id)
        return await self._complete(
            course,
            intent.student_id,
            intent.teacher_id,
            payload.slot,
            actor,
            intent=intent,
        )

    async def _resolve_slot(
        self,
        course: Course,
        teacher_id: UUID | None,
        selection: SlotSelection,
        existing: Enrollment | None,
    ) -> BookableSlot:
        if is_recurring(course):
            requested_teacher = None if course.course_type == CourseTypeEnum.GROUP else teacher_id
            candidates = await self.catalog.slots_for_course(course, requested_teacher)
        else:
            # one-time sessions can sit on any slot the teacher published
            candidates = await self.catalog.teacher_slots(course, teacher_id)
        for candidate in candidates:
            if _matches(candidate, selection):
                return candidate

        if existing is not None and _same_weekly_slot(existing, selection):
            previous = _slot_of_enrollment(existing)
            if previous is not None:
                logger.info("Reusing weekly slot of existing enrollment %s", existing.id)
                return previous

        raise SlotUnavailableError(
            f"No available slot on {DAY_NAMES[selection.day_of_week]} "
            f"{format_wall_time(selection.start_time)}-{format_wall_time(selection.end_time)}",
        )

    async def _ensure_capacity(self, course: Course, class_type: ClassType | None) -> None:
        if class_type is None or class_type.max_students <= 0:
            return
        enrolled = await self.repository.count_for_course(course.id)
        if enrolled >= class_type.max_students:
            raise BusinessRuleException(f"Course is full ({enrolled}/{class_type.max_students} students)")

    async def _consume(self, course: Course, slot: BookableSlot, reused: bool) -> None:
        if not consumes_slot(course) or slot.slot_id is None:
            return
        source = await self.availability.get_slot(slot.slot_id)
        if source is None:
            if reused:
                return
            raise SlotUnavailableError("Selected slot was just taken")
        await self.availability.consume_slot(source)

    async def _complete(
        self,
        course: Course,
        student_id: UUID,
        teacher_id: UUID | None,
        selection: SlotSelection | None,
        actor: AuthContext,
        intent: EnrollmentIntent | None = None,
    ) -> EnrollmentResult:
        await self.repository.lock_pair(course.id, student_id)
        existing = await self.repository.get_enrollment(course.id, student_id)

        slot: BookableSlot | None = None
        reused = False
        if selection is not None:
            slot = await self._resolve_slot(course, teacher_id, selection, existing)
            reused = existing is not None and _same_weekly_slot(existing, selection)
            self._transition(EnrollmentStateEnum.SLOT_RESOLVED, course.id, student_id)

        if slot is not None and course.course_type != CourseTypeEnum.GROUP and slot.teacher_ids:
            teacher_id = slot.teacher_ids[0]
        elif teacher_id is None and existing is not None and existing.teacher_id is not None:
            teacher_id = existing.teacher_id
        elif teacher_id is None and course.instructor_ids:
            teacher_id = course.instructor_ids[0]
        replaced_teacher_ids: list[UUID | None] = []
        if existing is not None and existing.teacher_id != teacher_id:
            replaced_teacher_ids.append(existing.teacher_id)

        class_type = await self.catalog.get_class_type(course)
        slot_fields = {
            "teacher_id": teacher_id,
            "source_slot_id": slot.slot_id if slot is not None else None,
            "day_of_week": slot.day_of_week if slot is not None else None,
            "start_time": slot.start_time if slot is not None else None,
            "end_time": slot.end_time if slot is not None else None,
        }
        if existing is None:
            await self._ensure_capacity(course, class_type)
            enrollment = await self.repository.create_enrollment(
                course_id=course.id,
                student_id=student_id,
                enrolled_by=actor.user_id,
                **slot_fields,
            )
        else:
            logger.info("Student %s already enrolled in course %s, reusing enrollment", student_id, course.id)
            enrollment = existing
            if (slot is not None and not reused) or replaced_teacher_ids:
                enrollment = await self.repository.update_enrollment_slot(existing, **slot_fields)

        if slot is not None:
            await self._consume(course, slot, reused)
        state = self._transition(EnrollmentStateEnum.ENROLLED, course.id, student_id)

        if intent is not None:
            await self.repository.set_intent_status(intent, EnrollmentIntentStatusEnum.COMPLETED, utc_now())

        warnings: list[SchedulingWarning] = []
        sessions: list[CalendarSession] = []
        try:
            sessions = await self._project(course, class_type, student_id, teacher_id, slot, replaced_teacher_ids)
        except (SQLAlchemyError, OverflowError):
            logger.warning(
                "Enrollment %s kept but its sessions could not be projected or written",
                enrollment.id,
                exc_info=True,
            )
            warnings.append(
                SchedulingWarning(
                    code="sessions_not_scheduled",
                    message="Enrollment saved, but calendar sessions could not be created; retry to schedule them",
                ),
            )
        else:
            self._transition(EnrollmentStateEnum.SESSIONS_PROJECTED, course.id, student_id)
            state = self._transition(EnrollmentStateEnum.COMPLETE, course.id, student_id)

        ENROLLMENT_OUTCOMES_TOTAL.labels(outcome=state.value).inc()
        await self.notifications.notify(
            NotificationOutcome(
                event_type="enrollment.completed",
                aggregate_type="enrollment",
                aggregate_id=str(enrollment.id),
                payload={
                    "course_id": str(course.id),
                    "student_id": str(student_id),
                    "teacher_id": str(teacher_id) if teacher_id is not None else None,
                    "state": state.value,
                    "sessions": len(sessions),
                },
            ),
        )
        return EnrollmentResult(
            state=state,
            enrollment=EnrollmentRead.model_validate(enrollment),
            sessions=[CalendarSessionRead.model_validate(item) for item in sessions],
            warnings=warnings,
        )

    async def _project(
        self,
        course: Course,
        class_type: ClassType | None,
        student_id: UUID,
        teacher_id: UUID | None,
        slot: BookableSlot | None,
        replaced_teacher_ids: list[UUID | None],
    ) -> list[CalendarSession]:
        now = local_now(settings.school_timezone)
        if slot is not None:
            count = settings.recurring_session_count if is_recurring(course) else 1
            projected = project_sessions(
                slot,
                class_type,
                count,
                course,
                now=now,
                student_id=student_id,
                teacher_id=teacher_id,
                default_minutes=settings.default_session_minutes,
            )
        else:
            projected = [
                placeholder_session(
                    class_type,
                    course,
                    now=now,
                    student_id=student_id,
                    teacher_id=teacher_id,
                    days_ahead=settings.placeholder_days_ahead,
                    start_time=settings.placeholder_start_time,
                    default_minutes=settings.default_session_minutes,
                ),
            ]
        return await self.calendar.replace_class_sessions(
            course.id,
            course.title,
            student_id,
            teacher_id,
            projected,
            replaced_teacher_ids=replaced_teacher_ids,
        )

    async def withdraw(self, course_id: UUID, student_id: UUID, actor: AuthContext) -> None:
        """Remove student from course together with their class sessions."""
        self._ensure_can_enroll(student_id, actor)
        await self.repository.lock_pair(course_id, student_id)
        enrollment = await self.repository.get_enrollment(course_id, student_id)
        if enrollment is None:
            raise NotFoundException("Enrollment not found")

        removed = await self.calendar.purge_class_sessions(course_id, student_id, enrollment.teacher_id)
        await self.repository.delete_enrollment(enrollment)
        logger.info("Withdrew student %s from course %s, %d sessions removed", student_id, course_id, removed)
        await self.notifications.notify(
            NotificationOutcome(
                event_type="enrollment.withdrawn",
                aggregate_type="enrollment",
                aggregate_id=str(enrollment.id),
                payload={"course_id": str(course_id), "student_id": str(student_id)},
            ),
        )

    async def expire_intents(self, actor: AuthContext) -> int:
        """Mark pending intents past their expiry as expired."""
        if not actor.is_admin:
            raise UnauthorizedException("Only admin can expire enrollment intents")

        intents = await self.repository.list_expired_intents(utc_now())
        for intent in intents:
            await self.repository.set_intent_status(intent, EnrollmentIntentStatusEnum.EXPIRED)
        if intents:
            logger.info("Expired %d enrollment intents", len(intents))
        return len(intents)


def build_enrollment_service(session: AsyncSession) -> EnrollmentService:
    """Create enrollment engine bound to a DB session."""
    return EnrollmentService(
        repository=EnrollmentRepository(session),
        trials=build_trial_ledger_service(session),
        catalog=build_slot_catalog_service(session),
        availability=AvailabilityService(AvailabilityRepository(session), get_cache_backend()),
        calendar=CalendarService(CalendarRepository(session)),
        notifications=OutboxNotificationSink(AuditRepository(session)),
    )


async def get_enrollment_service(session: AsyncSession = Depends(get_db_session)) -> EnrollmentService:
    """Dependency provider for enrollment service."""
    return build_enrollment_service(session)
