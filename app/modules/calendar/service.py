"""Calendar business logic layer."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.core.enums import SessionAudienceEnum, SessionKindEnum
from app.core.security import AuthContext
from app.modules.calendar.guard import DuplicateEventGuard
from app.modules.calendar.models import CalendarSession
from app.modules.calendar.projector import ProjectedSession
from app.modules.calendar.repository import CalendarRepository
from app.shared.exceptions import UnauthorizedException

logger = logging.getLogger(__name__)


def session_title(course_title: str, kind: SessionKindEnum, number: int, total: int) -> str:
    if kind == SessionKindEnum.TRIAL:
        return f"Trial Class - {course_title}"
    if total == 1:
        return course_title
    return f"{course_title} ({number}/{total})"


def build_session_pair(
    projected: ProjectedSession,
    *,
    kind: SessionKindEnum,
    course_title: str,
) -> list[CalendarSession]:
    """Teacher copy (when a teacher is assigned) and student copy of one occurrence."""
    owners: list[tuple[UUID, SessionAudienceEnum]] = []
    if projected.teacher_id is not None:
        owners.append((projected.teacher_id, SessionAudienceEnum.TEACHER))
    owners.append((projected.student_id, SessionAudienceEnum.STUDENT))

    title = session_title(course_title, kind, projected.session_number, projected.total_sessions)
    return [
        CalendarSession(
            owner_id=owner_id,
            audience=audience,
            kind=kind,
            course_id=projected.course_id,
            student_id=projected.student_id,
            teacher_id=projected.teacher_id,
            title=title,
            start_at=projected.start_at,
            end_at=projected.end_at,
            session_number=projected.session_number,
            total_sessions=projected.total_sessions,
            source_slot_id=projected.source_slot_id,
        )
        for owner_id, audience in owners
    ]


class CalendarService:
    """Materializes projected sessions as calendar rows."""

    def __init__(self, repository: CalendarRepository, guard: DuplicateEventGuard | None = None) -> None:
        self.repository = repository
        self.guard = guard or DuplicateEventGuard(repository)

    async def replace_class_sessions(
        self,
        course_id: UUID,
        course_title: str,
        student_id: UUID,
        teacher_id: UUID | None,
        projected: Sequence[ProjectedSession],
        *,
        replaced_teacher_ids: Sequence[UUID | None] = (),
    ) -> list[CalendarSession]:
        """Purge prior sessions of the triple and insert new pairs as one unit.

        ``replaced_teacher_ids`` names teachers the enrollment moved away from;
        their sessions for the same course and student are purged as well.
        """
        async with self.repository.savepoint():
            for previous_teacher_id in replaced_teacher_ids:
                await self.guard.purge(course_id, student_id, previous_teacher_id)
            await self.guard.purge(course_id, student_id, teacher_id)
            rows = [
                row
                for item in projected
                for row in build_session_pair(item, kind=SessionKindEnum.CLASS, course_title=course_title)
            ]
            created = await self.repository.add_sessions(rows)
        logger.info(
            "Materialized %d sessions (%d events) for course %s student %s",
            len(projected),
            len(created),
            course_id,
            student_id,
        )
        return created

    async def add_trial_sessions(
        self,
        course_title: str,
        projected: Sequence[ProjectedSession],
    ) -> list[CalendarSession]:
        """Insert trial session pairs."""
        async with self.repository.savepoint():
            rows = [
                row
                for item in projected
                for row in build_session_pair(item, kind=SessionKindEnum.TRIAL, course_title=course_title)
            ]
            return await self.repository.add_sessions(rows)

    async def purge_class_sessions(self, course_id: UUID, student_id: UUID, teacher_id: UUID | None) -> int:
        """Remove class sessions of the triple."""
        return await self.guard.purge(course_id, student_id, teacher_id)

    async def list_for_user(
        self,
        user_id: UUID,
        actor: AuthContext,
        limit: int,
        offset: int,
    ) -> tuple[list[CalendarSession], int]:
        """List sessions visible to user."""
        if not actor.can_act_for(user_id):
            raise UnauthorizedException("You cannot view this calendar")
        return await self.repository.list_sessions_for_owner(user_id, limit, offset)


async def get_calendar_service(session: AsyncSession = Depends(get_db_session)) -> CalendarService:
    """Dependency provider for calendar service."""
    return CalendarService(CalendarRepository(session))
