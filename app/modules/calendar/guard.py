"""Duplicate event guard for projected class sessions."""

from __future__ import annotations

import logging
from uuid import UUID

from app.core.enums import SessionKindEnum
from app.modules.calendar.repository import CalendarRepository

logger = logging.getLogger(__name__)


class DuplicateEventGuard:
    """Remove previously materialized class sessions of a (course, student, teacher) triple.

    Runs before every insert of freshly projected sessions so retried
    enrollments replace their sessions instead of accumulating them.
    """

    def __init__(self, repository: CalendarRepository) -> None:
        self.repository = repository

    async def purge(self, course_id: UUID, student_id: UUID, teacher_id: UUID | None = None) -> int:
        removed = await self.repository.delete_sessions_for(
            course_id=course_id,
            student_id=student_id,
            teacher_id=teacher_id,
            kind=SessionKindEnum.CLASS,
        )
        if removed:
            logger.info(
                "Purged %d existing sessions for course %s student %s teacher %s",
                removed,
                course_id,
                student_id,
                teacher_id,
            )
        return removed
