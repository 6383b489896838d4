"""Calendar repository layer."""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import Select, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession, AsyncSessionTransaction

from app.core.enums import SessionKindEnum
from app.modules.calendar.models import CalendarSession


class CalendarRepository:
    """DB operations for calendar sessions."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def savepoint(self) -> AsyncSessionTransaction:
        """Nested transaction; leaving it with an error rolls back only its writes."""
        return self.session.begin_nested()

    async def add_sessions(self, sessions: Sequence[CalendarSession]) -> list[CalendarSession]:
        self.session.add_all(sessions)
        await self.session.flush()
        return list(sessions)

    async def delete_sessions_for(
        self,
        course_id: UUID,
        student_id: UUID,
        teacher_id: UUID | None,
        kind: SessionKindEnum,
    ) -> int:
        teacher_clause = (
            CalendarSession.teacher_id.is_(None)
            if teacher_id is None
            else CalendarSession.teacher_id == teacher_id
        )
        stmt = delete(CalendarSession).where(
            CalendarSession.course_id == course_id,
            CalendarSession.student_id == student_id,
            CalendarSession.kind == kind,
            teacher_clause,
        )
        result = await self.session.execute(stmt)
        return int(result.rowcount or 0)

    async def list_sessions_for_owner(
        self,
        owner_id: UUID,
        limit: int,
        offset: int,
    ) -> tuple[list[CalendarSession], int]:
        base_stmt: Select[tuple[CalendarSession]] = select(CalendarSession).where(
            CalendarSession.owner_id == owner_id,
        )
        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(CalendarSession.start_at.asc()).limit(limit).offset(offset)
        items = (await self.session.scalars(stmt)).all()
        return list(items), total
