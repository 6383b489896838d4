"""Catalog repository layer."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.catalog.models import ClassType, Course


class CatalogRepository:
    """Read access to the course catalog projection."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_course_by_id(self, course_id: UUID) -> Course | None:
        stmt = select(Course).where(Course.id == course_id)
        return await self.session.scalar(stmt)

    async def get_class_type_by_id(self, class_type_id: UUID) -> ClassType | None:
        stmt = select(ClassType).where(ClassType.id == class_type_id)
        return await self.session.scalar(stmt)
