"""Availability repository layer."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import time
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.availability.models import AvailabilitySlot


class AvailabilityRepository:
    """DB access for weekly availability."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_slot(
        self,
        owner_id: UUID,
        day_of_week: int,
        start_time: time,
        end_time: time,
        category: str,
    ) -> AvailabilitySlot:
        slot = AvailabilitySlot(
            owner_id=owner_id,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
            category=category,
        )
        self.session.add(slot)
        await self.session.flush()
        return slot

    async def get_slot_by_id(self, slot_id: UUID) -> AvailabilitySlot | None:
        stmt = select(AvailabilitySlot).where(AvailabilitySlot.id == slot_id)
        return await self.session.scalar(stmt)

    async def list_slots_by_owner(
        self,
        owner_id: UUID,
        day_of_week: int | None = None,
    ) -> list[AvailabilitySlot]:
        stmt = select(AvailabilitySlot).where(AvailabilitySlot.owner_id == owner_id)
        if day_of_week is not None:
            stmt = stmt.where(AvailabilitySlot.day_of_week == day_of_week)
        stmt = stmt.order_by(AvailabilitySlot.day_of_week.asc(), AvailabilitySlot.start_time.asc())
        return list((await self.session.scalars(stmt)).all())

    async def update_slot(
        self,
        slot: AvailabilitySlot,
        start_time: time,
        end_time: time,
        category: str | None,
    ) -> AvailabilitySlot:
        slot.start_time = start_time
        slot.end_time = end_time
        if category is not None:
            slot.category = category
        await self.session.flush()
        return slot

    async def delete_slot(self, slot: AvailabilitySlot) -> None:
        await self.session.delete(slot)
        await self.session.flush()

    async def replace_day(
        self,
        owner_id: UUID,
        day_of_week: int,
        templates: Sequence[AvailabilitySlot],
    ) -> list[AvailabilitySlot]:
        """Delete every slot of the day and insert copies of ``templates`` atomically."""
        snapshot = [(template.start_time, template.end_time, template.category) for template in templates]
        async with self.session.begin_nested():
            await self.session.execute(
                delete(AvailabilitySlot).where(
                    AvailabilitySlot.owner_id == owner_id,
                    AvailabilitySlot.day_of_week == day_of_week,
                ),
            )
            copies = [
                AvailabilitySlot(
                    owner_id=owner_id,
                    day_of_week=day_of_week,
                    start_time=start_time,
                    end_time=end_time,
                    category=category,
                )
                for start_time, end_time, category in snapshot
            ]
            self.session.add_all(copies)
            await self.session.flush()
        return copies
