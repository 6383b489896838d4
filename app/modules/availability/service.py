"""Availability business logic layer."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import time
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import CacheBackend, get_cache_backend
from app.core.database import get_db_session
from app.core.security import AuthContext
from app.modules.availability.models import AvailabilitySlot
from app.modules.availability.repository import AvailabilityRepository
from app.modules.availability.schemas import (
    CopyDayRequest,
    DayAvailability,
    SlotCreate,
    SlotRead,
    SlotUpdate,
    WeeklyAvailability,
)
from app.shared.exceptions import (
    InvalidRangeError,
    NothingToCopyError,
    NotFoundException,
    UnauthorizedException,
)
from app.shared.utils import DAY_NAMES, format_wall_time

logger = logging.getLogger(__name__)


def weekly_cache_key(owner_id: UUID) -> str:
    """Cache key of an owner's weekly availability projection."""
    return f"availability:{owner_id}"


def build_weekly_availability(owner_id: UUID, slots: Iterable[AvailabilitySlot | SlotRead]) -> WeeklyAvailability:
    """Bucket slots into seven days, each ordered by start time."""
    buckets: list[list[SlotRead]] = [[] for _ in DAY_NAMES]
    for slot in slots:
        buckets[slot.day_of_week].append(SlotRead.model_validate(slot))
    days = [
        DayAvailability(
            day_of_week=index,
            day_name=DAY_NAMES[index],
            slots=sorted(bucket, key=lambda item: (item.start_time, item.end_time)),
        )
        for index, bucket in enumerate(buckets)
    ]
    return WeeklyAvailability(owner_id=owner_id, days=days)


def _validate_range(start_time: time, end_time: time) -> None:
    if start_time >= end_time:
        raise InvalidRangeError(
            f"Slot start {format_wall_time(start_time)} must be before end {format_wall_time(end_time)}",
        )


class AvailabilityService:
    """Owner-scoped weekly availability store."""

    def __init__(self, repository: AvailabilityRepository, cache: CacheBackend) -> None:
        self.repository = repository
        self.cache = cache

    def _ensure_can_manage(self, owner_id: UUID, actor: AuthContext) -> None:
        if not actor.can_act_for(owner_id):
            raise UnauthorizedException("You cannot manage this availability")

    async def _invalidate(self, owner_id: UUID) -> None:
        await self.cache.delete(weekly_cache_key(owner_id))
        logger.debug("Invalidated slot catalog cache for owner %s", owner_id)

    async def _get_slot(self, slot_id: UUID) -> AvailabilitySlot:
        slot = await self.repository.get_slot_by_id(slot_id)
        if slot is None:
            raise NotFoundException("Availability slot not found")
        return slot

    async def list_by_owner(self, owner_id: UUID) -> WeeklyAvailability:
        """Return all seven day buckets for owner, empty ones included."""
        slots = await self.repository.list_slots_by_owner(owner_id)
        return build_weekly_availability(owner_id, slots)

    async def add_slot(self, owner_id: UUID, payload: SlotCreate, actor: AuthContext) -> AvailabilitySlot:
        """Create weekly slot for owner."""
        self._ensure_can_manage(owner_id, actor)
        _validate_range(payload.start_time, payload.end_time)

        slot = await self.repository.create_slot(
            owner_id=owner_id,
            day_of_week=payload.day_of_week,
            start_time=payload.start_time,
            end_time=payload.end_time,
            category=payload.category,
        )
        await self._invalidate(owner_id)
        logger.info(
            "Added availability slot %s for %s on %s %s-%s",
            slot.id,
            owner_id,
            DAY_NAMES[slot.day_of_week],
            format_wall_time(slot.start_time),
            format_wall_time(slot.end_time),
        )
        return slot

    async def update_slot(self, slot_id: UUID, payload: SlotUpdate, actor: AuthContext) -> AvailabilitySlot:
        """Change slot times and optionally its category."""
        slot = await self._get_slot(slot_id)
        self._ensure_can_manage(slot.owner_id, actor)
        _validate_range(payload.start_time, payload.end_time)

        slot = await self.repository.update_slot(slot, payload.start_time, payload.end_time, payload.category)
        await self._invalidate(slot.owner_id)
        return slot

    async def delete_slot(self, slot_id: UUID, actor: AuthContext) -> None:
        """Remove slot."""
        slot = await self._get_slot(slot_id)
        self._ensure_can_manage(slot.owner_id, actor)
        owner_id = slot.owner_id
        await self.repository.delete_slot(slot)
        await self._invalidate(owner_id)

    async def copy_day(self, owner_id: UUID, payload: CopyDayRequest, actor: AuthContext) -> list[AvailabilitySlot]:
        """Replace target day's slots with copies of source day's slots."""
        self._ensure_can_manage(owner_id, actor)

        source_slots = await self.repository.list_slots_by_owner(owner_id, day_of_week=payload.from_day)
        if not source_slots:
            raise NothingToCopyError(f"No availability slots found for {DAY_NAMES[payload.from_day]}")

        copies = await self.repository.replace_day(owner_id, payload.to_day, source_slots)
        await self._invalidate(owner_id)
        logger.info(
            "Copied %d slots for %s from %s to %s",
            len(copies),
            owner_id,
            DAY_NAMES[payload.from_day],
            DAY_NAMES[payload.to_day],
        )
        return copies

    async def get_slot(self, slot_id: UUID) -> AvailabilitySlot | None:
        """Return slot or None without raising."""
        return await self.repository.get_slot_by_id(slot_id)

    async def consume_slot(self, slot: AvailabilitySlot) -> None:
        """Delete slot taken by an enrollment in the caller's transaction."""
        owner_id = slot.owner_id
        await self.repository.delete_slot(slot)
        await self._invalidate(owner_id)
        logger.info("Consumed availability slot %s of %s", slot.id, owner_id)


async def get_availability_service(session: AsyncSession = Depends(get_db_session)) -> AvailabilityService:
    """Dependency provider for availability service."""
    return AvailabilityService(AvailabilityRepository(session), get_cache_backend())
