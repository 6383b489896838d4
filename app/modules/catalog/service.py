"""Slot catalog: bookable weekly slots derived from instructor availability."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import time
from uuid import UUID

from fastapi import Depends
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import CacheBackend, get_cache_backend
from app.core.config import get_settings
from app.core.database import get_db_session
from app.core.enums import CourseTypeEnum, DurationTypeEnum
from app.core.metrics import SLOT_CACHE_LOOKUPS_TOTAL
from app.modules.availability.repository import AvailabilityRepository
from app.modules.availability.schemas import SlotRead, WeeklyAvailability
from app.modules.availability.service import build_weekly_availability, weekly_cache_key
from app.modules.catalog.models import ClassType, Course
from app.modules.catalog.repository import CatalogRepository
from app.modules.catalog.schemas import BookableSlot
from app.shared.exceptions import NotFoundException

logger = logging.getLogger(__name__)

settings = get_settings()


def is_recurring(course: Course) -> bool:
    return course.duration_type == DurationTypeEnum.RECURRING


def consumes_slot(course: Course) -> bool:
    """Solo and duo enrollments take the teacher's slot out of availability."""
    return course.course_type in (CourseTypeEnum.SOLO, CourseTypeEnum.DUO)


def _covers(slot: SlotRead, start_time: time, end_time: time, matching: str) -> bool:
    if matching == "containment":
        return slot.start_time <= start_time and end_time <= slot.end_time
    return slot.start_time == start_time and slot.end_time == end_time


def common_slots(
    weeklies: Sequence[WeeklyAvailability],
    matching: str = "exact",
) -> list[BookableSlot]:
    """Return slots every owner covers on the same weekday.

    Candidates are taken from all owners' slots; ``exact`` requires an
    identical interval from every owner, ``containment`` accepts any owner
    slot whose [start, end) contains the candidate.
    """
    if not weeklies:
        return []

    teacher_ids = [weekly.owner_id for weekly in weeklies]
    single_owner = len(weeklies) == 1
    seen: set[tuple[int, time, time]] = set()
    result: list[BookableSlot] = []

    for weekly in weeklies:
        for candidate in weekly.all_slots():
            key = (candidate.day_of_week, candidate.start_time, candidate.end_time)
            if key in seen:
                continue
            seen.add(key)

            covered = all(
                any(
                    _covers(slot, candidate.start_time, candidate.end_time, matching)
                    for slot in other.slots_for_day(candidate.day_of_week)
                )
                for other in weeklies
            )
            if covered:
                result.append(
                    BookableSlot(
                        day_of_week=candidate.day_of_week,
                        start_time=candidate.start_time,
                        end_time=candidate.end_time,
                        teacher_ids=list(teacher_ids),
                        slot_id=candidate.id if single_owner else None,
                    ),
                )

    return sorted(result, key=BookableSlot.sort_key)


def owner_slots(weeklies: Sequence[WeeklyAvailability]) -> list[BookableSlot]:
    """Flatten owners' slots, each tagged with its source slot and teacher."""
    result = [
        BookableSlot(
            day_of_week=slot.day_of_week,
            start_time=slot.start_time,
            end_time=slot.end_time,
            teacher_ids=[weekly.owner_id],
            slot_id=slot.id,
        )
        for weekly in weeklies
        for slot in weekly.all_slots()
    ]
    return sorted(result, key=BookableSlot.sort_key)


class SlotCatalogService:
    """Derive bookable slots for courses from instructors' weekly availability."""

    def __init__(
        self,
        availability_repository: AvailabilityRepository,
        catalog_repository: CatalogRepository,
        cache: CacheBackend,
        *,
        cache_ttl_seconds: int = settings.slot_cache_ttl_seconds,
        group_matching: str = settings.group_slot_matching,
    ) -> None:
        self.availability_repository = availability_repository
        self.catalog_repository = catalog_repository
        self.cache = cache
        self.cache_ttl_seconds = cache_ttl_seconds
        self.group_matching = group_matching

    async def get_course(self, course_id: UUID) -> Course:
        """Return course descriptor or raise."""
        course = await self.catalog_repository.get_course_by_id(course_id)
        if course is None:
            raise NotFoundException("Course not found")
        return course

    async def get_class_type(self, course: Course) -> ClassType | None:
        """Return class type referenced by course, None when missing."""
        if course.class_type_id is None:
            return None
        class_type = await self.catalog_repository.get_class_type_by_id(course.class_type_id)
        if class_type is None:
            logger.warning("Class type %s of course %s not found", course.class_type_id, course.id)
        return class_type

    async def weekly_availability(self, owner_id: UUID) -> WeeklyAvailability:
        """Return owner's weekly availability, read through the cache."""
        key = weekly_cache_key(owner_id)
        cached = await self.cache.get(key)
        if cached is not None:
            try:
                weekly = WeeklyAvailability.model_validate_json(cached)
            except ValidationError:
                logger.warning("Dropping unreadable cache entry %s", key)
                await self.cache.delete(key)
            else:
                SLOT_CACHE_LOOKUPS_TOTAL.labels(result="hit").inc()
                return weekly

        SLOT_CACHE_LOOKUPS_TOTAL.labels(result="miss").inc()
        slots = await self.availability_repository.list_slots_by_owner(owner_id)
        weekly = build_weekly_availability(owner_id, slots)
        await self.cache.set(key, weekly.model_dump_json(), ttl_seconds=self.cache_ttl_seconds)
        return weekly

    async def invalidate_owner(self, owner_id: UUID) -> None:
        """Drop cached availability projection for owner."""
        await self.cache.delete(weekly_cache_key(owner_id))

    async def slots_for_course(
        self,
        course: Course,
        requested_teacher_id: UUID | None = None,
    ) -> list[BookableSlot]:
        """Return bookable weekly slots ordered by day and start time.

        An empty list means nobody published usable availability; callers
        present "no slots available" instead of failing.
        """
        if not is_recurring(course):
            return []

        if course.course_type == CourseTypeEnum.GROUP:
            weeklies = [await self.weekly_availability(owner_id) for owner_id in course.instructor_ids]
            slots = common_slots(weeklies, self.group_matching)
        else:
            slots = await self.teacher_slots(course, requested_teacher_id)

        logger.debug("Course %s has %d bookable slots", course.id, len(slots))
        return slots

    async def teacher_slots(
        self,
        course: Course,
        requested_teacher_id: UUID | None = None,
    ) -> list[BookableSlot]:
        """Slots of the named teacher, or of every instructor, whatever the course duration."""
        owner_ids = [requested_teacher_id] if requested_teacher_id is not None else list(course.instructor_ids)
        weeklies = [await self.weekly_availability(owner_id) for owner_id in owner_ids]
        return owner_slots(weeklies)


def build_slot_catalog_service(session: AsyncSession) -> SlotCatalogService:
    """Create slot catalog bound to a DB session."""
    return SlotCatalogService(
        availability_repository=AvailabilityRepository(session),
        catalog_repository=CatalogRepository(session),
        cache=get_cache_backend(),
    )


async def get_slot_catalog_service(session: AsyncSession = Depends(get_db_session)) -> SlotCatalogService:
    """Dependency provider for slot catalog service."""
    return build_slot_catalog_service(session)
