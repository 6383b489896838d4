from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, time
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from app.core.cache import InMemoryCacheBackend
from app.core.enums import CourseTypeEnum, DurationTypeEnum
from app.modules.catalog.service import SlotCatalogService
from app.shared.exceptions import NotFoundException


@dataclass
class FakeSlot:
    owner_id: UUID
    day_of_week: int
    start_time: time
    end_time: time
    category: str = "Session"
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=lambda: datetime(2026, 10, 1, tzinfo=UTC))
    updated_at: datetime = field(default_factory=lambda: datetime(2026, 10, 1, tzinfo=UTC))


@dataclass
class FakeCourse:
    course_type: CourseTypeEnum
    instructor_ids: list[UUID]
    duration_type: DurationTypeEnum = DurationTypeEnum.RECURRING
    title: str = "Guitar"
    class_type_id: UUID | None = None
    price: Decimal = Decimal("100")
    currency: str = "USD"
    id: UUID = field(default_factory=uuid4)


class FakeAvailabilityRepository:
    def __init__(self, slots: list[FakeSlot]) -> None:
        self.slots = slots
        self.reads = 0

    async def list_slots_by_owner(self, owner_id: UUID, day_of_week: int | None = None) -> list[FakeSlot]:
        self.reads += 1
        return [slot for slot in self.slots if slot.owner_id == owner_id]


class FakeCatalogRepository:
    def __init__(self, courses: list[FakeCourse] | None = None) -> None:
        self.courses = {course.id: course for course in courses or []}

    async def get_course_by_id(self, course_id: UUID) -> FakeCourse | None:
        return self.courses.get(course_id)

    async def get_class_type_by_id(self, class_type_id: UUID) -> None:
        return None


def _service(slots: list[FakeSlot], *, matching: str = "exact") -> tuple[SlotCatalogService, FakeAvailabilityRepository]:
    repository = FakeAvailabilityRepository(slots)
    service = SlotCatalogService(
        repository,
        FakeCatalogRepository(),
        InMemoryCacheBackend(),
        cache_ttl_seconds=60,
        group_matching=matching,
    )
    return service, repository


@pytest.mark.asyncio
async def test_solo_course_lists_teacher_slots_in_order() -> None:
    teacher_id = uuid4()
    slots = [
        FakeSlot(teacher_id, 4, time(18, 0), time(19, 0)),
        FakeSlot(teacher_id, 1, time(15, 0), time(16, 0)),
        FakeSlot(teacher_id, 1, time(9, 0), time(10, 0)),
    ]
    service, _ = _service(slots)

    result = await service.slots_for_course(FakeCourse(CourseTypeEnum.SOLO, [teacher_id]))

    assert [(item.day_of_week, item.start_time) for item in result] == [
        (1, time(9, 0)),
        (1, time(15, 0)),
        (4, time(18, 0)),
    ]
    assert all(item.teacher_ids == [teacher_id] for item in result)
    assert {item.slot_id for item in result} == {slot.id for slot in slots}


@pytest.mark.asyncio
async def test_requested_teacher_narrows_candidates() -> None:
    first, second = uuid4(), uuid4()
    service, _ = _service(
        [
            FakeSlot(first, 1, time(9, 0), time(10, 0)),
            FakeSlot(second, 2, time(9, 0), time(10, 0)),
        ],
    )

    result = await service.slots_for_course(FakeCourse(CourseTypeEnum.DUO, [first, second]), second)

    assert [(item.day_of_week, item.teacher_ids) for item in result] == [(2, [second])]


@pytest.mark.asyncio
async def test_group_without_common_tuesday_slot_has_nothing() -> None:
    first, second = uuid4(), uuid4()
    service, _ = _service(
        [
            FakeSlot(first, 2, time(10, 0), time(11, 0)),
            FakeSlot(second, 3, time(10, 0), time(11, 0)),
        ],
    )

    result = await service.slots_for_course(FakeCourse(CourseTypeEnum.GROUP, [first, second]))

    assert result == []


@pytest.mark.asyncio
async def test_group_common_slot_lists_every_instructor() -> None:
    first, second = uuid4(), uuid4()
    service, _ = _service(
        [
            FakeSlot(first, 2, time(10, 0), time(11, 0)),
            FakeSlot(second, 2, time(10, 0), time(11, 0)),
            FakeSlot(second, 2, time(14, 0), time(15, 0)),
        ],
    )

    result = await service.slots_for_course(FakeCourse(CourseTypeEnum.GROUP, [first, second]))

    assert len(result) == 1
    assert (result[0].day_of_week, result[0].start_time, result[0].end_time) == (2, time(10, 0), time(11, 0))
    assert result[0].teacher_ids == [first, second]
    assert result[0].slot_id is None


@pytest.mark.asyncio
async def test_containment_matching_accepts_wider_slots() -> None:
    first, second = uuid4(), uuid4()
    slots = [
        FakeSlot(first, 2, time(10, 0), time(11, 0)),
        FakeSlot(second, 2, time(9, 0), time(12, 0)),
    ]
    course = FakeCourse(CourseTypeEnum.GROUP, [first, second])

    exact, _ = _service(slots, matching="exact")
    containment, _ = _service(slots, matching="containment")

    assert await exact.slots_for_course(course) == []
    result = await containment.slots_for_course(course)
    assert [(item.start_time, item.end_time) for item in result] == [(time(10, 0), time(11, 0))]


@pytest.mark.asyncio
async def test_no_availability_and_one_time_courses_have_no_slots() -> None:
    teacher_id = uuid4()
    service, _ = _service([FakeSlot(teacher_id, 1, time(9, 0), time(10, 0))])

    assert await service.slots_for_course(FakeCourse(CourseTypeEnum.SOLO, [uuid4()])) == []
    assert await service.slots_for_course(FakeCourse(CourseTypeEnum.GROUP, [])) == []
    one_time = FakeCourse(CourseTypeEnum.SOLO, [teacher_id], duration_type=DurationTypeEnum.ONE_TIME)
    assert await service.slots_for_course(one_time) == []


@pytest.mark.asyncio
async def test_weekly_availability_is_read_through_cache() -> None:
    teacher_id = uuid4()
    service, repository = _service([FakeSlot(teacher_id, 1, time(9, 0), time(10, 0))])

    first = await service.weekly_availability(teacher_id)
    second = await service.weekly_availability(teacher_id)
    assert repository.reads == 1
    assert first == second

    await service.invalidate_owner(teacher_id)
    await service.weekly_availability(teacher_id)
    assert repository.reads == 2


@pytest.mark.asyncio
async def test_unknown_course_raises_not_found() -> None:
    service, _ = _service([])

    with pytest.raises(NotFoundException):
        await service.get_course(uuid4())


@pytest.mark.asyncio
async def test_teacher_slots_ignore_course_duration() -> None:
    first, second = uuid4(), uuid4()
    service, _ = _service(
        [
            FakeSlot(first, 3, time(9, 0), time(10, 0)),
            FakeSlot(second, 1, time(9, 0), time(10, 0)),
        ],
    )
    one_time = FakeCourse(CourseTypeEnum.SOLO, [first, second], duration_type=DurationTypeEnum.ONE_TIME)

    assert [item.teacher_ids for item in await service.teacher_slots(one_time)] == [[second], [first]]
    assert [item.day_of_week for item in await service.teacher_slots(one_time, first)] == [3]
