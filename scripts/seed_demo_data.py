"""Seed idempotent demo data for local/non-production environments."""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import dataclass
from datetime import time
from decimal import Decimal
from uuid import NAMESPACE_URL, UUID, uuid5

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import get_cache_backend
from app.core.config import get_settings
from app.core.database import SessionLocal, close_engine
from app.core.enums import CourseTypeEnum, DurationTypeEnum, RoleEnum
from app.core.security import AuthContext, create_access_token
from app.modules.availability.models import AvailabilitySlot
from app.modules.availability.repository import AvailabilityRepository
from app.modules.availability.schemas import SlotCreate
from app.modules.availability.service import AvailabilityService
from app.modules.catalog.models import ClassType, Course
from app.modules.trials.models import Student


def _demo_id(name: str) -> UUID:
    return uuid5(NAMESPACE_URL, f"https://trillroute.dev/demo/{name}")


DEMO_ADMIN_ID = _demo_id("admin")
DEMO_TEACHER_IDS = (_demo_id("teacher-1"), _demo_id("teacher-2"))
DEMO_STUDENT_ID = _demo_id("student")

# (day_of_week, start, end) with 0 = Sunday.
DEMO_WEEKLY_SLOTS = {
    DEMO_TEACHER_IDS[0]: ((1, time(10, 0), time(11, 0)), (2, time(14, 0), time(16, 0)), (4, time(18, 0), time(19, 0))),
    DEMO_TEACHER_IDS[1]: ((2, time(14, 0), time(16, 0)), (3, time(10, 0), time(11, 0))),
}


@dataclass(slots=True)
class SeedStats:
    class_types_created: int = 0
    courses_created: int = 0
    student_created: bool = False
    slots_created: int = 0


async def _ensure_class_type(
    session: AsyncSession,
    *,
    name: str,
    duration_value: int,
    duration_unit: str,
    max_students: int,
) -> tuple[ClassType, bool]:
    class_type = await session.scalar(select(ClassType).where(ClassType.name == name))
    if class_type is not None:
        return class_type, False
    class_type = ClassType(
        id=_demo_id(f"class-type/{name}"),
        name=name,
        duration_value=duration_value,
        duration_unit=duration_unit,
        max_students=max_students,
    )
    session.add(class_type)
    await session.flush()
    return class_type, True


async def _ensure_course(
    session: AsyncSession,
    *,
    title: str,
    course_type: CourseTypeEnum,
    duration_type: DurationTypeEnum,
    instructor_ids: list[UUID],
    class_type: ClassType,
    price: Decimal,
) -> bool:
    course_id = _demo_id(f"course/{title}")
    if await session.get(Course, course_id) is not None:
        return False
    session.add(
        Course(
            id=course_id,
            title=title,
            course_type=course_type,
            duration_type=duration_type,
            instructor_ids=instructor_ids,
            class_type_id=class_type.id,
            price=price,
            currency=get_settings().payment_currency,
        ),
    )
    await session.flush()
    return True


async def _ensure_student(session: AsyncSession) -> bool:
    if await session.get(Student, DEMO_STUDENT_ID) is not None:
        return False
    session.add(Student(id=DEMO_STUDENT_ID, full_name="Demo Student", trial_course_ids=[]))
    await session.flush()
    return True


async def _ensure_demo_slots(session: AsyncSession) -> int:
    admin = AuthContext(user_id=DEMO_ADMIN_ID, role=RoleEnum.ADMIN)
    availability = AvailabilityService(AvailabilityRepository(session), get_cache_backend())
    created = 0

    for owner_id, slots in DEMO_WEEKLY_SLOTS.items():
        for day, start_time, end_time in slots:
            existing = await session.scalar(
                select(AvailabilitySlot).where(
                    AvailabilitySlot.owner_id == owner_id,
                    AvailabilitySlot.day_of_week == day,
                    AvailabilitySlot.start_time == start_time,
                    AvailabilitySlot.end_time == end_time,
                ),
            )
            if existing is not None:
                continue
            await availability.add_slot(
                owner_id,
                SlotCreate(day_of_week=day, start_time=start_time, end_time=end_time),
                admin,
            )
            created += 1
    return created


async def _run_seed(*, allow_production: bool) -> SeedStats:
    settings = get_settings()
    app_env = settings.app_env.strip().lower()
    if app_env in {"production", "prod"} and not allow_production:
        raise RuntimeError(
            "Refusing to seed demo data in production. "
            "Re-run with --allow-production only if you are absolutely sure.",
        )

    stats = SeedStats()

    async with SessionLocal() as session:
        try:
            private, private_created = await _ensure_class_type(
                session,
                name="Private lesson",
                duration_value=1,
                duration_unit="hours",
                max_students=1,
            )
            group, group_created = await _ensure_class_type(
                session,
                name="Ensemble rehearsal",
                duration_value=2,
                duration_unit="hours",
                max_students=8,
            )
            stats.class_types_created = sum([private_created, group_created])

            courses = [
                ("Guitar Foundations", CourseTypeEnum.SOLO, DurationTypeEnum.RECURRING, [DEMO_TEACHER_IDS[0]], private, Decimal("120.00")),
                ("Piano Duets", CourseTypeEnum.DUO, DurationTypeEnum.RECURRING, [DEMO_TEACHER_IDS[0]], private, Decimal("90.00")),
                ("Chamber Ensemble", CourseTypeEnum.GROUP, DurationTypeEnum.RECURRING, list(DEMO_TEACHER_IDS), group, Decimal("60.00")),
                ("Songwriting Masterclass", CourseTypeEnum.SOLO, DurationTypeEnum.ONE_TIME, [DEMO_TEACHER_IDS[1]], private, Decimal("0")),
            ]
            for title, course_type, duration_type, instructors, class_type, price in courses:
                created = await _ensure_course(
                    session,
                    title=title,
                    course_type=course_type,
                    duration_type=duration_type,
                    instructor_ids=instructors,
                    class_type=class_type,
                    price=price,
                )
                stats.courses_created += int(created)

            stats.student_created = await _ensure_student(session)
            stats.slots_created = await _ensure_demo_slots(session)

            await session.commit()
        except Exception:
            await session.rollback()
            raise

    return stats


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Seed idempotent demo data for Trillroute (class types, courses, "
            "a student and weekly teacher availability)."
        ),
    )
    parser.add_argument(
        "--allow-production",
        action="store_true",
        help="Allow seeding even when APP_ENV is production/prod.",
    )
    return parser


def _print_summary(stats: SeedStats) -> None:
    print("Demo seed completed.")
    print(f"- Class types created: {stats.class_types_created}")
    print(f"- Courses created: {stats.courses_created}")
    print(f"- Student created: {stats.student_created}")
    print(f"- Availability slots created: {stats.slots_created}")
    print("")
    print("Demo bearer tokens (non-production only):")
    print(f"- admin:   {create_access_token(str(DEMO_ADMIN_ID), RoleEnum.ADMIN)}")
    for index, teacher_id in enumerate(DEMO_TEACHER_IDS, start=1):
        print(f"- teacher {index}: {create_access_token(str(teacher_id), RoleEnum.TEACHER)}")
    print(f"- student: {create_access_token(str(DEMO_STUDENT_ID), RoleEnum.STUDENT)}")


def main() -> int:
    parser = _build_parser()
    args = parser.parse_args()

    try:
        stats = asyncio.run(_run_seed(allow_production=args.allow_production))
    except Exception as exc:
        print(f"Demo seed failed: {exc}")
        return 1
    finally:
        asyncio.run(close_engine())

    _print_summary(stats)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
