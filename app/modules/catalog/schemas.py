"""Catalog schemas."""

from __future__ import annotations

from datetime import time
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import CourseTypeEnum, DurationTypeEnum


class ClassTypeRead(BaseModel):
    """Class type response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    duration_value: int | None
    duration_unit: str | None
    max_students: int


class CourseRead(BaseModel):
    """Course descriptor response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    course_type: CourseTypeEnum
    duration_type: DurationTypeEnum
    instructor_ids: list[UUID]
    class_type_id: UUID | None
    price: Decimal
    currency: str


class BookableSlot(BaseModel):
    """Weekly slot a student can be scheduled into."""

    day_of_week: int
    start_time: time
    end_time: time
    teacher_ids: list[UUID] = Field(default_factory=list)
    slot_id: UUID | None = None

    def sort_key(self) -> tuple[int, time, time]:
        return self.day_of_week, self.start_time, self.end_time
