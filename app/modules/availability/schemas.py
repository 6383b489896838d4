"""Availability schemas."""

from __future__ import annotations

from datetime import datetime, time
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class SlotCreate(BaseModel):
    """Create availability slot request."""

    day_of_week: int = Field(ge=0, le=6)
    start_time: time
    end_time: time
    category: str = Field(default="Session", max_length=64)


class SlotUpdate(BaseModel):
    """Update availability slot request."""

    start_time: time
    end_time: time
    category: str | None = Field(default=None, max_length=64)


class CopyDayRequest(BaseModel):
    """Replace one weekday's slots with copies of another's."""

    from_day: int = Field(ge=0, le=6)
    to_day: int = Field(ge=0, le=6)


class SlotRead(BaseModel):
    """Availability slot response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    owner_id: UUID
    day_of_week: int
    start_time: time
    end_time: time
    category: str
    created_at: datetime
    updated_at: datetime


class DayAvailability(BaseModel):
    """Slots of one weekday ordered by start time."""

    day_of_week: int
    day_name: str
    slots: list[SlotRead] = Field(default_factory=list)


class WeeklyAvailability(BaseModel):
    """Seven day buckets (Sunday first) for one owner."""

    owner_id: UUID
    days: list[DayAvailability]

    def slots_for_day(self, day_of_week: int) -> list[SlotRead]:
        return self.days[day_of_week].slots

    def all_slots(self) -> list[SlotRead]:
        return [slot for day in self.days for slot in day.slots]
