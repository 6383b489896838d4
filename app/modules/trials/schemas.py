"""Trial ledger schemas."""

from __future__ import annotations

from datetime import datetime, time
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.modules.calendar.schemas import CalendarSessionRead, SchedulingWarning


class TrialSlot(BaseModel):
    """Weekly slot a trial class is booked into."""

    day_of_week: int = Field(ge=0, le=6)
    start_time: time
    end_time: time
    slot_id: UUID | None = None

    @model_validator(mode="after")
    def validate_range(self) -> TrialSlot:
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class TrialRequest(BaseModel):
    student_id: UUID
    course_id: UUID
    teacher_id: UUID | None = None
    slot: TrialSlot | None = None


class TrialBookingRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    student_id: UUID
    course_id: UUID
    teacher_id: UUID | None
    booked_at: datetime
    slot: dict | None


class TrialRecordResult(BaseModel):
    """Outcome of recording a trial; ``created`` is False for repeats."""

    created: bool
    booking: TrialBookingRead | None = None
    sessions: list[CalendarSessionRead] = Field(default_factory=list)
    warnings: list[SchedulingWarning] = Field(default_factory=list)


class TrialStatusRead(BaseModel):
    student_id: UUID
    course_id: UUID
    completed: bool
