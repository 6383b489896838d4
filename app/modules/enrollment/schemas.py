"""Enrollment schemas."""

from __future__ import annotations

from datetime import datetime, time
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.core.enums import EnrollmentIntentStatusEnum, EnrollmentStateEnum
from app.modules.calendar.schemas import CalendarSessionRead, SchedulingWarning
from app.modules.catalog.schemas import BookableSlot


class SlotSelection(BaseModel):
    """Weekly slot picked by the student, by id or by day and times."""

    day_of_week: int = Field(ge=0, le=6)
    start_time: time
    end_time: time
    slot_id: UUID | None = None

    @model_validator(mode="after")
    def validate_range(self) -> SlotSelection:
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class EnrollmentRequest(BaseModel):
    course_id: UUID
    student_id: UUID
    teacher_id: UUID | None = None
    slot: SlotSelection | None = None


class IntentCompleteRequest(BaseModel):
    slot: SlotSelection


class EnrollmentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    course_id: UUID
    student_id: UUID
    teacher_id: UUID | None
    source_slot_id: UUID | None
    day_of_week: int | None
    start_time: time | None
    end_time: time | None
    created_at: datetime


class EnrollmentIntentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    course_id: UUID
    student_id: UUID
    teacher_id: UUID | None
    status: EnrollmentIntentStatusEnum
    expires_at: datetime


class EnrollmentDecision(BaseModel):
    """Whether enrollment can go ahead or waits for a slot choice."""

    state: EnrollmentStateEnum
    proceed: bool
    intent: EnrollmentIntentRead | None = None
    candidate_slots: list[BookableSlot] = Field(default_factory=list)


class EnrollmentResult(BaseModel):
    state: EnrollmentStateEnum
    enrollment: EnrollmentRead | None = None
    sessions: list[CalendarSessionRead] = Field(default_factory=list)
    warnings: list[SchedulingWarning] = Field(default_factory=list)
    intent: EnrollmentIntentRead | None = None
    candidate_slots: list[BookableSlot] = Field(default_factory=list)


class ExpireIntentsResult(BaseModel):
    expired: int
