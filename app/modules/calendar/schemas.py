"""Calendar schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from app.core.enums import SessionAudienceEnum, SessionKindEnum


class CalendarSessionRead(BaseModel):
    """Calendar session response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    owner_id: UUID
    audience: SessionAudienceEnum
    kind: SessionKindEnum
    course_id: UUID
    student_id: UUID
    teacher_id: UUID | None
    title: str
    start_at: datetime
    end_at: datetime
    session_number: int
    total_sessions: int
    source_slot_id: UUID | None


class SchedulingWarning(BaseModel):
    """Non-fatal scheduling problem reported next to a successful result."""

    code: str
    message: str
