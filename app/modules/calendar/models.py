"""Calendar ORM models."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, Enum as SAEnum, Index, Integer, String
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, BaseModelMixin
from app.core.enums import SessionAudienceEnum, SessionKindEnum


class CalendarSession(BaseModelMixin, Base):
    """One side (teacher or student) of a dated class occurrence."""

    __tablename__ = "calendar_sessions"
    __table_args__ = (
        Index("ix_calendar_sessions_triple", "course_id", "student_id", "teacher_id"),
    )

    owner_id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), nullable=False, index=True)
    audience: Mapped[SessionAudienceEnum] = mapped_column(
        SAEnum(SessionAudienceEnum, name="session_audience_enum", native_enum=False),
        nullable=False,
    )
    kind: Mapped[SessionKindEnum] = mapped_column(
        SAEnum(SessionKindEnum, name="session_kind_enum", native_enum=False),
        default=SessionKindEnum.CLASS,
        nullable=False,
    )
    course_id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), nullable=False)
    student_id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), nullable=False)
    teacher_id: Mapped[UUID | None] = mapped_column(PGUUID(as_uuid=True), nullable=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    # Local wall-clock of the school; no zone is stored.
    start_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, index=True)
    end_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    session_number: Mapped[int] = mapped_column(Integer, nullable=False)
    total_sessions: Mapped[int] = mapped_column(Integer, nullable=False)
    source_slot_id: Mapped[UUID | None] = mapped_column(PGUUID(as_uuid=True), nullable=True)
