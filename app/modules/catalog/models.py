"""Course catalog ORM models (read-only projection)."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Integer, Numeric, String
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, BaseModelMixin
from app.core.enums import CourseTypeEnum, DurationTypeEnum


class ClassType(BaseModelMixin, Base):
    """Class type defining session length and capacity."""

    __tablename__ = "class_types"

    name: Mapped[str] = mapped_column(String(128), nullable=False)
    # Free-form on purpose: malformed values fall back to the default duration.
    duration_value: Mapped[int | None] = mapped_column(Integer, nullable=True)
    duration_unit: Mapped[str | None] = mapped_column(String(16), nullable=True)
    max_students: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class Course(BaseModelMixin, Base):
    """Course descriptor consumed by the scheduling engine."""

    __tablename__ = "courses"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    course_type: Mapped[CourseTypeEnum] = mapped_column(
        SAEnum(CourseTypeEnum, name="course_type_enum", native_enum=False),
        nullable=False,
    )
    duration_type: Mapped[DurationTypeEnum] = mapped_column(
        SAEnum(DurationTypeEnum, name="duration_type_enum", native_enum=False),
        nullable=False,
    )
    instructor_ids: Mapped[list[UUID]] = mapped_column(
        ARRAY(PGUUID(as_uuid=True)),
        default=list,
        nullable=False,
    )
    class_type_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("class_types.id", ondelete="SET NULL"),
        nullable=True,
    )
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="USD", nullable=False)

    class_type: Mapped[ClassType | None] = relationship(lazy="joined")
