"""Billing ORM models."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Numeric, String, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, BaseModelMixin
from app.core.enums import OrderStatusEnum


class PaymentOrder(BaseModelMixin, Base):
    """Order created when a payment link is issued for a course."""

    __tablename__ = "payment_orders"

    order_reference: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    student_id: Mapped[UUID] = mapped_column(
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    course_id: Mapped[UUID] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="USD", nullable=False)
    status: Mapped[OrderStatusEnum] = mapped_column(
        SAEnum(OrderStatusEnum, name="order_status_enum", native_enum=False),
        default=OrderStatusEnum.PENDING,
        nullable=False,
    )
    payment_link: Mapped[str | None] = mapped_column(Text, nullable=True)
