"""Billing schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import OrderStatusEnum


class PaymentLinkRequest(BaseModel):
    """Request a payment link for a course."""

    course_id: UUID
    student_id: UUID
    amount: Decimal = Field(ge=0, max_digits=10, decimal_places=2)


class PaymentOrderRead(BaseModel):
    """Payment order response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_reference: str
    student_id: UUID
    course_id: UUID
    amount: Decimal
    currency: str
    status: OrderStatusEnum
    payment_link: str | None
    created_at: datetime


class PaymentLinkResult(BaseModel):
    """Issued link, or a direct enrollment for free courses."""

    order: PaymentOrderRead
    payment_link: str | None
    enrolled: bool = False
