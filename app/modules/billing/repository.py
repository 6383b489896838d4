"""Billing repository layer."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import OrderStatusEnum
from app.modules.billing.models import PaymentOrder


class BillingRepository:
    """DB access methods for billing."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_order(
        self,
        order_reference: str,
        student_id: UUID,
        course_id: UUID,
        amount: Decimal,
        currency: str,
        status: OrderStatusEnum,
        payment_link: str | None,
    ) -> PaymentOrder:
        order = PaymentOrder(
            order_reference=order_reference,
            student_id=student_id,
            course_id=course_id,
            amount=amount,
            currency=currency.upper(),
            status=status,
            payment_link=payment_link,
        )
        self.session.add(order)
        await self.session.flush()
        return order
