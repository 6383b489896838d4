"""Billing business logic layer."""

from __future__ import annotations

import logging
from decimal import Decimal
from urllib.parse import urlencode
from uuid import UUID, uuid4

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db_session
from app.core.enums import OrderStatusEnum, RoleEnum
from app.core.security import AuthContext
from app.modules.audit.repository import AuditRepository
from app.modules.billing.repository import BillingRepository
from app.modules.billing.schemas import PaymentLinkRequest, PaymentLinkResult, PaymentOrderRead
from app.modules.catalog.service import SlotCatalogService, build_slot_catalog_service
from app.modules.enrollment.repository import EnrollmentRepository
from app.modules.notifications.sink import NotificationOutcome, NotificationSink, OutboxNotificationSink
from app.modules.trials.service import TrialLedgerService, build_trial_ledger_service
from app.shared.exceptions import UnauthorizedException

logger = logging.getLogger(__name__)

settings = get_settings()


def new_order_reference() -> str:
    return f"order_{uuid4().hex}"


def build_payment_link(base_url: str, course_id: UUID, order_reference: str, student_id: UUID, amount: Decimal) -> str:
    """Checkout URL understood by the payment page."""
    query = urlencode({"order_id": order_reference, "student_id": str(student_id), "amount": str(amount)})
    return f"{base_url.rstrip('/')}/payment/{course_id}?{query}"


class BillingService:
    """Billing domain service."""

    def __init__(
        self,
        repository: BillingRepository,
        enrollment_repository: EnrollmentRepository,
        trials: TrialLedgerService,
        catalog: SlotCatalogService,
        notifications: NotificationSink,
    ) -> None:
        self.repository = repository
        self.enrollment_repository = enrollment_repository
        self.trials = trials
        self.catalog = catalog
        self.notifications = notifications

    async def generate_payment_link(self, payload: PaymentLinkRequest, actor: AuthContext) -> PaymentLinkResult:
        """Issue a payment link, or enroll directly when the amount is zero."""
        if actor.role != RoleEnum.TEACHER and not actor.can_act_for(payload.student_id):
            raise UnauthorizedException("You cannot request payment links for this student")

        await self.trials.ensure_trial_completed(payload.student_id, payload.course_id, "payment_link")
        course = await self.catalog.get_course(payload.course_id)
        currency = course.currency or settings.payment_currency

        if payload.amount == 0:
            return await self._enroll_free(course.id, payload, currency, actor)

        reference = new_order_reference()
        link = build_payment_link(settings.payment_base_url, course.id, reference, payload.student_id, payload.amount)
        order = await self.repository.create_order(
            order_reference=reference,
            student_id=payload.student_id,
            course_id=course.id,
            amount=payload.amount,
            currency=currency,
            status=OrderStatusEnum.PENDING,
            payment_link=link,
        )
        logger.info("Generated payment link %s for student %s course %s", reference, payload.student_id, course.id)
        await self.notifications.notify(
            NotificationOutcome(
                event_type="payment_link.generated",
                aggregate_type="payment_order",
                aggregate_id=str(order.id),
                payload={
                    "order_reference": reference,
                    "student_id": str(payload.student_id),
                    "course_id": str(course.id),
                    "amount": str(payload.amount),
                    "currency": order.currency,
                    "payment_link": link,
                },
            ),
        )
        return PaymentLinkResult(order=PaymentOrderRead.model_validate(order), payment_link=link)

    async def _enroll_free(
        self,
        course_id: UUID,
        payload: PaymentLinkRequest,
        currency: str,
        actor: AuthContext,
    ) -> PaymentLinkResult:
        await self.enrollment_repository.lock_pair(course_id, payload.student_id)
        enrollment = await self.enrollment_repository.get_enrollment(course_id, payload.student_id)
        if enrollment is None:
            enrollment = await self.enrollment_repository.create_enrollment(
                course_id=course_id,
                student_id=payload.student_id,
                teacher_id=None,
                source_slot_id=None,
                day_of_week=None,
                start_time=None,
                end_time=None,
                enrolled_by=actor.user_id,
            )
            logger.info("Enrolled student %s in free course %s", payload.student_id, course_id)

        order = await self.repository.create_order(
            order_reference=new_order_reference(),
            student_id=payload.student_id,
            course_id=course_id,
            amount=Decimal("0"),
            currency=currency,
            status=OrderStatusEnum.FREE,
            payment_link=None,
        )
        await self.notifications.notify(
            NotificationOutcome(
                event_type="enrollment.free",
                aggregate_type="enrollment",
                aggregate_id=str(enrollment.id),
                payload={"course_id": str(course_id), "student_id": str(payload.student_id)},
            ),
        )
        return PaymentLinkResult(order=PaymentOrderRead.model_validate(order), payment_link=None, enrolled=True)


async def get_billing_service(session: AsyncSession = Depends(get_db_session)) -> BillingService:
    """Dependency provider for billing service."""
    return BillingService(
        repository=BillingRepository(session),
        enrollment_repository=EnrollmentRepository(session),
        trials=build_trial_ledger_service(session),
        catalog=build_slot_catalog_service(session),
        notifications=OutboxNotificationSink(AuditRepository(session)),
    )
