from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, time
from decimal import Decimal
from urllib.parse import parse_qs, urlsplit
from uuid import UUID, uuid4

import pytest

from app.core.enums import OrderStatusEnum, RoleEnum
from app.core.security import AuthContext
from app.modules.billing.schemas import PaymentLinkRequest
from app.modules.billing.service import BillingService, build_payment_link
from app.shared.exceptions import NotFoundException, TrialRequiredError, UnauthorizedException


@dataclass
class FakeCourse:
    id: UUID = field(default_factory=uuid4)
    title: str = "Piano for Adults"
    currency: str | None = "EUR"


@dataclass
class FakeOrder:
    order_reference: str
    student_id: UUID
    course_id: UUID
    amount: Decimal
    currency: str
    status: OrderStatusEnum
    payment_link: str | None
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=lambda: datetime(2026, 10, 19, 12, 0, tzinfo=UTC))


@dataclass
class FakeEnrollment:
    course_id: UUID
    student_id: UUID
    teacher_id: UUID | None
    source_slot_id: UUID | None
    day_of_week: int | None
    start_time: time | None
    end_time: time | None
    enrolled_by: UUID | None
    id: UUID = field(default_factory=uuid4)


class FakeBillingRepository:
    def __init__(self) -> None:
        self.orders: list[FakeOrder] = []

    async def create_order(self, **kwargs) -> FakeOrder:
        order = FakeOrder(**kwargs)
        self.orders.append(order)
        return order


class FakeEnrollmentRepository:
    def __init__(self) -> None:
        self.enrollments: dict[tuple[UUID, UUID], FakeEnrollment] = {}
        self.locks: list[tuple[UUID, UUID]] = []

    async def lock_pair(self, course_id: UUID, student_id: UUID) -> None:
        self.locks.append((course_id, student_id))

    async def get_enrollment(self, course_id: UUID, student_id: UUID) -> FakeEnrollment | None:
        return self.enrollments.get((course_id, student_id))

    async def create_enrollment(self, **kwargs) -> FakeEnrollment:
        enrollment = FakeEnrollment(**kwargs)
        self.enrollments[(enrollment.course_id, enrollment.student_id)] = enrollment
        return enrollment


class FakeTrials:
    def __init__(self, completed: set[tuple[UUID, UUID]]) -> None:
        self.completed = completed
        self.operations: list[str] = []

    async def ensure_trial_completed(self, student_id: UUID, course_id: UUID, operation: str) -> None:
        self.operations.append(operation)
        if (student_id, course_id) not in self.completed:
            raise TrialRequiredError("Student must complete a trial class for this course first")


class FakeCatalog:
    def __init__(self, course: FakeCourse) -> None:
        self.course = course

    async def get_course(self, course_id: UUID) -> FakeCourse:
        if course_id != self.course.id:
            raise NotFoundException("Course not found")
        return self.course


class FakeSink:
    def __init__(self) -> None:
        self.outcomes: list = []

    async def notify(self, outcome) -> None:
        self.outcomes.append(outcome)


def _build(
    course: FakeCourse,
    completed: set[tuple[UUID, UUID]],
) -> tuple[BillingService, FakeBillingRepository, FakeEnrollmentRepository, FakeTrials, FakeSink]:
    orders = FakeBillingRepository()
    enrollments = FakeEnrollmentRepository()
    trials = FakeTrials(completed)
    sink = FakeSink()
    service = BillingService(orders, enrollments, trials, FakeCatalog(course), sink)
    return service, orders, enrollments, trials, sink


def test_payment_link_carries_order_student_and_amount() -> None:
    course_id, student_id = uuid4(), uuid4()

    link = build_payment_link("https://pay.example.com/", course_id, "order_abc", student_id, Decimal("49.90"))

    parts = urlsplit(link)
    assert f"{parts.scheme}://{parts.netloc}{parts.path}" == f"https://pay.example.com/payment/{course_id}"
    assert parse_qs(parts.query) == {
        "order_id": ["order_abc"],
        "student_id": [str(student_id)],
        "amount": ["49.90"],
    }


@pytest.mark.asyncio
async def test_payment_link_requires_trial_and_writes_no_order() -> None:
    course = FakeCourse()
    student_id = uuid4()
    service, orders, enrollments, trials, sink = _build(course, set())
    actor = AuthContext(user_id=student_id, role=RoleEnum.STUDENT)

    with pytest.raises(TrialRequiredError):
        await service.generate_payment_link(
            PaymentLinkRequest(course_id=course.id, student_id=student_id, amount=Decimal("120")),
            actor,
        )

    assert trials.operations == ["payment_link"]
    assert orders.orders == []
    assert enrollments.enrollments == {}
    assert sink.outcomes == []


@pytest.mark.asyncio
async def test_paid_course_gets_pending_order_and_link() -> None:
    course = FakeCourse()
    student_id = uuid4()
    service, orders, enrollments, _, sink = _build(course, {(student_id, course.id)})
    actor = AuthContext(user_id=student_id, role=RoleEnum.STUDENT)

    result = await service.generate_payment_link(
        PaymentLinkRequest(course_id=course.id, student_id=student_id, amount=Decimal("120.00")),
        actor,
    )

    assert result.enrolled is False
    assert len(orders.orders) == 1
    order = orders.orders[0]
    assert order.status == OrderStatusEnum.PENDING
    assert order.currency == "EUR"
    assert order.order_reference.startswith("order_")
    assert result.payment_link == order.payment_link
    assert result.payment_link is not None
    assert f"/payment/{course.id}?" in result.payment_link
    assert f"order_id={order.order_reference}" in result.payment_link
    assert enrollments.enrollments == {}
    assert [outcome.event_type for outcome in sink.outcomes] == ["payment_link.generated"]
    assert sink.outcomes[0].payload["payment_link"] == result.payment_link


@pytest.mark.asyncio
async def test_free_course_enrolls_directly() -> None:
    course = FakeCourse(currency=None)
    student_id = uuid4()
    service, orders, enrollments, _, sink = _build(course, {(student_id, course.id)})
    actor = AuthContext(user_id=uuid4(), role=RoleEnum.ADMIN)
    payload = PaymentLinkRequest(course_id=course.id, student_id=student_id, amount=Decimal("0"))

    first = await service.generate_payment_link(payload, actor)
    second = await service.generate_payment_link(payload, actor)

    assert first.enrolled is True
    assert first.payment_link is None
    assert first.order.status == OrderStatusEnum.FREE
    assert first.order.currency == "USD"
    assert second.enrolled is True
    assert len(enrollments.enrollments) == 1
    assert enrollments.locks == [(course.id, student_id)] * 2
    assert [outcome.event_type for outcome in sink.outcomes] == ["enrollment.free", "enrollment.free"]


@pytest.mark.asyncio
async def test_student_cannot_request_link_for_someone_else() -> None:
    course = FakeCourse()
    service, orders, _, trials, _ = _build(course, set())

    with pytest.raises(UnauthorizedException):
        await service.generate_payment_link(
            PaymentLinkRequest(course_id=course.id, student_id=uuid4(), amount=Decimal("10")),
            AuthContext(user_id=uuid4(), role=RoleEnum.STUDENT),
        )

    assert trials.operations == []
    assert orders.orders == []
