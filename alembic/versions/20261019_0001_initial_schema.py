"""Initial scheduling schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 10:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


course_type_enum = sa.Enum("solo", "duo", "group", name="course_type_enum", native_enum=False)
duration_type_enum = sa.Enum("one_time", "recurring", name="duration_type_enum", native_enum=False)
session_audience_enum = sa.Enum("teacher", "student", name="session_audience_enum", native_enum=False)
session_kind_enum = sa.Enum("class", "trial", name="session_kind_enum", native_enum=False)
enrollment_intent_status_enum = sa.Enum(
    "pending",
    "completed",
    "expired",
    name="enrollment_intent_status_enum",
    native_enum=False,
)
order_status_enum = sa.Enum("pending", "free", name="order_status_enum", native_enum=False)
outbox_status_enum = sa.Enum("pending", "processed", "failed", name="outbox_status_enum", native_enum=False)


def _id_col() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False)


def _created_col() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def _updated_col() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False)


def _uuid_array() -> postgresql.ARRAY:
    return postgresql.ARRAY(postgresql.UUID(as_uuid=True))


def upgrade() -> None:
    op.create_table(
        "availability_slots",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("owner_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("day_of_week", sa.SmallInteger(), nullable=False),
        sa.Column("start_time", sa.Time(timezone=False), nullable=False),
        sa.Column("end_time", sa.Time(timezone=False), nullable=False),
        sa.Column("category", sa.String(length=64), nullable=False),
        sa.CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_availability_slots_day_of_week_range"),
        sa.CheckConstraint("start_time < end_time", name="ck_availability_slots_start_before_end"),
    )
    op.create_index("ix_availability_slots_owner_id", "availability_slots", ["owner_id"], unique=False)
    op.create_index("ix_availability_slots_day_of_week", "availability_slots", ["day_of_week"], unique=False)

    op.create_table(
        "class_types",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("duration_value", sa.Integer(), nullable=True),
        sa.Column("duration_unit", sa.String(length=16), nullable=True),
        sa.Column("max_students", sa.Integer(), nullable=False),
    )

    op.create_table(
        "courses",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("course_type", course_type_enum, nullable=False),
        sa.Column("duration_type", duration_type_enum, nullable=False),
        sa.Column("instructor_ids", _uuid_array(), nullable=False),
        sa.Column("class_type_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.ForeignKeyConstraint(
            ["class_type_id"],
            ["class_types.id"],
            name="fk_courses_class_type_id_class_types",
            ondelete="SET NULL",
        ),
    )

    op.create_table(
        "students",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("trial_course_ids", _uuid_array(), nullable=False),
    )

    op.create_table(
        "trial_bookings",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("student_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("course_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("teacher_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("booked_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("slot", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.ForeignKeyConstraint(
            ["student_id"],
            ["students.id"],
            name="fk_trial_bookings_student_id_students",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["course_id"],
            ["courses.id"],
            name="fk_trial_bookings_course_id_courses",
            ondelete="CASCADE",
        ),
    )
    op.create_index(
        "ix_trial_bookings_student_course",
        "trial_bookings",
        ["student_id", "course_id"],
        unique=False,
    )

    op.create_table(
        "enrollments",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("course_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("student_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("teacher_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("source_slot_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("day_of_week", sa.SmallInteger(), nullable=True),
        sa.Column("start_time", sa.Time(timezone=False), nullable=True),
        sa.Column("end_time", sa.Time(timezone=False), nullable=True),
        sa.Column("enrolled_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["course_id"],
            ["courses.id"],
            name="fk_enrollments_course_id_courses",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["student_id"],
            ["students.id"],
            name="fk_enrollments_student_id_students",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("course_id", "student_id", name="uq_enrollments_course_student"),
    )
    op.create_index("ix_enrollments_course_id", "enrollments", ["course_id"], unique=False)
    op.create_index("ix_enrollments_student_id", "enrollments", ["student_id"], unique=False)

    op.create_table(
        "enrollment_intents",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("course_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("student_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("teacher_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("requested_by", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", enrollment_intent_status_enum, nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["course_id"],
            ["courses.id"],
            name="fk_enrollment_intents_course_id_courses",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["student_id"],
            ["students.id"],
            name="fk_enrollment_intents_student_id_students",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_enrollment_intents_student_id", "enrollment_intents", ["student_id"], unique=False)
    op.create_index("ix_enrollment_intents_status", "enrollment_intents", ["status"], unique=False)
    op.create_index("ix_enrollment_intents_expires_at", "enrollment_intents", ["expires_at"], unique=False)

    op.create_table(
        "calendar_sessions",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("owner_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("audience", session_audience_enum, nullable=False),
        sa.Column("kind", session_kind_enum, nullable=False),
        sa.Column("course_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("student_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("teacher_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("start_at", sa.DateTime(timezone=False), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=False), nullable=False),
        sa.Column("session_number", sa.Integer(), nullable=False),
        sa.Column("total_sessions", sa.Integer(), nullable=False),
        sa.Column("source_slot_id", postgresql.UUID(as_uuid=True), nullable=True),
    )
    op.create_index("ix_calendar_sessions_owner_id", "calendar_sessions", ["owner_id"], unique=False)
    op.create_index("ix_calendar_sessions_start_at", "calendar_sessions", ["start_at"], unique=False)
    op.create_index(
        "ix_calendar_sessions_triple",
        "calendar_sessions",
        ["course_id", "student_id", "teacher_id"],
        unique=False,
    )

    op.create_table(
        "payment_orders",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("order_reference", sa.String(length=64), nullable=False),
        sa.Column("student_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("course_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("status", order_status_enum, nullable=False),
        sa.Column("payment_link", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(
            ["student_id"],
            ["students.id"],
            name="fk_payment_orders_student_id_students",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["course_id"],
            ["courses.id"],
            name="fk_payment_orders_course_id_courses",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("order_reference", name="uq_payment_orders_order_reference"),
    )
    op.create_index("ix_payment_orders_student_id", "payment_orders", ["student_id"], unique=False)
    op.create_index("ix_payment_orders_course_id", "payment_orders", ["course_id"], unique=False)

    op.create_table(
        "outbox_events",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("aggregate_type", sa.String(length=128), nullable=False),
        sa.Column("aggregate_id", sa.String(length=128), nullable=False),
        sa.Column("event_type", sa.String(length=128), nullable=False),
        sa.Column("payload", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("status", outbox_status_enum, nullable=False),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("retries", sa.Integer(), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
    )
    op.create_index("ix_outbox_events_aggregate_type", "outbox_events", ["aggregate_type"], unique=False)
    op.create_index("ix_outbox_events_aggregate_id", "outbox_events", ["aggregate_id"], unique=False)
    op.create_index("ix_outbox_events_event_type", "outbox_events", ["event_type"], unique=False)
    op.create_index("ix_outbox_events_status", "outbox_events", ["status"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_outbox_events_status", table_name="outbox_events")
    op.drop_index("ix_outbox_events_event_type", table_name="outbox_events")
    op.drop_index("ix_outbox_events_aggregate_id", table_name="outbox_events")
    op.drop_index("ix_outbox_events_aggregate_type", table_name="outbox_events")
    op.drop_table("outbox_events")

    op.drop_index("ix_payment_orders_course_id", table_name="payment_orders")
    op.drop_index("ix_payment_orders_student_id", table_name="payment_orders")
    op.drop_table("payment_orders")

    op.drop_index("ix_calendar_sessions_triple", table_name="calendar_sessions")
    op.drop_index("ix_calendar_sessions_start_at", table_name="calendar_sessions")
    op.drop_index("ix_calendar_sessions_owner_id", table_name="calendar_sessions")
    op.drop_table("calendar_sessions")

    op.drop_index("ix_enrollment_intents_expires_at", table_name="enrollment_intents")
    op.drop_index("ix_enrollment_intents_status", table_name="enrollment_intents")
    op.drop_index("ix_enrollment_intents_student_id", table_name="enrollment_intents")
    op.drop_table("enrollment_intents")

    op.drop_index("ix_enrollments_student_id", table_name="enrollments")
    op.drop_index("ix_enrollments_course_id", table_name="enrollments")
    op.drop_table("enrollments")

    op.drop_index("ix_trial_bookings_student_course", table_name="trial_bookings")
    op.drop_table("trial_bookings")
    op.drop_table("students")
    op.drop_table("courses")
    op.drop_table("class_types")

    op.drop_index("ix_availability_slots_day_of_week", table_name="availability_slots")
    op.drop_index("ix_availability_slots_owner_id", table_name="availability_slots")
    op.drop_table("availability_slots")
