"""Core enums used across modules."""

from enum import StrEnum


class RoleEnum(StrEnum):
    """System roles."""

    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


class CourseTypeEnum(StrEnum):
    """Course capacity / instructor-cardinality mode."""

    SOLO = "solo"
    DUO = "duo"
    GROUP = "group"


class DurationTypeEnum(StrEnum):
    """How a course is delivered."""

    ONE_TIME = "one_time"
    RECURRING = "recurring"


class DurationUnitEnum(StrEnum):
    """Class type duration unit."""

    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"


class SessionAudienceEnum(StrEnum):
    """Which side of a session pair a calendar row belongs to."""

    TEACHER = "teacher"
    STUDENT = "student"


class SessionKindEnum(StrEnum):
    """Calendar session kind."""

    CLASS = "class"
    TRIAL = "trial"


class EnrollmentStateEnum(StrEnum):
    """Enrollment engine states."""

    REQUESTED = "requested"
    TRIAL_VERIFIED = "trial_verified"
    NEEDS_SLOT_SELECTION = "needs_slot_selection"
    SLOT_RESOLVED = "slot_resolved"
    ENROLLED = "enrolled"
    SESSIONS_PROJECTED = "sessions_projected"
    COMPLETE = "complete"
    ABORTED = "aborted"


class EnrollmentIntentStatusEnum(StrEnum):
    """Pending enrollment intent lifecycle."""

    PENDING = "pending"
    COMPLETED = "completed"
    EXPIRED = "expired"


class OrderStatusEnum(StrEnum):
    """Payment order status."""

    PENDING = "pending"
    FREE = "free"


class OutboxStatusEnum(StrEnum):
    """Outbox event status for integration publishing."""

    PENDING = "pending"
    PROCESSED = "processed"
    FAILED = "failed"
