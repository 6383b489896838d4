"""Notification seam for scheduling outcomes."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from sqlalchemy.exc import SQLAlchemyError

from app.modules.audit.repository import AuditRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NotificationOutcome:
    """Something a student or teacher should hear about."""

    event_type: str
    aggregate_type: str
    aggregate_id: str
    payload: dict[str, Any] = field(default_factory=dict)


class NotificationSink(Protocol):
    async def notify(self, outcome: NotificationOutcome) -> None: ...


class OutboxNotificationSink:
    """Queue outcomes in the transactional outbox for later delivery."""

    def __init__(self, audit_repository: AuditRepository) -> None:
        self.audit_repository = audit_repository

    async def notify(self, outcome: NotificationOutcome) -> None:
        try:
            async with self.audit_repository.savepoint():
                await self.audit_repository.create_outbox_event(
                    aggregate_type=outcome.aggregate_type,
                    aggregate_id=outcome.aggregate_id,
                    event_type=outcome.event_type,
                    payload=outcome.payload,
                )
        except SQLAlchemyError:
            logger.warning("Failed to queue %s notification for %s", outcome.event_type, outcome.aggregate_id, exc_info=True)
