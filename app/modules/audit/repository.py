"""Outbox repository layer."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, AsyncSessionTransaction

from app.core.enums import OutboxStatusEnum
from app.modules.audit.models import OutboxEvent


class AuditRepository:
    """DB operations for the outbox."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def savepoint(self) -> AsyncSessionTransaction:
        return self.session.begin_nested()

    async def create_outbox_event(
        self,
        aggregate_type: str,
        aggregate_id: str,
        event_type: str,
        payload: dict,
    ) -> OutboxEvent:
        event = OutboxEvent(
            aggregate_type=aggregate_type,
            aggregate_id=aggregate_id,
            event_type=event_type,
            payload=payload,
            status=OutboxStatusEnum.PENDING,
        )
        self.session.add(event)
        await self.session.flush()
        return event
