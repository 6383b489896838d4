"""Calendar API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from app.core.security import AuthContext, get_auth_context
from app.modules.calendar.schemas import CalendarSessionRead
from app.modules.calendar.service import CalendarService, get_calendar_service
from app.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/calendar", tags=["calendar"])


@router.get("/users/{user_id}/sessions", response_model=Page[CalendarSessionRead])
async def list_user_sessions(
    user_id: UUID,
    pagination=Depends(get_pagination_params),
    service: CalendarService = Depends(get_calendar_service),
    actor: AuthContext = Depends(get_auth_context),
) -> Page[CalendarSessionRead]:
    """List calendar sessions of a teacher or student."""
    items, total = await service.list_for_user(user_id, actor, pagination.limit, pagination.offset)
    serialized = [CalendarSessionRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)
