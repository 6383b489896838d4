"""Catalog API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.core.security import AuthContext, get_auth_context
from app.modules.catalog.schemas import BookableSlot
from app.modules.catalog.service import SlotCatalogService, get_slot_catalog_service

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("/courses/{course_id}/slots", response_model=list[BookableSlot])
async def list_course_slots(
    course_id: UUID,
    teacher_id: UUID | None = Query(default=None),
    service: SlotCatalogService = Depends(get_slot_catalog_service),
    _: AuthContext = Depends(get_auth_context),
) -> list[BookableSlot]:
    """List weekly slots a student can be scheduled into for course."""
    course = await service.get_course(course_id)
    return await service.slots_for_course(course, teacher_id)
