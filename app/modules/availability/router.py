"""Availability API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.core.security import AuthContext, get_auth_context
from app.modules.availability.schemas import (
    CopyDayRequest,
    SlotCreate,
    SlotRead,
    SlotUpdate,
    WeeklyAvailability,
)
from app.modules.availability.service import AvailabilityService, get_availability_service

router = APIRouter(prefix="/availability", tags=["availability"])


@router.get("/{user_id}", response_model=WeeklyAvailability)
async def get_weekly_availability(
    user_id: UUID,
    service: AvailabilityService = Depends(get_availability_service),
    _: AuthContext = Depends(get_auth_context),
) -> WeeklyAvailability:
    """Return seven day buckets of a user's availability."""
    return await service.list_by_owner(user_id)


@router.post("/{user_id}/slots", response_model=SlotRead, status_code=status.HTTP_201_CREATED)
async def add_slot(
    user_id: UUID,
    payload: SlotCreate,
    service: AvailabilityService = Depends(get_availability_service),
    actor: AuthContext = Depends(get_auth_context),
) -> SlotRead:
    """Create weekly availability slot."""
    slot = await service.add_slot(user_id, payload, actor)
    return SlotRead.model_validate(slot)


@router.put("/slots/{slot_id}", response_model=SlotRead)
async def update_slot(
    slot_id: UUID,
    payload: SlotUpdate,
    service: AvailabilityService = Depends(get_availability_service),
    actor: AuthContext = Depends(get_auth_context),
) -> SlotRead:
    """Update availability slot."""
    slot = await service.update_slot(slot_id, payload, actor)
    return SlotRead.model_validate(slot)


@router.delete("/slots/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_slot(
    slot_id: UUID,
    service: AvailabilityService = Depends(get_availability_service),
    actor: AuthContext = Depends(get_auth_context),
) -> None:
    """Delete availability slot."""
    await service.delete_slot(slot_id, actor)


@router.post("/{user_id}/copy-day", response_model=list[SlotRead])
async def copy_day(
    user_id: UUID,
    payload: CopyDayRequest,
    service: AvailabilityService = Depends(get_availability_service),
    actor: AuthContext = Depends(get_auth_context),
) -> list[SlotRead]:
    """Replace one day's slots with another day's slots."""
    slots = await service.copy_day(user_id, payload, actor)
    return [SlotRead.model_validate(slot) for slot in slots]
