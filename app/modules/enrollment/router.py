"""Enrollment API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from app.core.enums import EnrollmentStateEnum, RoleEnum
from app.core.security import AuthContext, get_auth_context, require_roles
from app.modules.enrollment.schemas import (
    EnrollmentRequest,
    EnrollmentResult,
    ExpireIntentsResult,
    IntentCompleteRequest,
)
from app.modules.enrollment.service import EnrollmentService, get_enrollment_service

router = APIRouter(prefix="/enrollments", tags=["enrollments"])


@router.post("", response_model=EnrollmentResult, status_code=status.HTTP_201_CREATED)
async def enroll(
    payload: EnrollmentRequest,
    response: Response,
    service: EnrollmentService = Depends(get_enrollment_service),
    actor: AuthContext = Depends(get_auth_context),
) -> EnrollmentResult:
    """Enroll student; answers 202 with an intent when a slot must be chosen first."""
    result = await service.enroll(payload, actor)
    if result.state == EnrollmentStateEnum.NEEDS_SLOT_SELECTION:
        response.status_code = status.HTTP_202_ACCEPTED
    return result


@router.post(
    "/intents/{intent_id}/complete",
    response_model=EnrollmentResult,
    status_code=status.HTTP_201_CREATED,
)
async def complete_enrollment(
    intent_id: UUID,
    payload: IntentCompleteRequest,
    service: EnrollmentService = Depends(get_enrollment_service),
    actor: AuthContext = Depends(get_auth_context),
) -> EnrollmentResult:
    """Finish a suspended enrollment with the selected slot."""
    return await service.complete_enrollment(intent_id, payload, actor)


@router.post("/intents/expire", response_model=ExpireIntentsResult)
async def expire_intents(
    service: EnrollmentService = Depends(get_enrollment_service),
    actor: AuthContext = Depends(require_roles(RoleEnum.ADMIN)),
) -> ExpireIntentsResult:
    """Expire stale pending enrollment intents."""
    return ExpireIntentsResult(expired=await service.expire_intents(actor))


@router.delete("/{course_id}/students/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
async def withdraw(
    course_id: UUID,
    student_id: UUID,
    service: EnrollmentService = Depends(get_enrollment_service),
    actor: AuthContext = Depends(get_auth_context),
) -> None:
    """Withdraw student from course."""
    await service.withdraw(course_id, student_id, actor)
