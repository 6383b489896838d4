"""Trial ledger API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from app.core.security import AuthContext, get_auth_context
from app.modules.trials.schemas import TrialRecordResult, TrialRequest, TrialStatusRead
from app.modules.trials.service import TrialLedgerService, get_trial_ledger_service

router = APIRouter(prefix="/trials", tags=["trials"])


@router.post("", response_model=TrialRecordResult, status_code=status.HTTP_201_CREATED)
async def record_trial(
    payload: TrialRequest,
    response: Response,
    service: TrialLedgerService = Depends(get_trial_ledger_service),
    actor: AuthContext = Depends(get_auth_context),
) -> TrialRecordResult:
    """Record a trial class; repeats answer 200 without changes."""
    result = await service.record_trial(payload, actor)
    if not result.created:
        response.status_code = status.HTTP_200_OK
    return result


@router.get("/students/{student_id}/courses/{course_id}", response_model=TrialStatusRead)
async def get_trial_status(
    student_id: UUID,
    course_id: UUID,
    service: TrialLedgerService = Depends(get_trial_ledger_service),
    _: AuthContext = Depends(get_auth_context),
) -> TrialStatusRead:
    """Report whether the student completed a trial for the course."""
    completed = await service.has_completed_trial(student_id, course_id)
    return TrialStatusRead(student_id=student_id, course_id=course_id, completed=completed)
