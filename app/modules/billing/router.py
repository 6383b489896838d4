"""Billing API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from app.core.security import AuthContext, get_auth_context
from app.modules.billing.schemas import PaymentLinkRequest, PaymentLinkResult
from app.modules.billing.service import BillingService, get_billing_service

router = APIRouter(prefix="/billing", tags=["billing"])


@router.post("/payment-links", response_model=PaymentLinkResult, status_code=status.HTTP_201_CREATED)
async def generate_payment_link(
    payload: PaymentLinkRequest,
    service: BillingService = Depends(get_billing_service),
    actor: AuthContext = Depends(get_auth_context),
) -> PaymentLinkResult:
    """Issue a payment link after the student's trial class."""
    return await service.generate_payment_link(payload, actor)
