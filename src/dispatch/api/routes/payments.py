"""Payment gateway endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ...schemas.payments import CaptureRequest, CheckoutRequest, VoidRequest
from ...services.payments import capture_payment, create_checkout, void_payment
from ..dependencies import get_caller_id, get_current_user_id

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/checkout", status_code=status.HTTP_200_OK)
def checkout(payload: CheckoutRequest, customer_id: str = Depends(get_current_user_id)) -> dict:
    return create_checkout(payload, customer_id=customer_id)


@router.post("/capture", status_code=status.HTTP_200_OK)
def capture(payload: CaptureRequest, _caller: str = Depends(get_caller_id)) -> dict:
    return capture_payment(payload)


@router.post("/void", status_code=status.HTTP_200_OK)
def void(payload: VoidRequest, _caller: str = Depends(get_caller_id)) -> dict:
    return void_payment(payload)
