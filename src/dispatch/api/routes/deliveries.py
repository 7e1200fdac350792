"""Quote and booking endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ...schemas.deliveries import BookDeliveryRequest, BookMultiStopRequest, QuoteRequest, QuoteResponse
from ...services.booking import book_delivery, book_multi_stop_delivery, quote_delivery
from ..dependencies import get_current_user_id

router = APIRouter(tags=["deliveries"])


@router.post("/quote", response_model=QuoteResponse, status_code=status.HTTP_200_OK)
def quote(payload: QuoteRequest) -> QuoteResponse:
    return quote_delivery(payload)


@router.post("/book_delivery", status_code=status.HTTP_200_OK)
def create_delivery(payload: BookDeliveryRequest, customer_id: str = Depends(get_current_user_id)) -> dict:
    return book_delivery(payload, customer_id=customer_id)


@router.post("/book_multi_stop_delivery", status_code=status.HTTP_200_OK)
def create_multi_stop_delivery(
    payload: BookMultiStopRequest,
    customer_id: str = Depends(get_current_user_id),
) -> dict:
    return book_multi_stop_delivery(payload, customer_id=customer_id)
