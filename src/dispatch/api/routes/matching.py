"""Driver pairing endpoints."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status

from ...errors import ForbiddenError
from ...schemas.matching import AcceptDeliveryRequest, PairDriverRequest
from ...services.matching import assign_scheduled_drivers, pair_driver, respond_to_offer
from ..dependencies import get_current_user_id

router = APIRouter(tags=["matching"])


@router.post("/pair_driver", status_code=status.HTTP_200_OK)
def pair(payload: PairDriverRequest) -> dict:
    """Offer the delivery to the closest eligible driver.

    A scheduled delivery that is not yet due answers 200 with ``ok`` false.
    """
    return pair_driver(payload.deliveryId)


@router.post("/accept_delivery", status_code=status.HTTP_200_OK)
def accept(payload: AcceptDeliveryRequest, user_id: str = Depends(get_current_user_id)) -> dict:
    # Driver profiles share the id of the driver's auth user.
    if user_id != payload.driverId:
        raise ForbiddenError(
            "Drivers can only respond to their own offers",
            code="driver_mismatch",
            delivery_id=payload.deliveryId,
        )
    return respond_to_offer(
        payload.deliveryId,
        payload.driverId,
        accept=payload.accept,
        now=datetime.now(timezone.utc),
    )


@router.post("/assign_scheduled_drivers", status_code=status.HTTP_200_OK)
def assign_scheduled() -> dict:
    return assign_scheduled_drivers()
