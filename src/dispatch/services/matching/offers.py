"""Offer lifecycle: write, accept and decline."""

from __future__ import annotations

import logging
from datetime import datetime

from ...data.drivers_repository import set_driver_available
from ...errors import DispatchError, StateConflictError
from ...models.domain import DeliveryStatus, Offer
from ...persistence import deliveries as delivery_store

logger = logging.getLogger(__name__)


def write_offer(offer: Offer, *, now: datetime) -> dict:
    """Move a pending delivery to driver_offered.

    The driver keeps ``is_available`` until they accept.
    """
    row = delivery_store.offer_delivery(
        offer.delivery_id,
        driver_id=offer.driver_id,
        distance_km=offer.distance_km,
        total_price=offer.total_price,
        now=now,
    )
    if row is None:
        logger.warning(f"Delivery {offer.delivery_id} changed state before the offer was written")
        raise StateConflictError(
            "Delivery was already handled by another request",
            code="already_handled",
            delivery_id=offer.delivery_id,
        )
    logger.info(
        f"Offered delivery {offer.delivery_id} to driver {offer.driver_id} "
        f"({offer.distance_km} km, total {offer.total_price})"
    )
    return row


def respond_to_offer(delivery_id: str, driver_id: str, *, accept: bool, now: datetime) -> dict:
    """Apply a driver's accept or decline to an outstanding offer."""
    if accept:
        row = delivery_store.assign_offered_delivery(delivery_id, driver_id=driver_id, now=now)
    else:
        row = delivery_store.release_offered_delivery(delivery_id, driver_id=driver_id, now=now)

    if row is None:
        # Distinguish a missing delivery from one that moved on.
        delivery_store.get_delivery_row(delivery_id, columns="id")
        raise StateConflictError(
            "Delivery is no longer available or not offered to this driver",
            code="offer_unavailable",
            delivery_id=delivery_id,
        )

    if not accept:
        logger.info(f"Driver {driver_id} declined delivery {delivery_id}")
        return {
            "ok": True,
            "message": "Delivery declined",
            "delivery_id": delivery_id,
            "status": DeliveryStatus.PENDING.value,
        }

    try:
        set_driver_available(driver_id, False)
    except DispatchError as exc:
        # The assignment stands; availability is corrected by the driver app or support.
        logger.error(f"Delivery {delivery_id} assigned but driver {driver_id} still marked available: {exc.message}")

    logger.info(f"Driver {driver_id} accepted delivery {delivery_id}")
    return {
        "ok": True,
        "message": "Delivery accepted successfully",
        "delivery_id": delivery_id,
        "status": DeliveryStatus.DRIVER_ASSIGNED.value,
    }
