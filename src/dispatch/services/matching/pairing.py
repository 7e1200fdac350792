"""Pairing orchestration: gate, locate, measure, price, offer."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Sequence

from ...config import settings
from ...data.vehicle_types import get_vehicle_type
from ...errors import ConfigurationError, StateConflictError, ValidationError
from ...models.domain import Delivery, Offer
from ...persistence import deliveries as delivery_store
from ..geospatial import distance_between, round_distance_km, route_distance
from ..pricing import compute_price
from .locator import LocatorStrategy, locate_drivers, select_closest
from .offers import write_offer
from .scheduling import check_schedule

logger = logging.getLogger(__name__)


def delivery_route_km(delivery: Delivery) -> float:
    """Route length used for pricing, rounded to one decimal."""
    if delivery.is_multi_stop and delivery.stops:
        cached = [stop.distance_from_previous_km for stop in delivery.stops]
        if all(value is not None for value in cached):
            total = sum(cached)
        else:
            total = route_distance(delivery.pickup, [stop.location for stop in delivery.stops]).total_km
    elif delivery.dropoff is not None:
        total = distance_between(delivery.pickup, delivery.dropoff)
    elif delivery.stops:
        total = route_distance(delivery.pickup, [stop.location for stop in delivery.stops]).total_km
    else:
        raise ValidationError(
            f"Delivery {delivery.id} has no dropoff location",
            code="missing_dropoff",
            delivery_id=delivery.id,
        )
    return round_distance_km(total)


def pair_driver(
    delivery_id: str,
    *,
    now: datetime | None = None,
    strategies: Sequence[LocatorStrategy] | None = None,
) -> dict:
    """Offer a pending delivery to the closest eligible driver.

    Rejections that are part of normal flow (too early for a scheduled
    delivery) come back as a payload with ``ok`` false; everything else is
    raised as a ``DispatchError`` subclass.
    """
    if not delivery_id:
        raise ValidationError("deliveryId is required", code="missing_delivery_id")
    now = now or datetime.now(timezone.utc)

    delivery = delivery_store.get_delivery(delivery_id)
    if not delivery.is_matchable:
        raise StateConflictError(
            f"Delivery is not awaiting a driver (status: {delivery.status})",
            code="already_handled",
            delivery_id=delivery.id,
            status=delivery.status,
        )

    hold = check_schedule(delivery, now)
    if hold is not None:
        logger.info(
            f"Delivery {delivery.id} scheduled for {hold.scheduled_pickup_time.isoformat()}, "
            f"matching in {hold.minutes_until_assignment} minute(s)"
        )
        return hold.as_payload(delivery.id)

    ranked = locate_drivers(delivery.pickup, strategies=strategies)
    logger.info(f"Found {len(ranked)} candidate driver(s) for delivery {delivery.id}")
    closest = select_closest(ranked)

    if not delivery.vehicle_type_id:
        raise ConfigurationError(
            f"Delivery {delivery.id} has no vehicle type",
            code="vehicle_type_missing",
            delivery_id=delivery.id,
        )
    vehicle = get_vehicle_type(delivery.vehicle_type_id)
    distance_km = delivery_route_km(delivery)
    price = compute_price(
        vehicle,
        distance_km=distance_km,
        stop_count=delivery.total_stops,
        is_multi_stop=delivery.is_multi_stop,
        apply_vat=settings.applies_vat,
    )

    offer = Offer(
        delivery_id=delivery.id,
        driver_id=closest.driver.id,
        distance_km=distance_km,
        total_price=price.total,
    )
    write_offer(offer, now=now)

    return {
        "ok": True,
        "delivery_id": delivery.id,
        "offered_driver_id": offer.driver_id,
        "drivers_found": len(ranked),
        "closest_driver_distance": round(closest.distance_km, 2),
        "distance_km": distance_km,
        "total_price": price.total,
        "status": "driver_offered",
    }
