"""Delivery booking with server-side distance and price computation."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from ...config import settings
from ...data.rows import isoformat, parse_timestamp
from ...data.vehicle_types import get_vehicle_type
from ...errors import UpstreamError, ValidationError
from ...models.domain import DeliveryStatus, StopType
from ...persistence import deliveries as delivery_store
from ...schemas.deliveries import BookDeliveryRequest, BookMultiStopRequest, ContactLocation, PaymentInfo
from ..geospatial import distance_between, round_distance_km, route_distance
from ..pricing import compute_price

logger = logging.getLogger(__name__)


def _validate_schedule(is_scheduled: bool, pickup_time: Optional[datetime], now: datetime) -> Optional[datetime]:
    if not is_scheduled:
        return None
    if pickup_time is None:
        raise ValidationError("scheduledPickupTime is required for scheduled deliveries", code="missing_schedule")
    pickup_time = parse_timestamp(pickup_time)
    if pickup_time <= now:
        raise ValidationError("scheduledPickupTime must be in the future", code="schedule_in_past")
    return pickup_time


def _pickup_columns(pickup: ContactLocation) -> dict[str, Any]:
    return {
        "pickup_address": pickup.address,
        "pickup_latitude": pickup.location.lat,
        "pickup_longitude": pickup.location.lng,
        "pickup_contact_name": pickup.contactName,
        "pickup_contact_phone": pickup.contactPhone,
        "pickup_instructions": pickup.instructions,
    }


def _dropoff_columns(dropoff: ContactLocation) -> dict[str, Any]:
    return {
        "delivery_address": dropoff.address,
        "delivery_latitude": dropoff.location.lat,
        "delivery_longitude": dropoff.location.lng,
        "delivery_contact_name": dropoff.contactName,
        "delivery_contact_phone": dropoff.contactPhone,
        "delivery_instructions": dropoff.instructions,
    }


def _payment_columns(payment: Optional[PaymentInfo]) -> dict[str, Any]:
    payment = payment or PaymentInfo()
    return {
        "payment_by": payment.paymentBy,
        "payment_method": payment.paymentMethod,
        "payment_status": payment.paymentStatus or "pending",
        "maya_checkout_id": payment.mayaCheckoutId,
        "payment_reference": payment.paymentReference,
    }


def book_delivery(payload: BookDeliveryRequest, *, customer_id: str, now: datetime | None = None) -> dict:
    now = now or datetime.now(timezone.utc)
    scheduled_time = _validate_schedule(payload.isScheduled, payload.scheduledPickupTime, now)
    vehicle = get_vehicle_type(payload.vehicleTypeId)

    distance_km = max(
        0.0,
        round_distance_km(distance_between(payload.pickup.location.to_coordinate(), payload.dropoff.location.to_coordinate())),
    )
    price = compute_price(vehicle, distance_km=distance_km, apply_vat=settings.applies_vat)

    package = payload.package
    record = {
        "customer_id": customer_id,
        "vehicle_type_id": payload.vehicleTypeId,
        **_pickup_columns(payload.pickup),
        **_dropoff_columns(payload.dropoff),
        "package_description": package.description if package else None,
        "package_weight": package.weightKg if package else None,
        "package_value": package.value if package else None,
        "distance_km": distance_km,
        "total_price": price.total,
        "is_multi_stop": False,
        "total_stops": 1,
        "is_scheduled": scheduled_time is not None,
        "scheduled_pickup_time": isoformat(scheduled_time) if scheduled_time else None,
        "status": DeliveryStatus.PENDING.value,
        **_payment_columns(payload.payment),
    }
    created = delivery_store.insert_delivery(record)
    logger.info(f"Delivery {created.get('id')} booked: {distance_km} km, total {price.total}")
    return {"ok": True, **created, "pricing": price.as_dict()}


def book_multi_stop_delivery(payload: BookMultiStopRequest, *, customer_id: str, now: datetime | None = None) -> dict:
    if not payload.dropoffStops:
        raise ValidationError("At least one dropoff stop is required", code="missing_dropoff_stops")

    now = now or datetime.now(timezone.utc)
    scheduled_time = _validate_schedule(payload.isScheduled, payload.scheduledPickupTime, now)
    vehicle = get_vehicle_type(payload.vehicleTypeId)

    route = route_distance(
        payload.pickup.location.to_coordinate(),
        [stop.location.to_coordinate() for stop in payload.dropoffStops],
    )
    total_stops = len(payload.dropoffStops)
    is_multi_stop = total_stops >= 2
    distance_km = round_distance_km(route.total_km)
    price = compute_price(
        vehicle,
        distance_km=distance_km,
        stop_count=total_stops,
        is_multi_stop=is_multi_stop,
        apply_vat=settings.applies_vat,
    )
    logger.info(f"Multi-stop delivery: {total_stops} stops, {route.total_km:.2f} km, total {price.total}")

    first_stop = payload.dropoffStops[0]
    package = payload.package
    record = {
        "customer_id": customer_id,
        "vehicle_type_id": payload.vehicleTypeId,
        **_pickup_columns(payload.pickup),
        # The first dropoff doubles as the main delivery address.
        **_dropoff_columns(first_stop),
        "package_description": (package.description if package else None) or "Multi-stop delivery",
        "package_weight": package.weightKg if package else None,
        "package_value": package.value if package else None,
        "distance_km": distance_km,
        "total_price": price.total,
        "is_multi_stop": is_multi_stop,
        "total_stops": total_stops,
        "current_stop_index": 0,
        "is_scheduled": scheduled_time is not None,
        "scheduled_pickup_time": isoformat(scheduled_time) if scheduled_time else None,
        "status": DeliveryStatus.PENDING.value,
        **_payment_columns(payload.payment),
    }
    created = delivery_store.insert_delivery(record)
    delivery_id = str(created["id"])

    stop_rows = [
        {
            "delivery_id": delivery_id,
            "stop_number": index + 1,
            "stop_type": StopType.DROPOFF.value,
            "address": stop.address,
            "latitude": stop.location.lat,
            "longitude": stop.location.lng,
            "recipient_name": stop.contactName,
            "recipient_phone": stop.contactPhone,
            "delivery_notes": stop.instructions,
            "package_description": stop.packageDescription,
            "package_weight": stop.packageWeight,
            "status": "pending",
            "distance_from_previous_km": route.segments_km[index],
        }
        for index, stop in enumerate(payload.dropoffStops)
    ]
    try:
        stops = delivery_store.insert_delivery_stops(stop_rows)
    except Exception as exc:
        logger.error(f"Failed to create stops for delivery {delivery_id}, rolling back: {exc}")
        try:
            delivery_store.delete_delivery(delivery_id)
        except UpstreamError as delete_exc:
            logger.error(f"Rollback of delivery {delivery_id} failed, manual cleanup needed: {delete_exc.message}")
        if isinstance(exc, UpstreamError):
            raise
        raise UpstreamError("Failed to create delivery stops", code="stop_insert_failed") from exc

    logger.info(f"Multi-stop delivery created: {delivery_id} with {total_stops} stops")
    return {"ok": True, **created, "stops": stops or stop_rows, "pricing": price.as_dict()}
