"""Delivery reads and state transitions against the storage service.

Every transition is a guarded update: the WHERE clause repeats the state the
caller expects, and an empty result means another invocation changed the row
first.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from ..data.rows import coerce_coordinate, coerce_float, isoformat, parse_timestamp
from ..db.supabase import STORAGE_ERRORS, require_client
from ..errors import NotFoundError, UpstreamError, ValidationError
from ..models.domain import Delivery, DeliveryStatus, DeliveryStop, StopType

logger = logging.getLogger(__name__)

_STOP_COLUMNS = (
    "delivery_id, stop_number, stop_type, latitude, longitude, "
    "recipient_name, recipient_phone, distance_from_previous_km"
)


def _stop_from_row(row: dict[str, Any]) -> DeliveryStop:
    location = coerce_coordinate(row.get("latitude"), row.get("longitude"))
    if location is None:
        raise ValueError(f"stop {row.get('stop_number')} has no coordinates")
    return DeliveryStop(
        delivery_id=str(row["delivery_id"]),
        stop_number=int(row["stop_number"]),
        stop_type=StopType(row.get("stop_type") or StopType.DROPOFF.value),
        location=location,
        recipient_name=row.get("recipient_name"),
        recipient_phone=row.get("recipient_phone"),
        distance_from_previous_km=coerce_float(row.get("distance_from_previous_km")),
    )


def delivery_from_row(row: dict[str, Any], stops: list[DeliveryStop] | None = None) -> Delivery:
    pickup = coerce_coordinate(row.get("pickup_latitude"), row.get("pickup_longitude"))
    if pickup is None:
        raise ValidationError(
            f"Delivery {row.get('id')} has no pickup coordinates",
            code="missing_pickup",
            delivery_id=row.get("id"),
        )
    return Delivery(
        id=str(row["id"]),
        status=str(row.get("status") or DeliveryStatus.PENDING.value),
        pickup=pickup,
        dropoff=coerce_coordinate(row.get("delivery_latitude"), row.get("delivery_longitude")),
        vehicle_type_id=row.get("vehicle_type_id"),
        driver_id=row.get("driver_id"),
        distance_km=coerce_float(row.get("distance_km")),
        total_price=coerce_float(row.get("total_price")),
        is_multi_stop=bool(row.get("is_multi_stop")),
        total_stops=int(row.get("total_stops") or 1),
        is_scheduled=bool(row.get("is_scheduled")),
        scheduled_pickup_time=parse_timestamp(row.get("scheduled_pickup_time")),
        stops=stops or [],
    )


def get_delivery_row(delivery_id: str, columns: str = "*") -> dict[str, Any]:
    client = require_client()
    try:
        response = client.table("deliveries").select(columns).eq("id", delivery_id).limit(1).execute()
    except STORAGE_ERRORS as exc:
        logger.error(f"Failed to load delivery {delivery_id}: {exc}")
        raise UpstreamError("Failed to load delivery", code="delivery_lookup_failed") from exc
    if not response.data:
        raise NotFoundError(f"Delivery {delivery_id} not found", code="delivery_not_found", delivery_id=delivery_id)
    return response.data[0]


def get_delivery_stops(delivery_id: str) -> list[DeliveryStop]:
    client = require_client()
    try:
        response = (
            client.table("delivery_stops")
            .select(_STOP_COLUMNS)
            .eq("delivery_id", delivery_id)
            .order("stop_number")
            .execute()
        )
    except STORAGE_ERRORS as exc:
        logger.error(f"Failed to load stops for delivery {delivery_id}: {exc}")
        raise UpstreamError("Failed to load delivery stops", code="stop_lookup_failed") from exc

    stops = [_stop_from_row(row) for row in response.data or []]
    stops.sort(key=lambda stop: stop.stop_number)
    return stops


def get_delivery(delivery_id: str) -> Delivery:
    row = get_delivery_row(delivery_id)
    stops = get_delivery_stops(delivery_id) if row.get("is_multi_stop") else []
    return delivery_from_row(row, stops)


def _guarded_update(delivery_id: str, values: dict[str, Any], *, status: str, driver_id: Optional[str]) -> Optional[dict]:
    client = require_client()
    query = client.table("deliveries").update(values).eq("id", delivery_id).eq("status", status)
    if driver_id is None:
        query = query.is_("driver_id", "null")
    else:
        query = query.eq("driver_id", driver_id)
    try:
        response = query.execute()
    except STORAGE_ERRORS as exc:
        logger.error(f"Guarded update of delivery {delivery_id} from '{status}' failed: {exc}")
        raise UpstreamError("Failed to update delivery", code="delivery_update_failed", delivery_id=delivery_id) from exc
    return response.data[0] if response.data else None


def offer_delivery(
    delivery_id: str,
    *,
    driver_id: str,
    distance_km: float,
    total_price: float,
    now: datetime,
) -> Optional[dict]:
    """pending -> driver_offered. Returns None if the delivery was no longer pending."""
    return _guarded_update(
        delivery_id,
        {
            "status": DeliveryStatus.DRIVER_OFFERED.value,
            "driver_id": driver_id,
            "distance_km": distance_km,
            "total_price": total_price,
            "updated_at": isoformat(now),
        },
        status=DeliveryStatus.PENDING.value,
        driver_id=None,
    )


def assign_offered_delivery(delivery_id: str, *, driver_id: str, now: datetime) -> Optional[dict]:
    """driver_offered -> driver_assigned for the driver holding the offer."""
    return _guarded_update(
        delivery_id,
        {"status": DeliveryStatus.DRIVER_ASSIGNED.value, "updated_at": isoformat(now)},
        status=DeliveryStatus.DRIVER_OFFERED.value,
        driver_id=driver_id,
    )


def release_offered_delivery(delivery_id: str, *, driver_id: str, now: datetime) -> Optional[dict]:
    """driver_offered -> pending, clearing the tentative driver."""
    return _guarded_update(
        delivery_id,
        {"status": DeliveryStatus.PENDING.value, "driver_id": None, "updated_at": isoformat(now)},
        status=DeliveryStatus.DRIVER_OFFERED.value,
        driver_id=driver_id,
    )


def update_delivery(delivery_id: str, values: dict[str, Any]) -> None:
    client = require_client()
    try:
        client.table("deliveries").update(values).eq("id", delivery_id).execute()
    except STORAGE_ERRORS as exc:
        logger.error(f"Failed to update delivery {delivery_id}: {exc}")
        raise UpstreamError("Failed to update delivery", code="delivery_update_failed", delivery_id=delivery_id) from exc


def insert_delivery(payload: dict[str, Any]) -> dict[str, Any]:
    client = require_client()
    try:
        response = client.table("deliveries").insert(payload).execute()
    except STORAGE_ERRORS as exc:
        logger.error(f"Failed to create delivery: {exc}")
        raise UpstreamError("Failed to create delivery", code="delivery_insert_failed") from exc
    if not response.data:
        raise UpstreamError("Delivery insert returned no row", code="delivery_insert_failed")
    return response.data[0]


def insert_delivery_stops(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    client = require_client()
    try:
        response = client.table("delivery_stops").insert(rows).execute()
    except STORAGE_ERRORS as exc:
        logger.error(f"Failed to create {len(rows)} delivery stop(s): {exc}")
        raise UpstreamError("Failed to create delivery stops", code="stop_insert_failed") from exc
    return response.data or []


def delete_delivery(delivery_id: str) -> None:
    client = require_client()
    try:
        client.table("deliveries").delete().eq("id", delivery_id).execute()
    except STORAGE_ERRORS as exc:
        logger.error(f"Failed to delete delivery {delivery_id}: {exc}")
        raise UpstreamError("Failed to delete delivery", code="delivery_delete_failed", delivery_id=delivery_id) from exc


def find_due_scheduled_deliveries(start: datetime, end: datetime) -> list[dict[str, Any]]:
    """Scheduled, unmatched deliveries whose pickup falls inside [start, end]."""
    client = require_client()
    try:
        response = (
            client.table("deliveries")
            .select("id, scheduled_pickup_time")
            .eq("is_scheduled", True)
            .eq("status", DeliveryStatus.PENDING.value)
            .is_("driver_id", "null")
            .gte("scheduled_pickup_time", isoformat(start))
            .lte("scheduled_pickup_time", isoformat(end))
            .execute()
        )
    except STORAGE_ERRORS as exc:
        logger.error(f"Failed to fetch scheduled deliveries: {exc}")
        raise UpstreamError("Failed to fetch scheduled deliveries", code="scheduled_lookup_failed") from exc
    return response.data or []
