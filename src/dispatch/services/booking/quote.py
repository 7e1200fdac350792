"""Price quotes ahead of booking."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

from ...config import settings
from ...data.rows import isoformat
from ...data.vehicle_types import get_vehicle_type
from ...schemas.deliveries import QuoteRequest, QuoteResponse
from ..geospatial import round_distance_km
from ..pricing import compute_price, round_money
from ..routing.directions_client import DirectionsClient


def quote_delivery(
    payload: QuoteRequest,
    *,
    now: datetime | None = None,
    directions: DirectionsClient | None = None,
) -> QuoteResponse:
    now = now or datetime.now(timezone.utc)
    vehicle = get_vehicle_type(payload.vehicleTypeId)

    directions = directions or DirectionsClient()
    raw_km = directions.distance_km(payload.pickup.to_coordinate(), payload.dropoff.to_coordinate())
    distance_km = max(0.0, round_distance_km(raw_km))

    price = compute_price(
        vehicle,
        distance_km=distance_km,
        apply_vat=settings.applies_vat,
        surge=payload.surge or 1.0,
    )
    return QuoteResponse(
        distanceKm=distance_km,
        base=vehicle.base_price,
        perKm=vehicle.price_per_km,
        subtotal=round_money(price.base_subtotal),
        vat=round_money(price.vat),
        vatRate=price.vat_rate,
        surgeMultiplier=price.surge_multiplier,
        total=price.total,
        currency=settings.currency,
        quoteId=str(uuid.uuid4()),
        vehicleTypeId=payload.vehicleTypeId,
        expiresAt=isoformat(now + timedelta(minutes=settings.quote_ttl_minutes)),
    )
