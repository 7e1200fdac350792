"""Vehicle pricing lookups.

Pricing may change between invocations, so every request reads the current
row instead of caching it.
"""

from __future__ import annotations

import logging

from ..db.supabase import STORAGE_ERRORS, require_client
from ..errors import ConfigurationError, UpstreamError
from ..models.domain import VehicleType
from .rows import coerce_float

logger = logging.getLogger(__name__)

_COLUMNS = "id, base_price, price_per_km, additional_stop_charge, is_active"


def get_vehicle_type(vehicle_type_id: str) -> VehicleType:
    client = require_client()
    try:
        response = (
            client.table("vehicle_types")
            .select(_COLUMNS)
            .eq("id", vehicle_type_id)
            .limit(1)
            .execute()
        )
    except STORAGE_ERRORS as exc:
        logger.error(f"Failed to load vehicle type {vehicle_type_id}: {exc}")
        raise UpstreamError("Failed to load vehicle pricing", code="vehicle_type_lookup_failed") from exc

    if not response.data:
        raise ConfigurationError(
            f"Vehicle type '{vehicle_type_id}' not found.",
            code="vehicle_type_not_found",
            vehicle_type_id=vehicle_type_id,
        )

    row = response.data[0]
    try:
        base_price = coerce_float(row.get("base_price"))
        price_per_km = coerce_float(row.get("price_per_km"))
        additional_stop_charge = coerce_float(row.get("additional_stop_charge")) or 0.0
    except ValueError as exc:
        raise ConfigurationError(
            f"Vehicle type '{vehicle_type_id}' has malformed pricing: {exc}",
            code="vehicle_type_misconfigured",
            vehicle_type_id=vehicle_type_id,
        ) from exc

    if base_price is None or price_per_km is None:
        raise ConfigurationError(
            f"Vehicle type '{vehicle_type_id}' is missing base or per-km pricing.",
            code="vehicle_type_misconfigured",
            vehicle_type_id=vehicle_type_id,
        )

    return VehicleType(
        id=str(row.get("id", vehicle_type_id)),
        base_price=base_price,
        price_per_km=price_per_km,
        additional_stop_charge=additional_stop_charge,
        is_active=row.get("is_active") is not False,
    )
