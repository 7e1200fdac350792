"""Driver profile queries used by matching."""

from __future__ import annotations

import logging
from typing import Any

from ..db.supabase import STORAGE_ERRORS, require_client
from ..errors import UpstreamError
from ..models.domain import Coordinate, DriverProfile
from .rows import coerce_coordinate, parse_timestamp

logger = logging.getLogger(__name__)

_COLUMNS = "id, is_online, is_available, is_verified, current_latitude, current_longitude, location_updated_at"

# PostgREST reports an unknown RPC with this code.
MISSING_FUNCTION_CODE = "PGRST202"


def driver_from_row(row: dict[str, Any]) -> DriverProfile:
    return DriverProfile(
        id=str(row["id"]),
        is_online=bool(row.get("is_online")),
        is_available=bool(row.get("is_available")),
        is_verified=bool(row.get("is_verified")),
        location=coerce_coordinate(row.get("current_latitude"), row.get("current_longitude")),
        location_updated_at=parse_timestamp(row.get("location_updated_at")),
    )


def _rows_to_drivers(rows: list[dict[str, Any]]) -> list[DriverProfile]:
    drivers: list[DriverProfile] = []
    for row in rows:
        try:
            drivers.append(driver_from_row(row))
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"Skipping invalid driver row: {e}")
    return drivers


def fetch_candidate_drivers(limit: int) -> list[DriverProfile]:
    """Eligible drivers, freshest location first."""
    client = require_client()
    try:
        response = (
            client.table("driver_profiles")
            .select(_COLUMNS)
            .eq("is_available", True)
            .eq("is_online", True)
            .eq("is_verified", True)
            .not_.is_("current_latitude", "null")
            .not_.is_("current_longitude", "null")
            .order("location_updated_at", desc=True)
            .limit(limit)
            .execute()
        )
    except STORAGE_ERRORS as exc:
        logger.error(f"Failed to query driver profiles: {exc}")
        raise UpstreamError("Failed to query available drivers", code="driver_lookup_failed") from exc
    return _rows_to_drivers(response.data or [])


def fetch_nearby_drivers_rpc(rpc_name: str, pickup: Coordinate, limit: int) -> list[DriverProfile] | None:
    """Ask the geo index for nearby drivers.

    Returns None when the function does not exist on the storage side so the
    caller can switch to in-process ranking.
    """
    client = require_client()
    try:
        response = client.rpc(
            rpc_name,
            {"lat": pickup.latitude, "lng": pickup.longitude, "max_results": limit},
        ).execute()
    except STORAGE_ERRORS as exc:
        if getattr(exc, "code", None) == MISSING_FUNCTION_CODE:
            logger.info(f"Geo index function '{rpc_name}' is not installed")
            return None
        logger.error(f"Geo index query '{rpc_name}' failed: {exc}")
        raise UpstreamError("Failed to query nearby drivers", code="driver_lookup_failed") from exc
    return _rows_to_drivers(response.data or [])


def set_driver_available(driver_id: str, available: bool) -> None:
    client = require_client()
    try:
        client.table("driver_profiles").update({"is_available": available}).eq("id", driver_id).execute()
    except STORAGE_ERRORS as exc:
        logger.error(f"Failed to set availability={available} for driver {driver_id}: {exc}")
        raise UpstreamError("Failed to update driver availability", code="driver_update_failed") from exc
