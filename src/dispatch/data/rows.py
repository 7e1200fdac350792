"""Coercion helpers for rows returned by the storage service."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from ..models.domain import Coordinate


def coerce_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Unable to parse float from value '{value}'") from exc


def coerce_coordinate(latitude: Any, longitude: Any) -> Optional[Coordinate]:
    lat = coerce_float(latitude)
    lon = coerce_float(longitude)
    if lat is None or lon is None:
        return None
    return Coordinate(latitude=lat, longitude=lon)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def isoformat(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat()
