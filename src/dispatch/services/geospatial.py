"""Geospatial helper functions."""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Sequence

from ..models.domain import Coordinate

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # Float noise can push a marginally above 1 for antipodal points.
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(min(1.0, a)))


def distance_between(origin: Coordinate, target: Coordinate) -> float:
    return haversine_km(origin.latitude, origin.longitude, target.latitude, target.longitude)


def round_distance_km(value: float) -> float:
    """Round to one decimal place, halves away from zero."""
    return float(Decimal(repr(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


@dataclass(slots=True)
class RouteDistance:
    total_km: float
    segments_km: List[float]


def route_distance(pickup: Coordinate, stops: Sequence[Coordinate]) -> RouteDistance:
    """Sum the legs pickup -> stop 1 -> ... -> stop N in the given order."""

    segments: list[float] = []
    current = pickup
    for stop in stops:
        segments.append(distance_between(current, stop))
        current = stop
    return RouteDistance(total_km=sum(segments), segments_km=segments)
