"""Driver lookup and ranking around a pickup point."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Sequence

from ...config import settings
from ...data.drivers_repository import fetch_candidate_drivers, fetch_nearby_drivers_rpc
from ...errors import NoDriversError, RadiusExceededError
from ...models.domain import Coordinate, DriverProfile, RankedDriver
from ..geospatial import distance_between

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class LocatorStrategy(ABC):
    """Contract for driver lookup implementations."""

    name: str

    @abstractmethod
    def is_available(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    def fetch(self, pickup: Coordinate, limit: int) -> list[DriverProfile] | None:
        """Return candidates, or None when the backend turned out to be unavailable."""
        raise NotImplementedError


class GeoIndexLocator(LocatorStrategy):
    """Delegates the proximity search to a storage-side function."""

    name = "geo_index"

    def __init__(self, rpc_name: str | None = None) -> None:
        self.rpc_name = rpc_name if rpc_name is not None else settings.geo_index_rpc

    def is_available(self) -> bool:
        return bool(self.rpc_name)

    def fetch(self, pickup: Coordinate, limit: int) -> list[DriverProfile] | None:
        return fetch_nearby_drivers_rpc(self.rpc_name, pickup, limit)


class HaversineLocator(LocatorStrategy):
    """Filters eligible drivers in storage and ranks them in process."""

    name = "haversine"

    def is_available(self) -> bool:
        return True

    def fetch(self, pickup: Coordinate, limit: int) -> list[DriverProfile] | None:
        return fetch_candidate_drivers(limit)


def default_strategies() -> list[LocatorStrategy]:
    return [GeoIndexLocator(), HaversineLocator()]


def rank_drivers(pickup: Coordinate, drivers: Sequence[DriverProfile]) -> list[RankedDriver]:
    """Closest first; equal distances go to the freshest location."""
    ranked = [
        RankedDriver(driver=driver, distance_km=distance_between(pickup, driver.location))
        for driver in drivers
        if driver.is_candidate
    ]
    ranked.sort(
        key=lambda item: (
            item.distance_km,
            -(item.driver.location_updated_at or _EPOCH).timestamp(),
        )
    )
    return ranked


def locate_drivers(
    pickup: Coordinate,
    *,
    limit: int | None = None,
    strategies: Sequence[LocatorStrategy] | None = None,
) -> list[RankedDriver]:
    limit = limit or settings.candidate_limit
    for strategy in strategies if strategies is not None else default_strategies():
        if not strategy.is_available():
            continue
        drivers = strategy.fetch(pickup, limit)
        if drivers is None:
            logger.info(f"Locator '{strategy.name}' unavailable, trying next strategy")
            continue
        ranked = rank_drivers(pickup, drivers)[:limit]
        logger.debug(f"Locator '{strategy.name}' ranked {len(ranked)} driver(s)")
        return ranked
    return []


def select_closest(ranked: Sequence[RankedDriver], *, max_radius_km: float | None = None) -> RankedDriver:
    """Pick the closest driver or reject the match outright."""
    if not ranked:
        raise NoDriversError("No available drivers found", drivers_found=0)

    radius = settings.max_match_radius_km if max_radius_km is None else max_radius_km
    closest = ranked[0]
    if closest.distance_km > radius:
        raise RadiusExceededError(
            f"No drivers within {radius:g} km of pickup",
            drivers_found=len(ranked),
            closest_driver_distance=round(closest.distance_km, 2),
            max_radius=radius,
        )
    return closest
