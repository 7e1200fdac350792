"""HTTP client for road distances from the Mapbox Directions API."""

from __future__ import annotations

import logging
import time

import httpx

from ...config import settings
from ...models.domain import Coordinate
from ..geospatial import distance_between

logger = logging.getLogger(__name__)


class DirectionsClient:
    def __init__(
        self,
        access_token: str | None = None,
        base_url: str | None = None,
        profile: str = "driving",
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.access_token = access_token if access_token is not None else settings.mapbox_access_token
        self.base_url = (base_url or settings.mapbox_base_url).rstrip("/")
        self.profile = profile
        self.timeout = timeout if timeout is not None else settings.directions_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.directions_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.directions_backoff_seconds
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.access_token)

    def _get_client(self) -> httpx.Client:
        return httpx.Client(timeout=httpx.Timeout(self.timeout, connect=5.0), transport=self._transport)

    def route_km(self, origin: Coordinate, destination: Coordinate) -> float:
        """Road distance in km. Raises on HTTP failures or empty routes."""
        if not self.configured:
            raise ValueError("Mapbox access token is not configured.")

        coordinate_str = f"{origin.longitude},{origin.latitude};{destination.longitude},{destination.latitude}"
        url = f"{self.base_url}/directions/v5/mapbox/{self.profile}/{coordinate_str}"
        params = {"access_token": self.access_token, "geometries": "geojson"}

        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.get(url, params=params)
                    response.raise_for_status()
                    data = response.json()
                    routes = data.get("routes") or []
                    if not routes:
                        raise ValueError(f"Directions response has no routes (code={data.get('code')}).")
                    return float(routes[0]["distance"]) / 1000.0
                except (httpx.TimeoutException, httpx.NetworkError) as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"Directions request failed, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries}): {e}")
                    time.sleep(wait_time)
        finally:
            client.close()

    def distance_km(self, origin: Coordinate, destination: Coordinate) -> float:
        """Road distance when available, great-circle distance otherwise."""
        if not self.configured:
            logger.info("No Mapbox access token, falling back to haversine distance")
            return distance_between(origin, destination)
        try:
            distance = self.route_km(origin, destination)
            logger.info(f"Mapbox directions distance: {distance:.3f} km")
            return distance
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Directions lookup failed, falling back to haversine: {e}")
            return distance_between(origin, destination)
