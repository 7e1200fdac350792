from datetime import datetime, timezone

import httpx
import pytest

from src.dispatch.models.domain import Coordinate
from src.dispatch.schemas.deliveries import QuoteRequest
from src.dispatch.services.booking import quote_delivery
from src.dispatch.services.routing.directions_client import DirectionsClient

NOW = datetime(2026, 10, 17, 9, 0, tzinfo=timezone.utc)


def _request(**overrides) -> QuoteRequest:
    body = {
        "pickup": {"lat": 14.5995, "lng": 120.9842},
        "dropoff": {"lat": 14.6095, "lng": 120.9842},
        "vehicleTypeId": "motorcycle",
    }
    body.update(overrides)
    return QuoteRequest(**body)


def _directions(handler) -> DirectionsClient:
    return DirectionsClient(access_token="token", transport=httpx.MockTransport(handler), max_retries=0)


def test_quote_uses_road_distance(fake_db) -> None:
    fake_db.add_vehicle()
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        return httpx.Response(200, json={"code": "Ok", "routes": [{"distance": 5000.0}]})

    quote = quote_delivery(_request(), now=NOW, directions=_directions(handler))

    assert seen["path"] == "/directions/v5/mapbox/driving/120.9842,14.5995;120.9842,14.6095"
    assert quote.distanceKm == 5.0
    assert quote.subtotal == 100.0
    assert quote.vat == 12.0
    assert quote.total == 112.0
    assert quote.currency == "PHP"
    assert quote.expiresAt == "2026-10-17T09:05:00+00:00"
    assert quote.quoteId


def test_quote_falls_back_to_haversine_on_gateway_error(fake_db) -> None:
    fake_db.add_vehicle()

    quote = quote_delivery(
        _request(),
        now=NOW,
        directions=_directions(lambda request: httpx.Response(503, json={"message": "down"})),
    )

    assert quote.distanceKm == 1.1
    assert quote.total == 68.32


def test_quote_without_token_uses_haversine(fake_db) -> None:
    fake_db.add_vehicle()

    quote = quote_delivery(_request(), now=NOW, directions=DirectionsClient(access_token=""))

    assert quote.distanceKm == 1.1


def test_quote_applies_surge(fake_db) -> None:
    fake_db.add_vehicle()

    quote = quote_delivery(
        _request(surge=2.0),
        now=NOW,
        directions=_directions(lambda request: httpx.Response(200, json={"routes": [{"distance": 5000.0}]})),
    )

    assert quote.surgeMultiplier == 2.0
    assert quote.subtotal == 100.0
    assert quote.vat == 24.0
    assert quote.total == 224.0


def test_route_km_retries_network_errors() -> None:
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        if len(attempts) == 1:
            raise httpx.ConnectError("unreachable", request=request)
        return httpx.Response(200, json={"routes": [{"distance": 2500.0}]})

    client = DirectionsClient(
        access_token="token",
        transport=httpx.MockTransport(handler),
        max_retries=1,
        backoff_seconds=0,
    )

    assert client.route_km(Coordinate(0, 0), Coordinate(0, 1)) == pytest.approx(2.5)
    assert len(attempts) == 2
