import pytest

from src.dispatch.errors import ConfigurationError
from src.dispatch.models.domain import VehicleType
from src.dispatch.services.pricing import compute_price, round_money


def _vehicle(base: float = 100.0, per_km: float = 10.0, stop_charge: float = 20.0, active: bool = True) -> VehicleType:
    return VehicleType(id="van", base_price=base, price_per_km=per_km, additional_stop_charge=stop_charge, is_active=active)


def test_single_stop_price_with_vat() -> None:
    price = compute_price(_vehicle(), distance_km=5)

    assert price.subtotal == pytest.approx(150)
    assert price.vat == pytest.approx(18)
    assert price.total == 168.00


def test_single_stop_ignores_stop_charge_even_with_stop_count() -> None:
    price = compute_price(_vehicle(), distance_km=5, stop_count=3, is_multi_stop=False)

    assert price.additional_stops == 0
    assert price.total == 168.00


def test_multi_stop_adds_charge_per_additional_stop() -> None:
    price = compute_price(_vehicle(stop_charge=15), distance_km=20, stop_count=3, is_multi_stop=True)

    assert price.additional_stops == 2
    assert price.subtotal == pytest.approx(330)
    assert price.vat == pytest.approx(39.6)
    assert price.total == 369.60


def test_vat_can_be_disabled() -> None:
    price = compute_price(_vehicle(), distance_km=5, apply_vat=False)

    assert price.vat == 0
    assert price.vat_rate == 0
    assert price.total == 150.00


def test_surge_multiplies_subtotal_and_non_positive_surge_is_ignored() -> None:
    surged = compute_price(_vehicle(), distance_km=5, surge=1.2)
    ignored = compute_price(_vehicle(), distance_km=5, surge=0)

    assert surged.subtotal == pytest.approx(180)
    assert surged.base_subtotal == pytest.approx(150)
    assert surged.total == 201.60
    assert ignored.total == 168.00


def test_total_never_below_minimum() -> None:
    price = compute_price(_vehicle(base=0, per_km=0, stop_charge=0), distance_km=0)
    assert price.total == 1.0

    negative = compute_price(_vehicle(base=-100, per_km=-10, stop_charge=0), distance_km=5)
    assert negative.total == 1.0


def test_inactive_vehicle_is_rejected() -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        compute_price(_vehicle(active=False), distance_km=5)
    assert excinfo.value.code == "vehicle_type_inactive"


def test_round_money_rounds_halves_up() -> None:
    assert round_money(2.675) == 2.68
    assert round_money(1.005) == 1.01


def test_breakdown_payload_uses_camel_case() -> None:
    payload = compute_price(_vehicle(), distance_km=5).as_dict()

    assert payload["basePrice"] == 100.0
    assert payload["vatRate"] == 0.12
    assert payload["total"] == 168.00
