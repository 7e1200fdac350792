"""Distance and stop based pricing."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from ...config import settings
from ...errors import ConfigurationError
from ...models.domain import VehicleType

MINIMUM_TOTAL = 1.0


def round_money(value: float) -> float:
    """Round half up to two decimal places."""
    return float(Decimal(repr(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


@dataclass(slots=True)
class PriceBreakdown:
    base_price: float
    price_per_km: float
    distance_km: float
    distance_cost: float
    additional_stops: int
    additional_stop_charge: float
    multi_stop_fee: float
    surge_multiplier: float
    base_subtotal: float
    subtotal: float
    vat_rate: float
    vat: float
    total: float

    def as_dict(self) -> dict:
        return {
            "basePrice": self.base_price,
            "pricePerKm": self.price_per_km,
            "distanceKm": self.distance_km,
            "distanceCost": round_money(self.distance_cost),
            "additionalStops": self.additional_stops,
            "additionalStopCharge": self.additional_stop_charge,
            "multiStopFee": round_money(self.multi_stop_fee),
            "surgeMultiplier": self.surge_multiplier,
            "subtotal": round_money(self.subtotal),
            "vatRate": self.vat_rate,
            "vat": round_money(self.vat),
            "total": self.total,
        }


def compute_price(
    vehicle: VehicleType,
    *,
    distance_km: float,
    stop_count: int = 1,
    is_multi_stop: bool = False,
    apply_vat: bool = True,
    surge: float = 1.0,
    vat_rate: float | None = None,
) -> PriceBreakdown:
    """Price a delivery from its vehicle configuration.

    ``surge`` multiplies the subtotal before tax and ``base_subtotal`` keeps
    the pre-surge figure; non-positive values are treated as no surge. The
    total is rounded half up to cents and never drops below ``MINIMUM_TOTAL``.
    """
    if not vehicle.is_active:
        raise ConfigurationError(
            f"Vehicle type '{vehicle.id}' is not active.",
            code="vehicle_type_inactive",
            vehicle_type_id=vehicle.id,
        )

    rate = settings.vat_rate if vat_rate is None else vat_rate
    multiplier = surge if surge and surge > 0 else 1.0
    additional_stops = max(0, stop_count - 1) if is_multi_stop else 0

    distance_cost = vehicle.price_per_km * distance_km
    multi_stop_fee = additional_stops * vehicle.additional_stop_charge
    base_subtotal = vehicle.base_price + distance_cost + multi_stop_fee
    subtotal = base_subtotal * multiplier
    vat = subtotal * rate if apply_vat else 0.0
    total = max(MINIMUM_TOTAL, round_money(subtotal + vat))

    return PriceBreakdown(
        base_price=vehicle.base_price,
        price_per_km=vehicle.price_per_km,
        distance_km=distance_km,
        distance_cost=distance_cost,
        additional_stops=additional_stops,
        additional_stop_charge=vehicle.additional_stop_charge,
        multi_stop_fee=multi_stop_fee,
        surge_multiplier=multiplier,
        base_subtotal=base_subtotal,
        subtotal=subtotal,
        vat_rate=rate if apply_vat else 0.0,
        vat=vat,
        total=total,
    )
