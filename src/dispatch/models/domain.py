"""Domain models for deliveries, drivers and vehicle pricing."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class DeliveryStatus(str, Enum):
    PENDING = "pending"
    SEARCHING = "searching"
    DRIVER_OFFERED = "driver_offered"
    DRIVER_ASSIGNED = "driver_assigned"
    PICKED_UP = "picked_up"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class StopType(str, Enum):
    PICKUP = "pickup"
    DROPOFF = "dropoff"


@dataclass(frozen=True, slots=True)
class Coordinate:
    latitude: float
    longitude: float


@dataclass(slots=True)
class DeliveryStop:
    """One stop of a multi-stop route, numbered from 1."""

    delivery_id: str
    stop_number: int
    stop_type: StopType
    location: Coordinate
    recipient_name: Optional[str] = None
    recipient_phone: Optional[str] = None
    distance_from_previous_km: Optional[float] = None


@dataclass(slots=True)
class Delivery:
    """A unit of work waiting for, or already matched with, a driver."""

    id: str
    status: str
    pickup: Coordinate
    dropoff: Optional[Coordinate]
    vehicle_type_id: Optional[str]
    driver_id: Optional[str] = None
    distance_km: Optional[float] = None
    total_price: Optional[float] = None
    is_multi_stop: bool = False
    total_stops: int = 1
    is_scheduled: bool = False
    scheduled_pickup_time: Optional[datetime] = None
    stops: List[DeliveryStop] = field(default_factory=list)

    @property
    def is_matchable(self) -> bool:
        return self.status == DeliveryStatus.PENDING.value and self.driver_id is None


@dataclass(slots=True)
class DriverProfile:
    """A driver's matching eligibility at the time it was read."""

    id: str
    is_online: bool
    is_available: bool
    is_verified: bool
    location: Optional[Coordinate]
    location_updated_at: Optional[datetime] = None

    @property
    def is_candidate(self) -> bool:
        return self.is_online and self.is_available and self.is_verified and self.location is not None


@dataclass(frozen=True, slots=True)
class VehicleType:
    """Pricing configuration read fresh for every request."""

    id: str
    base_price: float
    price_per_km: float
    additional_stop_charge: float
    is_active: bool = True


@dataclass(slots=True)
class RankedDriver:
    driver: DriverProfile
    distance_km: float


@dataclass(slots=True)
class Offer:
    delivery_id: str
    driver_id: str
    distance_km: float
    total_price: float
