"""Booking and quote request schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.domain import Coordinate


class LatLng(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

    def to_coordinate(self) -> Coordinate:
        return Coordinate(latitude=self.lat, longitude=self.lng)


class QuoteRequest(BaseModel):
    pickup: LatLng
    dropoff: LatLng
    vehicleTypeId: str = Field(..., min_length=1)
    weightKg: Optional[float] = Field(default=None, ge=0)
    surge: Optional[float] = Field(default=None, description="Optional multiplier, e.g. 1.2")


class QuoteResponse(BaseModel):
    distanceKm: float
    base: float
    perKm: float
    subtotal: float
    vat: float
    vatRate: float
    surgeMultiplier: float
    total: float
    currency: str
    quoteId: str
    vehicleTypeId: str
    expiresAt: str


class ContactLocation(BaseModel):
    address: str
    location: LatLng
    contactName: str
    contactPhone: str
    instructions: Optional[str] = None


class DropoffStop(ContactLocation):
    packageDescription: Optional[str] = None
    packageWeight: Optional[float] = Field(default=None, ge=0)


class PackageInfo(BaseModel):
    description: Optional[str] = None
    weightKg: Optional[float] = Field(default=None, ge=0)
    value: Optional[float] = Field(default=None, ge=0)


class PaymentInfo(BaseModel):
    paymentBy: Optional[str] = None
    paymentMethod: Optional[str] = None
    paymentStatus: Optional[str] = None
    mayaCheckoutId: Optional[str] = None
    paymentReference: Optional[str] = None


class BookDeliveryRequest(BaseModel):
    vehicleTypeId: str = Field(..., min_length=1)
    pickup: ContactLocation
    dropoff: ContactLocation
    package: Optional[PackageInfo] = None
    isScheduled: bool = False
    scheduledPickupTime: Optional[datetime] = None
    payment: Optional[PaymentInfo] = None


class BookMultiStopRequest(BaseModel):
    vehicleTypeId: str = Field(..., min_length=1)
    pickup: ContactLocation
    dropoffStops: List[DropoffStop] = Field(default_factory=list)
    package: Optional[PackageInfo] = None
    isScheduled: bool = False
    scheduledPickupTime: Optional[datetime] = None
    payment: Optional[PaymentInfo] = None
