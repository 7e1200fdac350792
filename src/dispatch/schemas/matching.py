"""Pairing and offer response schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field


class PairDriverRequest(BaseModel):
    deliveryId: str = Field(..., min_length=1)


class AcceptDeliveryRequest(BaseModel):
    deliveryId: str = Field(..., min_length=1)
    driverId: str = Field(..., min_length=1)
    accept: bool = Field(default=True, description="False declines the offer.")
