"""Payment boundary request schemas."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


class CheckoutRequest(BaseModel):
    deliveryId: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0, description="Delivery fee before processing fees.")
    paymentMethod: Literal["creditCard", "mayaWallet"]
    customerName: str = Field(..., min_length=1)
    customerPhone: str = Field(..., min_length=1)
    customerEmail: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class CaptureRequest(BaseModel):
    deliveryId: str = Field(..., min_length=1)
    amount: Optional[float] = Field(default=None, gt=0, description="Partial capture amount.")


class VoidRequest(BaseModel):
    deliveryId: str = Field(..., min_length=1)
    reason: str = "Delivery cancelled"
