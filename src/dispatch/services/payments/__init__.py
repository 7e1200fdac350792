"""Payment gateway boundary."""

from .maya_client import MayaAPIError, MayaClient
from .service import capture_payment, create_checkout, processing_fee, void_payment

__all__ = [
    "MayaAPIError",
    "MayaClient",
    "capture_payment",
    "create_checkout",
    "processing_fee",
    "void_payment",
]
