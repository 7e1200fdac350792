"""Driver matching services."""

from .offers import respond_to_offer, write_offer
from .pairing import pair_driver
from .scheduled import assign_scheduled_drivers

__all__ = ["pair_driver", "respond_to_offer", "write_offer", "assign_scheduled_drivers"]
