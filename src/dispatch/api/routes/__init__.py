"""Route group exports."""

from . import deliveries, health, matching, payments

__all__ = ["deliveries", "health", "matching", "payments"]
