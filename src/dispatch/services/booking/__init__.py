"""Booking and quote services."""

from .quote import quote_delivery
from .service import book_delivery, book_multi_stop_delivery

__all__ = ["quote_delivery", "book_delivery", "book_multi_stop_delivery"]
