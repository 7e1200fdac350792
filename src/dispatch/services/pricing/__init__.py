"""Pricing helpers."""

from .engine import PriceBreakdown, compute_price, round_money

__all__ = ["PriceBreakdown", "compute_price", "round_money"]
