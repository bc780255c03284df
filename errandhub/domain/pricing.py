"""
Errand Pricing Engine
=====================

Formula
-------
    adjusted    = Base x Category_Multiplier
    urgent      = adjusted x Urgency_Multiplier      (urgency_fee = urgent - adjusted)
    subtotal    = urgent + Distance x Rate_Per_KM    (distance_fee)
    platform    = subtotal x Platform_Fee_Rate
    final       = subtotal + platform
    earnings    = subtotal - platform

Every output is rounded half-up to 2 decimal places *independently*, so
``platform_fee + runner_earnings`` may drift by one cent from the figure
derived from the rounded ``final_price``.  That drift is accepted.

Complexity: O(1) per price calculation.  No state, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping

from .enums import Category, Urgency
from .errors import InvalidBudget, InvalidCategory, InvalidDistance, InvalidUrgency

CENT = Decimal("0.01")


def _dec(value) -> Decimal:
    # str() keeps 5.2 as 5.2 instead of its binary float expansion
    return value if isinstance(value, Decimal) else Decimal(str(value))


def round_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class FeeBreakdown:
    base_price: Decimal
    urgency_fee: Decimal
    distance_fee: Decimal
    platform_fee: Decimal
    runner_earnings: Decimal
    final_price: Decimal


class PricingEngine:
    """High-level API used by the lifecycle engine and the API layer."""

    def __init__(
        self,
        category_multipliers: Mapping[str, float],
        urgency_multipliers: Mapping[str, float],
        distance_rate: float = 0.5,
        platform_fee_rate: float = 0.10,
        minimum_base_price: float = 1.0,
    ):
        self.category_multipliers = {
            Category(k): _dec(v) for k, v in category_multipliers.items()
        }
        self.urgency_multipliers = {
            Urgency(k): _dec(v) for k, v in urgency_multipliers.items()
        }
        self.distance_rate = _dec(distance_rate)
        self.platform_fee_rate = _dec(platform_fee_rate)
        self.minimum_base_price = _dec(minimum_base_price)

    @classmethod
    def from_settings(cls, settings) -> "PricingEngine":
        return cls(
            category_multipliers=settings.category_multipliers,
            urgency_multipliers=settings.urgency_multipliers,
            distance_rate=settings.distance_rate,
            platform_fee_rate=settings.platform_fee_rate,
            minimum_base_price=settings.minimum_base_price,
        )

    # ── validation ────────────────────────────────────────────────

    def _category(self, category) -> Category:
        try:
            category = Category(category)
        except ValueError:
            raise InvalidCategory(f"Invalid category: {category!r}") from None
        if category not in self.category_multipliers:
            raise InvalidCategory(f"No multiplier configured for {category.value}")
        return category

    def _urgency(self, urgency) -> Urgency:
        try:
            urgency = Urgency(urgency)
        except ValueError:
            raise InvalidUrgency(f"Invalid urgency level: {urgency!r}") from None
        if urgency not in self.urgency_multipliers:
            raise InvalidUrgency(f"No multiplier configured for {urgency.value}")
        return urgency

    def _base_price(self, base_price) -> Decimal:
        base = _dec(base_price)
        if not base.is_finite() or base <= 0:
            raise InvalidBudget("Budget must be positive")
        if base < self.minimum_base_price:
            raise InvalidBudget(
                f"Budget must be at least {self.minimum_base_price} unit(s)"
            )
        return base

    @staticmethod
    def _distance(distance) -> Decimal:
        dist = _dec(distance or 0)
        if not dist.is_finite() or dist < 0:
            raise InvalidDistance("Distance cannot be negative")
        return dist

    # ── pricing ───────────────────────────────────────────────────

    def price(self, base_price, category, urgency, distance=0) -> FeeBreakdown:
        """Return the full fee breakdown; raises a ValidationError subclass."""
        base = self._base_price(base_price)
        category = self._category(category)
        urgency = self._urgency(urgency)
        dist = self._distance(distance)

        adjusted = base * self.category_multipliers[category]
        urgent = adjusted * self.urgency_multipliers[urgency]
        distance_fee = dist * self.distance_rate
        subtotal = urgent + distance_fee
        platform_fee = subtotal * self.platform_fee_rate

        return FeeBreakdown(
            base_price=round_money(base),
            urgency_fee=round_money(urgent - adjusted),
            distance_fee=round_money(distance_fee),
            platform_fee=round_money(platform_fee),
            runner_earnings=round_money(subtotal - platform_fee),
            final_price=round_money(subtotal + platform_fee),
        )
