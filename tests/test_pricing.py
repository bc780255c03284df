"""Unit tests for the errand pricing engine."""

from decimal import Decimal

import pytest

from errandhub.config import Settings
from errandhub.domain.enums import Category, Urgency
from errandhub.domain.errors import (
    InvalidBudget,
    InvalidCategory,
    InvalidDistance,
    InvalidUrgency,
)
from errandhub.domain.pricing import PricingEngine, round_money


class TestRounding:
    def test_half_up(self):
        assert round_money(Decimal("2.345")) == Decimal("2.35")

    def test_below_half_rounds_down(self):
        assert round_money(Decimal("2.344")) == Decimal("2.34")


class TestPricingEngine:
    def setup_method(self):
        self.engine = PricingEngine.from_settings(Settings(_env_file=None))

    def test_food_delivery_urgent(self):
        fees = self.engine.price(100, Category.FOOD_DELIVERY, Urgency.URGENT, 5.0)
        # 100 * 1.1 = 110 ; * 1.25 = 137.5 ; + 5 * 0.5 = 140 ; fee 10%
        assert fees.base_price == Decimal("100.00")
        assert fees.urgency_fee == Decimal("27.50")
        assert fees.distance_fee == Decimal("2.50")
        assert fees.platform_fee == Decimal("14.00")
        assert fees.runner_earnings == Decimal("126.00")
        assert fees.final_price == Decimal("154.00")

    def test_standard_food_delivery_with_fractional_distance(self):
        fees = self.engine.price(20, Category.FOOD_DELIVERY, Urgency.STANDARD, 5.2)
        assert fees.urgency_fee == Decimal("0.00")
        assert fees.distance_fee == Decimal("2.60")
        assert fees.platform_fee == Decimal("2.46")
        assert fees.runner_earnings == Decimal("22.14")
        assert fees.final_price == Decimal("27.06")

    def test_shopping_asap_without_distance(self):
        fees = self.engine.price(Decimal("50"), Category.SHOPPING, Urgency.ASAP)
        # 50 * 1.2 = 60 ; * 1.5 = 90 ; fee 9
        assert fees.urgency_fee == Decimal("30.00")
        assert fees.distance_fee == Decimal("0.00")
        assert fees.final_price == Decimal("99.00")
        assert fees.runner_earnings == Decimal("81.00")

    def test_accepts_string_enum_values(self):
        by_value = self.engine.price(40, "documents", "urgent", 2)
        by_member = self.engine.price(40, Category.DOCUMENTS, Urgency.URGENT, 2)
        assert by_value == by_member

    def test_deterministic(self):
        first = self.engine.price(33.33, Category.OTHER, Urgency.ASAP, 7.7)
        second = self.engine.price(33.33, Category.OTHER, Urgency.ASAP, 7.7)
        assert first == second

    def test_outputs_are_two_decimal_places(self):
        fees = self.engine.price(13.37, Category.SHOPPING, Urgency.URGENT, 3.33)
        for amount in (
            fees.base_price,
            fees.urgency_fee,
            fees.distance_fee,
            fees.platform_fee,
            fees.runner_earnings,
            fees.final_price,
        ):
            assert amount == amount.quantize(Decimal("0.01"))

    def test_final_exceeds_earnings(self):
        fees = self.engine.price(10, Category.DELIVERY, Urgency.STANDARD, 1)
        assert fees.final_price > fees.runner_earnings
        assert fees.platform_fee > 0

    # ── Validation ────────────────────────────────────────────────

    @pytest.mark.parametrize("budget", [0, -5, "NaN", "Infinity"])
    def test_rejects_non_positive_or_non_finite_budget(self, budget):
        with pytest.raises(InvalidBudget):
            self.engine.price(budget, Category.DELIVERY, Urgency.STANDARD)

    def test_rejects_budget_below_minimum(self):
        with pytest.raises(InvalidBudget):
            self.engine.price(Decimal("0.50"), Category.DELIVERY, Urgency.STANDARD)

    def test_rejects_negative_distance(self):
        with pytest.raises(InvalidDistance):
            self.engine.price(10, Category.DELIVERY, Urgency.STANDARD, -1)

    def test_rejects_unknown_category(self):
        with pytest.raises(InvalidCategory):
            self.engine.price(10, "laundry", Urgency.STANDARD)

    def test_rejects_unknown_urgency(self):
        with pytest.raises(InvalidUrgency):
            self.engine.price(10, Category.DELIVERY, "whenever")

    def test_rejects_category_without_multiplier(self):
        engine = PricingEngine(
            category_multipliers={"delivery": 1.0},
            urgency_multipliers={"standard": 1.0},
        )
        with pytest.raises(InvalidCategory):
            engine.price(10, Category.SHOPPING, Urgency.STANDARD)
