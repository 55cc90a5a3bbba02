"""Tests for rule-based pricing suggestions."""

from __future__ import annotations

import pytest

from commerce_ops.domain.pricing.margins import PricingPolicy, build_product_margin
from commerce_ops.domain.pricing.suggest import (
    generate_suggestions,
    round_up_to_cent,
    suggest_for_product,
    target_price,
)

POLICY = PricingPolicy()


def _margin(product_id: str, price: float, cost: float | None, units: int = 0):
    return build_product_margin(
        product_id=product_id,
        sku=f"SKU-{product_id}",
        product_name=product_id,
        price=price,
        cost=cost,
        units_sold=units,
        revenue=price * units,
        policy=POLICY,
    )


def test_round_up_to_cent():
    assert round_up_to_cent(6.1538) == 6.16
    assert round_up_to_cent(12.0) == 12.0
    # 0.1 * 3 is 0.30000000000000004
    assert round_up_to_cent(0.1 * 3) == 0.3


def test_target_price():
    assert target_price(9, 0.25) == pytest.approx(12.0)


def test_healthy_margin_gets_no_suggestion():
    # cost 8, price 10 -> 20%: neither thin, negative nor slow high-margin
    assert suggest_for_product(_margin("p1", 10, 8, units=2), POLICY) == []


def test_product_without_cost_is_skipped():
    assert suggest_for_product(_margin("p1", 10, None), POLICY) == []


def test_loss_making_product():
    [s] = suggest_for_product(_margin("p1", 7, 8), POLICY)

    assert s.id == "sug_p1_negative"
    assert s.suggested_price == 10.0
    assert s.confidence == "high"
    assert s.reason == (
        "Product is selling at a loss (-14.3% margin). "
        "Price increase required to achieve profitability."
    )
    assert s.expected_impact == "Eliminate losses and achieve positive margin."
    assert s.price_change_percent == pytest.approx((10 - 7) / 7 * 100)
    assert s.estimated_revenue_change is None


def test_thin_margin_confidence_depends_on_volume():
    [low_volume] = suggest_for_product(_margin("p1", 10, 9, units=10), POLICY)
    [high_volume] = suggest_for_product(_margin("p2", 10, 9, units=11), POLICY)

    assert low_volume.id == "sug_p1_margin"
    assert low_volume.suggested_price == 12.0
    assert low_volume.price_change_percent == pytest.approx(20.0)
    assert low_volume.reason == (
        "Current margin of 10.0% is below target. "
        "Increasing price would improve profitability."
    )
    assert low_volume.expected_impact == (
        "Potential margin improvement of 15.0 percentage points."
    )
    assert low_volume.confidence == "low"
    assert high_volume.confidence == "medium"


def test_slow_mover_with_high_margin_gets_price_cut():
    [s] = suggest_for_product(_margin("p1", 10, 4, units=2), POLICY)

    assert s.id == "sug_p1_sales"
    assert s.suggested_price == 6.16
    assert s.price_change_percent < 0
    assert s.confidence == "low"
    assert s.reason.startswith("High margin (60.0%) but low sales volume.")


def test_high_margin_fast_mover_is_left_alone():
    assert suggest_for_product(_margin("p1", 10, 4, units=5), POLICY) == []


def test_zero_price_has_no_change_percent():
    # Cost-only product listed at 0: margin % guards to 0, thin-margin rule fires
    [s] = suggest_for_product(_margin("p1", 0, 3), POLICY)

    assert s.price_change_percent is None
    assert s.suggested_price == 4.0


def test_generate_suggestions_sorted_by_confidence():
    margins = [
        _margin("slow", 10, 4, units=1),  # low
        _margin("thin", 10, 9, units=50),  # medium
        _margin("loss", 7, 8),  # high
        _margin("fine", 10, 7, units=3),  # none
    ]

    suggestions = generate_suggestions(margins, POLICY)

    assert [s.id for s in suggestions] == ["sug_loss_negative", "sug_thin_margin", "sug_slow_sales"]
