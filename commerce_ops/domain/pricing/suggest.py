"""Rule-based price change suggestions from product margins."""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import asdict, dataclass

from commerce_ops.domain.inventory.demand import CONFIDENCE_ORDER, Confidence
from commerce_ops.domain.pricing.margins import PricingPolicy, ProductMargin


@dataclass
class PricingSuggestion:
    id: str
    product_id: str
    sku: str | None
    product_name: str
    current_price: float
    suggested_price: float
    price_change_percent: float | None
    reason: str
    expected_impact: str
    estimated_revenue_change: float | None
    confidence: Confidence

    def to_dict(self) -> dict:
        return asdict(self)


def round_up_to_cent(price: float) -> float:
    """Round a price up to the nearest cent, ignoring float noise below 1e-9."""
    return math.ceil(round(price * 100, 9)) / 100


def target_price(cost: float, target_margin: float) -> float:
    """Price that yields target_margin (fraction of price) over cost."""
    return cost / (1 - target_margin)


def _suggestion(
    product: ProductMargin,
    *,
    kind: str,
    target_margin: float,
    reason: str,
    expected_impact: str,
    confidence: Confidence,
) -> PricingSuggestion:
    suggested = target_price(product.cost, target_margin)
    change_pct = (
        ((suggested - product.price) / product.price) * 100 if product.price else None
    )

    return PricingSuggestion(
        id=f"sug_{product.product_id}_{kind}",
        product_id=product.product_id,
        sku=product.sku,
        product_name=product.product_name,
        current_price=product.price,
        suggested_price=max(0.0, round_up_to_cent(suggested)),
        price_change_percent=change_pct,
        reason=reason,
        expected_impact=expected_impact,
        estimated_revenue_change=None,
        confidence=confidence,
    )


def suggest_for_product(product: ProductMargin, policy: PricingPolicy) -> list[PricingSuggestion]:
    """Apply every rule to one product.

    Rules are independent: a product can collect several suggestions, in
    rule order (thin margin, loss, slow mover).
    """
    if product.cost is None or product.margin_percent is None:
        return []

    mp = product.margin_percent
    out: list[PricingSuggestion] = []

    if 0 <= mp < policy.medium_margin_pct:
        target_pct = policy.low_margin_target * 100
        out.append(
            _suggestion(
                product,
                kind="margin",
                target_margin=policy.low_margin_target,
                reason=(
                    f"Current margin of {mp:.1f}% is below target. "
                    "Increasing price would improve profitability."
                ),
                expected_impact=(
                    f"Potential margin improvement of {target_pct - mp:.1f} percentage points."
                ),
                confidence=(
                    "medium" if product.units_sold > policy.volume_confidence_units else "low"
                ),
            )
        )

    if mp < 0:
        out.append(
            _suggestion(
                product,
                kind="negative",
                target_margin=policy.negative_margin_target,
                reason=(
                    f"Product is selling at a loss ({mp:.1f}% margin). "
                    "Price increase required to achieve profitability."
                ),
                expected_impact="Eliminate losses and achieve positive margin.",
                confidence="high",
            )
        )

    if mp > policy.slow_mover_margin_pct and product.units_sold < policy.slow_mover_units:
        out.append(
            _suggestion(
                product,
                kind="sales",
                target_margin=policy.slow_mover_target,
                reason=(
                    f"High margin ({mp:.1f}%) but low sales volume. "
                    "Price reduction may increase sales."
                ),
                expected_impact=(
                    "Potential increase in sales volume while maintaining healthy margin."
                ),
                confidence="low",
            )
        )

    return out


def generate_suggestions(
    margins: Iterable[ProductMargin], policy: PricingPolicy
) -> list[PricingSuggestion]:
    """Suggestions for all products, high confidence first (stable within a tier)."""
    suggestions: list[PricingSuggestion] = []
    for product in margins:
        suggestions.extend(suggest_for_product(product, policy))

    return sorted(suggestions, key=lambda s: CONFIDENCE_ORDER[s.confidence])
