"""Margin calculations, categorisation and portfolio aggregation.

Two margin-percent conventions coexist on purpose: the portfolio summary
guards on cost, the per-product listing guards on price. They bucket the
15-40% range differently as well. Keep them apart.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Literal

from commerce_ops.core.config import Settings, get_settings

MarginCategory = Literal["high", "medium", "low", "negative", "unknown"]

# Accepted sort keys for product margin listings -> ProductMargin attribute
SORT_KEYS: dict[str, str] = {
    "margin": "margin",
    "marginPercent": "margin_percent",
    "margin_percent": "margin_percent",
    "profit": "profit",
}


@dataclass(frozen=True)
class PricingPolicy:
    """Tunable margin thresholds and price targets."""

    sales_window_days: int = 30
    high_margin_pct: float = 40.0
    medium_margin_pct: float = 15.0
    low_margin_target: float = 0.25
    negative_margin_target: float = 0.20
    slow_mover_margin_pct: float = 50.0
    slow_mover_units: int = 5
    slow_mover_target: float = 0.35
    volume_confidence_units: int = 10

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> PricingPolicy:
        s = settings or get_settings()
        return cls(
            sales_window_days=s.pricing_sales_window_days,
            high_margin_pct=s.pricing_high_margin_pct,
            medium_margin_pct=s.pricing_medium_margin_pct,
            low_margin_target=s.pricing_low_margin_target,
            negative_margin_target=s.pricing_negative_margin_target,
            slow_mover_margin_pct=s.pricing_slow_mover_margin_pct,
            slow_mover_units=s.pricing_slow_mover_units,
            slow_mover_target=s.pricing_slow_mover_target,
            volume_confidence_units=s.pricing_volume_confidence_units,
        )


@dataclass
class PricePoint:
    date: datetime
    price: float


@dataclass
class PriceAnalysis:
    """Current price, latest recorded cost and recent sales of one product."""

    product_id: str
    sku: str | None
    product_name: str
    current_price: float
    cost: float | None
    margin: float | None
    margin_percent: float | None
    price_history: list[PricePoint] = field(default_factory=list)
    sales_at_current_price: int = 0
    revenue_at_current_price: float = 0.0
    currency: str = "USD"

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ProductMargin:
    product_id: str
    sku: str | None
    product_name: str
    price: float
    cost: float | None
    margin: float | None
    margin_percent: float | None
    units_sold: int
    revenue: float
    profit: float | None
    category: MarginCategory

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class MarginAnalysis:
    """Workspace-level margin summary over the trailing sales window."""

    total_products: int = 0
    average_margin: float = 0.0
    average_margin_percent: float = 0.0
    products_with_margin: int = 0
    products_without_cost: int = 0
    high_margin_products: int = 0
    low_margin_products: int = 0
    negative_margin_products: int = 0
    total_revenue: float = 0.0
    total_cost: float = 0.0
    total_profit: float = 0.0
    currency: str = "USD"

    @classmethod
    def empty(cls, currency: str = "USD") -> MarginAnalysis:
        return cls(currency=currency)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class MarginInput:
    """Price, cost and window sales of one product, as read from the store."""

    price: float
    cost: float | None
    units_sold: int
    revenue: float


def margin_percent_of_price(price: float, cost: float) -> float:
    """Margin % used by per-product listings and price history (guards on price)."""
    return ((price - cost) / price) * 100 if price > 0 else 0.0


def margin_percent_cost_guarded(price: float, cost: float) -> float:
    """Margin % used by the portfolio summary (guards on cost).

    A zero price with positive cost has no finite margin; it counts as 0.
    """
    if cost > 0 and price != 0:
        return ((price - cost) / price) * 100
    return 0.0


def categorize_margin(margin_percent: float | None, policy: PricingPolicy) -> MarginCategory:
    """Product listing category: high / medium / low / negative / unknown."""
    if margin_percent is None:
        return "unknown"
    if margin_percent >= policy.high_margin_pct:
        return "high"
    if margin_percent >= policy.medium_margin_pct:
        return "medium"
    if margin_percent >= 0:
        return "low"
    return "negative"


def build_product_margin(
    *,
    product_id: str,
    sku: str | None,
    product_name: str,
    price: float,
    cost: float | None,
    units_sold: int,
    revenue: float,
    policy: PricingPolicy,
) -> ProductMargin:
    margin = margin_percent = profit = None
    if cost is not None:
        margin = price - cost
        margin_percent = margin_percent_of_price(price, cost)
        profit = margin * units_sold

    return ProductMargin(
        product_id=product_id,
        sku=sku,
        product_name=product_name,
        price=price,
        cost=cost,
        margin=margin,
        margin_percent=margin_percent,
        units_sold=units_sold,
        revenue=revenue,
        profit=profit,
        category=categorize_margin(margin_percent, policy),
    )


def sort_product_margins(margins: Iterable[ProductMargin], sort_by: str) -> list[ProductMargin]:
    """Sort descending by the chosen metric; products without it go last.

    Raises:
        ValueError: If sort_by is not one of margin, marginPercent, profit

    """
    attr = SORT_KEYS.get(sort_by)
    if attr is None:
        raise ValueError(f"Unsupported sort key: {sort_by!r}")

    def key(m: ProductMargin) -> float:
        value = getattr(m, attr)
        return float("-inf") if value is None else value

    return sorted(margins, key=key, reverse=True)


def summarize_margins(
    rows: Iterable[MarginInput],
    policy: PricingPolicy,
    currency: str = "USD",
) -> MarginAnalysis:
    """Aggregate margin statistics across a workspace.

    Products without cost contribute revenue only. Note the bucket mapping:
    15-40% and 0-15% both count towards low_margin_products.
    """
    summary = MarginAnalysis.empty(currency)
    margin_sum = 0.0
    margin_percent_sum = 0.0

    for row in rows:
        summary.total_products += 1
        summary.total_revenue += row.revenue

        if row.cost is None:
            summary.products_without_cost += 1
            continue

        summary.products_with_margin += 1
        summary.total_cost += row.cost * row.units_sold

        margin = row.price - row.cost
        margin_percent = margin_percent_cost_guarded(row.price, row.cost)

        margin_sum += margin
        margin_percent_sum += margin_percent
        summary.total_profit += margin * row.units_sold

        if margin_percent >= policy.high_margin_pct:
            summary.high_margin_products += 1
        elif margin_percent >= policy.medium_margin_pct:
            summary.low_margin_products += 1
        elif margin_percent < 0:
            summary.negative_margin_products += 1
        else:
            summary.low_margin_products += 1

    if summary.products_with_margin:
        summary.average_margin = margin_sum / summary.products_with_margin
        summary.average_margin_percent = margin_percent_sum / summary.products_with_margin

    return summary
