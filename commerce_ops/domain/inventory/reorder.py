"""Reorder prioritisation and rationale for products heading to stockout."""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import asdict, dataclass
from typing import Literal

from commerce_ops.domain.inventory.demand import DemandForecast

Priority = Literal["urgent", "high", "medium", "low"]

PRIORITY_ORDER: dict[str, int] = {"urgent": 0, "high": 1, "medium": 2, "low": 3}


@dataclass(frozen=True)
class SupplierRef:
    """Supplier attached to a recommendation."""

    id: str
    name: str
    lead_time_days: int | None


@dataclass
class ReorderRecommendation:
    """Reorder recommendation for a single product."""

    id: str
    product_id: str
    sku: str | None
    product_name: str
    supplier_id: str | None
    supplier_name: str | None
    current_stock: int
    reorder_point: int
    recommended_quantity: int
    estimated_cost: float | None
    priority: Priority
    reason: str
    expected_delivery_days: int

    def to_dict(self) -> dict:
        return asdict(self)


def stockout_priority(days_until_stockout: int | None) -> Priority:
    """Map days of stock left to a priority tier."""
    if days_until_stockout is None:
        return "low"
    if days_until_stockout <= 3:
        return "urgent"
    if days_until_stockout <= 7:
        return "high"
    if days_until_stockout <= 14:
        return "medium"
    return "low"


def reorder_reason(forecast: DemandForecast) -> str:
    """Human-readable rationale, first matching rule wins."""
    days = forecast.days_until_stockout

    if days is not None and days <= 0:
        return "Product is out of stock."
    if days is not None and days <= 7:
        return f"Only {days} days of stock remaining based on current sales velocity."
    if forecast.trend == "increasing":
        return "Demand is increasing. Reorder recommended to meet expected demand."
    return "Stock level below reorder point."


def build_recommendation(
    forecast: DemandForecast,
    supplier: SupplierRef | None,
    *,
    cover_days: int = 7,
    default_lead_time_days: int = 7,
) -> ReorderRecommendation:
    """Turn a forecast with a reorder date into a recommendation.

    Cost is not estimated: there is no per-supplier unit cost to multiply by.
    """
    lead_time = (supplier.lead_time_days if supplier else None) or default_lead_time_days

    return ReorderRecommendation(
        id=f"rec_{forecast.product_id}",
        product_id=forecast.product_id,
        sku=forecast.sku,
        product_name=forecast.product_name,
        supplier_id=supplier.id if supplier else None,
        supplier_name=supplier.name if supplier else None,
        current_stock=forecast.current_stock,
        reorder_point=math.ceil(forecast.historical_avg_daily_sales * cover_days),
        recommended_quantity=forecast.recommended_reorder_quantity or forecast.expected_demand,
        estimated_cost=None,
        priority=stockout_priority(forecast.days_until_stockout),
        reason=reorder_reason(forecast),
        expected_delivery_days=lead_time,
    )


def recommend_reorders(
    forecasts: Iterable[DemandForecast],
    supplier: SupplierRef | None,
    *,
    cover_days: int = 7,
    default_lead_time_days: int = 7,
) -> list[ReorderRecommendation]:
    """Build recommendations for forecasts that call for a reorder.

    The same supplier is attached to every product; there is no
    product-to-supplier mapping yet.

    Returns:
        Recommendations sorted by priority (urgent first), stable within a tier

    """
    recommendations = [
        build_recommendation(
            f,
            supplier,
            cover_days=cover_days,
            default_lead_time_days=default_lead_time_days,
        )
        for f in forecasts
        if f.recommended_reorder_date is not None
    ]
    return sorted(recommendations, key=lambda r: PRIORITY_ORDER[r.priority])
