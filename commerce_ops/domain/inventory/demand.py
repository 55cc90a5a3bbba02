"""Demand forecasting from trailing sales windows.

NO DATA ACCESS - pure functions only. Sales totals are read in the services layer.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable
from dataclasses import asdict, dataclass
from datetime import date, timedelta
from typing import Literal

from commerce_ops.core.config import Settings, get_settings

Trend = Literal["increasing", "stable", "decreasing"]
Confidence = Literal["high", "medium", "low"]

CONFIDENCE_ORDER: dict[str, int] = {"high": 0, "medium": 1, "low": 2}


@dataclass(frozen=True)
class ForecastPolicy:
    """Tunable forecasting thresholds."""

    history_days: int = 30
    trend_threshold: float = 0.10
    trend_up_multiplier: float = 1.1
    trend_down_multiplier: float = 0.9
    reorder_cover_days: int = 7
    high_confidence_units: int = 20
    low_confidence_units: int = 5

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> ForecastPolicy:
        s = settings or get_settings()
        return cls(
            history_days=s.forecast_history_days,
            trend_threshold=s.forecast_trend_threshold,
            trend_up_multiplier=s.forecast_trend_up_multiplier,
            trend_down_multiplier=s.forecast_trend_down_multiplier,
            reorder_cover_days=s.forecast_reorder_cover_days,
            high_confidence_units=s.forecast_high_confidence_units,
            low_confidence_units=s.forecast_low_confidence_units,
        )


@dataclass
class DemandForecast:
    """Per-product demand forecast. Derived on every call, never persisted."""

    product_id: str
    sku: str | None
    product_name: str
    current_stock: int
    forecast_period_days: int
    expected_demand: int
    forecasted_stockout_date: date | None
    days_until_stockout: int | None
    recommended_reorder_date: date | None
    recommended_reorder_quantity: int | None
    confidence: Confidence
    historical_avg_daily_sales: float
    trend: Trend

    def to_dict(self) -> dict:
        return asdict(self)


def classify_trend(recent_qty: float, previous_qty: float, threshold: float = 0.10) -> Trend:
    """Classify recent vs previous window sales velocity.

    Without previous sales there is no reference rate, so the trend is stable.

    Examples:
        >>> classify_trend(100, 50)
        'increasing'
        >>> classify_trend(100, 0)
        'stable'

    """
    if previous_qty <= 0:
        return "stable"

    growth_rate = (recent_qty - previous_qty) / previous_qty
    if growth_rate > threshold:
        return "increasing"
    if growth_rate < -threshold:
        return "decreasing"
    return "stable"


def adjust_for_trend(avg_daily_sales: float, trend: Trend, policy: ForecastPolicy) -> float:
    """Scale daily sales by the trend multiplier."""
    if trend == "increasing":
        return avg_daily_sales * policy.trend_up_multiplier
    if trend == "decreasing":
        return avg_daily_sales * policy.trend_down_multiplier
    return avg_daily_sales


def forecast_qty(sv: float, window: int) -> int:
    """Forecast demand quantity for future window.

    Simple linear forecast: sv * window days, rounded up. The product is
    rounded to 9 decimals first so float noise (110.00000000000001) does
    not push it to the next unit.

    Args:
        sv: Sales velocity (units/day)
        window: Forecast horizon (days)

    Returns:
        Forecasted quantity (integer, rounded up, never negative)

    Examples:
        >>> forecast_qty(100 / 30 * 1.1, 30)
        110

    """
    if sv <= 0 or window <= 0:
        return 0

    return math.ceil(round(sv * window, 9))


def days_until_stockout(current_stock: int, avg_daily_sales: float) -> int | None:
    """Whole days of stock left at current velocity. None when nothing sells."""
    if avg_daily_sales <= 0:
        return None
    return math.floor(current_stock / avg_daily_sales)


def forecast_confidence(recent_qty: float, policy: ForecastPolicy) -> Confidence:
    """Confidence tier from sample size (units sold in the recent window)."""
    if recent_qty >= policy.high_confidence_units:
        return "high"
    if recent_qty < policy.low_confidence_units:
        return "low"
    return "medium"


def resolve_first(*steps: Callable[[], int | None]) -> int | None:
    """Return the first non-empty value produced by the resolver steps.

    Steps are evaluated lazily in order. None and zero both count as empty,
    so a zero override falls through to the computed default.
    """
    for step in steps:
        value = step()
        if value:
            return value
    return None


def build_forecast(
    *,
    product_id: str,
    sku: str | None,
    product_name: str,
    current_stock: int,
    recent_qty: float,
    previous_qty: float,
    forecast_days: int,
    today: date,
    policy: ForecastPolicy,
    reorder_point_override: int | None = None,
    reorder_quantity_override: int | None = None,
) -> DemandForecast:
    """Compute the forecast for a single product.

    Average daily sales always use the full history window as denominator,
    independent of the forecast horizon.
    """
    avg_daily_sales = recent_qty / policy.history_days
    trend = classify_trend(recent_qty, previous_qty, policy.trend_threshold)
    adjusted = adjust_for_trend(avg_daily_sales, trend, policy)
    expected_demand = forecast_qty(adjusted, forecast_days)

    stockout_days = days_until_stockout(current_stock, avg_daily_sales)
    stockout_date = None
    # Far-future stockouts are not surfaced
    if stockout_days is not None and stockout_days < forecast_days * 2:
        stockout_date = today + timedelta(days=stockout_days)

    reorder_point = resolve_first(
        lambda: reorder_point_override,
        lambda: math.ceil(avg_daily_sales * policy.reorder_cover_days),
    ) or 0
    reorder_quantity = resolve_first(
        lambda: reorder_quantity_override,
        lambda: expected_demand,
    )

    reorder_date = None
    reorder_qty = None
    if avg_daily_sales > 0 and current_stock < reorder_point + avg_daily_sales * forecast_days:
        days_to_reorder_point = max(
            0, math.floor((current_stock - reorder_point) / avg_daily_sales)
        )
        reorder_date = today + timedelta(days=days_to_reorder_point)
        reorder_qty = reorder_quantity or expected_demand

    return DemandForecast(
        product_id=product_id,
        sku=sku,
        product_name=product_name,
        current_stock=current_stock,
        forecast_period_days=forecast_days,
        expected_demand=expected_demand,
        forecasted_stockout_date=stockout_date,
        days_until_stockout=stockout_days,
        recommended_reorder_date=reorder_date,
        recommended_reorder_quantity=reorder_qty,
        confidence=forecast_confidence(recent_qty, policy),
        historical_avg_daily_sales=avg_daily_sales,
        trend=trend,
    )


def sort_by_urgency(forecasts: Iterable[DemandForecast]) -> list[DemandForecast]:
    """Order by days until stockout ascending; unknown stockouts go last."""
    return sorted(
        forecasts,
        key=lambda f: (f.days_until_stockout is None, f.days_until_stockout or 0),
    )
