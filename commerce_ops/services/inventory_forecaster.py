"""Demand forecast and reorder recommendation service."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from commerce_ops.core.config import get_settings
from commerce_ops.core.metrics import recommendations_generated_total
from commerce_ops.domain.inventory.demand import (
    DemandForecast,
    ForecastPolicy,
    build_forecast,
    sort_by_urgency,
)
from commerce_ops.domain.inventory.reorder import (
    ReorderRecommendation,
    SupplierRef,
    recommend_reorders,
)
from commerce_ops.services.guard import degrade_on_error
from commerce_ops.services.sales_history import (
    SalesTotals,
    as_utc,
    first_supplier,
    inventory_overrides,
    list_products,
    sum_sales,
    trailing_windows,
)

logger = logging.getLogger(__name__)

# Reorder recommendations always look one month ahead
REORDER_FORECAST_DAYS = 30


@degrade_on_error("demand_forecast", lambda _: [])
def get_demand_forecast(
    db: Session,
    *,
    workspace_id: str,
    forecast_days: int | None = None,
    product_ids: Sequence[str] | None = None,
    policy: ForecastPolicy | None = None,
    now: datetime | None = None,
) -> list[DemandForecast]:
    """Forecast demand and stockout timing for products of a workspace.

    Args:
        db: Database session
        workspace_id: Tenant scope
        forecast_days: Forecast horizon (default from settings, 30)
        product_ids: Restrict to these products (None = all)
        policy: Thresholds (default from settings)
        now: Reference time (default: current UTC time)

    Returns:
        Forecasts sorted by days until stockout, unknown last.
        Empty list if anything fails.

    """
    policy = policy or ForecastPolicy.from_settings()
    if forecast_days is None:
        forecast_days = get_settings().forecast_default_days
    now = as_utc(now or datetime.now(timezone.utc))
    today = now.date()

    logger.info(
        "Generating demand forecast",
        extra={"workspace_id": workspace_id, "forecast_days": forecast_days},
    )

    products = list_products(db, workspace_id, product_ids)
    if not products:
        return []

    ids = [p.id for p in products]
    recent_window, previous_window = trailing_windows(now, policy.history_days)
    recent = sum_sales(db, workspace_id, recent_window, ids)
    previous = sum_sales(db, workspace_id, previous_window, ids)
    overrides = inventory_overrides(db, workspace_id, ids)

    forecasts = []
    for product in products:
        level = overrides.get(product.id)
        forecasts.append(
            build_forecast(
                product_id=product.id,
                sku=product.sku,
                product_name=product.title,
                current_stock=product.inventory_quantity or 0,
                recent_qty=recent.get(product.id, SalesTotals()).quantity,
                previous_qty=previous.get(product.id, SalesTotals()).quantity,
                forecast_days=forecast_days,
                today=today,
                policy=policy,
                reorder_point_override=level.reorder_point if level else None,
                reorder_quantity_override=level.reorder_quantity if level else None,
            )
        )

    return sort_by_urgency(forecasts)


@degrade_on_error("reorder_recommendations", lambda _: [])
def get_reorder_recommendations(
    db: Session,
    *,
    workspace_id: str,
    policy: ForecastPolicy | None = None,
    now: datetime | None = None,
) -> list[ReorderRecommendation]:
    """Prioritised reorder recommendations for products that need restocking.

    Returns:
        Recommendations sorted urgent → low. Empty list if anything fails.

    """
    policy = policy or ForecastPolicy.from_settings()
    logger.info("Generating reorder recommendations", extra={"workspace_id": workspace_id})

    forecasts = get_demand_forecast(
        db,
        workspace_id=workspace_id,
        forecast_days=REORDER_FORECAST_DAYS,
        policy=policy,
        now=now,
    )

    supplier_row = first_supplier(db, workspace_id)
    supplier = (
        SupplierRef(
            id=supplier_row.id,
            name=supplier_row.name,
            lead_time_days=supplier_row.lead_time_days,
        )
        if supplier_row
        else None
    )

    recommendations = recommend_reorders(
        forecasts,
        supplier,
        cover_days=policy.reorder_cover_days,
        default_lead_time_days=get_settings().reorder_default_lead_time_days,
    )
    recommendations_generated_total.labels(kind="reorder").inc(len(recommendations))

    return recommendations


@degrade_on_error("stockout_risk", lambda _: [])
def get_stockout_risk_products(
    db: Session,
    *,
    workspace_id: str,
    days_threshold: int | None = None,
    now: datetime | None = None,
) -> list[DemandForecast]:
    """Products expected to run out within days_threshold (default 14)."""
    if days_threshold is None:
        days_threshold = get_settings().stockout_risk_default_days

    forecasts = get_demand_forecast(
        db, workspace_id=workspace_id, forecast_days=days_threshold, now=now
    )
    return [
        f
        for f in forecasts
        if f.days_until_stockout is not None and f.days_until_stockout <= days_threshold
    ]
