"""Inventory forecasting and pricing analytics API endpoints."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Query

from commerce_ops.services import inventory_forecaster, pricing_analyzer
from commerce_ops.web.deps import DBSession, WorkspaceScope
from commerce_ops.web.schemas import (
    DemandForecastOut,
    MarginAnalysisOut,
    PriceAnalysisOut,
    PriceChangeRequest,
    PriceChangeResult,
    PricingSuggestionOut,
    ProductMarginOut,
    ReorderRecommendationOut,
)

router = APIRouter(prefix="/api/v1/operations", tags=["operations"])

MarginSortKey = Literal["margin", "marginPercent", "margin_percent", "profit"]


@router.get("/forecast", response_model=list[DemandForecastOut])
def get_forecast(
    workspace_id: WorkspaceScope,
    db: DBSession,
    forecast_days: int | None = Query(None, ge=1, le=365),
    product_ids: list[str] | None = Query(None, description="Restrict to these products"),
):
    """Demand forecast per product, most urgent stockout first."""
    return inventory_forecaster.get_demand_forecast(
        db,
        workspace_id=workspace_id,
        forecast_days=forecast_days,
        product_ids=product_ids,
    )


@router.get("/reorder", response_model=list[ReorderRecommendationOut])
def get_reorder(workspace_id: WorkspaceScope, db: DBSession):
    """Reorder recommendations sorted by priority."""
    return inventory_forecaster.get_reorder_recommendations(db, workspace_id=workspace_id)


@router.get("/stockout-risk", response_model=list[DemandForecastOut])
def get_stockout_risk(
    workspace_id: WorkspaceScope,
    db: DBSession,
    days: int | None = Query(None, ge=1, le=365, description="Risk horizon in days"),
):
    """Products expected to run out within the horizon."""
    return inventory_forecaster.get_stockout_risk_products(
        db, workspace_id=workspace_id, days_threshold=days
    )


@router.get("/prices", response_model=list[PriceAnalysisOut])
def get_prices(
    workspace_id: WorkspaceScope,
    db: DBSession,
    product_ids: list[str] | None = Query(None),
):
    """Current price, latest cost and recent price history per product."""
    return pricing_analyzer.get_price_analysis(
        db, workspace_id=workspace_id, product_ids=product_ids
    )


@router.post("/prices", response_model=PriceChangeResult)
def post_price(workspace_id: WorkspaceScope, db: DBSession, body: PriceChangeRequest):
    """Append a price change to the product's history."""
    recorded = pricing_analyzer.record_price_change(
        db,
        workspace_id=workspace_id,
        product_id=body.product_id,
        new_price=body.new_price,
        cost=body.cost,
        compare_at_price=body.compare_at_price,
        platform=body.platform,
        change_reason=body.change_reason,
        currency=body.currency,
        effective_date=body.effective_date,
    )
    return {"recorded": recorded}


@router.get("/margins", response_model=MarginAnalysisOut)
def get_margins(
    workspace_id: WorkspaceScope,
    db: DBSession,
    currency: str = Query("USD", min_length=3, max_length=3),
):
    """Workspace margin summary."""
    return pricing_analyzer.get_margin_analysis(db, workspace_id=workspace_id, currency=currency)


@router.get("/margins/products", response_model=list[ProductMarginOut])
def get_margins_by_product(
    workspace_id: WorkspaceScope,
    db: DBSession,
    sort_by: MarginSortKey = Query("marginPercent"),
):
    """Per-product margins, sorted descending."""
    return pricing_analyzer.get_product_margins(db, workspace_id=workspace_id, sort_by=sort_by)


@router.get("/pricing/suggestions", response_model=list[PricingSuggestionOut])
def get_suggestions(workspace_id: WorkspaceScope, db: DBSession):
    """Price change suggestions, high confidence first."""
    return pricing_analyzer.get_pricing_suggestions(db, workspace_id=workspace_id)
