"""Pydantic schemas for API requests and responses."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field


# Inventory schemas
class DemandForecastOut(BaseModel):
    """Demand forecast of one product."""

    product_id: str
    sku: str | None = None
    product_name: str
    current_stock: int
    forecast_period_days: int
    expected_demand: int = Field(..., description="Units expected over the forecast period")
    forecasted_stockout_date: date | None = None
    days_until_stockout: int | None = None
    recommended_reorder_date: date | None = None
    recommended_reorder_quantity: int | None = None
    confidence: Literal["high", "medium", "low"]
    historical_avg_daily_sales: float
    trend: Literal["increasing", "stable", "decreasing"]

    class Config:
        from_attributes = True


class ReorderRecommendationOut(BaseModel):
    """Prioritised reorder recommendation."""

    id: str
    product_id: str
    sku: str | None = None
    product_name: str
    supplier_id: str | None = None
    supplier_name: str | None = None
    current_stock: int
    reorder_point: int
    recommended_quantity: int
    estimated_cost: float | None = None
    priority: Literal["urgent", "high", "medium", "low"]
    reason: str
    expected_delivery_days: int

    class Config:
        from_attributes = True


# Pricing schemas
class PricePointOut(BaseModel):
    date: datetime
    price: float

    class Config:
        from_attributes = True


class PriceAnalysisOut(BaseModel):
    """Current price, latest cost and recent sales of one product."""

    product_id: str
    sku: str | None = None
    product_name: str
    current_price: float
    cost: float | None = None
    margin: float | None = None
    margin_percent: float | None = None
    price_history: list[PricePointOut] = []
    sales_at_current_price: int = 0
    revenue_at_current_price: float = 0.0
    currency: str

    class Config:
        from_attributes = True


class MarginAnalysisOut(BaseModel):
    """Workspace margin summary."""

    total_products: int
    average_margin: float
    average_margin_percent: float = Field(..., description="Mean margin (%) over products with cost")
    products_with_margin: int
    products_without_cost: int
    high_margin_products: int
    low_margin_products: int
    negative_margin_products: int
    total_revenue: float
    total_cost: float
    total_profit: float
    currency: str

    class Config:
        from_attributes = True


class ProductMarginOut(BaseModel):
    """Margin, profit and category of one product."""

    product_id: str
    sku: str | None = None
    product_name: str
    price: float
    cost: float | None = None
    margin: float | None = None
    margin_percent: float | None = None
    units_sold: int
    revenue: float
    profit: float | None = None
    category: Literal["high", "medium", "low", "negative", "unknown"]

    class Config:
        from_attributes = True


class PricingSuggestionOut(BaseModel):
    """Suggested price change with rationale."""

    id: str
    product_id: str
    sku: str | None = None
    product_name: str
    current_price: float
    suggested_price: float
    price_change_percent: float | None = None
    reason: str
    expected_impact: str
    estimated_revenue_change: float | None = None
    confidence: Literal["high", "medium", "low"]

    class Config:
        from_attributes = True


class PriceChangeRequest(BaseModel):
    """Request to record a new price for a product."""

    product_id: str = Field(..., min_length=1, max_length=64)
    new_price: float = Field(..., ge=0)
    cost: float | None = Field(None, ge=0)
    compare_at_price: float | None = Field(None, ge=0)
    platform: str | None = Field(None, max_length=50)
    change_reason: str | None = Field(None, max_length=255)
    currency: str | None = Field(None, min_length=3, max_length=3)
    effective_date: datetime | None = None


class PriceChangeResult(BaseModel):
    recorded: bool
