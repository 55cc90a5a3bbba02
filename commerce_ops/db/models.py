"""SQLAlchemy ORM models for commerce-ops.

This module defines the slice of the store schema the forecasting and
pricing engine reads:
- Catalog (Products)
- Fact tables (Orders, Order Items)
- Tuning and supply data (Inventory Levels, Suppliers)
- Append-only Price History

Every table carries workspace_id; all queries must be scoped by it.
Timestamps are stored in UTC.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# =============================================================================
# Catalog
# =============================================================================


class Product(Base):
    """Product synced from a connected store.

    Price and on-hand quantity are owned by connector sync jobs.
    """

    __tablename__ = "ecommerce_products"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    workspace_id: Mapped[str] = mapped_column(String(64), index=True)
    sku: Mapped[str | None] = mapped_column(String(100), nullable=True)
    title: Mapped[str] = mapped_column(String(255))
    price: Mapped[float | None] = mapped_column(Float, nullable=True)
    currency: Mapped[str | None] = mapped_column(String(3), nullable=True, default="USD")
    inventory_quantity: Mapped[int | None] = mapped_column(Integer, nullable=True)


# =============================================================================
# Fact Tables
# =============================================================================


class Order(Base):
    """Store order header. Only the timestamp matters to the engine."""

    __tablename__ = "ecommerce_orders"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    workspace_id: Mapped[str] = mapped_column(String(64), index=True)
    total_price: Mapped[float] = mapped_column(Float, default=0.0)
    currency: Mapped[str] = mapped_column(String(3), default="USD")
    source_created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    __table_args__ = (Index("ecommerce_orders_date_idx", "workspace_id", "source_created_at"),)


class OrderItem(Base):
    """Order line item. Immutable once synced."""

    __tablename__ = "ecommerce_order_items"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    workspace_id: Mapped[str] = mapped_column(String(64), index=True)
    order_id: Mapped[str] = mapped_column(
        ForeignKey("ecommerce_orders.id", ondelete="CASCADE"), index=True
    )
    product_id: Mapped[str | None] = mapped_column(
        ForeignKey("ecommerce_products.id"), index=True, nullable=True
    )
    quantity: Mapped[int] = mapped_column(Integer, default=1)
    price: Mapped[float] = mapped_column(Float)  # Unit price
    total_price: Mapped[float] = mapped_column(Float)


# =============================================================================
# Inventory tuning and supply
# =============================================================================


class InventoryLevel(Base):
    """Per-product inventory tuning overrides.

    Null (or zero) values fall back to the forecaster's defaults.
    """

    __tablename__ = "inventory_levels"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    workspace_id: Mapped[str] = mapped_column(String(64), index=True)
    product_id: Mapped[str] = mapped_column(
        ForeignKey("ecommerce_products.id", ondelete="CASCADE"), index=True
    )
    reorder_point: Mapped[int | None] = mapped_column(Integer, nullable=True)
    reorder_quantity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    safety_stock: Mapped[int | None] = mapped_column(Integer, nullable=True, default=0)


class Supplier(Base):
    """Supplier with delivery lead time."""

    __tablename__ = "suppliers"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    workspace_id: Mapped[str] = mapped_column(String(64), index=True)
    name: Mapped[str] = mapped_column(String(255))
    lead_time_days: Mapped[int | None] = mapped_column(Integer, nullable=True, default=7)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


# =============================================================================
# Price History (append-only)
# =============================================================================


class PriceHistory(Base):
    """Price/cost snapshot per product.

    Rows are never updated: the latest row by effective_date is the current
    cost, older rows feed trend charts.
    """

    __tablename__ = "price_history"

    id: Mapped[str] = mapped_column(String(80), primary_key=True)
    workspace_id: Mapped[str] = mapped_column(String(64), index=True)
    product_id: Mapped[str] = mapped_column(
        ForeignKey("ecommerce_products.id", ondelete="CASCADE"), index=True
    )
    price: Mapped[float] = mapped_column(Float)
    compare_at_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    cost: Mapped[float | None] = mapped_column(Float, nullable=True)
    margin: Mapped[float | None] = mapped_column(Float, nullable=True)
    margin_percent: Mapped[float | None] = mapped_column(Float, nullable=True)
    platform: Mapped[str | None] = mapped_column(String(50), nullable=True)
    currency: Mapped[str | None] = mapped_column(String(3), nullable=True, default="USD")
    change_reason: Mapped[str | None] = mapped_column(String(255), nullable=True)
    effective_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    __table_args__ = (Index("price_history_date_idx", "product_id", "effective_date"),)
