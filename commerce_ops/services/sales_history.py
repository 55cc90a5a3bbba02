"""Workspace-scoped reads for the forecasting and pricing engine.

Each reader issues one batched query for all products in scope (GROUP BY or
window function) instead of one round-trip per product.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.orm import Session, aliased

from commerce_ops.db.models import (
    InventoryLevel,
    Order,
    OrderItem,
    PriceHistory,
    Product,
    Supplier,
)


@dataclass(frozen=True)
class SalesTotals:
    quantity: int = 0
    revenue: float = 0.0


@dataclass(frozen=True)
class SalesWindow:
    """Half-open order timestamp range [start, end). end=None means open-ended."""

    start: datetime
    end: datetime | None = None


def as_utc(value: datetime) -> datetime:
    """Convert to UTC; naive values are taken to be UTC already.

    Stored timestamps lose their offset, so everything written or compared
    against a DateTime column goes through here first.

    Examples:
        >>> as_utc(datetime(2025, 3, 31, 12, tzinfo=timezone(timedelta(hours=5))))
        datetime.datetime(2025, 3, 31, 7, 0, tzinfo=datetime.timezone.utc)

    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def trailing_windows(now: datetime, days: int = 30) -> tuple[SalesWindow, SalesWindow]:
    """Recent window (last N days) and the N days before it, in UTC.

    Examples:
        >>> recent, previous = trailing_windows(datetime(2025, 3, 31), 30)
        >>> recent.start.isoformat(), previous.start.isoformat()
        ('2025-03-01T00:00:00+00:00', '2025-01-30T00:00:00+00:00')

    """
    now = as_utc(now)
    recent_start = now - timedelta(days=days)
    previous_start = now - timedelta(days=days * 2)
    return SalesWindow(recent_start), SalesWindow(previous_start, recent_start)


def list_products(
    db: Session, workspace_id: str, product_ids: Sequence[str] | None = None
) -> list[Product]:
    """Products of a workspace, optionally restricted to product_ids."""
    stmt = select(Product).where(Product.workspace_id == workspace_id).order_by(Product.id)

    if product_ids is not None:
        stmt = stmt.where(Product.id.in_(product_ids))

    return list(db.execute(stmt).scalars().all())


def sum_sales(
    db: Session,
    workspace_id: str,
    window: SalesWindow,
    product_ids: Sequence[str] | None = None,
) -> dict[str, SalesTotals]:
    """Sum quantity and revenue per product for orders placed in window.

    Products without sales in the window are absent from the result;
    use ``.get(pid, SalesTotals())``.
    """
    stmt = (
        select(
            OrderItem.product_id,
            func.coalesce(func.sum(OrderItem.quantity), 0).label("qty"),
            func.coalesce(func.sum(OrderItem.total_price), 0).label("revenue"),
        )
        .join(Order, OrderItem.order_id == Order.id)
        .where(Order.workspace_id == workspace_id)
        .where(OrderItem.workspace_id == workspace_id)
        .where(OrderItem.product_id.isnot(None))
        .where(Order.source_created_at >= window.start)
        .group_by(OrderItem.product_id)
    )

    if window.end is not None:
        stmt = stmt.where(Order.source_created_at < window.end)

    if product_ids is not None:
        stmt = stmt.where(OrderItem.product_id.in_(product_ids))

    return {
        row.product_id: SalesTotals(quantity=int(row.qty or 0), revenue=float(row.revenue or 0))
        for row in db.execute(stmt).all()
    }


def recent_price_history(
    db: Session,
    workspace_id: str,
    product_ids: Sequence[str] | None = None,
    limit: int = 30,
) -> dict[str, list[PriceHistory]]:
    """Latest ``limit`` price history rows per product, newest first."""
    rank = (
        func.row_number()
        .over(
            partition_by=PriceHistory.product_id,
            order_by=(PriceHistory.effective_date.desc(), PriceHistory.created_at.desc()),
        )
        .label("rn")
    )
    inner = select(PriceHistory, rank).where(PriceHistory.workspace_id == workspace_id)

    if product_ids is not None:
        inner = inner.where(PriceHistory.product_id.in_(product_ids))

    ranked = inner.subquery()
    history = aliased(PriceHistory, ranked)
    stmt = (
        select(history)
        .where(ranked.c.rn <= limit)
        .order_by(ranked.c.product_id, ranked.c.rn)
    )

    out: dict[str, list[PriceHistory]] = defaultdict(list)
    for row in db.execute(stmt).scalars().all():
        out[row.product_id].append(row)
    return dict(out)


def latest_price_records(
    db: Session,
    workspace_id: str,
    product_ids: Sequence[str] | None = None,
) -> dict[str, PriceHistory]:
    """Most recent price history row per product (its cost may be null)."""
    return {
        pid: rows[0]
        for pid, rows in recent_price_history(db, workspace_id, product_ids, limit=1).items()
    }


def inventory_overrides(
    db: Session,
    workspace_id: str,
    product_ids: Sequence[str] | None = None,
) -> dict[str, InventoryLevel]:
    """Reorder tuning row per product; the first row wins when several exist."""
    stmt = (
        select(InventoryLevel)
        .where(InventoryLevel.workspace_id == workspace_id)
        .order_by(InventoryLevel.product_id, InventoryLevel.id)
    )

    if product_ids is not None:
        stmt = stmt.where(InventoryLevel.product_id.in_(product_ids))

    out: dict[str, InventoryLevel] = {}
    for level in db.execute(stmt).scalars().all():
        out.setdefault(level.product_id, level)
    return out


def first_supplier(db: Session, workspace_id: str) -> Supplier | None:
    """First supplier of the workspace, used as the blanket default."""
    stmt = (
        select(Supplier)
        .where(Supplier.workspace_id == workspace_id)
        .order_by(Supplier.created_at, Supplier.id)
        .limit(1)
    )
    return db.execute(stmt).scalar_one_or_none()
