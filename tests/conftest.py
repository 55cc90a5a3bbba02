"""Shared pytest fixtures and seed helpers."""

from __future__ import annotations

import itertools
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from commerce_ops.db.models import (
    Base,
    InventoryLevel,
    Order,
    OrderItem,
    PriceHistory,
    Product,
    Supplier,
)

WORKSPACE = "ws_test"
NOW = datetime(2025, 6, 30, 12, 0, tzinfo=timezone.utc)

_ids = itertools.count(1)


@pytest.fixture
def engine():
    """In-memory SQLite shared across threads (TestClient runs handlers in a worker)."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine) -> Session:
    """Create in-memory SQLite database for testing."""
    session = Session(engine)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def now() -> datetime:
    return NOW


def add_product(
    db: Session,
    product_id: str,
    *,
    stock: int | None = 0,
    price: float | None = 10.0,
    workspace_id: str = WORKSPACE,
    title: str | None = None,
) -> Product:
    product = Product(
        id=product_id,
        workspace_id=workspace_id,
        sku=f"SKU-{product_id}",
        title=title or f"Product {product_id}",
        price=price,
        currency="USD",
        inventory_quantity=stock,
    )
    db.add(product)
    db.flush()
    return product


def add_sale(
    db: Session,
    product_id: str,
    quantity: int,
    *,
    days_ago: float = 0,
    placed_at: datetime | None = None,
    unit_price: float = 10.0,
    workspace_id: str = WORKSPACE,
) -> None:
    """One order with a single line, placed days_ago before NOW unless placed_at is given."""
    n = next(_ids)
    db.add(
        Order(
            id=f"ord_{n}",
            workspace_id=workspace_id,
            total_price=quantity * unit_price,
            source_created_at=placed_at or NOW - timedelta(days=days_ago),
        )
    )
    db.flush()
    db.add(
        OrderItem(
            id=f"item_{n}",
            workspace_id=workspace_id,
            order_id=f"ord_{n}",
            product_id=product_id,
            quantity=quantity,
            price=unit_price,
            total_price=quantity * unit_price,
        )
    )
    db.flush()


def add_price(
    db: Session,
    product_id: str,
    price: float,
    *,
    cost: float | None = None,
    days_ago: float = 1,
    workspace_id: str = WORKSPACE,
) -> PriceHistory:
    n = next(_ids)
    row = PriceHistory(
        id=f"ph_{n}",
        workspace_id=workspace_id,
        product_id=product_id,
        price=price,
        cost=cost,
        margin=price - cost if cost is not None else None,
        effective_date=NOW - timedelta(days=days_ago),
        created_at=NOW - timedelta(days=days_ago),
    )
    db.add(row)
    db.flush()
    return row


def add_inventory_level(
    db: Session,
    product_id: str,
    *,
    reorder_point: int | None = None,
    reorder_quantity: int | None = None,
    workspace_id: str = WORKSPACE,
) -> None:
    db.add(
        InventoryLevel(
            id=f"inv_{next(_ids)}",
            workspace_id=workspace_id,
            product_id=product_id,
            reorder_point=reorder_point,
            reorder_quantity=reorder_quantity,
        )
    )
    db.flush()


def add_supplier(
    db: Session,
    supplier_id: str,
    *,
    name: str = "Acme Supply",
    lead_time_days: int | None = 7,
    created_days_ago: float = 100,
    workspace_id: str = WORKSPACE,
) -> None:
    db.add(
        Supplier(
            id=supplier_id,
            workspace_id=workspace_id,
            name=name,
            lead_time_days=lead_time_days,
            created_at=NOW - timedelta(days=created_days_ago),
        )
    )
    db.flush()
