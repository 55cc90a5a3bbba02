"""Tests for the operations API endpoints."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from conftest import WORKSPACE, add_price, add_product, add_sale
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from commerce_ops.db.session import get_db
from commerce_ops.web.main import app


@pytest.fixture
def client(engine):
    """TestClient bound to the in-memory test database."""

    def override_get_db():
        session = Session(engine)
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def seeded(db):
    add_product(db, "fast", stock=5, price=7)
    add_product(db, "idle", stock=50, price=20)
    add_price(db, "fast", 7, cost=8)
    # Endpoints run against the wall clock
    add_sale(db, "fast", 60, placed_at=datetime.now(timezone.utc) - timedelta(days=1), unit_price=7)
    db.commit()
    return db


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_metrics_endpoint(client):
    client.get("/health")
    response = client.get("/metrics")

    assert response.status_code == 200
    assert "http_requests_total" in response.text


def test_workspace_is_required(client):
    response = client.get("/api/v1/operations/forecast")

    assert response.status_code == 422


def test_blank_workspace_rejected(client):
    response = client.get("/api/v1/operations/forecast", params={"workspace_id": "   "})

    assert response.status_code == 400


def test_forecast_endpoint(client, seeded):
    response = client.get("/api/v1/operations/forecast", params={"workspace_id": WORKSPACE})

    assert response.status_code == 200
    body = response.json()
    assert [f["product_id"] for f in body] == ["fast", "idle"]
    assert body[1]["days_until_stockout"] is None
    assert body[0]["trend"] in {"increasing", "stable", "decreasing"}


def test_forecast_endpoint_filters_products(client, seeded):
    response = client.get(
        "/api/v1/operations/forecast",
        params={"workspace_id": WORKSPACE, "product_ids": ["idle"], "forecast_days": 7},
    )

    assert response.status_code == 200
    [forecast] = response.json()
    assert forecast["product_id"] == "idle"
    assert forecast["forecast_period_days"] == 7


def test_forecast_days_validated(client):
    response = client.get(
        "/api/v1/operations/forecast", params={"workspace_id": WORKSPACE, "forecast_days": 0}
    )

    assert response.status_code == 422


def test_reorder_and_stockout_risk(client, seeded):
    reorder = client.get("/api/v1/operations/reorder", params={"workspace_id": WORKSPACE})
    risk = client.get("/api/v1/operations/stockout-risk", params={"workspace_id": WORKSPACE})

    assert reorder.status_code == 200
    assert [r["id"] for r in reorder.json()] == ["rec_fast"]
    assert reorder.json()[0]["priority"] == "urgent"
    assert risk.status_code == 200
    assert [f["product_id"] for f in risk.json()] == ["fast"]


def test_empty_workspace_returns_empty_lists(client):
    params = {"workspace_id": "ws_empty"}

    assert client.get("/api/v1/operations/reorder", params=params).json() == []
    assert client.get("/api/v1/operations/prices", params=params).json() == []
    assert client.get("/api/v1/operations/margins", params=params).json()["total_products"] == 0


def test_record_price_and_list_prices(client, seeded):
    response = client.post(
        "/api/v1/operations/prices",
        params={"workspace_id": WORKSPACE},
        json={"product_id": "idle", "new_price": 20, "cost": 12, "change_reason": "cost update"},
    )

    assert response.status_code == 200
    assert response.json() == {"recorded": True}

    prices = client.get(
        "/api/v1/operations/prices", params={"workspace_id": WORKSPACE, "product_ids": ["idle"]}
    )
    [analysis] = prices.json()
    assert analysis["cost"] == pytest.approx(12.0)
    assert analysis["margin_percent"] == pytest.approx(40.0)


def test_record_price_rejects_negative_price(client):
    response = client.post(
        "/api/v1/operations/prices",
        params={"workspace_id": WORKSPACE},
        json={"product_id": "p1", "new_price": -1},
    )

    assert response.status_code == 422


def test_margin_endpoints(client, seeded):
    summary = client.get(
        "/api/v1/operations/margins", params={"workspace_id": WORKSPACE, "currency": "EUR"}
    )
    products = client.get(
        "/api/v1/operations/margins/products",
        params={"workspace_id": WORKSPACE, "sort_by": "margin"},
    )

    assert summary.status_code == 200
    assert summary.json()["currency"] == "EUR"
    assert summary.json()["negative_margin_products"] == 1
    assert products.status_code == 200
    assert [m["product_id"] for m in products.json()] == ["fast", "idle"]
    assert products.json()[1]["category"] == "unknown"


def test_margin_products_rejects_unknown_sort(client):
    response = client.get(
        "/api/v1/operations/margins/products",
        params={"workspace_id": WORKSPACE, "sort_by": "revenue"},
    )

    assert response.status_code == 422


def test_pricing_suggestions_endpoint(client, seeded):
    response = client.get(
        "/api/v1/operations/pricing/suggestions", params={"workspace_id": WORKSPACE}
    )

    assert response.status_code == 200
    [suggestion] = response.json()
    assert suggestion["id"] == "sug_fast_negative"
    assert suggestion["suggested_price"] == 10.0
    assert suggestion["estimated_revenue_change"] is None


def test_record_price_field_limits_match_columns(client, seeded):
    params = {"workspace_id": WORKSPACE}
    too_long_reason = client.post(
        "/api/v1/operations/prices",
        params=params,
        json={"product_id": "idle", "new_price": 21, "change_reason": "x" * 256},
    )
    too_long_platform = client.post(
        "/api/v1/operations/prices",
        params=params,
        json={"product_id": "idle", "new_price": 21, "platform": "p" * 51},
    )
    at_limit = client.post(
        "/api/v1/operations/prices",
        params=params,
        json={
            "product_id": "idle",
            "new_price": 21,
            "change_reason": "x" * 255,
            "platform": "p" * 50,
        },
    )

    assert too_long_reason.status_code == 422
    assert too_long_platform.status_code == 422
    assert at_limit.json() == {"recorded": True}
