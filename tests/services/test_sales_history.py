"""Tests for batched workspace-scoped reads."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from conftest import (
    NOW,
    WORKSPACE,
    add_inventory_level,
    add_price,
    add_product,
    add_sale,
    add_supplier,
)

from commerce_ops.services.sales_history import (
    SalesTotals,
    first_supplier,
    inventory_overrides,
    latest_price_records,
    list_products,
    recent_price_history,
    sum_sales,
    trailing_windows,
)


def test_trailing_windows_are_adjacent():
    recent, previous = trailing_windows(NOW, 30)

    assert recent.start == NOW - timedelta(days=30)
    assert recent.end is None
    assert previous.start == NOW - timedelta(days=60)
    assert previous.end == recent.start


def test_list_products_scoped_and_filtered(db):
    add_product(db, "b")
    add_product(db, "a")
    add_product(db, "other", workspace_id="ws_other")

    assert [p.id for p in list_products(db, WORKSPACE)] == ["a", "b"]
    assert [p.id for p in list_products(db, WORKSPACE, ["b", "other"])] == ["b"]
    assert list_products(db, WORKSPACE, []) == []


def test_sum_sales_groups_by_product_and_window(db):
    add_product(db, "p1")
    add_product(db, "p2")
    add_sale(db, "p1", 3, days_ago=1, unit_price=5)
    add_sale(db, "p1", 2, days_ago=10, unit_price=5)
    add_sale(db, "p1", 7, days_ago=40, unit_price=5)  # previous window
    add_sale(db, "p2", 4, days_ago=2, unit_price=2.5)

    recent, previous = trailing_windows(NOW, 30)

    recent_totals = sum_sales(db, WORKSPACE, recent)
    assert recent_totals["p1"] == SalesTotals(quantity=5, revenue=25.0)
    assert recent_totals["p2"] == SalesTotals(quantity=4, revenue=10.0)

    previous_totals = sum_sales(db, WORKSPACE, previous)
    assert previous_totals == {"p1": SalesTotals(quantity=7, revenue=35.0)}

    assert set(sum_sales(db, WORKSPACE, recent, ["p2"])) == {"p2"}


def test_sum_sales_ignores_other_workspaces(db):
    add_product(db, "p1")
    add_sale(db, "p1", 9, days_ago=1, workspace_id="ws_other")

    recent, _ = trailing_windows(NOW, 30)

    assert sum_sales(db, WORKSPACE, recent) == {}


def test_recent_price_history_newest_first_with_limit(db):
    add_product(db, "p1")
    add_product(db, "p2")
    for i in range(5):
        add_price(db, "p1", 10 + i, days_ago=10 - i)
    add_price(db, "p2", 99, days_ago=3)

    history = recent_price_history(db, WORKSPACE, limit=3)

    assert [row.price for row in history["p1"]] == [14, 13, 12]
    assert [row.price for row in history["p2"]] == [99]


def test_latest_price_records_keeps_null_cost(db):
    add_product(db, "p1")
    add_price(db, "p1", 10, cost=6, days_ago=5)
    add_price(db, "p1", 12, cost=None, days_ago=1)

    latest = latest_price_records(db, WORKSPACE)

    assert latest["p1"].price == 12
    assert latest["p1"].cost is None


def test_inventory_overrides_first_row_wins(db):
    add_product(db, "p1")
    add_inventory_level(db, "p1", reorder_point=5)
    add_inventory_level(db, "p1", reorder_point=50)

    overrides = inventory_overrides(db, WORKSPACE)

    assert overrides["p1"].reorder_point == 5


def test_first_supplier_is_oldest(db):
    add_supplier(db, "sup_new", name="New", created_days_ago=1)
    add_supplier(db, "sup_old", name="Old", created_days_ago=300)
    add_supplier(db, "sup_x", name="Elsewhere", created_days_ago=900, workspace_id="ws_other")

    supplier = first_supplier(db, WORKSPACE)

    assert supplier is not None
    assert supplier.name == "Old"
    assert first_supplier(db, "ws_empty") is None


def test_trailing_windows_read_naive_datetimes_as_utc():
    recent, previous = trailing_windows(datetime(2025, 3, 31), 7)

    assert recent.start == datetime(2025, 3, 24, tzinfo=timezone.utc)
    assert recent.start.tzinfo is timezone.utc
    assert previous.start == datetime(2025, 3, 17, tzinfo=timezone.utc)


def test_trailing_windows_convert_offsets_to_utc():
    plus_five = timezone(timedelta(hours=5))
    recent, _ = trailing_windows(datetime(2025, 3, 31, 12, tzinfo=plus_five), 1)

    assert recent.start.tzinfo is timezone.utc
    assert recent.start.hour == 7


def test_sales_window_bound_uses_utc_instant(db):
    """An offset reference time selects orders by instant, not by wall clock."""
    add_product(db, "p1")
    # Placed 08:00 UTC; window from 12:00+05:00 minus 1 day = 07:00 UTC the day before
    add_sale(db, "p1", 2, placed_at=datetime(2025, 6, 29, 8, tzinfo=timezone.utc))

    plus_five = timezone(timedelta(hours=5))
    recent, _ = trailing_windows(datetime(2025, 6, 30, 12, tzinfo=plus_five), 1)

    assert sum_sales(db, WORKSPACE, recent)["p1"].quantity == 2


def test_price_history_and_overrides_are_workspace_scoped(db):
    add_product(db, "p1")
    add_product(db, "foreign", workspace_id="ws_other")
    add_price(db, "p1", 10, cost=6, days_ago=5)
    add_price(db, "p1", 55, cost=50, days_ago=1, workspace_id="ws_other")
    add_price(db, "foreign", 99, days_ago=1, workspace_id="ws_other")
    add_inventory_level(db, "p1", reorder_point=999, workspace_id="ws_other")
    add_inventory_level(db, "foreign", reorder_point=5, workspace_id="ws_other")

    history = recent_price_history(db, WORKSPACE)
    latest = latest_price_records(db, WORKSPACE)

    assert set(history) == {"p1"}
    assert [row.price for row in history["p1"]] == [10]
    assert latest["p1"].price == 10
    assert inventory_overrides(db, WORKSPACE) == {}
    assert set(inventory_overrides(db, "ws_other")) == {"p1", "foreign"}
