"""Price, margin and pricing suggestion service."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from commerce_ops.core.config import get_settings
from commerce_ops.core.metrics import (
    price_changes_recorded_total,
    recommendations_generated_total,
)
from commerce_ops.db.models import PriceHistory
from commerce_ops.domain.pricing.margins import (
    MarginAnalysis,
    MarginInput,
    PriceAnalysis,
    PricePoint,
    PricingPolicy,
    ProductMargin,
    build_product_margin,
    margin_percent_of_price,
    sort_product_margins,
    summarize_margins,
)
from commerce_ops.domain.pricing.suggest import PricingSuggestion, generate_suggestions
from commerce_ops.services.guard import degrade_on_error
from commerce_ops.services.sales_history import (
    SalesTotals,
    SalesWindow,
    as_utc,
    latest_price_records,
    list_products,
    recent_price_history,
    sum_sales,
    trailing_windows,
)

logger = logging.getLogger(__name__)


def _sales_window(policy: PricingPolicy, now: datetime | None) -> SalesWindow:
    recent, _ = trailing_windows(now or datetime.now(timezone.utc), policy.sales_window_days)
    return recent


def _as_float(value: float | None) -> float | None:
    """Recorded money value, None when missing or zero."""
    return float(value) if value else None


@degrade_on_error("price_analysis", lambda _: [])
def get_price_analysis(
    db: Session,
    *,
    workspace_id: str,
    product_ids: Sequence[str] | None = None,
    policy: PricingPolicy | None = None,
    now: datetime | None = None,
) -> list[PriceAnalysis]:
    """Current price, latest cost/margin, recent price history and sales per product.

    Returns:
        One analysis per product (empty list if anything fails)

    """
    settings = get_settings()
    policy = policy or PricingPolicy.from_settings(settings)
    logger.info("Getting price analysis", extra={"workspace_id": workspace_id})

    products = list_products(db, workspace_id, product_ids)
    if not products:
        return []

    ids = [p.id for p in products]
    history = recent_price_history(db, workspace_id, ids, limit=settings.price_history_limit)
    sales = sum_sales(db, workspace_id, _sales_window(policy, now), ids)

    analyses = []
    for product in products:
        rows = history.get(product.id, [])
        latest = rows[0] if rows else None
        totals = sales.get(product.id, SalesTotals())

        analyses.append(
            PriceAnalysis(
                product_id=product.id,
                sku=product.sku,
                product_name=product.title,
                current_price=float(product.price or 0),
                cost=_as_float(latest.cost) if latest else None,
                margin=_as_float(latest.margin) if latest else None,
                margin_percent=_as_float(latest.margin_percent) if latest else None,
                price_history=[PricePoint(date=r.effective_date, price=r.price) for r in rows],
                sales_at_current_price=totals.quantity,
                revenue_at_current_price=totals.revenue,
                currency=product.currency or settings.default_currency,
            )
        )

    return analyses


@degrade_on_error(
    "margin_analysis",
    lambda kwargs: MarginAnalysis.empty(kwargs.get("currency") or "USD"),
)
def get_margin_analysis(
    db: Session,
    *,
    workspace_id: str,
    currency: str = "USD",
    policy: PricingPolicy | None = None,
    now: datetime | None = None,
) -> MarginAnalysis:
    """Workspace margin summary over the trailing sales window.

    Returns:
        Aggregate statistics; all zeros if anything fails

    """
    policy = policy or PricingPolicy.from_settings()
    logger.info("Getting margin analysis", extra={"workspace_id": workspace_id})

    products = list_products(db, workspace_id)
    latest = latest_price_records(db, workspace_id)
    sales = sum_sales(db, workspace_id, _sales_window(policy, now))

    rows = []
    for product in products:
        record = latest.get(product.id)
        totals = sales.get(product.id, SalesTotals())
        rows.append(
            MarginInput(
                price=float(product.price or 0),
                cost=_as_float(record.cost) if record else None,
                units_sold=totals.quantity,
                revenue=totals.revenue,
            )
        )

    return summarize_margins(rows, policy, currency)


@degrade_on_error("product_margins", lambda _: [])
def get_product_margins(
    db: Session,
    *,
    workspace_id: str,
    sort_by: str = "marginPercent",
    policy: PricingPolicy | None = None,
    now: datetime | None = None,
) -> list[ProductMargin]:
    """Per-product margin, profit and category, sorted descending by sort_by.

    Args:
        sort_by: margin | marginPercent | profit

    """
    policy = policy or PricingPolicy.from_settings()
    logger.info("Getting product margins", extra={"workspace_id": workspace_id, "sort_by": sort_by})

    products = list_products(db, workspace_id)
    latest = latest_price_records(db, workspace_id)
    sales = sum_sales(db, workspace_id, _sales_window(policy, now))

    margins = []
    for product in products:
        record = latest.get(product.id)
        totals = sales.get(product.id, SalesTotals())
        margins.append(
            build_product_margin(
                product_id=product.id,
                sku=product.sku,
                product_name=product.title,
                price=float(product.price or 0),
                cost=_as_float(record.cost) if record else None,
                units_sold=totals.quantity,
                revenue=totals.revenue,
                policy=policy,
            )
        )

    return sort_product_margins(margins, sort_by)


@degrade_on_error("record_price_change", lambda _: False)
def record_price_change(
    db: Session,
    *,
    workspace_id: str,
    product_id: str,
    new_price: float,
    cost: float | None = None,
    compare_at_price: float | None = None,
    platform: str | None = None,
    change_reason: str | None = None,
    currency: str | None = None,
    effective_date: datetime | None = None,
) -> bool:
    """Append a price history row. Existing rows are never touched.

    Margin fields are only filled when a cost is supplied. effective_date is
    stored in UTC; naive values are read as UTC.

    Returns:
        True on success, False if the insert failed

    """
    logger.info(
        "Recording price change",
        extra={"workspace_id": workspace_id, "product_id": product_id, "new_price": new_price},
    )

    cost = cost or None
    margin = margin_percent = None
    if cost is not None:
        margin = new_price - cost
        margin_percent = margin_percent_of_price(new_price, cost)

    db.add(
        PriceHistory(
            id=f"ph_{uuid.uuid4().hex}",
            workspace_id=workspace_id,
            product_id=product_id,
            price=new_price,
            compare_at_price=compare_at_price or None,
            cost=cost,
            margin=margin,
            margin_percent=margin_percent,
            platform=platform,
            currency=currency or get_settings().default_currency,
            change_reason=change_reason,
            effective_date=as_utc(effective_date or datetime.now(timezone.utc)),
        )
    )
    db.commit()
    price_changes_recorded_total.inc()

    return True


@degrade_on_error("pricing_suggestions", lambda _: [])
def get_pricing_suggestions(
    db: Session,
    *,
    workspace_id: str,
    policy: PricingPolicy | None = None,
    now: datetime | None = None,
) -> list[PricingSuggestion]:
    """Price change suggestions for products with known cost.

    Returns:
        Suggestions sorted high → low confidence. Empty list if anything fails.

    """
    policy = policy or PricingPolicy.from_settings()
    logger.info("Generating pricing suggestions", extra={"workspace_id": workspace_id})

    margins = get_product_margins(db, workspace_id=workspace_id, policy=policy, now=now)
    suggestions = generate_suggestions(margins, policy)
    recommendations_generated_total.labels(kind="pricing").inc(len(suggestions))

    return suggestions
