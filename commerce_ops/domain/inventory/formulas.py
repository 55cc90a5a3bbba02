"""Classical inventory formulas: economic order quantity and safety stock."""

from __future__ import annotations

import math


def calculate_eoq(annual_demand: float, ordering_cost: float, holding_cost_per_unit: float) -> int:
    """Economic order quantity, rounded up.

    EOQ = sqrt(2 * D * S / H)

    Args:
        annual_demand: Units demanded per year (D)
        ordering_cost: Fixed cost per order (S)
        holding_cost_per_unit: Yearly holding cost per unit (H)

    Returns:
        Order quantity, 0 when any input is not positive

    Examples:
        >>> calculate_eoq(1200, 50, 2)
        245
        >>> calculate_eoq(0, 50, 2)
        0

    """
    if annual_demand <= 0 or ordering_cost <= 0 or holding_cost_per_unit <= 0:
        return 0

    return math.ceil(math.sqrt((2 * annual_demand * ordering_cost) / holding_cost_per_unit))


def calculate_safety_stock(
    avg_daily_sales: float,
    lead_time_days: float,
    service_level_multiplier: float = 1.65,
) -> int:
    """Safety stock for a target service level (1.65 ≈ 95%).

    Safety Stock = Z × √lead_time × σ_daily, with σ_daily approximated as
    half the average daily sales (skewed demand heuristic).

    Examples:
        >>> calculate_safety_stock(10, 9)
        25

    """
    daily_std_dev = avg_daily_sales * 0.5
    return math.ceil(service_level_multiplier * math.sqrt(lead_time_days) * daily_std_dev)
