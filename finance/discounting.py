"""Discounting helpers for the portfolio valuation.

Cash flows in the valuation are end-of-year: the first forecast year is
discounted by one full period.
"""

from __future__ import annotations

from typing import Tuple


def _clamp_rate(rate: float) -> float:
    r = float(rate)
    if r <= -1.0:
        r = -0.999999
    return r


def present_value(amount: float, rate: float, periods: float) -> float:
    """Discount a single amount ``periods`` years back at ``rate``."""
    return float(amount) / ((1.0 + _clamp_rate(rate)) ** periods)


def revenue_mix_weights(contract_revenue: float, merchant_revenue: float) -> Tuple[float, float]:
    """Share of contracted and merchant revenue in the total.

    Zero total revenue splits evenly (0.5 / 0.5).
    """
    total = contract_revenue + merchant_revenue
    if not total:
        return 0.5, 0.5
    return contract_revenue / total, merchant_revenue / total


def blended_discount_rate(
    contract_rate: float,
    merchant_rate: float,
    contract_revenue: float,
    merchant_revenue: float,
) -> float:
    """Revenue-mix weighted discount rate."""
    w_contract, w_merchant = revenue_mix_weights(contract_revenue, merchant_revenue)
    return contract_rate * w_contract + merchant_rate * w_merchant


__all__ = [
    "present_value",
    "revenue_mix_weights",
    "blended_discount_rate",
]
