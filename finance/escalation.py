"""Compounding rate adjustments: real-to-nominal escalation and contract indexation.

All rates are percentages (2.5 means 2.5 % p.a.). Functions are pure.
"""

from __future__ import annotations

from typing import Optional


def compound_factor(rate_pct: float, periods: float) -> float:
    """(1 + rate/100) ** periods."""
    return (1.0 + rate_pct / 100.0) ** periods


def indexation_factor(indexation_pct: float, years_since_start: int) -> float:
    """Contract strike indexation factor after ``years_since_start`` years."""
    return compound_factor(indexation_pct, years_since_start)


def apply_escalation(
    real_price: float,
    year: int,
    escalation_pct: float,
    reference_year: Optional[int],
    forecast_start_year: Optional[int] = None,
) -> float:
    """Convert a real (reference-year) price to nominal terms for ``year``.

    nominal = real * (1 + escalation/100) ** (year - reference_year)

    Years before ``forecast_start_year`` are actuals and returned unchanged.
    A zero price, zero escalation or missing reference year is a no-op.
    """
    if not real_price or not escalation_pct or not reference_year:
        return real_price
    if forecast_start_year is not None and year < forecast_start_year:
        return real_price
    return real_price * compound_factor(escalation_pct, year - reference_year)


__all__ = [
    "compound_factor",
    "indexation_factor",
    "apply_escalation",
]
