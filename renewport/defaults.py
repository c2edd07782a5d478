"""Default values used when portfolio inputs leave a parameter unset.

Every fallback the engine applies is listed here so the behaviour is
auditable in one place. Units follow the portfolio conventions:

- capacity factors are decimals (0.28 = 28 %)
- degradation, volume loss, escalation, indexation and risk bounds are percentages
- discount rates are decimals
- costs and terminal values are $M, variable costs $M per MW
"""
from __future__ import annotations

from typing import Any, Dict, Optional

TECHNOLOGIES = ("solar", "wind", "storage")
REGIONS = ("NSW", "VIC", "QLD", "SA")

DEFAULT_SYSTEM_CONSTANTS: Dict[str, Any] = {
    "hours_in_year": 8760,
    "price_aggregation": "yearly",
    "days_in_year": 365,
}

DEFAULT_ANALYSIS_SETTINGS: Dict[str, Any] = {
    "analysis_start_year": 2025,
    "analysis_end_year": 2054,
    "valuation_years": 30,
    "iterations": 1000,
}

DEFAULT_CAPACITY_FACTORS: Dict[str, Dict[str, Any]] = {
    "annual": {
        "solar": {"NSW": 0.28, "VIC": 0.25, "QLD": 0.29, "SA": 0.27},
        "wind": {"NSW": 0.35, "VIC": 0.38, "QLD": 0.32, "SA": 0.40},
    },
    "quarterly": {
        "solar": {
            "NSW": {"Q1": 0.32, "Q2": 0.24, "Q3": 0.25, "Q4": 0.31},
            "VIC": {"Q1": 0.30, "Q2": 0.19, "Q3": 0.21, "Q4": 0.30},
            "QLD": {"Q1": 0.31, "Q2": 0.26, "Q3": 0.28, "Q4": 0.31},
            "SA": {"Q1": 0.32, "Q2": 0.21, "Q3": 0.23, "Q4": 0.32},
        },
        "wind": {
            "NSW": {"Q1": 0.31, "Q2": 0.36, "Q3": 0.38, "Q4": 0.35},
            "VIC": {"Q1": 0.33, "Q2": 0.39, "Q3": 0.42, "Q4": 0.38},
            "QLD": {"Q1": 0.29, "Q2": 0.33, "Q3": 0.34, "Q4": 0.32},
            "SA": {"Q1": 0.36, "Q2": 0.41, "Q3": 0.44, "Q4": 0.39},
        },
    },
}

DEFAULT_ASSET_PERFORMANCE: Dict[str, Any] = {
    "volume_loss_adjustment_pct": 95.0,
    "annual_degradation_pct": {"solar": 0.4, "wind": 0.3, "storage": 0.5},
}

DEFAULT_STORAGE: Dict[str, Any] = {
    "merchant_spread": 160.0,  # $/MWh, one cycle per day
    "cycles_per_day": 1.0,
}

DEFAULT_PRICE_SETTINGS: Dict[str, Any] = {
    "escalation_pct": 2.5,
    "reference_year": 2025,
    "forecast_start_year": None,
}

DEFAULT_DISCOUNT_RATES: Dict[str, float] = {
    "contract": 0.08,
    "merchant": 0.10,
}

DEFAULT_RISK_PARAMETERS: Dict[str, Any] = {
    "volume_variation_pct": 20.0,
    "green_price_variation_pct": 20.0,
    "black_price_variation_pct": 20.0,
    "price_variation_pct": None,
}

DEFAULT_COSTS: Dict[str, Dict[str, float]] = {
    "solar": {
        "fixed_cost_base": 10.0,
        "fixed_cost_scale": 0.75,
        "variable_cost": 0.015,
        "terminal_value": 15.0,
    },
    "wind": {
        "fixed_cost_base": 10.0,
        "fixed_cost_scale": 0.75,
        "variable_cost": 0.02,
        "terminal_value": 20.0,
    },
    "storage": {
        "fixed_cost_base": 10.0,
        "fixed_cost_scale": 0.75,
        "variable_cost": 0.01,
        "terminal_value": 10.0,
    },
    "default": {
        "fixed_cost_base": 10.0,
        "fixed_cost_scale": 0.75,
        "variable_cost": 0.015,
        "terminal_value": 15.0,
    },
}

DEFAULT_COST_SETTINGS: Dict[str, float] = {
    "cost_escalation_pct": 2.5,
    "base_capacity_mw": 100.0,
}


_CATEGORY_MAP: Dict[str, Dict[str, Any]] = {
    "system": DEFAULT_SYSTEM_CONSTANTS,
    "analysis": DEFAULT_ANALYSIS_SETTINGS,
    "performance": DEFAULT_ASSET_PERFORMANCE,
    "storage": DEFAULT_STORAGE,
    "price": DEFAULT_PRICE_SETTINGS,
    "discount": DEFAULT_DISCOUNT_RATES,
    "risk": DEFAULT_RISK_PARAMETERS,
    "costs": DEFAULT_COSTS,
    "cost_settings": DEFAULT_COST_SETTINGS,
}


def get_default(category: str, key: str, technology: Optional[str] = None) -> Any:
    """Look up a default value.

    When ``technology`` is given and the entry under ``key`` is a per-technology
    mapping, the technology's value is returned, falling back to its
    ``"default"`` entry. Unknown categories or keys return None.

    >>> get_default("performance", "annual_degradation_pct", "wind")
    0.3
    >>> get_default("costs", "variable_cost", "hydro")
    0.015
    """
    table = _CATEGORY_MAP.get(category)
    if table is None:
        return None

    if category == "costs":
        per_tech = table.get(technology or "default") or table["default"]
        return per_tech.get(key)

    value = table.get(key)
    if technology is not None and isinstance(value, dict):
        if technology in value:
            return value[technology]
        return value.get("default")
    return value


__all__ = [
    "TECHNOLOGIES",
    "REGIONS",
    "DEFAULT_SYSTEM_CONSTANTS",
    "DEFAULT_ANALYSIS_SETTINGS",
    "DEFAULT_CAPACITY_FACTORS",
    "DEFAULT_ASSET_PERFORMANCE",
    "DEFAULT_STORAGE",
    "DEFAULT_PRICE_SETTINGS",
    "DEFAULT_DISCOUNT_RATES",
    "DEFAULT_RISK_PARAMETERS",
    "DEFAULT_COSTS",
    "DEFAULT_COST_SETTINGS",
    "get_default",
]
