"""Deterministic stress transforms on revenue breakdowns.

| scenario | contracted        | merchant green             | merchant black             |
|----------|-------------------|----------------------------|----------------------------|
| worst    | x (1 - V)         | x (1 - V)(1 - G)           | x (1 - V)(1 - B)           |
| volume   | x (1 - V)         | x (1 - V)                  | x (1 - V)                  |
| price    | unchanged         | x (1 - G)                  | x (1 - B)                  |
| green    | unchanged         | x (1 - G)                  | unchanged                  |
| black    | unchanged         | unchanged                  | x (1 - B)                  |
| base     | identity          |                            |                            |

V, G and B are the volume, green price and black price variation bounds from
:class:`~renewport.constants.Constants`, as percentages.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from renewport.constants import Constants
from renewport.models import Asset, RevenueBreakdown
from renewport.prices import PriceProvider
from renewport.revenue import calculate_asset_revenue

logger = logging.getLogger(__name__)


class StressScenario(str, Enum):
    BASE = "base"
    WORST = "worst"
    VOLUME = "volume"
    PRICE = "price"
    GREEN = "green"
    BLACK = "black"

    @classmethod
    def parse(cls, value: Any) -> "StressScenario":
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        try:
            return cls(text)
        except ValueError:
            logger.debug("Unknown stress scenario %r; using base", value)
            return cls.BASE


@dataclass(frozen=True)
class ShockBounds:
    """Variation bounds as percentages."""

    volume_pct: float = 0.0
    green_pct: float = 0.0
    black_pct: float = 0.0

    @classmethod
    def from_constants(cls, constants: Constants) -> "ShockBounds":
        return cls(
            volume_pct=constants.volume_variation,
            green_pct=constants.green_variation,
            black_pct=constants.black_variation,
        )


# scenario -> (volume, green price, black price) sign applied to the bounds
_SCENARIO_SHOCKS: Dict[StressScenario, tuple] = {
    StressScenario.BASE: (0, 0, 0),
    StressScenario.WORST: (-1, -1, -1),
    StressScenario.VOLUME: (-1, 0, 0),
    StressScenario.PRICE: (0, -1, -1),
    StressScenario.GREEN: (0, -1, 0),
    StressScenario.BLACK: (0, 0, -1),
}

_DESCRIPTIONS: Dict[StressScenario, str] = {
    StressScenario.WORST: "Maximum adverse changes in all variables",
    StressScenario.VOLUME: "Only volume decreases",
    StressScenario.PRICE: "Only prices decrease",
    StressScenario.GREEN: "Only green price decreases",
    StressScenario.BLACK: "Only black price decreases",
}

_NAMES: Dict[StressScenario, str] = {
    StressScenario.WORST: "Worst Case",
    StressScenario.VOLUME: "Volume Stress",
    StressScenario.PRICE: "Price Stress",
    StressScenario.GREEN: "Green Price Stress",
    StressScenario.BLACK: "Black Price Stress",
}

STRESS_SUITE = (
    StressScenario.WORST,
    StressScenario.VOLUME,
    StressScenario.PRICE,
    StressScenario.GREEN,
    StressScenario.BLACK,
)


def scenario_shocks(scenario: Any, constants: Constants) -> tuple:
    """(volume %, green price %, black price %) changes for a named scenario."""
    s = StressScenario.parse(scenario)
    bounds = ShockBounds.from_constants(constants)
    sv, sg, sb = _SCENARIO_SHOCKS[s]
    return (sv * bounds.volume_pct, sg * bounds.green_pct, sb * bounds.black_pct)


def apply_shocks(
    breakdown: RevenueBreakdown,
    volume_pct: float,
    green_pct: float,
    black_pct: float,
) -> RevenueBreakdown:
    """Scale a breakdown by percentage shocks.

    Contracted revenue moves with volume only; merchant revenue moves with
    volume and its commodity's price. Generation scales with volume.
    """
    vol = 1.0 + volume_pct / 100.0
    green = 1.0 + green_pct / 100.0
    black = 1.0 + black_pct / 100.0
    return replace(
        breakdown,
        generation=breakdown.generation * vol,
        contracted_green=breakdown.contracted_green * vol,
        contracted_black=breakdown.contracted_black * vol,
        merchant_green=breakdown.merchant_green * vol * green,
        merchant_black=breakdown.merchant_black * vol * black,
    )


def apply_stress(breakdown: RevenueBreakdown, scenario: Any, constants: Constants) -> RevenueBreakdown:
    """Return the breakdown adjusted for ``scenario``; ``base`` returns it unchanged."""
    s = StressScenario.parse(scenario)
    if s is StressScenario.BASE:
        return breakdown
    return apply_shocks(breakdown, *scenario_shocks(s, constants))


def describe_changes(scenario: Any, constants: Constants) -> str:
    """Human-readable shock summary, e.g. ``"Volume: -20% Green: -20%"``."""
    volume, green, black = scenario_shocks(scenario, constants)
    parts = []
    for label, value in (("Volume", volume), ("Green", green), ("Black", black)):
        if value:
            parts.append(f"{label}: {value:g}%")
    return " ".join(parts)


def stress_test_table(
    assets: Iterable[Asset],
    year: int,
    constants: Constants,
    prices: PriceProvider,
    scenarios: Optional[Iterable[Any]] = None,
    as_frame: bool = False,
) -> Any:
    """Portfolio revenue under each named stress for one year.

    Returns a list of dicts (``scenario``, ``name``, ``description``,
    ``changes``, ``revenue``, ``change_pct``), or a DataFrame with
    ``as_frame=True``. ``change_pct`` is relative to the base case and 0 when
    the base case is 0.
    """
    bases: List[RevenueBreakdown] = [
        calculate_asset_revenue(a, year, constants, prices) for a in assets
    ]
    base_total = sum(b.total for b in bases)

    rows: List[Dict[str, Any]] = []
    for raw in scenarios if scenarios is not None else STRESS_SUITE:
        s = StressScenario.parse(raw)
        revenue = sum(apply_stress(b, s, constants).total for b in bases)
        change_pct = (revenue / base_total - 1.0) * 100.0 if base_total else 0.0
        rows.append(
            {
                "scenario": s.value,
                "name": _NAMES.get(s, "Base Case"),
                "description": _DESCRIPTIONS.get(s, "No adjustment"),
                "changes": describe_changes(s, constants),
                "revenue": revenue,
                "change_pct": change_pct,
            }
        )

    if as_frame:
        return pd.DataFrame(rows)
    return rows


__all__ = [
    "StressScenario",
    "ShockBounds",
    "STRESS_SUITE",
    "scenario_shocks",
    "apply_shocks",
    "apply_stress",
    "describe_changes",
    "stress_test_table",
]
