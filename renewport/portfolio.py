"""Portfolio aggregation over an analysis window.

``generate_portfolio_data`` runs the revenue engine for every (period, asset)
pair; ``portfolio_frame`` flattens the result into one row per period with
portfolio totals, generation-weighted contracted percentages and per-asset
component columns.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

import pandas as pd

from renewport.constants import Constants
from renewport.models import Asset, RevenueBreakdown
from renewport.periods import Period, iter_periods, parse_period
from renewport.prices import PriceProvider
from renewport.revenue import calculate_asset_revenue

logger = logging.getLogger(__name__)

COMPONENTS = ("contracted_green", "contracted_black", "merchant_green", "merchant_black")


@dataclass
class PeriodRevenue:
    """All asset breakdowns for one period, keyed by asset name."""

    period: Period
    assets: Dict[str, RevenueBreakdown] = field(default_factory=dict)

    @property
    def total(self) -> float:
        return sum(b.total for b in self.assets.values())

    @property
    def generation(self) -> float:
        return sum(b.generation for b in self.assets.values())

    def component(self, name: str) -> float:
        return sum(getattr(b, name) for b in self.assets.values())

    def weighted_percentage(self, commodity: str) -> float:
        """Generation-weighted contracted percentage for ``green`` or ``black``."""
        gen = self.generation
        if gen <= 0:
            return 0.0
        attr = f"{commodity}_percentage"
        return sum(getattr(b, attr) * b.generation / gen for b in self.assets.values())


def default_periods(constants: Constants) -> List[Period]:
    """Periods covering the analysis window at the configured aggregation."""
    return list(
        iter_periods(
            constants.analysis_start_year,
            constants.analysis_end_year,
            constants.price_aggregation,
        )
    )


def generate_portfolio_data(
    assets: Iterable[Asset],
    periods: Optional[Sequence[Any]],
    constants: Constants,
    prices: PriceProvider,
) -> List[PeriodRevenue]:
    asset_list = list(assets)
    if periods is None:
        resolved = default_periods(constants)
    else:
        resolved = []
        for raw in periods:
            p = parse_period(raw)
            if p is None:
                logger.debug("Skipping unparseable period %r", raw)
                continue
            resolved.append(p)

    out: List[PeriodRevenue] = []
    for period in resolved:
        row = PeriodRevenue(period=period)
        for asset in asset_list:
            row.assets[asset.name] = calculate_asset_revenue(asset, period, constants, prices)
        out.append(row)

    logger.debug("Portfolio data: %d periods x %d assets", len(out), len(asset_list))
    return out


def portfolio_frame(
    assets: Iterable[Asset],
    periods: Optional[Sequence[Any]],
    constants: Constants,
    prices: PriceProvider,
    include_assets: bool = True,
) -> pd.DataFrame:
    """One row per period; revenue in $M, generation in MWh.

    Columns: ``period``, ``year``, ``total``, the four revenue components,
    ``contracted``, ``merchant``, ``generation``, ``capacity_mw``,
    ``weighted_green_pct``, ``weighted_black_pct`` and, with ``include_assets``,
    ``<asset>_<component>`` / ``<asset>_total`` per asset.
    """
    asset_list = list(assets)
    data = generate_portfolio_data(asset_list, periods, constants, prices)

    rows: List[Dict[str, Any]] = []
    for entry in data:
        year = entry.period.year
        row: Dict[str, Any] = {
            "period": entry.period.label,
            "year": year,
            "total": entry.total,
        }
        for comp in COMPONENTS:
            row[comp] = entry.component(comp)
        row["contracted"] = row["contracted_green"] + row["contracted_black"]
        row["merchant"] = row["merchant_green"] + row["merchant_black"]
        row["generation"] = entry.generation
        row["capacity_mw"] = sum(a.capacity_mw for a in asset_list if a.is_operating(year))
        row["weighted_green_pct"] = entry.weighted_percentage("green")
        row["weighted_black_pct"] = entry.weighted_percentage("black")

        if include_assets:
            for name, b in entry.assets.items():
                for comp in COMPONENTS:
                    row[f"{name}_{comp}"] = getattr(b, comp)
                row[f"{name}_total"] = b.total
        rows.append(row)

    return pd.DataFrame(rows)


__all__ = [
    "COMPONENTS",
    "PeriodRevenue",
    "default_periods",
    "generate_portfolio_data",
    "portfolio_frame",
]
