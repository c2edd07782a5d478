"""Generation model: nameplate capacity to energy (MWh) for a period.

    generation = capacity * volume_loss/100 * HOURS_IN_YEAR * capacity_factor
                 * period_fraction * degradation_factor

    degradation_factor = (1 - degradation/100) ** (year - asset_start_year)

Degradation compounds from the commissioning year. The model does not guard
against years before commissioning: a negative exponent yields a factor above
1. Callers (the revenue engine, the valuation) filter those years out first.
"""

from __future__ import annotations

import logging
from typing import Optional

from finance.utils import as_float, get_nested
from renewport.constants import Constants
from renewport.defaults import get_default
from renewport.models import Asset
from renewport.periods import Period

logger = logging.getLogger(__name__)


def resolve_capacity_factor(asset: Asset, constants: Constants, quarter: Optional[int] = None) -> float:
    """Capacity factor (decimal) for the asset, optionally for one quarter.

    Resolution order:
      quarter requested  -> asset's own quarter override (percent)
                         -> constants quarterly table [tech][region]["Qn"]
                         -> constants annual table [tech][region]
      annual             -> mean of the asset's four overrides (all four required)
                         -> constants annual table [tech][region]
    Anything unresolved is 0.
    """
    tech = asset.technology.value
    annual = as_float(get_nested(constants.capacity_factors, [tech, asset.region]))

    if quarter:
        override = asset.quarterly_override(quarter)
        if override is not None:
            return override / 100.0
        quarterly = as_float(
            get_nested(constants.capacity_factors_qtr, [tech, asset.region, f"Q{quarter}"])
        )
        cf = quarterly or annual or 0.0
    else:
        overrides = [q for q in asset.quarterly_capacity_factors if q is not None]
        if len(overrides) == 4:
            return sum(overrides) / 4.0 / 100.0
        cf = annual or 0.0

    if not cf:
        logger.debug("No capacity factor for %s/%s (asset %s); using 0", tech, asset.region, asset.name)
    return cf


def resolve_degradation_pct(asset: Asset, constants: Constants) -> float:
    if asset.degradation_pct is not None:
        return asset.degradation_pct
    tech = asset.technology.value
    from_constants = as_float(constants.annual_degradation_pct.get(tech))
    if from_constants is not None:
        return from_constants
    return as_float(get_default("performance", "annual_degradation_pct", tech), 0.0)


def resolve_volume_loss_pct(asset: Asset) -> float:
    if asset.volume_loss_pct is not None:
        return asset.volume_loss_pct
    return get_default("performance", "volume_loss_adjustment_pct")


def degradation_factor(degradation_pct: float, year: int, start_year: Optional[int]) -> float:
    """(1 - degradation/100) ** (year - start_year); 1.0 when the start is unknown."""
    if start_year is None:
        return 1.0
    return (1.0 - degradation_pct / 100.0) ** (year - start_year)


def asset_degradation_factor(asset: Asset, year: int, constants: Constants) -> float:
    return degradation_factor(resolve_degradation_pct(asset, constants), year, asset.start_year)


def period_generation(asset: Asset, period: Period, constants: Constants) -> float:
    """Energy generated by a renewable asset in ``period``, MWh."""
    capacity_factor = resolve_capacity_factor(asset, constants, period.quarter)
    volume_loss = resolve_volume_loss_pct(asset)
    factor = asset_degradation_factor(asset, period.year, constants)
    return (
        asset.capacity_mw
        * volume_loss / 100.0
        * constants.hours_in_year
        * capacity_factor
        * period.fraction
        * factor
    )


def annual_generation(asset: Asset, year: int, constants: Constants) -> float:
    return period_generation(asset, Period(year=year), constants)


__all__ = [
    "resolve_capacity_factor",
    "resolve_degradation_pct",
    "resolve_volume_loss_pct",
    "degradation_factor",
    "asset_degradation_factor",
    "period_generation",
    "annual_generation",
]
