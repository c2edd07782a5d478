"""Revenue allocation: split an asset's period output between contracts and merchant.

Waterfall for renewable assets:

1. period generation from the generation model;
2. contracts active in the year (inclusive start/end year test);
3. per contract, strike indexed by (1 + indexation/100) ** years since contract start;
4. by contract type:
     fixed    annual $M strike * indexation * period fraction * degradation,
              booked as black; buyer share only counts towards black percentage
     bundled  green and black strikes indexed separately; a floor above their sum
              rescales both to the floor keeping their ratio (even split if both 0)
     green /  single strike, lifted to the floor if below it, booked to its own
     black    commodity
   revenue = generation * buyer_share/100 * price / 1e6   ($M)
5. contracted percentage accumulated per commodity;
6. merchant share per commodity = max(0, 100 - contracted %), earning the
   escalated market price from the price provider;
7. total = contracted green + contracted black + merchant green + merchant black.

Missing prices, capacity factors and contract fields contribute zero. Contracted
percentages above 100 are not corrected: the merchant share floors at 0 while
the contracted percentage is reported as summed, with a warning logged.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Tuple

from finance.escalation import apply_escalation, indexation_factor
from finance.utils import as_float
from renewport.constants import Constants
from renewport.generation import asset_degradation_factor, period_generation
from renewport.models import Asset, Commodity, ContractKind, RevenueBreakdown, Technology
from renewport.periods import Period, parse_period
from renewport.prices import PriceProvider
from renewport.storage import calculate_storage_revenue

logger = logging.getLogger(__name__)


def apply_floor(price: float, floor: Optional[float]) -> float:
    """Lift a single strike to the floor when it falls below it."""
    if floor is not None and price < floor:
        return floor
    return price


def apply_bundled_floor(green: float, black: float, floor: Optional[float]) -> Tuple[float, float]:
    """Rescale a bundled price pair so it sums to ``floor`` when below it.

    The green/black ratio is preserved; when both are zero the floor is
    split evenly.

    >>> apply_bundled_floor(20.0, 40.0, 90.0)
    (30.0, 60.0)
    >>> apply_bundled_floor(0.0, 0.0, 50.0)
    (25.0, 25.0)
    """
    if floor is None:
        return green, black
    total = green + black
    if total >= floor:
        return green, black
    if total > 0:
        return green / total * floor, black / total * floor
    return floor / 2.0, floor / 2.0


def merchant_price(
    prices: PriceProvider,
    asset: Asset,
    commodity: Commodity,
    period: Period,
    constants: Constants,
) -> float:
    """Nominal market price ($/MWh) for the asset's profile, region and period."""
    raw = as_float(prices(asset.technology.value, commodity.value, asset.region, period.label), 0.0)
    if not raw:
        logger.debug(
            "No %s merchant price for %s/%s %s",
            commodity.value,
            asset.technology.value,
            asset.region,
            period.label,
        )
        return 0.0
    return apply_escalation(
        raw,
        period.year,
        constants.escalation_pct,
        constants.reference_year,
        constants.forecast_start_year,
    )


def _energy_revenue(generation: float, buyers_pct: float, price: float) -> float:
    return generation * buyers_pct / 100.0 * price / 1_000_000


def _renewables_revenue(
    asset: Asset,
    period: Period,
    constants: Constants,
    prices: PriceProvider,
) -> RevenueBreakdown:
    year = period.year
    generation = period_generation(asset, period, constants)
    degradation = asset_degradation_factor(asset, year, constants)

    contracted_green = 0.0
    contracted_black = 0.0
    green_pct = 0.0
    black_pct = 0.0

    for contract in asset.active_contracts(year):
        buyers = contract.buyers_pct
        factor = indexation_factor(contract.indexation_pct, contract.years_since_start(year))
        kind = contract.kind

        if kind is ContractKind.FIXED:
            contracted_black += contract.strike_price * factor * period.fraction * degradation
            black_pct += buyers
        elif kind is ContractKind.BUNDLED:
            green_price, black_price = apply_bundled_floor(
                contract.green_price * factor,
                contract.black_price * factor,
                contract.floor,
            )
            contracted_green += _energy_revenue(generation, buyers, green_price)
            contracted_black += _energy_revenue(generation, buyers, black_price)
            green_pct += buyers
            black_pct += buyers
        elif kind in (ContractKind.GREEN, ContractKind.BLACK):
            price = apply_floor(contract.strike_price * factor, contract.floor)
            revenue = _energy_revenue(generation, buyers, price)
            if kind is ContractKind.GREEN:
                contracted_green += revenue
                green_pct += buyers
            else:
                contracted_black += revenue
                black_pct += buyers
        else:
            logger.warning(
                "Contract type %r is not supported for %s asset %s; ignored",
                kind.value,
                asset.technology.value,
                asset.name,
            )

    if green_pct > 100.0 or black_pct > 100.0:
        logger.warning(
            "Asset %s is over-contracted in %d (green %.1f%%, black %.1f%%); "
            "merchant share floored at 0",
            asset.name,
            year,
            green_pct,
            black_pct,
        )

    merchant_green_pct = max(0.0, 100.0 - green_pct)
    merchant_black_pct = max(0.0, 100.0 - black_pct)

    merchant_green = 0.0
    merchant_black = 0.0
    if merchant_green_pct > 0:
        merchant_green = _energy_revenue(
            generation,
            merchant_green_pct,
            merchant_price(prices, asset, Commodity.GREEN, period, constants),
        )
    if merchant_black_pct > 0:
        merchant_black = _energy_revenue(
            generation,
            merchant_black_pct,
            merchant_price(prices, asset, Commodity.BLACK, period, constants),
        )

    return RevenueBreakdown(
        asset=asset.name,
        period=period.label,
        year=year,
        generation=generation,
        contracted_green=contracted_green,
        contracted_black=contracted_black,
        merchant_green=merchant_green,
        merchant_black=merchant_black,
        green_percentage=green_pct,
        black_percentage=black_pct,
    )


def calculate_asset_revenue(
    asset: Asset,
    period: Any,
    constants: Constants,
    prices: PriceProvider,
) -> RevenueBreakdown:
    """Revenue breakdown for one asset in one period ($M).

    ``period`` may be a year, a :class:`~renewport.periods.Period` or a
    ``"YYYY-Qn"`` / ``"YYYY-MM"`` label. Periods before the asset's
    commissioning year, and unparseable periods, give an all-zero breakdown.
    """
    p = parse_period(period)
    if p is None:
        logger.debug("Unparseable period %r for asset %s; zero revenue", period, asset.name)
        return RevenueBreakdown.zero(asset.name, str(period), 0)

    if not asset.is_operating(p.year):
        return RevenueBreakdown.zero(asset.name, p.label, p.year)

    if asset.technology is Technology.STORAGE:
        return calculate_storage_revenue(asset, p, constants)
    return _renewables_revenue(asset, p, constants, prices)


def calculate_portfolio_revenue(
    assets: Iterable[Asset],
    period: Any,
    constants: Constants,
    prices: PriceProvider,
) -> List[RevenueBreakdown]:
    return [calculate_asset_revenue(a, period, constants, prices) for a in assets]


__all__ = [
    "apply_floor",
    "apply_bundled_floor",
    "merchant_price",
    "calculate_asset_revenue",
    "calculate_portfolio_revenue",
]
