"""Revenue model for storage assets.

Storage earns from spread capture rather than energy sales, so it has its own
contract types. All storage revenue is reported in the black buckets.

- fixed:   annual $M strike * indexation * period fraction * degradation
- cfd:     volume * cycles/day * 365 * spread * indexation * degradation
           * volume_loss * buyer share / 1e6
- tolling: capacity * HOURS_IN_YEAR * hourly rate * indexation / 1e6 * period fraction
           (an availability payment, so not degraded)

The uncontracted share earns the merchant spread on the cfd formula. The cfd
and merchant formulas are annual amounts.
"""

from __future__ import annotations

import logging

from finance.escalation import indexation_factor
from renewport.constants import Constants
from renewport.defaults import get_default
from renewport.generation import asset_degradation_factor, resolve_volume_loss_pct
from renewport.models import Asset, ContractKind, RevenueBreakdown
from renewport.periods import Period

logger = logging.getLogger(__name__)

DAYS_IN_YEAR = get_default("system", "days_in_year")
CYCLES_PER_DAY = get_default("storage", "cycles_per_day")


def calculate_storage_revenue(asset: Asset, period: Period, constants: Constants) -> RevenueBreakdown:
    year = period.year
    volume_loss = resolve_volume_loss_pct(asset) / 100.0
    degradation = asset_degradation_factor(asset, year, constants)
    throughput = asset.volume_mwh * CYCLES_PER_DAY * DAYS_IN_YEAR

    contracted = 0.0
    contracted_pct = 0.0

    for contract in asset.active_contracts(year):
        buyers = contract.buyers_pct
        factor = indexation_factor(contract.indexation_pct, contract.years_since_start(year))

        if contract.kind is ContractKind.FIXED:
            contracted += contract.strike_price * factor * period.fraction * degradation
        elif contract.kind is ContractKind.CFD:
            spread = contract.strike_price * factor
            contracted += (
                throughput * spread * degradation * volume_loss * buyers / 100.0
            ) / 1_000_000
        elif contract.kind is ContractKind.TOLLING:
            rate = contract.strike_price * factor
            contracted += (
                asset.capacity_mw * constants.hours_in_year * rate / 1_000_000
            ) * period.fraction
        else:
            logger.warning(
                "Contract type %r is not supported for storage asset %s; ignored",
                contract.kind.value,
                asset.name,
            )
            continue
        contracted_pct += buyers

    if contracted_pct > 100.0:
        logger.warning(
            "Storage asset %s is %.1f%% contracted in %d; merchant share floored at 0",
            asset.name,
            contracted_pct,
            year,
        )

    merchant_pct = max(0.0, 100.0 - contracted_pct)
    merchant = 0.0
    if merchant_pct > 0:
        merchant = (
            throughput
            * constants.storage_merchant_spread
            * degradation
            * volume_loss
            * merchant_pct / 100.0
        ) / 1_000_000

    return RevenueBreakdown(
        asset=asset.name,
        period=period.label,
        year=year,
        generation=asset.volume_mwh * DAYS_IN_YEAR * degradation * volume_loss,
        contracted_green=0.0,
        contracted_black=contracted,
        merchant_green=0.0,
        merchant_black=merchant,
        green_percentage=0.0,
        black_percentage=contracted_pct,
    )


__all__ = ["calculate_storage_revenue"]
