"""Portfolio NPV over a fixed 30-year horizon.

For ``year_index`` 0..29 (``year = analysis_start_year + year_index``):

- revenue: every asset commissioned by ``year`` contributes its base
  breakdown after the named stress, split into contract and merchant
- costs: fixed cost x (1 + fixed_cost_index/100) ** year_index plus
  variable cost per MW x capacity x (1 + variable_cost_index/100) ** year_index
- terminal value: added in the final year only
- discount rate: contract and merchant rates blended by revenue mix
  (50/50 when there is no revenue)
- present value = (net cash flow + terminal value) / (1 + rate) ** (year_index + 1)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd

from finance.discounting import blended_discount_rate, present_value
from finance.escalation import compound_factor
from finance.utils import as_float
from renewport.constants import Constants
from renewport.defaults import DEFAULT_COST_SETTINGS, get_default
from renewport.models import Asset, NPVRow
from renewport.prices import PriceProvider
from renewport.revenue import calculate_asset_revenue
from renewport.stress import apply_stress

logger = logging.getLogger(__name__)

VALUATION_YEARS = get_default("analysis", "valuation_years")
TOTAL = "Total"


_COST_FIELDS = (
    ("fixed_cost", "fixedCost"),
    ("fixed_cost_index", "fixedCostIndex"),
    ("variable_cost", "variableCost"),
    ("variable_cost_index", "variableCostIndex"),
    ("terminal_value", "terminalValue"),
)


@dataclass(frozen=True)
class AssetCosts:
    """Cost parameters for one asset. Costs in $M, variable cost in $M per MW."""

    fixed_cost: float = 0.0
    fixed_cost_index: float = DEFAULT_COST_SETTINGS["cost_escalation_pct"]
    variable_cost: float = 0.0
    variable_cost_index: float = DEFAULT_COST_SETTINGS["cost_escalation_pct"]
    terminal_value: float = 0.0

    def overlay(self, d: Mapping[str, Any]) -> "AssetCosts":
        """Copy with the fields present in ``d`` (snake_case or camelCase) replaced."""
        changes: Dict[str, float] = {}
        for name, alias in _COST_FIELDS:
            value = as_float(d.get(name, d.get(alias)))
            if value is not None:
                changes[name] = value
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "AssetCosts":
        return cls().overlay(d)

    def to_dict(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name, _ in _COST_FIELDS}


def scaled_fixed_cost(base_cost: float, capacity_mw: float, base_capacity_mw: float, scale: float) -> float:
    """Power-law scaling: base * (capacity / base_capacity) ** scale."""
    if base_capacity_mw <= 0 or capacity_mw <= 0:
        return 0.0
    return base_cost * (capacity_mw / base_capacity_mw) ** scale


def initialize_asset_costs(assets: Iterable[Asset]) -> Dict[str, AssetCosts]:
    """Default cost parameters per asset name, from the technology cost table."""
    base_capacity = DEFAULT_COST_SETTINGS["base_capacity_mw"]
    escalation = DEFAULT_COST_SETTINGS["cost_escalation_pct"]

    out: Dict[str, AssetCosts] = {}
    for asset in assets:
        tech = asset.technology.value
        fixed = scaled_fixed_cost(
            get_default("costs", "fixed_cost_base", tech),
            asset.capacity_mw,
            base_capacity,
            get_default("costs", "fixed_cost_scale", tech),
        )
        out[asset.name] = AssetCosts(
            fixed_cost=round(fixed, 2),
            fixed_cost_index=escalation,
            variable_cost=round(get_default("costs", "variable_cost", tech), 3),
            variable_cost_index=escalation,
            terminal_value=round(
                get_default("costs", "terminal_value", tech) * asset.capacity_mw / base_capacity, 2
            ),
        )
    return out


def _coerce_costs(asset_costs: Optional[Mapping[str, Any]]) -> Dict[str, AssetCosts]:
    out: Dict[str, AssetCosts] = {}
    for name, value in (asset_costs or {}).items():
        if isinstance(value, AssetCosts):
            out[name] = value
        elif isinstance(value, Mapping):
            out[name] = AssetCosts.from_dict(value)
    return out


@dataclass
class NPVResult:
    rows: List[NPVRow] = field(default_factory=list)
    total_npv: float = 0.0

    def to_frame(self) -> pd.DataFrame:
        records = []
        for r in self.rows:
            records.append(
                {
                    "year_index": r.year_index,
                    "year": r.year,
                    "contract_revenue": r.contract_revenue,
                    "merchant_revenue": r.merchant_revenue,
                    "total_revenue": r.total_revenue,
                    "fixed_costs": r.fixed_costs,
                    "variable_costs": r.variable_costs,
                    "total_costs": r.total_costs,
                    "terminal_value": r.terminal_value,
                    "net_cash_flow": r.net_cash_flow,
                    "discount_rate": r.discount_rate,
                    "present_value": r.present_value,
                }
            )
        return pd.DataFrame(records)


def calculate_npv(
    assets: Iterable[Asset],
    asset_costs: Optional[Mapping[str, Any]],
    constants: Constants,
    prices: PriceProvider,
    scenario: Any = "base",
    selected_asset: str = TOTAL,
    discount_rates: Optional[Mapping[str, float]] = None,
    years: int = VALUATION_YEARS,
) -> NPVResult:
    """Yearly NPV projection and total NPV ($M).

    ``asset_costs`` maps asset name to :class:`AssetCosts` or a dict of its
    fields (None reads ``constants.asset_costs``); assets without an entry
    carry no costs. ``selected_asset`` limits
    the valuation to one asset by name (``"Total"`` for the whole portfolio).
    ``discount_rates`` overrides ``{"contract", "merchant"}`` from constants.
    """
    asset_list = list(assets)
    if selected_asset != TOTAL:
        asset_list = [a for a in asset_list if a.name == selected_asset]
        if not asset_list:
            logger.debug("Asset %r not in portfolio; NPV is zero", selected_asset)

    costs = _coerce_costs(asset_costs if asset_costs is not None else constants.asset_costs)
    rates = dict(discount_rates or {})
    contract_rate = as_float(rates.get("contract"), constants.contract_discount_rate)
    merchant_rate = as_float(rates.get("merchant"), constants.merchant_discount_rate)
    final_index = years - 1

    rows: List[NPVRow] = []
    for year_index in range(years):
        year = constants.analysis_start_year + year_index
        contract_revenue = 0.0
        merchant_revenue = 0.0
        fixed_costs = 0.0
        variable_costs = 0.0
        terminal = 0.0

        for asset in asset_list:
            if not asset.is_operating(year):
                continue
            stressed = apply_stress(
                calculate_asset_revenue(asset, year, constants, prices), scenario, constants
            )
            contract_revenue += stressed.contracted
            merchant_revenue += stressed.merchant

            c = costs.get(asset.name) or AssetCosts()
            fixed_costs += c.fixed_cost * compound_factor(c.fixed_cost_index, year_index)
            variable_costs += (
                c.variable_cost * asset.capacity_mw * compound_factor(c.variable_cost_index, year_index)
            )
            if year_index == final_index:
                terminal += c.terminal_value

        net = contract_revenue + merchant_revenue - (fixed_costs + variable_costs)
        rate = blended_discount_rate(contract_rate, merchant_rate, contract_revenue, merchant_revenue)
        rows.append(
            NPVRow(
                year_index=year_index,
                year=year,
                contract_revenue=contract_revenue,
                merchant_revenue=merchant_revenue,
                fixed_costs=fixed_costs,
                variable_costs=variable_costs,
                terminal_value=terminal,
                net_cash_flow=net,
                discount_rate=rate,
                present_value=present_value(net + terminal, rate, year_index + 1),
            )
        )

    total = sum(r.present_value for r in rows)
    logger.debug("NPV (%s, %s): %.3f over %d years", selected_asset, scenario, total, years)
    return NPVResult(rows=rows, total_npv=total)


__all__ = [
    "AssetCosts",
    "NPVResult",
    "initialize_asset_costs",
    "scaled_fixed_cost",
    "calculate_npv",
]
