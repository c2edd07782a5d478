"""Process-wide analysis parameters as one explicit, immutable object.

``Constants`` is passed to every engine call. It is resolved from a loose
config mapping through the parameter registry, so each field has a documented
set of accepted config paths (snake_case sections or the flat camelCase keys
used by the portfolio UI) and a default from :mod:`renewport.defaults`.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional

from analytics.config_schema import ParameterSpec, register_parameters, resolve_module
from finance.utils import as_float, as_int
from renewport.defaults import (
    DEFAULT_ANALYSIS_SETTINGS,
    DEFAULT_ASSET_PERFORMANCE,
    DEFAULT_CAPACITY_FACTORS,
    DEFAULT_DISCOUNT_RATES,
    DEFAULT_PRICE_SETTINGS,
    DEFAULT_RISK_PARAMETERS,
    DEFAULT_STORAGE,
    DEFAULT_SYSTEM_CONSTANTS,
)

logger = logging.getLogger(__name__)

AGGREGATIONS = ("none", "monthly", "quarterly", "yearly")


def _is_year(v: Any) -> bool:
    y = as_int(v)
    return y is not None and 1900 <= y <= 2200


_CONSTANTS_SPECS = [
    ParameterSpec(
        module="constants",
        name="analysis_start_year",
        paths=[("analysis", "start_year"), ("analysisStartYear",)],
        default=DEFAULT_ANALYSIS_SETTINGS["analysis_start_year"],
        required=True,
        description="First year of the analysis / valuation window.",
        validator=_is_year,
    ),
    ParameterSpec(
        module="constants",
        name="analysis_end_year",
        paths=[("analysis", "end_year"), ("analysisEndYear",)],
        default=DEFAULT_ANALYSIS_SETTINGS["analysis_end_year"],
        required=True,
        description="Last year (inclusive) of the analysis window.",
        validator=_is_year,
    ),
    ParameterSpec(
        module="constants",
        name="price_aggregation",
        paths=[("analysis", "price_aggregation"), ("priceAggregation",)],
        default=DEFAULT_SYSTEM_CONSTANTS["price_aggregation"],
        description="Period granularity: none / monthly / quarterly / yearly.",
    ),
    ParameterSpec(
        module="constants",
        name="hours_in_year",
        paths=[("system", "hours_in_year"), ("HOURS_IN_YEAR",)],
        default=DEFAULT_SYSTEM_CONSTANTS["hours_in_year"],
    ),
    ParameterSpec(
        module="constants",
        name="escalation_pct",
        paths=[("prices", "escalation_pct"), ("escalation",)],
        default=DEFAULT_PRICE_SETTINGS["escalation_pct"],
        description="Real-to-nominal price escalation, % p.a.",
    ),
    ParameterSpec(
        module="constants",
        name="reference_year",
        paths=[("prices", "reference_year"), ("referenceYear",)],
        default=DEFAULT_PRICE_SETTINGS["reference_year"],
        description="Base year of real price curves.",
    ),
    ParameterSpec(
        module="constants",
        name="forecast_start_year",
        paths=[("prices", "forecast_start_year"), ("ForecastStartYear",), ("forecastStartYear",)],
        default=DEFAULT_PRICE_SETTINGS["forecast_start_year"],
        description="First forecast year; earlier years are actuals and not escalated.",
    ),
    ParameterSpec(
        module="constants",
        name="capacity_factors",
        paths=[("capacity_factors", "annual"), ("capacityFactors",)],
        default=DEFAULT_CAPACITY_FACTORS["annual"],
    ),
    ParameterSpec(
        module="constants",
        name="capacity_factors_qtr",
        paths=[("capacity_factors", "quarterly"), ("capacityFactors_qtr",)],
        default=DEFAULT_CAPACITY_FACTORS["quarterly"],
    ),
    ParameterSpec(
        module="constants",
        name="annual_degradation_pct",
        paths=[("performance", "annual_degradation_pct"), ("annualDegradation",)],
        default=DEFAULT_ASSET_PERFORMANCE["annual_degradation_pct"],
    ),
    ParameterSpec(
        module="constants",
        name="discount_rates",
        paths=[("valuation", "discount_rates"), ("discountRates",)],
        default=DEFAULT_DISCOUNT_RATES,
    ),
    ParameterSpec(
        module="constants",
        name="volume_variation_pct",
        paths=[("risk", "volume_variation_pct"), ("volumeVariation",)],
        default=DEFAULT_RISK_PARAMETERS["volume_variation_pct"],
    ),
    ParameterSpec(
        module="constants",
        name="green_price_variation_pct",
        paths=[("risk", "green_price_variation_pct"), ("greenPriceVariation",)],
        default=None,
        description="Green price bound; unset falls back to price_variation_pct, then the default.",
    ),
    ParameterSpec(
        module="constants",
        name="black_price_variation_pct",
        paths=[
            ("risk", "black_price_variation_pct"),
            ("blackPriceVariation",),
            ("EnergyPriceVariation",),
        ],
        default=None,
    ),
    ParameterSpec(
        module="constants",
        name="price_variation_pct",
        paths=[("risk", "price_variation_pct"), ("priceVariation",)],
        default=DEFAULT_RISK_PARAMETERS["price_variation_pct"],
        description="Legacy combined price bound; used when a per-commodity bound is unset.",
    ),
    ParameterSpec(
        module="constants",
        name="asset_costs",
        paths=[("valuation", "asset_costs"), ("assetCosts",)],
        default={},
    ),
    ParameterSpec(
        module="constants",
        name="storage_merchant_spread",
        paths=[("storage", "merchant_spread"), ("storageMerchantSpread",)],
        default=DEFAULT_STORAGE["merchant_spread"],
    ),
]

register_parameters("constants", _CONSTANTS_SPECS)


def _as_mapping(v: Any) -> Dict[str, Any]:
    """Deep copy of a mapping so no two Constants share nested tables."""
    return copy.deepcopy(dict(v)) if isinstance(v, Mapping) else {}


@dataclass(frozen=True)
class Constants:
    analysis_start_year: int = DEFAULT_ANALYSIS_SETTINGS["analysis_start_year"]
    analysis_end_year: int = DEFAULT_ANALYSIS_SETTINGS["analysis_end_year"]
    price_aggregation: str = DEFAULT_SYSTEM_CONSTANTS["price_aggregation"]
    hours_in_year: float = DEFAULT_SYSTEM_CONSTANTS["hours_in_year"]
    escalation_pct: float = DEFAULT_PRICE_SETTINGS["escalation_pct"]
    reference_year: Optional[int] = DEFAULT_PRICE_SETTINGS["reference_year"]
    forecast_start_year: Optional[int] = None
    capacity_factors: Dict[str, Any] = field(
        default_factory=lambda: _as_mapping(DEFAULT_CAPACITY_FACTORS["annual"])
    )
    capacity_factors_qtr: Dict[str, Any] = field(
        default_factory=lambda: _as_mapping(DEFAULT_CAPACITY_FACTORS["quarterly"])
    )
    annual_degradation_pct: Dict[str, Any] = field(
        default_factory=lambda: _as_mapping(DEFAULT_ASSET_PERFORMANCE["annual_degradation_pct"])
    )
    contract_discount_rate: float = DEFAULT_DISCOUNT_RATES["contract"]
    merchant_discount_rate: float = DEFAULT_DISCOUNT_RATES["merchant"]
    volume_variation_pct: float = DEFAULT_RISK_PARAMETERS["volume_variation_pct"]
    green_price_variation_pct: Optional[float] = DEFAULT_RISK_PARAMETERS["green_price_variation_pct"]
    black_price_variation_pct: Optional[float] = DEFAULT_RISK_PARAMETERS["black_price_variation_pct"]
    price_variation_pct: Optional[float] = None
    asset_costs: Dict[str, Any] = field(default_factory=dict)
    storage_merchant_spread: float = DEFAULT_STORAGE["merchant_spread"]

    @property
    def analysis_years(self) -> range:
        return range(self.analysis_start_year, self.analysis_end_year + 1)

    @property
    def green_variation(self) -> float:
        """Green price bound, falling back to the legacy combined bound."""
        return self.green_price_variation_pct or self.price_variation_pct or 0.0

    @property
    def black_variation(self) -> float:
        return self.black_price_variation_pct or self.price_variation_pct or 0.0

    @property
    def volume_variation(self) -> float:
        return self.volume_variation_pct or 0.0

    def with_overrides(self, **changes: Any) -> "Constants":
        return replace(self, **changes)

    @classmethod
    def from_config(cls, config: Optional[Mapping[str, Any]] = None) -> "Constants":
        """Resolve constants from a config mapping; anything unset takes its default."""
        raw = resolve_module(config or {}, "constants")

        aggregation = str(raw["price_aggregation"] or "").strip().lower()
        if aggregation not in AGGREGATIONS:
            logger.debug("Unknown price aggregation %r; using yearly", raw["price_aggregation"])
            aggregation = "yearly"

        legacy_price = as_float(raw["price_variation_pct"])
        green = as_float(raw["green_price_variation_pct"])
        black = as_float(raw["black_price_variation_pct"])
        if legacy_price is None:
            if green is None:
                green = DEFAULT_RISK_PARAMETERS["green_price_variation_pct"]
            if black is None:
                black = DEFAULT_RISK_PARAMETERS["black_price_variation_pct"]

        rates = _as_mapping(raw["discount_rates"])
        start = as_int(raw["analysis_start_year"], DEFAULT_ANALYSIS_SETTINGS["analysis_start_year"])
        end = as_int(raw["analysis_end_year"], DEFAULT_ANALYSIS_SETTINGS["analysis_end_year"])

        return cls(
            analysis_start_year=start,
            analysis_end_year=end,
            price_aggregation=aggregation,
            hours_in_year=as_float(raw["hours_in_year"], DEFAULT_SYSTEM_CONSTANTS["hours_in_year"]),
            escalation_pct=as_float(raw["escalation_pct"], 0.0),
            reference_year=as_int(raw["reference_year"]),
            forecast_start_year=as_int(raw["forecast_start_year"]),
            capacity_factors=_as_mapping(raw["capacity_factors"]),
            capacity_factors_qtr=_as_mapping(raw["capacity_factors_qtr"]),
            annual_degradation_pct=_as_mapping(raw["annual_degradation_pct"]),
            contract_discount_rate=as_float(
                rates.get("contract"), DEFAULT_DISCOUNT_RATES["contract"]
            ),
            merchant_discount_rate=as_float(
                rates.get("merchant"), DEFAULT_DISCOUNT_RATES["merchant"]
            ),
            volume_variation_pct=as_float(raw["volume_variation_pct"], 0.0),
            green_price_variation_pct=green,
            black_price_variation_pct=black,
            price_variation_pct=legacy_price,
            asset_costs=_as_mapping(raw["asset_costs"]),
            storage_merchant_spread=as_float(
                raw["storage_merchant_spread"], DEFAULT_STORAGE["merchant_spread"]
            ),
        )


__all__ = ["Constants", "AGGREGATIONS"]
