"""
Tests for renewport.constants.Constants and renewport.defaults:

- from_config on snake_case sections and on flat camelCase keys.
- the legacy combined price-variation fallback.
- enum-like fields falling back to documented defaults.
"""

import pytest

from renewport.constants import Constants
from renewport.defaults import get_default


def test_defaults_when_config_empty():
    c = Constants.from_config({})

    assert c.analysis_start_year == 2025
    assert c.analysis_end_year == 2054
    assert c.hours_in_year == 8760
    assert c.price_aggregation == "yearly"
    assert c.escalation_pct == 2.5
    assert c.reference_year == 2025
    assert c.forecast_start_year is None
    assert c.contract_discount_rate == pytest.approx(0.08)
    assert c.merchant_discount_rate == pytest.approx(0.10)
    assert c.capacity_factors["solar"]["NSW"] == pytest.approx(0.28)
    assert c.green_variation == 20.0
    assert c.black_variation == 20.0
    assert c.volume_variation == 20.0
    assert len(c.analysis_years) == 30


def test_from_config_snake_case_sections():
    cfg = {
        "analysis": {"start_year": 2026, "end_year": 2030, "price_aggregation": "Quarterly"},
        "prices": {"escalation_pct": 3.0, "reference_year": 2024, "forecast_start_year": 2027},
        "risk": {"volume_variation_pct": 10, "green_price_variation_pct": 35},
        "valuation": {"discount_rates": {"contract": 0.07, "merchant": 0.11}},
        "storage": {"merchant_spread": 140},
    }
    c = Constants.from_config(cfg)

    assert list(c.analysis_years) == [2026, 2027, 2028, 2029, 2030]
    assert c.price_aggregation == "quarterly"
    assert c.escalation_pct == 3.0
    assert c.reference_year == 2024
    assert c.forecast_start_year == 2027
    assert c.volume_variation == 10.0
    assert c.green_variation == 35.0
    assert c.black_variation == 20.0
    assert c.contract_discount_rate == pytest.approx(0.07)
    assert c.merchant_discount_rate == pytest.approx(0.11)
    assert c.storage_merchant_spread == 140.0


def test_from_config_camel_case_keys():
    cfg = {
        "analysisStartYear": "2027",
        "analysisEndYear": "2036",
        "escalation": "2.0",
        "referenceYear": 2025,
        "ForecastStartYear": 2026,
        "volumeVariation": 15,
        "EnergyPriceVariation": 12,
        "HOURS_IN_YEAR": 8784,
    }
    c = Constants.from_config(cfg)

    assert c.analysis_start_year == 2027
    assert c.analysis_end_year == 2036
    assert c.escalation_pct == 2.0
    assert c.forecast_start_year == 2026
    assert c.volume_variation == 15.0
    assert c.black_variation == 12.0
    assert c.hours_in_year == 8784


def test_legacy_price_variation_fills_unset_commodity_bounds():
    c = Constants.from_config({"priceVariation": 15})
    assert c.green_price_variation_pct is None
    assert c.green_variation == 15.0
    assert c.black_variation == 15.0

    c2 = Constants.from_config({"priceVariation": 15, "greenPriceVariation": 30})
    assert c2.green_variation == 30.0
    assert c2.black_variation == 15.0


def test_unknown_aggregation_falls_back_to_yearly():
    assert Constants.from_config({"priceAggregation": "fortnightly"}).price_aggregation == "yearly"


def test_with_overrides_returns_new_instance():
    base = Constants()
    changed = base.with_overrides(escalation_pct=0.0)
    assert changed.escalation_pct == 0.0
    assert base.escalation_pct == 2.5


def test_get_default_lookups():
    assert get_default("performance", "volume_loss_adjustment_pct") == 95.0
    assert get_default("performance", "annual_degradation_pct", "wind") == 0.3
    assert get_default("costs", "terminal_value", "solar") == 15.0
    assert get_default("costs", "variable_cost", "hydro") == 0.015
    assert get_default("storage", "merchant_spread") == 160.0
    assert get_default("nope", "x") is None


def test_nested_tables_are_not_shared():
    from renewport.defaults import DEFAULT_CAPACITY_FACTORS

    first = Constants()
    first.capacity_factors["solar"]["NSW"] = 0.99
    first.capacity_factors_qtr["solar"]["NSW"]["Q1"] = 0.99
    first.annual_degradation_pct["solar"] = 9.0

    assert DEFAULT_CAPACITY_FACTORS["annual"]["solar"]["NSW"] == pytest.approx(0.28)
    assert Constants().capacity_factors["solar"]["NSW"] == pytest.approx(0.28)
    assert Constants.from_config({}).capacity_factors["solar"]["NSW"] == pytest.approx(0.28)
    assert Constants.from_config({}).annual_degradation_pct["solar"] != 9.0

    cfg = {"capacityFactors": {"wind": {"VIC": 0.35}}}
    c = Constants.from_config(cfg)
    c.capacity_factors["wind"]["VIC"] = 0.1
    assert cfg["capacityFactors"]["wind"]["VIC"] == 0.35
