"""
Smoke and unit tests for analytics.portfolio_analytics.PortfolioAnalytics
against the example portfolio shipped in scenarios/.
"""

from pathlib import Path

import pytest

from analytics.portfolio_analytics import PortfolioAnalytics, main
from analytics.schema_guard import ConfigValidationError

EXAMPLE = Path(__file__).resolve().parents[2] / "scenarios" / "example_portfolio.yaml"


@pytest.fixture(scope="module")
def analytics():
    return PortfolioAnalytics.from_file(EXAMPLE)


def test_example_portfolio_loads(analytics):
    assert [a.name for a in analytics.assets] == ["Moree Solar", "Stockyard Wind", "Hunter BESS"]
    assert analytics.constants.forecast_start_year == 2026
    assert analytics.constants.green_variation == 30.0


def test_revenue_frame(analytics):
    df = analytics.revenue_frame()
    assert len(df) == 30
    assert (df["total"] >= 0).all()
    first = df.iloc[0]
    # Only the solar farm operates in 2025
    assert first["Stockyard Wind_total"] == 0.0
    assert first["Hunter BESS_total"] == 0.0
    assert first["Moree Solar_total"] > 0


def test_risk_result(analytics):
    risk = analytics.risk(year=2030, iterations=200, seed=4)
    m = risk.metrics

    assert risk.year == 2030
    assert m["p90"] <= m["p50"] <= m["p10"]
    assert len(risk.histogram) == 20
    assert sum(b["frequency"] for b in risk.histogram) == 200
    assert len(risk.scenarios_frame()) == 200 * 3


def test_asset_costs_merge_configured_and_defaults(analytics):
    costs = analytics.asset_costs()
    assert costs["Moree Solar"].fixed_cost == 9.5
    assert costs["Moree Solar"].terminal_value == 14.0
    assert costs["Stockyard Wind"].terminal_value == pytest.approx(40.0)


def test_npv(analytics):
    base = analytics.npv()
    worst = analytics.npv(scenario="worst")
    solar = analytics.npv(selected_asset="Moree Solar")

    assert len(base.rows) == 30
    assert worst.total_npv < base.total_npv
    assert solar.total_npv != base.total_npv


def _make_single_solar_config(costs):
    return {
        "analysis": {"start_year": 2025, "end_year": 2054},
        "valuation": {"asset_costs": {"Solar": costs}},
        "assets": [
            {"name": "Solar", "technology": "solar", "region": "NSW", "capacity_mw": 100, "start_year": 2025}
        ],
    }


def test_partial_cost_config_keeps_technology_defaults():
    pa = PortfolioAnalytics(_make_single_solar_config({"fixed_cost": 9.5}))
    costs = pa.asset_costs()["Solar"]

    assert costs.fixed_cost == 9.5
    assert costs.variable_cost == pytest.approx(0.015)
    assert costs.terminal_value == pytest.approx(15.0)
    assert costs.fixed_cost_index == 2.5

    rows = pa.npv().rows
    assert rows[0].fixed_costs == pytest.approx(9.5)
    assert rows[0].variable_costs == pytest.approx(1.5)
    assert rows[-1].terminal_value == pytest.approx(15.0)


def test_camel_case_cost_config_overlays_defaults():
    pa = PortfolioAnalytics(_make_single_solar_config({"terminalValue": "20"}))
    costs = pa.asset_costs()["Solar"]
    assert costs.terminal_value == 20.0
    assert costs.fixed_cost == pytest.approx(10.0)


def test_strict_mode_rejects_config_without_assets():
    with pytest.raises(ConfigValidationError):
        PortfolioAnalytics({"analysis": {"start_year": 2025, "end_year": 2030}})

    lenient = PortfolioAnalytics({}, strict=False)
    assert lenient.assets == []


def test_main_smoke():
    assert main(["--config", str(EXAMPLE), "--iterations", "20", "--seed", "1"]) == 0
