"""
Tests for renewport.valuation:

- present value = (net cash flow + terminal) / (1 + blended rate) ** N.
- cost escalation, terminal value timing and the 50/50 zero-revenue rate.
- asset filtering, commissioning and stress scenarios.
- default cost initialisation from the technology table.
"""

import pytest

from renewport.constants import Constants
from renewport.models import Asset, Contract, ContractKind, Technology
from renewport.prices import flat_price_provider, no_prices
from renewport.valuation import AssetCosts, calculate_npv, initialize_asset_costs, scaled_fixed_cost

ZERO_COSTS = AssetCosts(fixed_cost=0.0, variable_cost=0.0, terminal_value=0.0)


def _make_solar_asset(name="Solar A", start_year=2025, contracts=()):
    return Asset(
        name=name,
        technology=Technology.SOLAR,
        region="NSW",
        capacity_mw=100.0,
        start_year=start_year,
        volume_loss_pct=95.0,
        degradation_pct=0.5,
        contracts=tuple(contracts),
    )


def _prices():
    return flat_price_provider({("solar", "green", "NSW"): 25.0, ("solar", "black", "NSW"): 60.0})


def test_present_value_of_merchant_only_asset():
    asset = _make_solar_asset()
    result = calculate_npv([asset], {asset.name: ZERO_COSTS}, Constants(), _prices())

    assert len(result.rows) == 30
    for row in result.rows:
        n = row.year_index + 1
        assert row.discount_rate == pytest.approx(0.10)
        assert row.present_value == row.total_revenue / (1 + row.discount_rate) ** n
    assert result.total_npv == pytest.approx(sum(r.present_value for r in result.rows))


def test_blended_rate_follows_revenue_mix():
    contract = Contract(
        kind=ContractKind.BLACK, start_year=2025, end_year=2054, buyers_pct=100.0, strike_price=60.0
    )
    asset = _make_solar_asset(contracts=[contract])
    row = calculate_npv([asset], {asset.name: ZERO_COSTS}, Constants(), _prices()).rows[0]

    w_contract = row.contract_revenue / row.total_revenue
    expected = 0.08 * w_contract + 0.10 * (1 - w_contract)
    assert row.discount_rate == pytest.approx(expected)
    assert 0.08 < row.discount_rate < 0.10


def test_zero_revenue_uses_even_split_and_costs():
    asset = _make_solar_asset()
    costs = {asset.name: AssetCosts(fixed_cost=1.0, variable_cost=0.01, terminal_value=5.0)}
    result = calculate_npv([asset], costs, Constants(), no_prices)

    first, third, last = result.rows[0], result.rows[2], result.rows[-1]
    assert first.discount_rate == pytest.approx(0.09)
    assert first.fixed_costs == pytest.approx(1.0)
    assert first.variable_costs == pytest.approx(0.01 * 100)
    assert third.fixed_costs == pytest.approx(1.025 ** 2)
    assert third.variable_costs == pytest.approx(1.0 * 1.025 ** 2)
    assert first.net_cash_flow == pytest.approx(-2.0)

    assert all(r.terminal_value == 0.0 for r in result.rows[:-1])
    assert last.terminal_value == 5.0
    assert last.present_value == pytest.approx(
        (last.net_cash_flow + 5.0) / 1.09 ** 30
    )


def test_cost_dicts_default_missing_indices_to_two_point_five():
    asset = _make_solar_asset()
    costs = {asset.name: {"fixedCost": 2.0}}
    result = calculate_npv([asset], costs, Constants(), no_prices)
    assert result.rows[1].fixed_costs == pytest.approx(2.0 * 1.025)


def test_assets_before_commissioning_are_excluded():
    asset = _make_solar_asset(start_year=2030)
    costs = {asset.name: AssetCosts(fixed_cost=1.0)}
    rows = calculate_npv([asset], costs, Constants(), _prices()).rows

    assert all(r.total_revenue == 0.0 and r.total_costs == 0.0 for r in rows[:5])
    assert rows[5].year == 2030
    assert rows[5].total_revenue > 0
    assert rows[5].fixed_costs == pytest.approx(1.025 ** 5)


def test_selected_asset_filter():
    a = _make_solar_asset("A")
    b = _make_solar_asset("B")
    costs = {"A": ZERO_COSTS, "B": ZERO_COSTS}

    total = calculate_npv([a, b], costs, Constants(), _prices())
    only_a = calculate_npv([a, b], costs, Constants(), _prices(), selected_asset="A")
    missing = calculate_npv([a, b], costs, Constants(), _prices(), selected_asset="Z")

    assert only_a.total_npv == pytest.approx(total.total_npv / 2)
    assert missing.total_npv == 0.0


def test_stress_scenario_lowers_npv():
    asset = _make_solar_asset()
    costs = {asset.name: ZERO_COSTS}
    base = calculate_npv([asset], costs, Constants(), _prices())
    worst = calculate_npv([asset], costs, Constants(), _prices(), scenario="worst")
    volume = calculate_npv([asset], costs, Constants(), _prices(), scenario="volume")

    assert worst.total_npv < volume.total_npv < base.total_npv
    assert volume.rows[0].total_revenue == pytest.approx(base.rows[0].total_revenue * 0.8)


def test_discount_rate_override():
    asset = _make_solar_asset()
    result = calculate_npv(
        [asset], {asset.name: ZERO_COSTS}, Constants(), _prices(), discount_rates={"merchant": 0.12}
    )
    assert result.rows[0].discount_rate == pytest.approx(0.12)


def test_npv_frame():
    asset = _make_solar_asset()
    df = calculate_npv([asset], None, Constants(), _prices(), years=5).to_frame()
    assert len(df) == 5
    assert {"year", "total_revenue", "total_costs", "net_cash_flow", "present_value"} <= set(df.columns)


def test_initialize_asset_costs():
    solar = _make_solar_asset()
    wind = Asset(name="Wind", technology=Technology.WIND, region="VIC", capacity_mw=200.0, start_year=2025)
    costs = initialize_asset_costs([solar, wind])

    assert costs["Solar A"] == AssetCosts(
        fixed_cost=10.0,
        fixed_cost_index=2.5,
        variable_cost=0.015,
        variable_cost_index=2.5,
        terminal_value=15.0,
    )
    assert costs["Wind"].fixed_cost == pytest.approx(round(10.0 * 2 ** 0.75, 2))
    assert costs["Wind"].variable_cost == 0.02
    assert costs["Wind"].terminal_value == 40.0


def test_scaled_fixed_cost_guards():
    assert scaled_fixed_cost(10.0, 100.0, 100.0, 0.75) == 10.0
    assert scaled_fixed_cost(10.0, 0.0, 100.0, 0.75) == 0.0


def test_asset_costs_overlay_replaces_only_given_fields():
    base = AssetCosts(fixed_cost=10.0, variable_cost=0.015, terminal_value=15.0)
    merged = base.overlay({"fixed_cost": 9.5, "variableCostIndex": "3", "terminal_value": ""})

    assert merged == AssetCosts(
        fixed_cost=9.5, variable_cost=0.015, variable_cost_index=3.0, terminal_value=15.0
    )
    assert base.fixed_cost == 10.0
    assert AssetCosts.from_dict(merged.to_dict()) == merged
