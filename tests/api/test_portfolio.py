"""
Tests for renewport.portfolio: per-period aggregation and the
generation-weighted contracted percentages in portfolio_frame.
"""

import pytest

from renewport.constants import Constants
from renewport.models import Asset, Contract, ContractKind, Technology
from renewport.portfolio import default_periods, generate_portfolio_data, portfolio_frame
from renewport.prices import flat_price_provider


def _make_solar_asset(name, contracts=(), capacity=100.0, start_year=2025):
    return Asset(
        name=name,
        technology=Technology.SOLAR,
        region="NSW",
        capacity_mw=capacity,
        start_year=start_year,
        degradation_pct=0.0,
        contracts=tuple(contracts),
    )


def _prices():
    return flat_price_provider({("solar", "green", "NSW"): 30.0, ("solar", "black", "NSW"): 50.0})


def _green_contract():
    return Contract(kind=ContractKind.GREEN, start_year=2025, end_year=2040, buyers_pct=100.0, strike_price=20.0)


def test_generate_portfolio_data_per_period_and_asset():
    assets = [_make_solar_asset("A"), _make_solar_asset("B", start_year=2026)]
    data = generate_portfolio_data(assets, [2025, "2026-Q1", "junk"], Constants(), _prices())

    assert [d.period.label for d in data] == ["2025", "2026-Q1"]
    assert set(data[0].assets) == {"A", "B"}
    assert data[0].assets["B"].total == 0.0
    assert data[1].assets["B"].total > 0
    assert data[0].total == pytest.approx(data[0].assets["A"].total)


def test_default_periods_follow_aggregation():
    c = Constants(analysis_start_year=2025, analysis_end_year=2026, price_aggregation="quarterly")
    assert len(default_periods(c)) == 8


def test_portfolio_frame_totals_and_weighted_percentages():
    assets = [_make_solar_asset("A", [_green_contract()]), _make_solar_asset("B")]
    c = Constants(analysis_start_year=2025, analysis_end_year=2027)
    df = portfolio_frame(assets, None, c, _prices())

    assert list(df["period"]) == ["2025", "2026", "2027"]
    row = df.iloc[0]
    assert row["total"] == pytest.approx(
        row["contracted_green"] + row["contracted_black"] + row["merchant_green"] + row["merchant_black"]
    )
    assert row["contracted"] == pytest.approx(row["contracted_green"])
    # Equal generation, one asset fully green-contracted
    assert row["weighted_green_pct"] == pytest.approx(50.0)
    assert row["weighted_black_pct"] == pytest.approx(0.0)
    assert row["capacity_mw"] == 200.0
    assert row["A_total"] + row["B_total"] == pytest.approx(row["total"])


def test_portfolio_frame_weights_by_generation():
    assets = [
        _make_solar_asset("Big", [_green_contract()], capacity=300.0),
        _make_solar_asset("Small", capacity=100.0),
    ]
    c = Constants(analysis_start_year=2025, analysis_end_year=2025)
    df = portfolio_frame(assets, None, c, _prices(), include_assets=False)

    assert df.iloc[0]["weighted_green_pct"] == pytest.approx(75.0)
    assert "Big_total" not in df.columns


def test_portfolio_frame_counts_capacity_once_operating():
    assets = [_make_solar_asset("A"), _make_solar_asset("B", start_year=2026)]
    c = Constants(analysis_start_year=2025, analysis_end_year=2026)
    df = portfolio_frame(assets, None, c, _prices())
    assert list(df["capacity_mw"]) == [100.0, 200.0]
