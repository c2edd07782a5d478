"""
Tests for renewport.stress:

- the rule table for worst / volume / price / green / black / base.
- the volume stress property: every volume-bearing component drops by V %.
- stress_test_table against the portfolio base case.
"""

import pytest

from renewport.constants import Constants
from renewport.models import Asset, RevenueBreakdown, Technology
from renewport.prices import flat_price_provider, no_prices
from renewport.stress import (
    STRESS_SUITE,
    ShockBounds,
    StressScenario,
    apply_shocks,
    apply_stress,
    describe_changes,
    stress_test_table,
)


def _make_breakdown():
    return RevenueBreakdown(
        asset="A",
        period="2025",
        year=2025,
        generation=1000.0,
        contracted_green=1.0,
        contracted_black=2.0,
        merchant_green=3.0,
        merchant_black=4.0,
        green_percentage=30.0,
        black_percentage=40.0,
    )


def _constants():
    return Constants(volume_variation_pct=20.0, green_price_variation_pct=30.0, black_price_variation_pct=10.0)


def test_worst_case():
    s = apply_stress(_make_breakdown(), "worst", _constants())
    assert s.contracted_green == pytest.approx(0.8)
    assert s.contracted_black == pytest.approx(1.6)
    assert s.merchant_green == pytest.approx(3.0 * 0.8 * 0.7)
    assert s.merchant_black == pytest.approx(4.0 * 0.8 * 0.9)
    assert s.total == pytest.approx(0.8 + 1.6 + 1.68 + 2.88)


def test_volume_stress_scales_every_volume_component():
    base = _make_breakdown()
    s = apply_stress(base, StressScenario.VOLUME, _constants())
    for attr in ("contracted_green", "contracted_black", "merchant_green", "merchant_black", "generation"):
        assert getattr(s, attr) == pytest.approx(getattr(base, attr) * 0.8)
    assert s.total == pytest.approx(base.total * 0.8)
    # Contracted percentages are untouched
    assert s.green_percentage == base.green_percentage


def test_price_stress_only_moves_merchant():
    s = apply_stress(_make_breakdown(), "price", _constants())
    assert s.contracted_green == 1.0
    assert s.contracted_black == 2.0
    assert s.merchant_green == pytest.approx(2.1)
    assert s.merchant_black == pytest.approx(3.6)


def test_single_commodity_price_stresses():
    green = apply_stress(_make_breakdown(), "green", _constants())
    assert green.merchant_green == pytest.approx(2.1)
    assert green.merchant_black == 4.0

    black = apply_stress(_make_breakdown(), "black", _constants())
    assert black.merchant_green == 3.0
    assert black.merchant_black == pytest.approx(3.6)


def test_base_and_unknown_are_identity():
    base = _make_breakdown()
    assert apply_stress(base, "base", _constants()) is base
    assert apply_stress(base, "meltdown", _constants()) is base
    assert StressScenario.parse("meltdown") is StressScenario.BASE


def test_stress_does_not_mutate_input():
    base = _make_breakdown()
    apply_stress(base, "worst", _constants())
    assert base.total == pytest.approx(10.0)


def test_apply_shocks_positive_and_negative():
    s = apply_shocks(_make_breakdown(), 10.0, -50.0, 0.0)
    assert s.contracted_green == pytest.approx(1.1)
    assert s.merchant_green == pytest.approx(3.0 * 1.1 * 0.5)
    assert s.merchant_black == pytest.approx(4.0 * 1.1)


def test_shock_bounds_use_legacy_price_variation():
    c = Constants(green_price_variation_pct=None, black_price_variation_pct=None, price_variation_pct=15.0)
    bounds = ShockBounds.from_constants(c)
    assert bounds == ShockBounds(volume_pct=20.0, green_pct=15.0, black_pct=15.0)


def test_describe_changes():
    assert describe_changes("worst", _constants()) == "Volume: -20% Green: -30% Black: -10%"
    assert describe_changes("green", _constants()) == "Green: -30%"
    assert describe_changes("base", _constants()) == ""


def _make_merchant_asset(name="Solar A"):
    return Asset(
        name=name,
        technology=Technology.SOLAR,
        region="NSW",
        capacity_mw=100.0,
        start_year=2025,
        volume_loss_pct=100.0,
        degradation_pct=0.0,
    )


def test_stress_test_table_against_base_case():
    prices = flat_price_provider({("solar", "green", "NSW"): 20.0, ("solar", "black", "NSW"): 60.0})
    rows = stress_test_table([_make_merchant_asset()], 2025, _constants(), prices)

    assert [r["scenario"] for r in rows] == [s.value for s in STRESS_SUITE]
    by_name = {r["scenario"]: r for r in rows}

    assert by_name["volume"]["change_pct"] == pytest.approx(-20.0)
    # merchant-only: price stress = weighted mix of -30 % green and -10 % black
    assert by_name["price"]["change_pct"] == pytest.approx(-(0.25 * 30 + 0.75 * 10))
    assert by_name["worst"]["revenue"] < by_name["volume"]["revenue"]
    assert by_name["worst"]["name"] == "Worst Case"


def test_stress_test_table_zero_base_and_frame():
    frame = stress_test_table([_make_merchant_asset()], 2025, _constants(), no_prices, as_frame=True)
    assert list(frame["change_pct"]) == [0.0] * len(STRESS_SUITE)
    assert {"scenario", "name", "description", "changes", "revenue", "change_pct"} <= set(frame.columns)
