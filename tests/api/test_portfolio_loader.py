"""
Tests for analytics.portfolio_loader:

- YAML / JSON loading, meta.source_path and structural errors.
- build_portfolio and build_price_provider on loaded configs.
"""

import json

import pytest
import yaml

from analytics.portfolio_loader import (
    PortfolioConfigError,
    build_portfolio,
    build_price_provider,
    load_portfolio_config,
)
from renewport.models import Technology
from renewport.prices import MerchantPriceCurve, no_prices


def _config():
    return {
        "analysisStartYear": 2026,
        "analysisEndYear": 2030,
        "assets": [
            {
                "name": "Solar A",
                "type": "solar",
                "state": "NSW",
                "capacity": "120",
                "assetStartDate": "2026-01-01",
                "contracts": [
                    {"type": "bundled", "startDate": "2026", "endDate": "2030", "buyersPercentage": 50,
                     "greenPrice": 20, "EnergyPrice": 45}
                ],
            },
            {"name": "BESS", "type": "storage", "state": "NSW", "capacity": 50, "volume": 100},
        ],
    }


def test_load_yaml_attaches_source_path(tmp_path):
    path = tmp_path / "portfolio.yaml"
    path.write_text(yaml.safe_dump(_config()), encoding="utf-8")

    cfg = load_portfolio_config(path)
    assert cfg["meta"]["source_path"] == str(path)
    assert len(cfg["assets"]) == 2


def test_load_json(tmp_path):
    path = tmp_path / "portfolio.json"
    path.write_text(json.dumps(_config()), encoding="utf-8")
    assert load_portfolio_config(str(path))["analysisStartYear"] == 2026


@pytest.mark.parametrize(
    "name, text",
    [
        ("empty.yaml", ""),
        ("list.yaml", "- a\n- b\n"),
        ("portfolio.toml", "x = 1"),
    ],
)
def test_structural_errors(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    with pytest.raises(PortfolioConfigError):
        load_portfolio_config(path)


def test_missing_file(tmp_path):
    with pytest.raises(PortfolioConfigError):
        load_portfolio_config(tmp_path / "nope.yaml")


def test_build_portfolio():
    assets, constants = build_portfolio(_config())

    assert [a.name for a in assets] == ["Solar A", "BESS"]
    assert assets[0].capacity_mw == 120.0
    assert assets[0].contracts[0].black_price == 45.0
    assert assets[1].technology is Technology.STORAGE
    assert assets[1].volume_mwh == 100.0
    assert constants.analysis_start_year == 2026
    assert list(constants.analysis_years)[-1] == 2030


def test_build_price_provider_from_records():
    cfg = {
        "merchant_prices": [
            {"profile": "solar", "type": "black", "state": "NSW", "time": "2026-01", "price": 50},
            {"profile": "solar", "type": "black", "state": "NSW", "time": "2026-02", "price": 70},
        ]
    }
    provider = build_price_provider(cfg)
    assert isinstance(provider, MerchantPriceCurve)
    assert provider("solar", "black", "NSW", 2026) == pytest.approx(60.0)


def test_build_price_provider_from_flat_prices():
    cfg = {"flat_prices": {"wind": {"green": {"VIC": 30}, "black": {"VIC": "80"}}}}
    provider = build_price_provider(cfg)
    assert provider("wind", "black", "VIC", "2031-Q2") == 80.0
    assert provider("wind", "green", "SA", 2031) is None


def test_build_price_provider_without_prices():
    assert build_price_provider({}) is no_prices
