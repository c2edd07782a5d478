"""
Portfolio configuration loader.

Responsibilities:
- Load YAML / JSON portfolio files.
- Perform light structural checks only (top-level mapping, known extension).
- Turn a loaded config into engine inputs: assets, Constants and a
  merchant price provider.

Field-level rules live in the parameter registry and are enforced by
analytics.schema_guard when a caller asks for it.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple, Union

import yaml

from analytics.config_schema import ParameterSpec, register_parameters
from renewport.constants import Constants
from renewport.models import Asset, assets_from_config
from renewport.prices import MerchantPriceCurve, PriceProvider, flat_price_provider, no_prices

logger = logging.getLogger(__name__)


class PortfolioConfigError(ValueError):
    """Configuration-level error for portfolio loading."""


def _has_assets(v: Any) -> bool:
    return isinstance(v, (list, tuple, Mapping)) and len(v) > 0


_PORTFOLIO_SPECS = [
    ParameterSpec(
        module="portfolio",
        name="assets",
        paths=[("assets",), ("portfolio", "assets")],
        required=True,
        description="List (or name-keyed mapping) of asset definitions.",
        validator=_has_assets,
    ),
    ParameterSpec(
        module="portfolio",
        name="merchant_prices",
        paths=[("merchant_prices",), ("prices", "merchant")],
        severity="warning",
        description="Monthly price records (profile, type, state, time, price).",
        validator=lambda v: isinstance(v, list),
    ),
    ParameterSpec(
        module="portfolio",
        name="flat_prices",
        paths=[("flat_prices",)],
        severity="warning",
        description="Flat $/MWh by technology -> commodity -> region.",
        validator=lambda v: isinstance(v, Mapping),
    ),
]

register_parameters("portfolio", _PORTFOLIO_SPECS)


def _load_raw_config(path: Path) -> Dict[str, Any]:
    """
    Load a raw portfolio configuration from YAML or JSON.

    Only checks that the top level is a mapping.
    """
    if not path.exists():
        raise PortfolioConfigError(f"Portfolio config not found: {path}")

    suffix = path.suffix.lower()
    if suffix not in (".yml", ".yaml", ".json"):
        raise PortfolioConfigError(
            f"Unsupported portfolio config extension '{suffix}' for {path}"
        )

    with path.open("r", encoding="utf-8") as f:
        if suffix == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f)

    if data is None:
        raise PortfolioConfigError(f"Empty configuration in file: {path}")

    if not isinstance(data, dict):
        raise PortfolioConfigError(
            f"Expected a mapping at top level of {path}, "
            f"got {type(data).__name__}"
        )

    return data


def _ensure_meta_source(cfg: Dict[str, Any], path: Path) -> None:
    """Attach a 'meta.source_path' breadcrumb, if not already present."""
    meta = cfg.setdefault("meta", {})
    if isinstance(meta, dict):
        meta.setdefault("source_path", str(path))


def load_portfolio_config(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a portfolio configuration and attach ``meta.source_path``."""
    p = Path(path)
    cfg = _load_raw_config(p)
    _ensure_meta_source(cfg, p)
    logger.debug("Loaded portfolio config %s (%d top-level keys)", p, len(cfg))
    return cfg


def build_portfolio(config: Mapping[str, Any]) -> Tuple[List[Asset], Constants]:
    """Assets and Constants from a loaded config. Missing assets give an empty list."""
    raw_assets = config.get("assets")
    if raw_assets is None and isinstance(config.get("portfolio"), Mapping):
        raw_assets = config["portfolio"].get("assets")
    assets = assets_from_config(raw_assets)
    constants = Constants.from_config(config)
    logger.debug("Built portfolio: %d assets, window %d-%d",
                 len(assets), constants.analysis_start_year, constants.analysis_end_year)
    return assets, constants


def _flat_price_mapping(raw: Mapping[str, Any]) -> Dict[Tuple[str, str, str], Any]:
    out: Dict[Tuple[str, str, str], Any] = {}
    for tech, by_commodity in raw.items():
        if not isinstance(by_commodity, Mapping):
            continue
        for commodity, by_region in by_commodity.items():
            if not isinstance(by_region, Mapping):
                continue
            for region, price in by_region.items():
                out[(str(tech), str(commodity), str(region))] = price
    return out


def build_price_provider(config: Mapping[str, Any]) -> PriceProvider:
    """
    Price provider for a loaded config.

    ``merchant_prices`` (a record list) builds a MerchantPriceCurve;
    otherwise ``flat_prices`` (technology -> commodity -> region -> price)
    builds a flat provider. With neither, every price is unresolved.
    """
    records = config.get("merchant_prices")
    if records is None and isinstance(config.get("prices"), Mapping):
        records = config["prices"].get("merchant")
    if isinstance(records, list) and records:
        return MerchantPriceCurve.from_records(records)

    flat = config.get("flat_prices")
    if isinstance(flat, Mapping) and flat:
        return flat_price_provider(_flat_price_mapping(flat))

    logger.warning("No merchant prices in config; merchant revenue will be zero")
    return no_prices


__all__ = [
    "PortfolioConfigError",
    "load_portfolio_config",
    "build_portfolio",
    "build_price_provider",
]
