"""Portfolio analytics orchestrator: revenue, risk and valuation frames.

This module:
  * loads a portfolio config via analytics.portfolio_loader,
  * optionally validates it via analytics.schema_guard,
  * runs the renewport engine (revenue time series, Monte Carlo risk,
    NPV projection),
  * returns everything as pandas DataFrames / plain dicts.

Business logic lives in:
  * renewport.portfolio
  * renewport.monte_carlo
  * renewport.valuation
"""

from __future__ import annotations

import logging
import sys
from concurrent.futures import Executor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd

from analytics.portfolio_loader import build_portfolio, build_price_provider, load_portfolio_config
from analytics.schema_guard import validate_portfolio_config
from renewport.constants import Constants
from renewport.models import Asset, Scenario
from renewport.monte_carlo import (
    DEFAULT_ITERATIONS,
    calculate_yearly_metrics,
    create_histogram,
    generate_scenarios,
    scenarios_frame,
)
from renewport.portfolio import portfolio_frame
from renewport.prices import PriceProvider
from renewport.valuation import AssetCosts, NPVResult, calculate_npv, initialize_asset_costs

logger = logging.getLogger(__name__)


@dataclass
class RiskResult:
    """Monte Carlo output for one selected year."""

    year: int
    metrics: Optional[Dict[str, Any]]
    histogram: List[Dict[str, float]]
    scenarios: List[Scenario] = field(default_factory=list, repr=False)

    def scenarios_frame(self) -> pd.DataFrame:
        return scenarios_frame(self.scenarios)


class PortfolioAnalytics:
    """Run the revenue, risk and valuation engine for one portfolio config.

    Responsibilities:
      * load the config (or accept an already-loaded mapping),
      * build assets, Constants and the price provider,
      * expose revenue / risk / NPV results in DataFrame form.
    """

    def __init__(
        self,
        config: Dict[str, Any],
        config_path: str = "<memory>",
        strict: bool = True,
    ) -> None:
        self.config = config
        self.config_path = config_path
        if strict:
            validate_portfolio_config(config, config_path)
        self.assets: List[Asset]
        self.constants: Constants
        self.assets, self.constants = build_portfolio(config)
        self.prices: PriceProvider = build_price_provider(config)
        logger.info(
            "Portfolio %s: %d assets, analysis %d-%d",
            config_path,
            len(self.assets),
            self.constants.analysis_start_year,
            self.constants.analysis_end_year,
        )

    @classmethod
    def from_file(cls, path: Path, strict: bool = True) -> "PortfolioAnalytics":
        return cls(load_portfolio_config(path), config_path=str(path), strict=strict)

    # ------------------------------------------------------------------
    # Revenue
    # ------------------------------------------------------------------
    def revenue_frame(self, periods: Optional[Iterable[Any]] = None, include_assets: bool = True) -> pd.DataFrame:
        """Revenue time series over ``periods`` (default: the analysis window)."""
        return portfolio_frame(
            self.assets,
            list(periods) if periods is not None else None,
            self.constants,
            self.prices,
            include_assets=include_assets,
        )

    # ------------------------------------------------------------------
    # Risk
    # ------------------------------------------------------------------
    def risk(
        self,
        year: Optional[int] = None,
        iterations: int = DEFAULT_ITERATIONS,
        seed: Optional[int] = None,
        executor: Optional[Executor] = None,
        progress: bool = False,
    ) -> RiskResult:
        """Monte Carlo statistics and histogram for ``year`` (default: first analysis year)."""
        selected = year if year is not None else self.constants.analysis_start_year
        logger.info("Running %d Monte Carlo iterations for %d", iterations, selected)
        scenarios = generate_scenarios(
            self.assets,
            self.constants,
            self.prices,
            iterations=iterations,
            seed=seed,
            executor=executor,
            progress=progress,
            years=[selected],
        )
        metrics = calculate_yearly_metrics(scenarios, selected, self.assets, self.constants, self.prices)
        return RiskResult(
            year=selected,
            metrics=metrics,
            histogram=create_histogram(scenarios, selected),
            scenarios=scenarios,
        )

    # ------------------------------------------------------------------
    # Valuation
    # ------------------------------------------------------------------
    def asset_costs(self) -> Dict[str, AssetCosts]:
        """Technology default costs per asset, overlaid field by field with configured costs."""
        costs = initialize_asset_costs(self.assets)
        for name, configured in self.constants.asset_costs.items():
            if isinstance(configured, AssetCosts):
                costs[name] = configured
            elif isinstance(configured, Mapping):
                costs[name] = costs.get(name, AssetCosts()).overlay(configured)
            else:
                logger.warning("Ignoring asset costs for %s: expected a mapping", name)
        return costs

    def npv(self, scenario: str = "base", selected_asset: str = "Total") -> NPVResult:
        result = calculate_npv(
            self.assets,
            self.asset_costs(),
            self.constants,
            self.prices,
            scenario=scenario,
            selected_asset=selected_asset,
        )
        logger.info("NPV (%s, %s): %.2f $M", selected_asset, scenario, result.total_npv)
        return result


# ----------------------------------------------------------------------
# CLI entrypoint (optional, used for quick local smokes)
# ----------------------------------------------------------------------
def main(argv: Iterable[str]) -> int:
    import argparse

    parser = argparse.ArgumentParser(description="Run portfolio revenue, risk and NPV analytics.")
    parser.add_argument(
        "--config",
        default="scenarios/example_portfolio.yaml",
        help="Portfolio YAML/JSON file.",
    )
    parser.add_argument(
        "--year",
        type=int,
        default=None,
        help="Year for the risk statistics (default: first analysis year).",
    )
    parser.add_argument(
        "--iterations",
        type=int,
        default=DEFAULT_ITERATIONS,
        help="Monte Carlo iterations.",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed.")
    parser.add_argument(
        "--scenario",
        default="base",
        help="Stress scenario for the NPV table (base/worst/volume/price/green/black).",
    )
    parser.add_argument(
        "--no-strict",
        action="store_true",
        help="Skip config validation.",
    )
    parser.add_argument("--progress", action="store_true", help="Show a progress bar.")

    args = parser.parse_args(list(argv))

    pa = PortfolioAnalytics.from_file(Path(args.config), strict=not args.no_strict)

    revenue_df = pa.revenue_frame(include_assets=False)
    risk = pa.risk(year=args.year, iterations=args.iterations, seed=args.seed, progress=args.progress)
    npv = pa.npv(scenario=args.scenario)

    logger.info("Revenue head:\n%s", revenue_df.head())
    if risk.metrics is not None:
        logger.info(
            "Risk %d: base %.2f, P90 %.2f, P50 %.2f, P10 %.2f",
            risk.year,
            risk.metrics["base_case"],
            risk.metrics["p90"],
            risk.metrics["p50"],
            risk.metrics["p10"],
        )
    logger.info("NPV head:\n%s", npv.to_frame().head())
    logger.info("Total NPV: %.2f", npv.total_npv)

    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    logging.basicConfig(level=logging.INFO)
    raise SystemExit(main(sys.argv[1:]))
