"""Monte Carlo earnings-at-risk simulation.

For every iteration, asset and analysis year three independent shocks are
drawn uniformly from [-1, 1] and scaled by the volume, green price and black
price bounds (percentages). The base breakdown is shocked as in
:func:`renewport.stress.apply_shocks`:

    contracted     x (1 + volume)
    merchant green x (1 + volume)(1 + green)
    merchant black x (1 + volume)(1 + black)

Percentile labels follow the "chance of exceeding" convention used in revenue
risk reporting: P90 is the adverse case (10th percentile of the sorted
portfolio revenues), P50 the median and P10 the favourable case (90th
percentile). So P90 <= P50 <= P10.

Randomness comes from a ``numpy.random.Generator``. Iterations are split into
chunks, each with a child generator drawn from the parent before any work is
submitted, so a seeded run gives the same scenarios serially or on an executor.
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from tqdm import tqdm

from renewport.constants import Constants
from renewport.defaults import get_default
from renewport.models import Asset, Scenario
from renewport.prices import PriceProvider
from renewport.revenue import calculate_asset_revenue
from renewport.stress import ShockBounds, stress_test_table

logger = logging.getLogger(__name__)

DEFAULT_ITERATIONS = get_default("analysis", "iterations")
HISTOGRAM_BINS = 20

# Read by index into the ascending sort of combined portfolio revenues.
ADVERSE_QUANTILE = 0.1   # P90
MEDIAN_QUANTILE = 0.5    # P50
FAVORABLE_QUANTILE = 0.9  # P10

SCENARIO_COLUMNS = [
    "iteration",
    "asset",
    "year",
    "volume_shock_pct",
    "green_price_shock_pct",
    "black_price_shock_pct",
    "revenue",
    "base_revenue",
]


@dataclass(frozen=True)
class CombinedScenario:
    """Portfolio revenue for one iteration, with shocks averaged across assets."""

    iteration: int
    revenue: float
    base_revenue: float
    volume_shock_pct: float
    green_price_shock_pct: float
    black_price_shock_pct: float

    @property
    def changes(self) -> Dict[str, float]:
        return {
            "volume": self.volume_shock_pct,
            "green_price": self.green_price_shock_pct,
            "black_price": self.black_price_shock_pct,
        }


def _base_components(
    assets: Sequence[Asset],
    years: Sequence[int],
    constants: Constants,
    prices: PriceProvider,
) -> Tuple[np.ndarray, np.ndarray]:
    """Base revenue components, shape (assets, years, 4), and base totals (assets, years).

    Component order: contracted green, contracted black, merchant green,
    merchant black.
    """
    comps = np.zeros((len(assets), len(years), 4), dtype=float)
    totals = np.zeros((len(assets), len(years)), dtype=float)
    for a, asset in enumerate(assets):
        for y, year in enumerate(years):
            b = calculate_asset_revenue(asset, year, constants, prices)
            comps[a, y] = (b.contracted_green, b.contracted_black, b.merchant_green, b.merchant_black)
            totals[a, y] = b.total
    return comps, totals


def _simulate_chunk(
    seed: int,
    n_iterations: int,
    components: np.ndarray,
    bounds: Tuple[float, float, float],
) -> Tuple[np.ndarray, np.ndarray]:
    """Draw shocks for ``n_iterations`` and apply them to the base components.

    Returns ``(shocks, revenue)`` with shapes (n, assets, years, 3) and
    (n, assets, years). Module-level so it can run in a process pool.
    """
    rng = np.random.default_rng(seed)
    n_assets, n_years, _ = components.shape
    draws = rng.uniform(-1.0, 1.0, size=(n_iterations, n_assets, n_years, 3))
    shocks = draws * np.asarray(bounds, dtype=float)

    vol = 1.0 + shocks[..., 0] / 100.0
    green = 1.0 + shocks[..., 1] / 100.0
    black = 1.0 + shocks[..., 2] / 100.0

    cg = components[..., 0]
    cb = components[..., 1]
    mg = components[..., 2]
    mb = components[..., 3]
    revenue = cg * vol + cb * vol + mg * vol * green + mb * vol * black
    return shocks, revenue


def _chunk_sizes(iterations: int, chunk_size: int) -> List[int]:
    size = max(1, int(chunk_size))
    n_chunks = max(1, math.ceil(iterations / size))
    sizes = [size] * (n_chunks - 1)
    sizes.append(iterations - size * (n_chunks - 1))
    return sizes


def generate_scenarios(
    assets: Iterable[Asset],
    constants: Constants,
    prices: PriceProvider,
    iterations: int = DEFAULT_ITERATIONS,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
    executor: Optional[Executor] = None,
    chunk_size: int = 250,
    progress: bool = False,
    years: Optional[Sequence[int]] = None,
) -> List[Scenario]:
    """Generate Monte Carlo scenarios for every (iteration, asset, year).

    Parameters
    ----------
    assets : iterable of Asset
    constants : Constants
        Supplies the analysis window and the variation bounds.
    prices : PriceProvider
    iterations : int
        Number of draws per (asset, year).
    rng : numpy.random.Generator, optional
        Parent generator. When omitted, ``default_rng(seed)`` is used.
    seed : int, optional
        Seed for the default generator; ignored when ``rng`` is given.
    executor : concurrent.futures.Executor, optional
        Chunks are submitted here when given, otherwise run inline.
    chunk_size : int
        Iterations per chunk.
    progress : bool
        Show a tqdm bar over chunks.
    years : sequence of int, optional
        Restrict to these years instead of the full analysis window.

    Returns
    -------
    list of Scenario
        Ordered by iteration, then asset, then year. Iterations are numbered
        from 1.
    """
    asset_list = list(assets)
    year_list = list(years) if years is not None else list(constants.analysis_years)
    if not asset_list or not year_list or iterations <= 0:
        return []

    generator = rng if rng is not None else np.random.default_rng(seed)
    bounds = ShockBounds.from_constants(constants)
    bound_tuple = (bounds.volume_pct, bounds.green_pct, bounds.black_pct)

    components, base_totals = _base_components(asset_list, year_list, constants, prices)

    sizes = _chunk_sizes(iterations, chunk_size)
    child_seeds = generator.integers(0, 2**63 - 1, size=len(sizes))

    logger.debug(
        "Monte Carlo: %d iterations x %d assets x %d years in %d chunks (bounds %s)",
        iterations,
        len(asset_list),
        len(year_list),
        len(sizes),
        bound_tuple,
    )

    if executor is not None:
        futures = [
            executor.submit(_simulate_chunk, int(s), n, components, bound_tuple)
            for s, n in zip(child_seeds, sizes)
        ]
        results = [f.result() for f in tqdm(futures, desc="Scenarios", disable=not progress)]
    else:
        results = [
            _simulate_chunk(int(s), n, components, bound_tuple)
            for s, n in tqdm(list(zip(child_seeds, sizes)), desc="Scenarios", disable=not progress)
        ]

    scenarios: List[Scenario] = []
    iteration = 0
    for shocks, revenue in results:
        for i in range(revenue.shape[0]):
            iteration += 1
            for a, asset in enumerate(asset_list):
                for y, year in enumerate(year_list):
                    s = shocks[i, a, y]
                    scenarios.append(
                        Scenario(
                            iteration=iteration,
                            asset=asset.name,
                            year=year,
                            volume_shock_pct=float(s[0]),
                            green_price_shock_pct=float(s[1]),
                            black_price_shock_pct=float(s[2]),
                            revenue=float(revenue[i, a, y]),
                            base_revenue=float(base_totals[a, y]),
                        )
                    )
    return scenarios


def combine_scenarios(scenarios: Iterable[Scenario], year: int) -> List[CombinedScenario]:
    """Sum the i-th draw across assets for ``year``; shocks are averaged across assets."""
    grouped: Dict[int, List[Scenario]] = {}
    for s in scenarios:
        if s.year == year:
            grouped.setdefault(s.iteration, []).append(s)

    combined: List[CombinedScenario] = []
    for iteration in sorted(grouped):
        members = grouped[iteration]
        n = len(members)
        combined.append(
            CombinedScenario(
                iteration=iteration,
                revenue=sum(m.revenue for m in members),
                base_revenue=sum(m.base_revenue for m in members),
                volume_shock_pct=sum(m.volume_shock_pct for m in members) / n,
                green_price_shock_pct=sum(m.green_price_shock_pct for m in members) / n,
                black_price_shock_pct=sum(m.black_price_shock_pct for m in members) / n,
            )
        )
    return combined


def _empty_statistics() -> Dict[str, Any]:
    zero_changes = {"volume": 0.0, "green_price": 0.0, "black_price": 0.0}
    return {
        "base_case": 0.0,
        "p90": 0.0,
        "p50": 0.0,
        "p10": 0.0,
        "min": 0.0,
        "max": 0.0,
        "p90_changes": dict(zero_changes),
        "p50_changes": dict(zero_changes),
        "p10_changes": dict(zero_changes),
    }


def calculate_statistics(
    scenarios: Iterable[Scenario],
    year: int,
    base_case: Optional[float] = None,
) -> Dict[str, Any]:
    """Percentile statistics of combined portfolio revenue for ``year``.

    Keys: ``base_case``, ``p90`` (adverse), ``p50``, ``p10`` (favourable),
    ``min``, ``max`` and ``p90_changes`` / ``p50_changes`` / ``p10_changes``
    holding the averaged shocks of the scenario at each percentile.
    ``base_case`` defaults to the sum of the scenarios' base revenues.
    All zeros when there are no scenarios for the year.
    """
    combined = combine_scenarios(scenarios, year)
    if not combined:
        logger.warning("No Monte Carlo scenarios for %s; statistics are zero", year)
        return _empty_statistics()

    ordered = sorted(combined, key=lambda c: c.revenue)
    n = len(ordered)
    adverse = ordered[int(math.floor(n * ADVERSE_QUANTILE))]
    median = ordered[int(math.floor(n * MEDIAN_QUANTILE))]
    favorable = ordered[int(math.floor(n * FAVORABLE_QUANTILE))]

    return {
        "base_case": ordered[0].base_revenue if base_case is None else base_case,
        "p90": adverse.revenue,
        "p50": median.revenue,
        "p10": favorable.revenue,
        "min": ordered[0].revenue,
        "max": ordered[-1].revenue,
        "p90_changes": adverse.changes,
        "p50_changes": median.changes,
        "p10_changes": favorable.changes,
    }


def create_histogram(
    scenarios: Iterable[Scenario],
    year: int,
    bins: int = HISTOGRAM_BINS,
) -> List[Dict[str, float]]:
    """Equal-width histogram of combined portfolio revenue for ``year``.

    Each bin is ``{"revenue": midpoint, "frequency", "bin_start", "bin_end"}``.
    The maximum falls in the last bin. When every revenue is identical all
    scenarios land in the first bin.
    """
    revenues = [c.revenue for c in combine_scenarios(scenarios, year)]
    if not revenues:
        return []

    low = min(revenues)
    high = max(revenues)
    width = (high - low) / bins

    counts = [0] * bins
    for rev in revenues:
        if width > 0:
            index = min(int(math.floor((rev - low) / width)), bins - 1)
        else:
            index = 0
        counts[index] += 1

    return [
        {
            "revenue": low + (i + 0.5) * width,
            "frequency": counts[i],
            "bin_start": low + i * width,
            "bin_end": low + (i + 1) * width,
        }
        for i in range(bins)
    ]


def calculate_yearly_metrics(
    scenarios: Sequence[Scenario],
    year: int,
    assets: Iterable[Asset],
    constants: Constants,
    prices: PriceProvider,
) -> Optional[Dict[str, Any]]:
    """Risk summary for one year: statistics, deviations, range and stress table.

    Adds to :func:`calculate_statistics`:

    - ``p10_pct`` / ``p90_pct``: favourable / adverse deviation from base, %
    - ``range``: P10 - P90 and ``range_pct`` as % of base
    - ``stress_tests``: rows from :func:`renewport.stress.stress_test_table`
    - ``variations``: the bounds used

    Percentages are 0 when the base case is 0. Returns None when there are
    no scenarios.
    """
    if not scenarios:
        return None

    asset_list = list(assets)
    base_case = sum(
        calculate_asset_revenue(a, year, constants, prices).total for a in asset_list
    )
    stats = calculate_statistics(scenarios, year, base_case=base_case)

    def pct(value: float) -> float:
        return value / base_case * 100.0 if base_case else 0.0

    spread = stats["p10"] - stats["p90"]
    bounds = ShockBounds.from_constants(constants)

    metrics = dict(stats)
    metrics.update(
        {
            "range": spread,
            "p10_pct": pct(stats["p10"] - base_case),
            "p90_pct": pct(stats["p90"] - base_case),
            "range_pct": pct(spread),
            "stress_tests": stress_test_table(asset_list, year, constants, prices),
            "variations": {
                "volume": bounds.volume_pct,
                "green_price": bounds.green_pct,
                "black_price": bounds.black_pct,
            },
        }
    )
    return metrics


def scenarios_frame(scenarios: Iterable[Scenario]) -> pd.DataFrame:
    """Raw scenarios as a DataFrame, one row per (iteration, asset, year)."""
    rows = [
        (
            s.iteration,
            s.asset,
            s.year,
            s.volume_shock_pct,
            s.green_price_shock_pct,
            s.black_price_shock_pct,
            s.revenue,
            s.base_revenue,
        )
        for s in scenarios
    ]
    return pd.DataFrame(rows, columns=SCENARIO_COLUMNS)


__all__ = [
    "CombinedScenario",
    "generate_scenarios",
    "combine_scenarios",
    "calculate_statistics",
    "create_histogram",
    "calculate_yearly_metrics",
    "scenarios_frame",
]
