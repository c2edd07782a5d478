"""Merchant price providers.

The engine only needs a callable::

    price(technology, commodity, region, period) -> float | None

where ``period`` is a year, ``"YYYY-Qn"`` or ``"YYYY-MM"`` label. Prices are
real (reference-year) $/MWh; escalation to nominal happens in the engine.
``None`` means unresolved and contributes zero revenue.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple

import pandas as pd

from finance.utils import as_float
from renewport.periods import Period, parse_period

logger = logging.getLogger(__name__)

PriceProvider = Callable[[str, str, str, Any], Optional[float]]

_Key = Tuple[str, str, str, str]

REQUIRED_COLUMNS = ("profile", "type", "state", "time", "price")


def _norm(value: Any) -> str:
    return str(getattr(value, "value", value)).strip()


class MerchantPriceCurve:
    """Monthly merchant price curve with pre-computed quarterly and yearly means.

    Built from records with columns ``profile`` (technology profile, e.g. solar,
    wind, baseload), ``type`` (green / black), ``state`` (region), ``time``
    (month, any format :func:`parse_period` understands) and ``price``.
    """

    def __init__(self, frame: pd.DataFrame) -> None:
        missing = [c for c in REQUIRED_COLUMNS if c not in frame.columns]
        if missing:
            raise ValueError(f"Merchant price frame missing columns: {missing}")

        df = frame.loc[:, list(REQUIRED_COLUMNS)].copy()
        df["price"] = pd.to_numeric(df["price"], errors="coerce")
        periods = df["time"].map(parse_period)
        df["year"] = periods.map(lambda p: p.year if p is not None else None)
        df["month"] = periods.map(lambda p: p.month if p is not None else None)
        dropped = int(df["price"].isna().sum() + df["year"].isna().sum())
        df = df.dropna(subset=["price", "year"])
        if dropped:
            logger.debug("Dropped %d unusable merchant price rows", dropped)

        df["year"] = df["year"].astype(int)
        for col in ("profile", "type", "state"):
            df[col] = df[col].astype(str).str.strip()

        self._monthly: Dict[_Key, float] = {}
        self._quarterly: Dict[_Key, float] = {}
        self._yearly: Dict[_Key, float] = {}

        monthly = df.dropna(subset=["month"]).copy()
        if not monthly.empty:
            monthly["month"] = monthly["month"].astype(int)
            monthly["quarter"] = (monthly["month"] - 1) // 3 + 1
            for row in monthly.itertuples(index=False):
                label = Period(row.year, month=row.month).label
                self._monthly[(row.profile, row.type, row.state, label)] = float(row.price)

            q_means = monthly.groupby(["profile", "type", "state", "year", "quarter"])["price"].mean()
            for (profile, kind, state, year, quarter), price in q_means.items():
                label = Period(int(year), quarter=int(quarter)).label
                self._quarterly[(profile, kind, state, label)] = float(price)

        y_means = df.groupby(["profile", "type", "state", "year"])["price"].mean()
        for (profile, kind, state, year), price in y_means.items():
            self._yearly[(profile, kind, state, str(int(year)))] = float(price)

        logger.debug(
            "Merchant price curve: %d monthly, %d quarterly, %d yearly points",
            len(self._monthly),
            len(self._quarterly),
            len(self._yearly),
        )

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> "MerchantPriceCurve":
        return cls(pd.DataFrame(list(records), columns=list(REQUIRED_COLUMNS)))

    def __call__(self, technology: Any, commodity: Any, region: Any, period: Any) -> Optional[float]:
        p = parse_period(period)
        if p is None:
            return None
        key = (_norm(technology), _norm(commodity), _norm(region), p.label)
        if p.month is not None:
            return self._monthly.get(key)
        if p.quarter is not None:
            return self._quarterly.get(key)
        return self._yearly.get(key)

    def to_frame(self, granularity: str = "yearly") -> pd.DataFrame:
        """Long-format frame of the curve at the requested granularity."""
        table = {
            "monthly": self._monthly,
            "quarterly": self._quarterly,
        }.get(granularity, self._yearly)
        rows = [
            {"profile": k[0], "type": k[1], "state": k[2], "period": k[3], "price": v}
            for k, v in table.items()
        ]
        return pd.DataFrame(rows, columns=["profile", "type", "state", "period", "price"])


def flat_price_provider(prices: Mapping[Tuple[Any, ...], Any]) -> PriceProvider:
    """Provider from a mapping keyed by ``(technology, commodity, region)``.

    A 4-tuple key ``(technology, commodity, region, year)`` overrides the flat
    price for that year (any period within it).
    """
    flat: Dict[Tuple[str, str, str], float] = {}
    by_year: Dict[Tuple[str, str, str, int], float] = {}
    for key, value in prices.items():
        price = as_float(value)
        if price is None:
            continue
        if len(key) == 4:
            by_year[(_norm(key[0]), _norm(key[1]), _norm(key[2]), int(key[3]))] = price
        else:
            flat[(_norm(key[0]), _norm(key[1]), _norm(key[2]))] = price

    def provider(technology: Any, commodity: Any, region: Any, period: Any) -> Optional[float]:
        base = (_norm(technology), _norm(commodity), _norm(region))
        p = parse_period(period)
        if p is not None and base + (p.year,) in by_year:
            return by_year[base + (p.year,)]
        return flat.get(base)

    return provider


def no_prices(technology: Any, commodity: Any, region: Any, period: Any) -> Optional[float]:
    """Provider that resolves nothing (fully contracted or price-less runs)."""
    return None


__all__ = [
    "PriceProvider",
    "MerchantPriceCurve",
    "flat_price_provider",
    "no_prices",
]
