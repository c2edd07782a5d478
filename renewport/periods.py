"""Period descriptors for revenue queries.

A period is a year, a quarter or a month. Its ``fraction`` scales annual
generation (1, 0.25, 1/12) and its ``label`` is the key handed to the price
provider: ``"2025"``, ``"2025-Q3"`` or ``"2025-07"``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional

from finance.utils import as_int

logger = logging.getLogger(__name__)

_QUARTER_RE = re.compile(r"^\s*(\d{4})-Q([1-4])\s*$", re.IGNORECASE)
_MONTH_RE = re.compile(r"^\s*(\d{4})-(\d{1,2})(?:-\d{1,2})?\s*$")
_DAY_FIRST_RE = re.compile(r"^\s*(\d{1,2})/(\d{1,2})/(\d{4})\s*$")


@dataclass(frozen=True)
class Period:
    year: int
    quarter: Optional[int] = None
    month: Optional[int] = None

    @property
    def fraction(self) -> float:
        if self.month is not None:
            return 1.0 / 12.0
        if self.quarter is not None:
            return 0.25
        return 1.0

    @property
    def label(self) -> str:
        if self.month is not None:
            return f"{self.year}-{self.month:02d}"
        if self.quarter is not None:
            return f"{self.year}-Q{self.quarter}"
        return str(self.year)

    def __str__(self) -> str:
        return self.label


def parse_period(value: Any) -> Optional[Period]:
    """Parse a year, ``"YYYY-Qn"``, ``"YYYY-MM"`` or day-first ``"d/mm/yyyy"``.

    Returns None for anything unrecognised.

    >>> parse_period("2026-Q2").fraction
    0.25
    >>> parse_period("1/07/2026").label
    '2026-07'
    """
    if isinstance(value, Period):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return Period(year=value)

    text = str(value).strip()
    if text.isdigit() and len(text) == 4:
        return Period(year=int(text))

    m = _QUARTER_RE.match(text)
    if m:
        return Period(year=int(m.group(1)), quarter=int(m.group(2)))

    m = _MONTH_RE.match(text)
    if m:
        month = int(m.group(2))
        if 1 <= month <= 12:
            return Period(year=int(m.group(1)), month=month)

    m = _DAY_FIRST_RE.match(text)
    if m:
        month = int(m.group(2))
        if 1 <= month <= 12:
            return Period(year=int(m.group(3)), month=month)

    year = as_int(value)
    if year is not None and 1000 <= year <= 9999:
        return Period(year=year)

    logger.debug("Unrecognised period %r", value)
    return None


def iter_periods(start_year: int, end_year: int, granularity: str = "yearly") -> Iterator[Period]:
    """Yield periods covering ``start_year..end_year`` inclusive.

    ``"none"`` is treated as yearly.
    """
    for year in range(start_year, end_year + 1):
        if granularity == "quarterly":
            for q in range(1, 5):
                yield Period(year=year, quarter=q)
        elif granularity == "monthly":
            for m in range(1, 13):
                yield Period(year=year, month=m)
        else:
            yield Period(year=year)


def period_list(start_year: int, end_year: int, granularity: str = "yearly") -> List[Period]:
    return list(iter_periods(start_year, end_year, granularity))


__all__ = ["Period", "parse_period", "iter_periods", "period_list"]
