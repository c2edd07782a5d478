"""Numeric coercion helpers shared by the revenue, risk and valuation layers.

Inputs to the engine come from forms, spreadsheets and JSON documents, so
numbers routinely arrive as strings, blanks or ``None``. These helpers coerce
them once, at the edge, and never raise.
"""
from typing import Any, Dict, Iterable, Optional


def get_nested(d: Dict[str, Any], path: Iterable[str], default: Any = None) -> Any:
    """Safely get nested dict value using a sequence of keys."""
    result: Any = d
    for key in path:
        if not isinstance(result, dict):
            return default
        if key not in result:
            return default
        result = result[key]
    return result


def is_blank(v: Any) -> bool:
    """True for ``None`` and empty / whitespace-only strings."""
    if v is None:
        return True
    return isinstance(v, str) and not v.strip()


def as_float(v: Any, default: Optional[float] = None) -> Optional[float]:
    """Safely convert value to float with fallback.

    Blank strings and NaN are treated as missing.
    """
    if is_blank(v):
        return default
    try:
        out = float(v)
    except (ValueError, TypeError):
        return default
    if out != out:
        return default
    return out


def as_int(v: Any, default: Optional[int] = None) -> Optional[int]:
    """Safely convert value to int with fallback."""
    if is_blank(v):
        return default
    try:
        return int(v)
    except (ValueError, TypeError):
        f = as_float(v)
        if f is None:
            return default
        return int(f)


def year_of(value: Any) -> Optional[int]:
    """Extract a calendar year from an int, date/datetime or date-like string.

    Accepts ``2025``, ``"2025"``, ``"2025-07-01"``, ``"2025-07-01T00:00:00Z"``
    and day-first ``"1/07/2025"``. Returns None when nothing parses.
    """
    if value is None:
        return None
    if hasattr(value, "year") and not isinstance(value, (int, float, str)):
        return int(value.year)
    if isinstance(value, (int, float)):
        return int(value)
    text = str(value).strip()
    if not text:
        return None
    if "/" in text:
        parts = text.split("/")
        return as_int(parts[-1][:4])
    return as_int(text[:4])


__all__ = [
    "get_nested",
    "is_blank",
    "as_float",
    "as_int",
    "year_of",
]
