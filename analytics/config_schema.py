from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from finance.utils import is_blank

ValidatorFn = Callable[[Any], bool]
PathSpec = Tuple[str, ...]


@dataclass(frozen=True)
class ParameterSpec:
    """
    Canonical description of a config parameter consumed by an engine module.

    Attributes
    ----------
    module:
        Logical owner (e.g. "constants", "risk", "valuation").
    name:
        Logical key ("escalation_pct", "volume_variation_pct", ...).
    paths:
        Candidate config paths tried in order. Each path is a tuple of
        keys, e.g. ("risk", "volume_variation_pct") or ("volumeVariation",).
    default:
        Value returned when no candidate path resolves. Defaults live in
        renewport.defaults; specs reference them rather than restating.
    required:
        True = the host must supply it (checked by schema_guard only;
        the engine itself always falls back to ``default``).
    severity:
        "error" or "warning".
    description:
        Human-friendly explanation used in error messages / schema dumps.
    validator:
        Optional predicate that returns True when the resolved value is
        considered valid.
    """

    module: str
    name: str
    paths: Sequence[PathSpec]
    default: Any = None
    required: bool = False
    severity: str = "error"
    description: str = ""
    validator: Optional[ValidatorFn] = field(default=None)


# Global registry keyed by module name
_REGISTRY: Dict[str, Dict[str, ParameterSpec]] = {}


def register_parameters(
    module: str,
    specs: Iterable[ParameterSpec],
) -> None:
    """
    Register ParameterSpec objects for a module.

    Intended usage is at module import time, e.g.:

        _RISK_SPECS = [
            ParameterSpec(...),
            ...
        ]
        register_parameters("risk", _RISK_SPECS)

    Re-registering a name replaces the previous spec, so module reloads
    do not duplicate entries.
    """
    bucket = _REGISTRY.setdefault(module, {})
    for spec in specs:
        bucket[spec.name] = spec


def get_parameters(module: Optional[str] = None) -> List[ParameterSpec]:
    """
    Return all registered specs, optionally filtered by module.
    """
    if module is None:
        out: List[ParameterSpec] = []
        for specs in _REGISTRY.values():
            out.extend(specs.values())
        return out
    return list(_REGISTRY.get(module, {}).values())


def get_parameter(module: str, name: str) -> Optional[ParameterSpec]:
    return _REGISTRY.get(module, {}).get(name)


def _walk(container: Mapping[str, Any], path: PathSpec) -> Any:
    current: Any = container
    for seg in path:
        if not isinstance(current, Mapping) or seg not in current:
            return None
        current = current[seg]
    return current


def lookup_first(config: Mapping[str, Any], paths: Sequence[PathSpec]) -> Any:
    """Return the first non-blank value found along ``paths``, else None."""
    for path in paths:
        if not path:
            continue
        val = _walk(config, path)
        if not is_blank(val):
            return val
    return None


def resolve_parameter(config: Mapping[str, Any], spec: ParameterSpec) -> Any:
    """Resolve ``spec`` against ``config``, falling back to its default."""
    val = lookup_first(config, spec.paths)
    if val is None:
        return spec.default
    return val


def resolve_module(config: Mapping[str, Any], module: str) -> Dict[str, Any]:
    """Resolve every registered parameter of ``module`` into a flat dict."""
    return {spec.name: resolve_parameter(config, spec) for spec in get_parameters(module)}


def build_schema_dataframe() -> pd.DataFrame:
    """
    Flatten the registry into a DataFrame for inspection/debugging.

    Columns:
      - module
      - name
      - path_candidates (list[str])
      - default
      - required
      - severity
      - description
    """
    columns = [
        "module",
        "name",
        "path_candidates",
        "default",
        "required",
        "severity",
        "description",
    ]
    rows: List[Dict[str, Any]] = []

    for spec in get_parameters():
        rows.append(
            {
                "module": spec.module,
                "name": spec.name,
                "path_candidates": [".".join(p) for p in spec.paths],
                "default": spec.default,
                "required": spec.required,
                "severity": spec.severity,
                "description": spec.description,
            }
        )

    if not rows:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame(rows, columns=columns)
    df = df.sort_values(["module", "name"]).reset_index(drop=True)
    return df


__all__ = [
    "ParameterSpec",
    "register_parameters",
    "get_parameters",
    "get_parameter",
    "lookup_first",
    "resolve_parameter",
    "resolve_module",
    "build_schema_dataframe",
    "ValidatorFn",
    "PathSpec",
]
