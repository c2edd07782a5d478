"""
Schema guard for portfolio configs.

This module sits on top of analytics.config_schema and:
  * lazily imports the modules that own parameters (constants, portfolio
    loader) so that their registration side-effects run; and
  * validates a raw config dict against every registered parameter spec.

It is a host-side check. The engine itself never raises on missing data;
callers that want strict input (the orchestrator, CLI) run this first.

Usage::

    from analytics.schema_guard import validate_portfolio_config

    validate_portfolio_config(
        raw_config=config,
        config_path="scenarios/example_portfolio.yaml",
        modules=["portfolio", "constants"],
    )
"""

from __future__ import annotations

import importlib
import logging
from typing import Any, Dict, List, Mapping, Sequence

from analytics.config_schema import get_parameters, lookup_first

logger = logging.getLogger(__name__)

DEFAULT_MODULES = ("portfolio", "constants")


class ConfigValidationError(RuntimeError):
    """Raised when a YAML / JSON portfolio config is missing required fields."""


# Logical module name -> import path that registers its parameters
_MODULE_IMPORTS: Dict[str, str] = {
    "constants": "renewport.constants",
    "portfolio": "analytics.portfolio_loader",
}


def _ensure_module_registered(name: str) -> None:
    """
    Import the module owning ``name`` so its register_parameters call has run.

    Unknown names are a no-op.
    """
    module_path = _MODULE_IMPORTS.get(name)
    if not module_path:
        return
    importlib.import_module(module_path)


def validate_portfolio_config(
    raw_config: Mapping[str, Any],
    config_path: str,
    modules: Sequence[str] = DEFAULT_MODULES,
) -> None:
    """
    Validate a raw portfolio config against the registered parameter specs.

    Only ``severity == "error"`` specs are enforced. A spec fails when it is
    required and no candidate path resolves, or when its validator rejects
    the resolved value. Warning-severity failures are logged.

    Raises:
        ConfigValidationError: listing every failing field with its paths.
    """
    for m in modules:
        _ensure_module_registered(m)

    specs = []
    for m in modules:
        specs.extend(get_parameters(m))

    if not specs:
        return

    missing: List[str] = []
    for spec in specs:
        val = lookup_first(raw_config, spec.paths)
        ok = True

        if spec.required and val is None:
            ok = False

        if ok and val is not None and spec.validator is not None:
            try:
                ok = bool(spec.validator(val))
            except (TypeError, ValueError):
                ok = False

        if ok:
            continue

        path_labels = [".".join(p) for p in spec.paths] or ["<no paths registered>"]
        label = f"{spec.name} (paths: {', '.join(path_labels)})"
        if str(spec.severity).lower() == "error":
            missing.append(label)
        else:
            logger.warning("Config '%s': questionable value for %s", config_path, label)

    if missing:
        details = "; ".join(sorted(missing))
        raise ConfigValidationError(
            f"Config '{config_path}' is missing or has invalid required fields: {details}"
        )


__all__ = [
    "ConfigValidationError",
    "DEFAULT_MODULES",
    "validate_portfolio_config",
]
