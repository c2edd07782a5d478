"""Portfolio data model: assets, contracts and the engine's computed records.

Assets and contracts arrive from an external persistence / UI layer as loose
mappings (camelCase keys, numbers as strings). ``from_dict`` coerces them once
into immutable records; the engine never writes back.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from finance.utils import as_float, as_int, is_blank, year_of

logger = logging.getLogger(__name__)


class Technology(str, Enum):
    SOLAR = "solar"
    WIND = "wind"
    STORAGE = "storage"

    @classmethod
    def parse(cls, value: Any) -> "Technology":
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        if text in ("battery", "bess"):
            return cls.STORAGE
        try:
            return cls(text)
        except ValueError:
            logger.debug("Unknown technology %r; treating as solar", value)
            return cls.SOLAR


class Commodity(str, Enum):
    GREEN = "green"
    BLACK = "black"


class ContractKind(str, Enum):
    GREEN = "green"
    BLACK = "black"
    BUNDLED = "bundled"
    FIXED = "fixed"
    # storage-only
    CFD = "cfd"
    TOLLING = "tolling"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "ContractKind":
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower().replace("_", "-")
        aliases = {
            "energy": cls.BLACK,
            "fixed-revenue": cls.FIXED,
            "fixed revenue": cls.FIXED,
        }
        if text in aliases:
            return aliases[text]
        try:
            return cls(text)
        except ValueError:
            return cls.UNKNOWN


def _pick(d: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in d and not is_blank(d[key]):
            return d[key]
    return None


@dataclass(frozen=True)
class Contract:
    """A sale contract over part of an asset's output.

    Prices are per MWh except for ``fixed`` contracts, whose strike is an
    annual amount in $M. Percentages are 0-100.
    """

    kind: ContractKind
    start_year: Optional[int]
    end_year: Optional[int]
    buyers_pct: float = 0.0
    strike_price: float = 0.0
    green_price: float = 0.0
    black_price: float = 0.0
    indexation_pct: float = 0.0
    floor: Optional[float] = None
    counterparty: str = ""

    def is_active(self, year: int) -> bool:
        """Inclusive year-range overlap test on start/end dates."""
        if self.start_year is None or self.end_year is None:
            return False
        return self.start_year <= year <= self.end_year

    def years_since_start(self, year: int) -> int:
        return year - (self.start_year if self.start_year is not None else year)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Contract":
        has_floor = _pick(d, "has_floor", "hasFloor")
        floor_raw = _pick(d, "floor", "floor_value", "floorValue")
        floor = None
        if has_floor is None or (has_floor and str(has_floor).lower() != "false"):
            floor = as_float(floor_raw)

        return cls(
            kind=ContractKind.parse(_pick(d, "kind", "type")),
            start_year=year_of(_pick(d, "start_year", "start_date", "startDate")),
            end_year=year_of(_pick(d, "end_year", "end_date", "endDate")),
            buyers_pct=as_float(_pick(d, "buyers_pct", "buyersPercentage"), 0.0),
            strike_price=as_float(_pick(d, "strike_price", "strikePrice"), 0.0),
            green_price=as_float(_pick(d, "green_price", "greenPrice"), 0.0),
            black_price=as_float(
                _pick(d, "black_price", "blackPrice", "EnergyPrice", "energyPrice"), 0.0
            ),
            indexation_pct=as_float(_pick(d, "indexation_pct", "indexation"), 0.0),
            floor=floor,
            counterparty=str(_pick(d, "counterparty") or ""),
        )


def _quarterly_overrides(d: Mapping[str, Any]) -> Tuple[Optional[float], ...]:
    raw = _pick(d, "quarterly_capacity_factors", "quarterlyCapacityFactors")
    if isinstance(raw, Mapping):
        values = [_pick(raw, f"q{q}", f"Q{q}") for q in range(1, 5)]
    elif isinstance(raw, (list, tuple)):
        values = list(raw[:4]) + [None] * (4 - len(raw[:4]))
    else:
        # Legacy flat keys as stored by the asset form.
        values = [
            _pick(d, f"qualrtyCapacityFactor_q{q}", f"quarterlyCapacityFactor_q{q}")
            for q in range(1, 5)
        ]
    return tuple(as_float(v) for v in values)


@dataclass(frozen=True)
class Asset:
    """A generation or storage asset and the contracts it owns.

    ``quarterly_capacity_factors`` are percentages (28 = 28 %), matching how
    they are entered; the constants tables hold decimals. ``volume_loss_pct``
    and ``degradation_pct`` stay None when not supplied so that the documented
    defaults apply.
    """

    name: str
    technology: Technology
    region: str
    capacity_mw: float
    start_year: Optional[int]
    asset_life_years: Optional[int] = None
    volume_loss_pct: Optional[float] = None
    degradation_pct: Optional[float] = None
    quarterly_capacity_factors: Tuple[Optional[float], ...] = (None, None, None, None)
    volume_mwh: float = 0.0
    contracts: Tuple[Contract, ...] = field(default_factory=tuple)

    def quarterly_override(self, quarter: int) -> Optional[float]:
        if 1 <= quarter <= 4:
            return self.quarterly_capacity_factors[quarter - 1]
        return None

    def is_operating(self, year: int) -> bool:
        return self.start_year is None or year >= self.start_year

    def active_contracts(self, year: int) -> List[Contract]:
        return [c for c in self.contracts if c.is_active(year)]

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Asset":
        contracts = tuple(Contract.from_dict(c) for c in (d.get("contracts") or ()))
        return cls(
            name=str(_pick(d, "name", "id") or ""),
            technology=Technology.parse(_pick(d, "technology", "type")),
            region=str(_pick(d, "region", "state") or ""),
            capacity_mw=as_float(_pick(d, "capacity_mw", "capacity"), 0.0),
            start_year=year_of(_pick(d, "start_year", "start_date", "assetStartDate")),
            asset_life_years=as_int(_pick(d, "asset_life_years", "assetLife")),
            volume_loss_pct=as_float(
                _pick(d, "volume_loss_pct", "volumeLossAdjustment")
            ),
            degradation_pct=as_float(_pick(d, "degradation_pct", "annualDegradation")),
            quarterly_capacity_factors=_quarterly_overrides(d),
            volume_mwh=as_float(_pick(d, "volume_mwh", "volume"), 0.0),
            contracts=contracts,
        )


def assets_from_config(raw: Any) -> List[Asset]:
    """Build assets from a list or a name-keyed mapping of asset dicts."""
    if isinstance(raw, Mapping):
        items: Iterable[Any] = raw.values()
    else:
        items = raw or []
    return [a if isinstance(a, Asset) else Asset.from_dict(a) for a in items]


@dataclass(frozen=True)
class RevenueBreakdown:
    """Revenue of one asset in one period, in $M.

    Created fresh per query and never mutated; stress transforms return
    new instances.
    """

    asset: str
    period: str
    year: int
    generation: float = 0.0
    contracted_green: float = 0.0
    contracted_black: float = 0.0
    merchant_green: float = 0.0
    merchant_black: float = 0.0
    green_percentage: float = 0.0
    black_percentage: float = 0.0

    @property
    def total(self) -> float:
        return (
            self.contracted_green
            + self.contracted_black
            + self.merchant_green
            + self.merchant_black
        )

    @property
    def contracted(self) -> float:
        return self.contracted_green + self.contracted_black

    @property
    def merchant(self) -> float:
        return self.merchant_green + self.merchant_black

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["total"] = self.total
        return out

    @classmethod
    def zero(cls, asset: str, period: str, year: int) -> "RevenueBreakdown":
        return cls(asset=asset, period=period, year=year)


@dataclass(frozen=True)
class Scenario:
    """One Monte Carlo draw for an (asset, year). Shocks are percentages."""

    iteration: int
    asset: str
    year: int
    volume_shock_pct: float
    green_price_shock_pct: float
    black_price_shock_pct: float
    revenue: float
    base_revenue: float


@dataclass(frozen=True)
class NPVRow:
    year_index: int
    year: int
    contract_revenue: float
    merchant_revenue: float
    fixed_costs: float
    variable_costs: float
    terminal_value: float
    net_cash_flow: float
    discount_rate: float
    present_value: float

    @property
    def total_revenue(self) -> float:
        return self.contract_revenue + self.merchant_revenue

    @property
    def total_costs(self) -> float:
        return self.fixed_costs + self.variable_costs


__all__ = [
    "Technology",
    "Commodity",
    "ContractKind",
    "Contract",
    "Asset",
    "assets_from_config",
    "RevenueBreakdown",
    "Scenario",
    "NPVRow",
]
