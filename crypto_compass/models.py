from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


def _opt_float(value) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class MarketSnapshot:
    """One row of the /coins/markets listing."""
    id: str
    symbol: str
    name: str
    current_price: float
    market_cap: float
    rank: int
    total_volume: float
    price_change_24h: Optional[float] = None
    price_change_7d: Optional[float] = None
    circulating_supply: Optional[float] = None
    image: str = ""
    sparkline_7d: Tuple[float, ...] = field(default_factory=tuple)

    @classmethod
    def from_api(cls, item: Dict) -> "MarketSnapshot":
        spark = (item.get("sparkline_in_7d") or {}).get("price") or []
        return cls(
            id=item["id"],
            symbol=str(item.get("symbol", "")).upper(),
            name=item.get("name", ""),
            current_price=_opt_float(item.get("current_price")) or 0.0,
            market_cap=_opt_float(item.get("market_cap")) or 0.0,
            rank=int(item.get("market_cap_rank") or 0),
            total_volume=_opt_float(item.get("total_volume")) or 0.0,
            price_change_24h=_opt_float(item.get("price_change_percentage_24h")),
            price_change_7d=_opt_float(item.get("price_change_percentage_7d_in_currency")),
            circulating_supply=_opt_float(item.get("circulating_supply")),
            image=item.get("image") or "",
            sparkline_7d=tuple(float(p) for p in spark if p is not None),
        )


@dataclass(frozen=True)
class TargetAllocation:
    symbol: str
    name: str
    percentage: float
    color: str


@dataclass(frozen=True)
class AllocationTemplate:
    key: str
    name: str
    description: str
    risk: str
    allocations: Tuple[TargetAllocation, ...]

    @property
    def total_percentage(self) -> float:
        return sum(a.percentage for a in self.allocations)


@dataclass(frozen=True)
class CalculatedAllocation:
    symbol: str
    name: str
    percentage: float
    color: str
    amount: float
    quantity: float
    # 0.0 means the price is unknown, not that the asset is free
    current_price: float

    @property
    def has_price(self) -> bool:
        return self.current_price > 0


@dataclass(frozen=True)
class CoinOption:
    id: str
    symbol: str
    name: str
    color: str


@dataclass(frozen=True)
class TimeOption:
    label: str
    days: int


@dataclass(frozen=True)
class PriceSample:
    timestamp: int  # ms since epoch, as returned by CoinGecko
    price: float


@dataclass(frozen=True)
class SimulationResult:
    initial_price: float
    current_price: float
    initial_value: float
    current_value: float
    profit: float
    profit_percent: float
    units_owned: float

    @property
    def is_profit(self) -> bool:
        # single source for every up/down indicator
        return self.current_price >= self.initial_price

    @property
    def price_change_percent(self) -> float:
        return (self.current_price - self.initial_price) / self.initial_price * 100.0

