import logging
import math
from typing import Dict, List, Sequence

from crypto_compass.config import Settings
from crypto_compass.engine import fetch_market_chart
from crypto_compass.errors import InsufficientData, InvalidAmount, InvalidPrice
from crypto_compass.models import PriceSample, SimulationResult

logger = logging.getLogger(__name__)


def parse_samples(payload: Dict) -> List[PriceSample]:
    """[[ts_ms, price], ...] from a market_chart payload; malformed pairs are dropped."""
    out = []
    for pair in (payload or {}).get("prices") or []:
        try:
            ts, price = pair[0], pair[1]
            out.append(PriceSample(int(ts), float(price)))
        except (TypeError, ValueError, IndexError, KeyError):
            continue
    out.sort(key=lambda p: p.timestamp)
    return out


def simulate_investment(samples: Sequence[PriceSample], amount: float) -> SimulationResult:
    """
    Buy-and-hold from the first sample to the last.

    Raises InsufficientData for fewer than two samples, InvalidAmount for a
    non-positive amount and InvalidPrice when the starting price is not a
    positive number.
    """
    if not samples or len(samples) < 2:
        raise InsufficientData(len(samples or []))
    if amount is None or not math.isfinite(amount) or amount <= 0:
        raise InvalidAmount(amount)

    initial_price = samples[0].price
    current_price = samples[-1].price
    if not math.isfinite(initial_price) or initial_price <= 0:
        raise InvalidPrice(initial_price)
    if not math.isfinite(current_price) or current_price < 0:
        raise InvalidPrice(current_price)

    units = amount / initial_price
    if current_price == initial_price:
        # keeps the profit sign tied to the price comparison
        current_value, profit = float(amount), 0.0
    else:
        current_value = units * current_price
        profit = current_value - amount
    return SimulationResult(
        initial_price=initial_price,
        current_price=current_price,
        initial_value=amount,
        current_value=current_value,
        profit=profit,
        profit_percent=profit / amount * 100.0,
        units_owned=units,
    )


def run_simulation(cid: str, days: int, amount: float, settings: Settings):
    """Refetch the whole window for `cid` and simulate; returns (samples, result)."""
    samples = parse_samples(fetch_market_chart(cid, days, settings))
    logger.debug("Simulating %s over %s days with %d samples", cid, days, len(samples))
    return samples, simulate_investment(samples, amount)
