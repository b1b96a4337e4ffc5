import logging
import math
from typing import Dict, Iterable, List, Mapping

from crypto_compass.models import AllocationTemplate, CalculatedAllocation, MarketSnapshot

logger = logging.getLogger(__name__)


def parse_amount(raw) -> float:
    """User input -> dollars. Anything unusable (blank, text, <= 0) is 0."""
    if raw is None or isinstance(raw, bool):
        return 0.0
    try:
        amount = float(str(raw).strip().replace(",", "")) if isinstance(raw, str) else float(raw)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(amount) or amount <= 0:
        return 0.0
    return amount


def build_price_map(snapshots: Iterable[MarketSnapshot]) -> Dict[str, float]:
    # first hit wins: listings are ordered by market cap, so a symbol clash
    # resolves to the larger coin
    prices: Dict[str, float] = {}
    for s in snapshots:
        prices.setdefault(s.symbol.upper(), s.current_price)
    return prices


def calculate_allocations(amount, template: AllocationTemplate,
                          prices: Mapping[str, float]) -> List[CalculatedAllocation]:
    total = parse_amount(amount)
    if total <= 0 or not prices:
        return []

    if not math.isclose(template.total_percentage, 100.0, abs_tol=1e-9):
        logger.warning("Template %s sums to %.4f%%, not 100%%", template.key, template.total_percentage)

    out = []
    for target in template.allocations:
        dollars = total * target.percentage / 100.0
        price = prices.get(target.symbol.upper()) or 0.0
        if not (math.isfinite(price) and price > 0):
            price = 0.0
        quantity = dollars / price if price > 0 else 0.0
        out.append(CalculatedAllocation(
            symbol=target.symbol,
            name=target.name,
            percentage=target.percentage,
            color=target.color,
            amount=dollars,
            quantity=quantity,
            current_price=price,
        ))
    return out


def allocation_total(allocations: Iterable[CalculatedAllocation]) -> float:
    return math.fsum(a.amount for a in allocations)
