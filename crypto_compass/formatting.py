"""
Display formatting for prices, market caps and percentage changes.

All helpers are total over floats: NaN and infinities render as PLACEHOLDER
instead of raising, so a bad upstream field never breaks a table.
"""
import math
from typing import Optional

PLACEHOLDER = "—"


def _finite(value) -> bool:
    try:
        return math.isfinite(value)
    except TypeError:
        return False


def _dollars(body: str, negative: bool) -> str:
    return f"-${body}" if negative else f"${body}"


def format_price(price: float) -> str:
    """$1,234.57 for prices >= 1, 4 to 6 decimals below that."""
    if not _finite(price):
        return PLACEHOLDER
    if price >= 1:
        return f"${price:,.2f}"
    body = f"{abs(price):,.6f}"
    # trim trailing zeros, but keep at least four decimals
    whole, frac = body.split(".")
    frac = frac.rstrip("0").ljust(4, "0")
    negative = price < 0 and float(body) != 0
    return _dollars(f"{whole}.{frac}", negative)


def format_market_cap(value: float) -> str:
    if not _finite(value):
        return PLACEHOLDER
    if value >= 1e12:
        return f"${value / 1e12:.2f}T"
    if value >= 1e9:
        return f"${value / 1e9:.2f}B"
    if value >= 1e6:
        return f"${value / 1e6:.2f}M"
    return _dollars(f"{abs(value):,.0f}", value < 0 and round(value) != 0)


def format_percentage(value: Optional[float]) -> str:
    if value is None or not _finite(value):
        return PLACEHOLDER
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.2f}%"


def format_currency(value: float) -> str:
    """Compact dollar amount used by the simulator cards."""
    if not _finite(value):
        return PLACEHOLDER
    magnitude = abs(value)
    if magnitude >= 1e6:
        body = f"{magnitude / 1e6:.2f}M"
    else:
        body = f"{magnitude:,.2f}"
    return _dollars(body, value < 0 and body.strip("0.,M") != "")


def format_signed_currency(value: float, positive: bool) -> str:
    """Prefix +/- from `positive` so the sign matches the caller's indicator."""
    if not _finite(value):
        return PLACEHOLDER
    return ("+" if positive else "-") + format_currency(abs(value))


def format_units(units: float, symbol: str = "") -> str:
    if not _finite(units):
        return PLACEHOLDER
    text = f"{units:.6f}" if units < 1 else f"{units:,.4f}"
    return f"{text} {symbol}".strip()
