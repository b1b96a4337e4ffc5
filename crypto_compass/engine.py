import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
import requests

from crypto_compass.config import Settings
from crypto_compass.errors import FetchFailure
from crypto_compass.models import MarketSnapshot, PriceSample

logger = logging.getLogger(__name__)

MARKET_COLUMNS = [
    "Rank", "Name", "Symbol", "Price", "Change_24h", "Change_7d",
    "MktCap", "Vol24h", "Last_7d",
]


def _cg_base_and_headers(settings: Settings):
    headers = {"Accept": "application/json"}
    if settings.coingecko_api_key:
        headers["x-cg-pro-api-key"] = settings.coingecko_api_key
    return settings.coingecko_base.rstrip("/"), headers


def _get_json(url: str, params: Dict, settings: Settings):
    _, headers = _cg_base_and_headers(settings)
    try:
        r = requests.get(url, params=params, headers=headers, timeout=settings.request_timeout)
    except requests.RequestException as e:
        logger.warning("CoinGecko request to %s failed: %s", url, e)
        raise FetchFailure() from e
    if r.status_code != 200:
        logger.warning("CoinGecko returned %s for %s", r.status_code, url)
        raise FetchFailure(f"CoinGecko API error: {r.status_code}", status=r.status_code)
    try:
        return r.json()
    except ValueError as e:
        logger.warning("CoinGecko sent an undecodable body for %s", url)
        raise FetchFailure() from e


def fetch_markets_raw(limit: int, settings: Settings) -> List[Dict]:
    """Top `limit` coins by market cap, as the raw /coins/markets rows."""
    base, _ = _cg_base_and_headers(settings)
    params = {
        "vs_currency": "usd",
        "order": "market_cap_desc",
        "per_page": limit,
        "page": 1,
        "sparkline": "true",
        "price_change_percentage": "24h,7d",
    }
    data = _get_json(f"{base}/coins/markets", params, settings)
    if not isinstance(data, list):
        raise FetchFailure("Unexpected response from CoinGecko")
    logger.debug("Fetched %d market rows (limit=%s)", len(data), limit)
    return data


def fetch_markets(limit: int, settings: Settings) -> List[MarketSnapshot]:
    rows = fetch_markets_raw(limit, settings)
    out = []
    for item in rows:
        if not isinstance(item, dict):
            logger.warning("Skipping non-object market row: %r", item)
            continue
        try:
            out.append(MarketSnapshot.from_api(item))
        except (AttributeError, KeyError, TypeError, ValueError):
            logger.warning("Skipping malformed market row: %r", item.get("id"))
    return out


def fetch_market_chart(cid: str, days: int, settings: Settings) -> Dict:
    """
    Full /market_chart payload for one coin over the last `days` days.
    Always a fresh fetch of the whole window.
    """
    base, _ = _cg_base_and_headers(settings)
    params = {"vs_currency": "usd", "days": days}
    data = _get_json(f"{base}/coins/{cid}/market_chart", params, settings)
    if not isinstance(data, dict):
        raise FetchFailure("Unexpected response from CoinGecko")
    return data


def downsample(prices: Sequence[float], step: int = 4) -> List[float]:
    """Every `step`-th point, enough for a sparkline."""
    if not prices:
        return []
    return np.asarray(prices, dtype=float)[::step].tolist()


def market_frame(snapshots: Sequence[MarketSnapshot]) -> pd.DataFrame:
    records = []
    for s in snapshots:
        records.append({
            "Rank": s.rank,
            "Name": s.name,
            "Symbol": s.symbol,
            "Price": s.current_price,
            "Change_24h": s.price_change_24h if s.price_change_24h is not None else np.nan,
            "Change_7d": s.price_change_7d if s.price_change_7d is not None else np.nan,
            "MktCap": s.market_cap,
            "Vol24h": s.total_volume,
            "Last_7d": downsample(s.sparkline_7d),
        })
    return pd.DataFrame(records, columns=MARKET_COLUMNS)


def history_frame(samples: Sequence[PriceSample]) -> pd.DataFrame:
    df = pd.DataFrame(
        {"Date": [datetime.fromtimestamp(p.timestamp / 1000, tz=timezone.utc) for p in samples],
         "Price": [p.price for p in samples]}
    )
    return df


def last_updated_label(ts: Optional[datetime]) -> str:
    if ts is None:
        return ""
    return f"Updated: {ts.strftime('%H:%M:%S')}"
