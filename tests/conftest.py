"""
Shared fixtures:
- Settings pointed at a fake CoinGecko base URL
- Canned /coins/markets and /market_chart payloads
- A helper that builds fake `requests` responses
"""

from unittest.mock import MagicMock

import pytest
import requests

from crypto_compass.config import Settings
from crypto_compass.models import MarketSnapshot

FAKE_BASE = "https://cg.test/api/v3"


def fake_response(status_code=200, payload=None, bad_json=False) -> MagicMock:
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    if bad_json:
        response.json.side_effect = ValueError("not json")
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def settings() -> Settings:
    return Settings(coingecko_base=FAKE_BASE, coingecko_api_key="", request_timeout=5)


@pytest.fixture
def market_rows() -> list:
    return [
        {
            "id": "bitcoin", "symbol": "btc", "name": "Bitcoin",
            "image": "https://assets.coingecko.com/coins/images/1/large/bitcoin.png",
            "current_price": 60000.0, "market_cap": 1.2e12, "market_cap_rank": 1,
            "price_change_percentage_24h": 1.5, "price_change_percentage_7d_in_currency": -2.25,
            "total_volume": 3.1e10, "circulating_supply": 19_700_000,
            "sparkline_in_7d": {"price": [59000.0 + i for i in range(12)]},
        },
        {
            "id": "ethereum", "symbol": "eth", "name": "Ethereum",
            "image": "", "current_price": 3000.0, "market_cap": 3.6e11, "market_cap_rank": 2,
            "price_change_percentage_24h": -0.8, "total_volume": 1.5e10,
            "circulating_supply": 120_000_000,
        },
        {
            "id": "solana", "symbol": "sol", "name": "Solana",
            "image": "", "current_price": 150.0, "market_cap": 7e10, "market_cap_rank": 5,
            "price_change_percentage_24h": 0.0, "price_change_percentage_7d_in_currency": 4.0,
            "total_volume": 2e9, "circulating_supply": None,
            "sparkline_in_7d": {"price": []},
        },
        {
            "id": "tether", "symbol": "usdt", "name": "Tether",
            "image": "", "current_price": 1.0, "market_cap": 1.1e11, "market_cap_rank": 3,
            "price_change_percentage_24h": 0.01, "total_volume": 5e10,
        },
    ]


@pytest.fixture
def snapshots(market_rows) -> list:
    return [MarketSnapshot.from_api(row) for row in market_rows]


@pytest.fixture
def chart_payload() -> dict:
    return {
        "prices": [[1_700_000_000_000, 100.0], [1_700_086_400_000, 120.0], [1_700_172_800_000, 150.0]],
        "market_caps": [],
        "total_volumes": [],
    }
