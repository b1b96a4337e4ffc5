from types import MappingProxyType
from typing import Mapping, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from crypto_compass.models import AllocationTemplate, CoinOption, TimeOption
from crypto_compass.models import TargetAllocation as _T

PORTFOLIO_TEMPLATES: Mapping[str, AllocationTemplate] = MappingProxyType({
    "conservative": AllocationTemplate(
        key="conservative", name="Conservative", risk="Low Risk",
        description="Low risk, stable assets focus",
        allocations=(
            _T("BTC",  "Bitcoin",     60, "#F7931A"),
            _T("ETH",  "Ethereum",    30, "#627EEA"),
            _T("USDT", "Stablecoins", 10, "#26A17B"),
        ),
    ),
    "balanced": AllocationTemplate(
        key="balanced", name="Balanced", risk="Medium Risk",
        description="Moderate risk, diversified portfolio",
        allocations=(
            _T("BTC",  "Bitcoin",  40, "#F7931A"),
            _T("ETH",  "Ethereum", 30, "#627EEA"),
            _T("SOL",  "Solana",   20, "#14F195"),
            _T("USDT", "Other",    10, "#8B5CF6"),
        ),
    ),
    "aggressive": AllocationTemplate(
        key="aggressive", name="Aggressive", risk="High Risk",
        description="High risk, maximum growth potential",
        allocations=(
            _T("BTC", "Bitcoin",  30, "#F7931A"),
            _T("ETH", "Ethereum", 25, "#627EEA"),
            _T("SOL", "Solana",   25, "#14F195"),
            _T("BNB", "Altcoins", 20, "#F3BA2F"),
        ),
    ),
})
DEFAULT_TEMPLATE = "balanced"

COIN_OPTIONS = (
    CoinOption("bitcoin",     "BTC",  "Bitcoin",  "#F7931A"),
    CoinOption("ethereum",    "ETH",  "Ethereum", "#627EEA"),
    CoinOption("solana",      "SOL",  "Solana",   "#14F195"),
    CoinOption("binancecoin", "BNB",  "BNB",      "#F3BA2F"),
    CoinOption("ripple",      "XRP",  "XRP",      "#23292F"),
    CoinOption("cardano",     "ADA",  "Cardano",  "#0033AD"),
    CoinOption("dogecoin",    "DOGE", "Dogecoin", "#C2A633"),
)

TIME_OPTIONS = (
    TimeOption("1 month", 30),
    TimeOption("3 months", 90),
    TimeOption("6 months", 180),
    TimeOption("1 year", 365),
    TimeOption("2 years", 730),
)
DEFAULT_TIME_INDEX = 2  # 6 months

BUILDER_AMOUNT_PRESETS = (500, 1000, 5000, 10000)
SIMULATOR_AMOUNT_PRESETS = (100, 500, 1000, 5000, 10000)
LISTING_SIZES = (10, 20, 50)

# the builder looks prices up in a wider listing than the table shows
PRICE_MAP_SIZE = 50


class Settings(BaseSettings):
    """Runtime settings; env vars are prefixed with CRYPTO_COMPASS_."""

    model_config = SettingsConfigDict(
        env_prefix="CRYPTO_COMPASS_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    coingecko_base: str = "https://api.coingecko.com/api/v3"
    coingecko_api_key: str = ""
    request_timeout: float = 25.0

    price_refresh_seconds: int = 60
    listing_refresh_seconds: int = 300

    relay_cache_seconds: int = 60
    relay_stale_seconds: int = 300
    relay_host: str = "127.0.0.1"
    relay_port: int = 8001

    log_level: str = "INFO"

    @classmethod
    def from_secrets(cls, secrets: Optional[Mapping] = None) -> "Settings":
        """Build settings, letting Streamlit-style secrets override the env."""
        overrides = {}
        for key in ("COINGECKO_API_KEY", "COINGECKO_BASE"):
            try:
                value = secrets.get(key) if secrets is not None else None
            except FileNotFoundError:
                # st.secrets raises when no secrets.toml exists
                value = None
            if value:
                overrides[key.lower()] = value
        return cls(**overrides)
