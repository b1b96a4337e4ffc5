"""Pass-through relay for the market listing: GET /api/prices."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse

from crypto_compass.config import Settings
from crypto_compass.engine import fetch_markets_raw
from crypto_compass.errors import FetchFailure
from crypto_compass.logging_config import setup_logging

logger = logging.getLogger(__name__)

_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the current settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(get_settings())
    yield


app = FastAPI(
    title="CryptoCompass relay",
    description="Cached pass-through to the CoinGecko market listing",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(FetchFailure)
async def fetch_failure_handler(request: Request, exc: FetchFailure) -> JSONResponse:
    # never leak the upstream error to clients
    logger.error("Error fetching from CoinGecko: %s", exc.message)
    return JSONResponse(status_code=500, content={"error": "Failed to fetch cryptocurrency data"})


@app.get("/api/prices")
def get_prices(
    limit: int = Query(10, ge=1, le=250, description="Number of coins, ranked by market cap"),
    settings: Settings = Depends(get_settings),
):
    rows = fetch_markets_raw(limit, settings)
    cache = f"public, s-maxage={settings.relay_cache_seconds}, stale-while-revalidate={settings.relay_stale_seconds}"
    return JSONResponse(content=rows, headers={"Cache-Control": cache})


@app.get("/health")
def health_check() -> dict:
    return {"status": "healthy"}


def main() -> None:
    settings = get_settings()
    uvicorn.run(app, host=settings.relay_host, port=settings.relay_port)


if __name__ == "__main__":
    main()
