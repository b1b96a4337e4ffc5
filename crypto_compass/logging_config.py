"""Logging configuration."""

import logging
import sys
from typing import Optional

from crypto_compass.config import Settings


def setup_logging(settings: Optional[Settings] = None) -> None:
    """Configure application logging."""
    level = (settings.log_level if settings else "INFO").upper()

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
