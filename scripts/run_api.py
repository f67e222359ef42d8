#!/usr/bin/env python
"""
Serve the pricing API with uvicorn.

Usage:
    python scripts/run_api.py [--no-reload]

SHOP_PRICING_PORT picks the port (default 8000); the data directory and log
level come from the SHOP_PRICING_* settings.
"""
import logging
import os
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT / 'src'))

from shop_pricing.config.settings import get_settings  # noqa: E402
from shop_pricing.utils.logger import setup_logging  # noqa: E402


def serve(host: str = "0.0.0.0", port: int = 8000, reload: bool = True) -> None:
    import uvicorn

    settings = get_settings()
    setup_logging(settings.log_level)
    logger = logging.getLogger(__name__)
    logger.info("Serving shop pricing on %s:%d (catalog: %s)", host, port, settings.data_dir)

    uvicorn.run(
        "shop_pricing.api.main:app",
        host=host,
        port=port,
        reload=reload,
        app_dir=str(PROJECT_ROOT / 'src'),
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    serve(
        port=int(os.environ.get("SHOP_PRICING_PORT", "8000")),
        reload="--no-reload" not in sys.argv,
    )
