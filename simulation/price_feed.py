"""One-shot reference price lookup (BTC/USD by default).

Any failure (network, HTTP status, malformed body, timeout) silently keeps the
configured default; the game never waits on or fails because of the feed.
"""

from __future__ import annotations

import asyncio
import logging
import math

import requests

from models.config import PriceFeedConfig

logger = logging.getLogger(__name__)


def fetch_reference_price(config: PriceFeedConfig) -> float:
    """Blocking fetch of the reference price; returns the default on failure."""
    try:
        r = requests.get(config.url, timeout=config.timeout_seconds)
        r.raise_for_status()
        data = r.json()
        price = float(data[config.asset_id][config.vs_currency])
    except (requests.RequestException, ValueError, KeyError, TypeError) as exc:
        logger.info("Using default reference price %.2f (%s)", config.default_price, exc)
        return config.default_price

    if not math.isfinite(price) or price <= 0:
        logger.info("Using default reference price %.2f (got %r)", config.default_price, price)
        return config.default_price
    return price


async def fetch_reference_price_async(config: PriceFeedConfig) -> float:
    """Run ``fetch_reference_price`` in a worker thread."""
    return await asyncio.to_thread(fetch_reference_price, config)
