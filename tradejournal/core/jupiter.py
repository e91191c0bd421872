"""
Jupiter Price API Client
========================
Current USD prices for token mints. Used as the price oracle for
unrealized P&L; a failed lookup yields 0 rather than an exception.
"""
import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

import httpx

from tradejournal.core.config import HTTP_TIMEOUT_SECONDS, JUPITER_PRICE_API
from tradejournal.core.constants import ZERO
from tradejournal.ingestion.base import PriceOracle

logger = logging.getLogger("core.jupiter")


async def get_token_prices(mints: List[str], client: Optional[httpx.AsyncClient] = None) -> Dict[str, Decimal]:
    """
    Batch fetch prices for multiple token mints from Jupiter.
    Returns {mint: price}; mints Jupiter does not know are omitted.
    """
    if not mints:
        return {}

    own_client = client is None
    if own_client:
        client = httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS)

    try:
        # Jupiter accepts comma-separated mints
        resp = await client.get(JUPITER_PRICE_API, params={"ids": ",".join(mints)})
        resp.raise_for_status()
        data = resp.json().get("data") or {}

        results = {}
        for mint in mints:
            token_data = data.get(mint) or {}
            raw_price = token_data.get("price")
            if raw_price is None:
                continue
            try:
                results[mint] = Decimal(str(raw_price))
            except InvalidOperation:
                logger.warning(f"Jupiter returned a non-numeric price for {mint}: {raw_price!r}")
        return results

    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Jupiter price fetch error: {e}")
        return {}
    finally:
        if own_client:
            await client.aclose()


class JupiterPriceOracle(PriceOracle):
    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self.client = client

    async def current_unit_price(self, token_address: str) -> Decimal:
        prices = await get_token_prices([token_address], client=self.client)
        return prices.get(token_address, ZERO)
