import logging
from decimal import Decimal
from typing import List

from tradejournal.core.constants import ZERO
from tradejournal.core.errors import classify_error
from tradejournal.engines.position import compute_position
from tradejournal.ingestion.base import PriceOracle, TradeStore
from tradejournal.ingestion.dedup import deduplicate
from tradejournal.ingestion.models import TokenPosition, Trade
from tradejournal.ingestion.normalizer import normalize_trades

logger = logging.getLogger("services.positions")


class PositionService:
    """Position for one wallet + token, from all-time trades and a live price."""

    def __init__(self, store: TradeStore, oracle: PriceOracle):
        self.store = store
        self.oracle = oracle

    async def token_trades(self, wallet_id: str, token_address: str) -> List[Trade]:
        try:
            rows = await self.store.list_trades(wallet_id, token_address)
        except Exception as e:
            raise classify_error(e) from e
        trades = normalize_trades(rows, wallet_id)
        return deduplicate(t for t in trades if t.token_address == token_address)

    async def current_price(self, token_address: str, trades: List[Trade]) -> Decimal:
        try:
            price = await self.oracle.current_unit_price(token_address)
        except Exception as e:
            logger.warning(f"Price oracle failed for {token_address}: {e}")
            price = ZERO

        if price and price > ZERO:
            return price if isinstance(price, Decimal) else Decimal(str(price))

        # Fall back to the last traded price
        latest = max(trades, key=lambda t: t.timestamp, default=None)
        return abs(latest.unit_price) if latest else ZERO

    async def token_position(self, wallet_id: str, token_address: str) -> TokenPosition:
        trades = await self.token_trades(wallet_id, token_address)
        price = await self.current_price(token_address, trades)
        return compute_position(trades, price, token_address=token_address)
