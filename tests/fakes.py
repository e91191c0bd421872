"""In-memory stand-ins for the trade source, stores and price oracle."""
from decimal import Decimal
from typing import Dict, List, Optional

from tradejournal.ingestion.base import PriceOracle, TradeSource, TradeStore
from tradejournal.ingestion.models import TradePage

T0 = 1_700_000_000_000  # epoch ms


def raw_trade(
    signature: str = "",
    token: str = "MINT_A",
    side: str = "BUY",
    amount="100",
    value="1000",
    ts: int = T0,
    notes: Optional[str] = None,
    notes_updated_at: Optional[int] = None,
    wallet: str = "wallet_1",
) -> Dict:
    return {
        "signature": signature,
        "wallet_address": wallet,
        "token_address": token,
        "type": side,
        "amount": amount,
        "value_usd": value,
        "timestamp": ts,
        "notes": notes,
        "notes_updated_at": notes_updated_at,
    }


class FakeClock:
    def __init__(self, now: int = T0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeTradeSource(TradeSource):
    def __init__(self, rows: List[Dict], failures: Optional[Dict[int, Exception]] = None):
        self.rows = rows
        self.failures = failures if failures is not None else {}
        self.calls = []

    async def fetch_trades(self, wallet_address, token_address=None, page=1, page_size=50, min_timestamp=None):
        self.calls.append({"wallet": wallet_address, "page": page, "page_size": page_size,
                           "min_timestamp": min_timestamp})
        if page in self.failures:
            raise self.failures[page]
        rows = [r for r in self.rows
                if r["wallet_address"] == wallet_address
                and (min_timestamp is None or r["timestamp"] >= min_timestamp)]
        start = (page - 1) * page_size
        return TradePage(trades=rows[start:start + page_size], total_count=len(rows))


class FakeTradeStore(TradeStore):
    def __init__(self, rows: List[Dict], failing: tuple = (), rejecting: tuple = (),
                 list_error: Optional[Exception] = None):
        self.rows = rows
        self.failing = set(failing)
        self.rejecting = set(rejecting)
        self.list_error = list_error
        self.update_calls = []
        self._write_clock = T0 * 2

    async def list_trades(self, wallet_id, token_address=None):
        if self.list_error is not None:
            raise self.list_error
        return [dict(r) for r in self.rows
                if r["wallet_address"] == wallet_id and (token_address is None or r["token_address"] == token_address)]

    async def update_note(self, wallet_id, trade_identifier, text):
        self.update_calls.append(trade_identifier)
        if trade_identifier in self.failing:
            raise ConnectionError(f"write failed for {trade_identifier}")
        if trade_identifier in self.rejecting:
            return False
        self._write_clock += 1
        for r in self.rows:
            if r["wallet_address"] == wallet_id and r["signature"] == trade_identifier:
                r["notes"] = text
                r["notes_updated_at"] = self._write_clock
        return True


class FakePriceOracle(PriceOracle):
    def __init__(self, prices: Optional[Dict[str, Decimal]] = None, error: Optional[Exception] = None):
        self.prices = prices or {}
        self.error = error

    async def current_unit_price(self, token_address):
        if self.error is not None:
            raise self.error
        return self.prices.get(token_address, Decimal(0))
