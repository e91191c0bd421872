from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum
from typing import Optional, List


class Direction(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


@dataclass(frozen=True)
class Trade:
    wallet_address: str
    token_address: str
    direction: Direction
    quantity: Decimal          # absolute token amount
    value_in_quote: Decimal    # absolute USD value
    unit_price: Decimal        # USD per token at trade time, 0 if unknown
    timestamp: int             # epoch ms
    identifier: str = ""       # tx signature, may be empty
    note: Optional[str] = None
    note_updated_at: Optional[int] = None  # epoch ms of last note write
    token_symbol: Optional[str] = None

    def with_note(self, text: str, written_at: Optional[int] = None) -> "Trade":
        """Notes are the only mutable part of a trade."""
        return replace(self, note=text, note_updated_at=written_at)


@dataclass
class TradePage:
    """One page of raw trades as returned by a trade source."""
    trades: List[dict]
    total_count: int


@dataclass
class TokenPosition:
    token_address: str
    total_bought: Decimal
    total_sold: Decimal
    remaining: Decimal
    total_buy_value: Decimal
    total_sell_value: Decimal
    sold_cost_basis: Decimal
    realized_pl: Decimal
    remaining_cost_basis: Decimal
    unrealized_pl: Decimal
    current_price: Decimal
    current_value: Decimal
    average_entry_price: Optional[Decimal] = None
    break_even_price: Optional[Decimal] = None
    trades: List[Trade] = field(default_factory=list)

    @property
    def trade_count(self) -> int:
        return len(self.trades)
