"""
Position Accountant
===================
Derives a token position (quantities, average cost basis, realized and
unrealized P&L) from a deduplicated trade list for one wallet + token.

Pure and synchronous. No rounding is applied; that is a display concern.
Invalid values that slip past the normalizer (NaN) propagate through the
arithmetic instead of being masked.
"""
from decimal import Decimal
from typing import Iterable, Optional, Union

from tradejournal.core.constants import ZERO
from tradejournal.ingestion.models import Direction, TokenPosition, Trade

Number = Union[Decimal, int, float, str]


def _as_decimal(value: Optional[Number]) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _positive_or_nan(value: Decimal) -> bool:
    # Decimal NaN cannot be compared; let it flow into the division instead
    return value.is_nan() or value > ZERO


def compute_position(
    trades: Iterable[Trade],
    current_price: Optional[Number] = None,
    token_address: Optional[str] = None,
) -> TokenPosition:
    """
    Average-cost accounting:

        sold_cost_basis      = total_buy_value * total_sold / total_bought
        realized_pl          = total_sell_value - sold_cost_basis
        remaining_cost_basis = total_buy_value - sold_cost_basis
        unrealized_pl        = remaining * current_price - remaining_cost_basis

    A token with no buys (airdrop, transfer-in) has zero cost basis, so the
    entire sell value is realized profit.
    """
    trades = list(trades)
    price = _as_decimal(current_price)

    buys = [t for t in trades if t.direction == Direction.BUY]
    sells = [t for t in trades if t.direction == Direction.SELL]

    total_bought = sum((abs(t.quantity) for t in buys), ZERO)
    total_sold = sum((abs(t.quantity) for t in sells), ZERO)
    total_buy_value = sum((abs(t.value_in_quote) for t in buys), ZERO)
    total_sell_value = sum((abs(t.value_in_quote) for t in sells), ZERO)
    remaining = total_bought - total_sold

    if _positive_or_nan(total_bought):
        sold_cost_basis = total_buy_value * (total_sold / total_bought)
        average_entry_price = total_buy_value / total_bought
    else:
        sold_cost_basis = ZERO
        average_entry_price = None

    realized_pl = total_sell_value - sold_cost_basis
    remaining_cost_basis = total_buy_value - sold_cost_basis
    current_value = remaining * price
    unrealized_pl = current_value - remaining_cost_basis

    break_even_price = None
    if _positive_or_nan(remaining):
        break_even_price = remaining_cost_basis / remaining

    if token_address is None and trades:
        token_address = trades[0].token_address

    return TokenPosition(
        token_address=token_address or "",
        total_bought=total_bought,
        total_sold=total_sold,
        remaining=remaining,
        total_buy_value=total_buy_value,
        total_sell_value=total_sell_value,
        sold_cost_basis=sold_cost_basis,
        realized_pl=realized_pl,
        remaining_cost_basis=remaining_cost_basis,
        unrealized_pl=unrealized_pl,
        current_price=price,
        current_value=current_value,
        average_entry_price=average_entry_price,
        break_even_price=break_even_price,
        trades=sorted(trades, key=lambda t: t.timestamp, reverse=True),
    )


def position_to_dict(position: TokenPosition) -> dict:
    """JSON-friendly view; decimals become floats, trades are summarized."""
    def f(value: Optional[Decimal]) -> Optional[float]:
        return float(value) if value is not None else None

    return {
        "token_address": position.token_address,
        "total_bought": f(position.total_bought),
        "total_sold": f(position.total_sold),
        "remaining": f(position.remaining),
        "total_buy_value": f(position.total_buy_value),
        "total_sell_value": f(position.total_sell_value),
        "sold_cost_basis": f(position.sold_cost_basis),
        "realized_pl": f(position.realized_pl),
        "remaining_cost_basis": f(position.remaining_cost_basis),
        "unrealized_pl": f(position.unrealized_pl),
        "current_price": f(position.current_price),
        "current_value": f(position.current_value),
        "average_entry_price": f(position.average_entry_price),
        "break_even_price": f(position.break_even_price),
        "trade_count": position.trade_count,
    }
