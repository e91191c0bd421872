from decimal import Decimal
from typing import Iterable, List

from .models import Trade


def _fixed(value: Decimal) -> str:
    # 100, 100.0 and 1E+2 must all produce the same key
    return format(value.normalize(), "f")


def composite_key(trade: Trade) -> str:
    """
    Fallback identity for trades without a signature. Two genuinely distinct
    trades with identical token/ms/direction/amounts collapse into one.
    """
    return "_".join((
        trade.token_address,
        str(trade.timestamp),
        trade.direction.value,
        _fixed(trade.quantity),
        _fixed(trade.value_in_quote),
    ))


def trade_key(trade: Trade) -> str:
    return trade.identifier if trade.identifier else composite_key(trade)


def deduplicate(trades: Iterable[Trade]) -> List[Trade]:
    """Drop repeated trades. First occurrence wins, order is preserved."""
    unique = {}
    for trade in trades:
        key = trade_key(trade)
        if key not in unique:
            unique[key] = trade
    return list(unique.values())
