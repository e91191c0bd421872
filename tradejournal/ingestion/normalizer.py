"""
Trade Normalizer
================
Canonicalizes raw swap records (camelCase API payloads or snake_case DB rows)
into Trade objects. Malformed records are rejected here so they never reach
the position accountant.
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

from tradejournal.core.constants import EPOCH_SECONDS_CUTOFF, ZERO
from tradejournal.core.errors import TradeValidationError
from tradejournal.ingestion.models import Direction, Trade

logger = logging.getLogger("ingestion.normalizer")

# Field aliases, first match wins
IDENTIFIER_FIELDS = ("identifier", "signature", "tx_signature")
WALLET_FIELDS = ("wallet_address", "walletAddress", "wallet")
TOKEN_FIELDS = ("token_address", "tokenAddress", "mint")
DIRECTION_FIELDS = ("direction", "type", "side")
QUANTITY_FIELDS = ("quantity", "amount", "amount_token")
VALUE_FIELDS = ("value_in_quote", "valueInQuoteCurrency", "valueUSD", "value_usd", "amount_usd")
PRICE_FIELDS = ("unit_price", "unitPrice", "priceUSD", "price_usd")
TIMESTAMP_FIELDS = ("timestamp", "block_time")
NOTE_FIELDS = ("note", "notes")
NOTE_UPDATED_FIELDS = ("note_updated_at", "notes_updated_at", "noteUpdatedAt")
SYMBOL_FIELDS = ("token_symbol", "tokenSymbol", "symbol")


def _first(record: Dict[str, Any], names: Iterable[str]) -> Any:
    for name in names:
        value = record.get(name)
        if value is not None:
            return value
    return None


def _to_decimal(value: Any, field_name: str, record: Dict) -> Decimal:
    if value is None or value == "":
        return ZERO
    if isinstance(value, bool):
        raise TradeValidationError(f"{field_name} is not numeric: {value!r}", record)
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise TradeValidationError(f"{field_name} is not numeric: {value!r}", record)
    if result.is_nan() or result.is_infinite():
        raise TradeValidationError(f"{field_name} is not finite: {value!r}", record)
    return result


def _datetime_to_ms(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


def to_epoch_ms(value: Any) -> Optional[int]:
    """
    Best-effort conversion of a timestamp into epoch milliseconds.
    Accepts epoch ms, epoch seconds, ISO-8601 strings and datetimes.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _datetime_to_ms(value)
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
        if number != number or number in (float("inf"), float("-inf")):
            return None
        if abs(number) < EPOCH_SECONDS_CUTOFF:
            number *= 1000
        return int(number)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return to_epoch_ms(float(text))
        except ValueError:
            pass
        try:
            return _datetime_to_ms(datetime.fromisoformat(text.replace("Z", "+00:00")))
        except ValueError:
            return None
    return None


def _parse_direction(value: Any, record: Dict) -> Direction:
    if isinstance(value, Direction):
        return value
    text = str(value or "").strip().upper()
    try:
        return Direction(text)
    except ValueError:
        raise TradeValidationError(f"Unknown trade direction: {value!r}", record)


def normalize_trade(record: Dict[str, Any], wallet_address: Optional[str] = None) -> Trade:
    """
    Convert one raw record into a Trade. Raises TradeValidationError.
    Amount signs are not trusted; quantity and value are stored as absolutes.
    """
    if not isinstance(record, dict):
        raise TradeValidationError(f"Trade record must be a mapping, got {type(record).__name__}")

    token_address = str(_first(record, TOKEN_FIELDS) or "").strip()
    if not token_address:
        raise TradeValidationError("Trade record has no token address", record)

    wallet = str(_first(record, WALLET_FIELDS) or wallet_address or "").strip()
    direction = _parse_direction(_first(record, DIRECTION_FIELDS), record)

    quantity = abs(_to_decimal(_first(record, QUANTITY_FIELDS), "quantity", record))
    value = abs(_to_decimal(_first(record, VALUE_FIELDS), "value", record))
    unit_price = _to_decimal(_first(record, PRICE_FIELDS), "unit_price", record)
    if unit_price == ZERO and quantity > ZERO:
        unit_price = value / quantity

    raw_ts = _first(record, TIMESTAMP_FIELDS)
    timestamp = to_epoch_ms(raw_ts)
    if timestamp is None:
        raise TradeValidationError(f"Unparseable timestamp: {raw_ts!r}", record)

    note = _first(record, NOTE_FIELDS)
    symbol = _first(record, SYMBOL_FIELDS)

    return Trade(
        wallet_address=wallet,
        token_address=token_address,
        direction=direction,
        quantity=quantity,
        value_in_quote=value,
        unit_price=unit_price,
        timestamp=timestamp,
        identifier=str(_first(record, IDENTIFIER_FIELDS) or "").strip(),
        note=str(note) if note is not None else None,
        note_updated_at=to_epoch_ms(_first(record, NOTE_UPDATED_FIELDS)),
        token_symbol=str(symbol) if symbol else None,
    )


def normalize_trades(records: Iterable[Dict[str, Any]], wallet_address: Optional[str] = None) -> List[Trade]:
    """Normalize a batch, dropping (and logging) records that fail validation."""
    trades = []
    rejected = 0
    for record in records:
        try:
            trades.append(normalize_trade(record, wallet_address))
        except TradeValidationError as e:
            rejected += 1
            logger.warning(f"Rejected trade record: {e}", extra={"wallet_id": wallet_address})

    if rejected:
        logger.info(
            f"Normalized {len(trades)} trades, rejected {rejected}",
            extra={"wallet_id": wallet_address, "event": "normalize"},
        )
    return trades
