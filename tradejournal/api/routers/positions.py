"""
Wallet History & Positions Router
=================================
Paginated trade history per wallet and per-token position metrics.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
import logging

from tradejournal.api.deps import Services, get_services
from tradejournal.core.errors import TradeSourceError
from tradejournal.engines.position import position_to_dict
from tradejournal.history.loader import LoadResult
from tradejournal.ingestion.models import Trade

logger = logging.getLogger("api.positions")
router = APIRouter(prefix="/wallets", tags=["positions"])

# HTTP status per upstream failure kind
ERROR_STATUS = {
    "rate_limited": 429,
    "upstream_unavailable": 503,
    "authentication": 502,
    "timeout": 504,
    "unknown": 500,
}


def trade_to_dict(trade: Trade) -> dict:
    return {
        "identifier": trade.identifier,
        "wallet_address": trade.wallet_address,
        "token_address": trade.token_address,
        "token_symbol": trade.token_symbol,
        "direction": trade.direction.value,
        "quantity": float(trade.quantity),
        "value_usd": float(trade.value_in_quote),
        "unit_price": float(trade.unit_price),
        "timestamp": trade.timestamp,
        "note": trade.note,
    }


def load_result_to_dict(result: LoadResult) -> dict:
    return {
        "trades": [trade_to_dict(t) for t in result.trades],
        "total_count": result.total_count,
        "page": result.page,
        "page_size": result.page_size,
        "has_more": result.has_more,
        "from_cache": result.from_cache,
        "error": result.error_message,
        "error_type": result.error_kind,
    }


@router.get("/{wallet_id}/trades")
async def get_trades(
    wallet_id: str,
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1, le=500),
    min_timestamp: Optional[int] = Query(None, ge=0),
    services: Services = Depends(get_services),
):
    """One page of deduplicated trades. Upstream failures come back in `error`."""
    result = await services.loader.load(wallet_id, page=page, page_size=page_size, min_timestamp=min_timestamp)
    return load_result_to_dict(result)


@router.post("/{wallet_id}/trades/more")
async def load_more_trades(wallet_id: str, services: Services = Depends(get_services)):
    result = await services.loader.load_more(wallet_id)
    return load_result_to_dict(result)


@router.post("/{wallet_id}/trades/refresh")
async def refresh_trades(wallet_id: str, services: Services = Depends(get_services)):
    result = await services.loader.refresh(wallet_id)
    return load_result_to_dict(result)


@router.delete("/{wallet_id}/cache")
async def clear_wallet_cache(wallet_id: str, services: Services = Depends(get_services)):
    services.cache.invalidate(wallet_id)
    return {"status": "ok", "wallet_id": wallet_id}


@router.get("/{wallet_id}/tokens/{token_address}/position")
async def get_token_position(
    wallet_id: str,
    token_address: str,
    include_trades: bool = Query(False),
    services: Services = Depends(get_services),
):
    try:
        position = await services.positions.token_position(wallet_id, token_address)
    except TradeSourceError as e:
        logger.error(f"Position lookup failed for {wallet_id}/{token_address}: {e.detail}")
        raise HTTPException(status_code=ERROR_STATUS.get(e.kind, 500), detail=e.message)

    payload = position_to_dict(position)
    if include_trades:
        payload["trades"] = [trade_to_dict(t) for t in position.trades]
    return payload
