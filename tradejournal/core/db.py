"""
Postgres access for the trading_history table: one async pool per process,
opened on app startup and closed on shutdown.
"""
from contextlib import asynccontextmanager
from typing import Optional
import logging

from psycopg_pool import AsyncConnectionPool

from tradejournal.core.config import (
    DATABASE_URL,
    DB_POOL_MAX_SIZE,
    DB_POOL_MIN_SIZE,
    DB_POOL_TIMEOUT_SECONDS,
)
from tradejournal.core.errors import UpstreamUnavailableError

logger = logging.getLogger("core.db")

_pool: Optional[AsyncConnectionPool] = None


async def init_db(conninfo: Optional[str] = None) -> AsyncConnectionPool:
    """Open the trade store pool. A second call returns the open pool."""
    global _pool
    if _pool is not None:
        return _pool
    pool = AsyncConnectionPool(
        conninfo=conninfo or DATABASE_URL,
        min_size=DB_POOL_MIN_SIZE,
        max_size=DB_POOL_MAX_SIZE,
        timeout=DB_POOL_TIMEOUT_SECONDS,
        name="tradejournal",
        open=False,
    )
    await pool.open()
    _pool = pool
    logger.info(f"Trade store pool open ({DB_POOL_MIN_SIZE}-{DB_POOL_MAX_SIZE} connections)")
    return _pool


async def close_db() -> None:
    global _pool
    if _pool is None:
        return
    pool, _pool = _pool, None
    await pool.close()
    logger.info("Trade store pool closed")


@asynccontextmanager
async def get_db_connection():
    # Surfaces as a 503 / "upstream unavailable" load error rather than a crash
    if _pool is None:
        raise UpstreamUnavailableError("trade store pool is not open")
    async with _pool.connection() as conn:
        yield conn
