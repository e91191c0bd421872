"""
Postgres trade store (trading_history table).
Serves as both the paginated upstream trade source and the authoritative
per-trade notes store.
"""
import logging
from typing import Dict, List, Optional

from psycopg.rows import dict_row

from tradejournal.core.db import get_db_connection
from tradejournal.ingestion.base import TradeSource, TradeStore
from tradejournal.ingestion.models import TradePage

logger = logging.getLogger("ingestion.postgres")

TRADE_COLUMNS = """
    signature, wallet_id AS wallet_address, token_address, token_symbol,
    type, amount, value_usd, price_usd, timestamp, notes, notes_updated_at
"""


class PostgresTradeStore(TradeSource, TradeStore):
    def __init__(self, connection_factory=get_db_connection):
        self._connection = connection_factory

    async def fetch_trades(
        self,
        wallet_address: str,
        token_address: Optional[str] = None,
        page: int = 1,
        page_size: int = 50,
        min_timestamp: Optional[int] = None,
    ) -> TradePage:
        where = ["wallet_id = %s"]
        params: list = [wallet_address]
        if token_address:
            where.append("token_address = %s")
            params.append(token_address)
        if min_timestamp is not None:
            where.append("timestamp >= to_timestamp(%s / 1000.0)")
            params.append(min_timestamp)
        clause = " AND ".join(where)
        offset = (page - 1) * page_size

        async with self._connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(f"SELECT COUNT(*) AS n FROM trading_history WHERE {clause}", params)
                total = (await cur.fetchone())["n"]

                await cur.execute(f"""
                    SELECT {TRADE_COLUMNS}
                    FROM trading_history
                    WHERE {clause}
                    ORDER BY timestamp DESC
                    LIMIT %s OFFSET %s
                """, params + [page_size, offset])
                rows = await cur.fetchall()

        return TradePage(trades=[dict(r) for r in rows], total_count=int(total or 0))

    async def list_trades(self, wallet_id: str, token_address: Optional[str] = None) -> List[Dict]:
        params: list = [wallet_id]
        token_clause = ""
        if token_address:
            token_clause = "AND token_address = %s"
            params.append(token_address)

        async with self._connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(f"""
                    SELECT {TRADE_COLUMNS}
                    FROM trading_history
                    WHERE wallet_id = %s {token_clause}
                    ORDER BY timestamp DESC
                """, params)
                rows = await cur.fetchall()
        return [dict(r) for r in rows]

    async def update_note(self, wallet_id: str, trade_identifier: str, text: str) -> bool:
        async with self._connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute("""
                    UPDATE trading_history
                    SET notes = %s, notes_updated_at = NOW()
                    WHERE wallet_id = %s AND signature = %s
                """, (text, wallet_id, trade_identifier))
                updated = cur.rowcount
            await conn.commit()

        if updated == 0:
            logger.warning(f"No trade row matched signature {trade_identifier}")
            return False
        return True
