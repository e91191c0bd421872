import asyncio
import logging
import sys
from pathlib import Path

from tradejournal.core.db import init_db, close_db, get_db_connection

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("scripts.apply_schema")

SCHEMA_DIR = Path(__file__).resolve().parent.parent / "schema"


async def apply(files):
    await init_db()
    try:
        async with get_db_connection() as conn:
            async with conn.cursor() as cur:
                for path in files:
                    logger.info(f"Applying {path.name}...")
                    await cur.execute(path.read_text())
                await conn.commit()
                logger.info("Applied.")
    finally:
        await close_db()


if __name__ == "__main__":
    names = sys.argv[1:]
    files = [SCHEMA_DIR / n for n in names] if names else sorted(SCHEMA_DIR.glob("*.sql"))
    asyncio.run(apply(files))
