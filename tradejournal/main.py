"""
Trade Journal API
=================
Main application entry point. Mounts the history/position and notes routers.
"""
from fastapi import FastAPI
import logging

from tradejournal.api.routers import notes, positions
from tradejournal.core.db import init_db, close_db

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("main")

app = FastAPI(title="Trade Journal API", version="0.1.0")

# ----- Mount Routers -----
# Trade history + positions: serves /wallets/{id}/trades, /wallets/{id}/tokens/{mint}/position
app.include_router(positions.router)

# Notes: serves /wallets/{id}/tokens/{mint}/note
app.include_router(notes.router)


@app.get("/health")
async def health():
    return {"status": "ok"}


# ----- Lifecycle Events -----
@app.on_event("startup")
async def startup():
    await init_db()
    logger.info("Application startup complete.")


@app.on_event("shutdown")
async def shutdown():
    await close_db()
    logger.info("Application shutdown complete.")
