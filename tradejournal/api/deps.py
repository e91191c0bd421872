"""
Composition root. Builds the cache, loader, position service and notes
reconciler once per process and hands them to routers via Depends.
"""
from dataclasses import dataclass
from typing import Optional

from tradejournal.cache.wallet_cache import WalletTradeCache
from tradejournal.core.config import HISTORY_PAGE_SIZE, LEGACY_NOTES_PATH, WALLET_CACHE_TTL_MINUTES
from tradejournal.core.jupiter import JupiterPriceOracle
from tradejournal.history.loader import HistoryLoader
from tradejournal.ingestion.base import LegacyNoteStore, PriceOracle, TradeSource, TradeStore
from tradejournal.ingestion.postgres_store import PostgresTradeStore
from tradejournal.notes.legacy_store import JsonFileNoteStore, MemoryNoteStore
from tradejournal.notes.reconciler import NotesReconciler
from tradejournal.services.positions import PositionService


@dataclass
class Services:
    cache: WalletTradeCache
    loader: HistoryLoader
    positions: PositionService
    notes: NotesReconciler


def build_services(
    source: Optional[TradeSource] = None,
    store: Optional[TradeStore] = None,
    oracle: Optional[PriceOracle] = None,
    legacy_store: Optional[LegacyNoteStore] = None,
    cache: Optional[WalletTradeCache] = None,
) -> Services:
    if source is None or store is None:
        pg = PostgresTradeStore()
        source = source or pg
        store = store or pg
    if oracle is None:
        oracle = JupiterPriceOracle()
    if legacy_store is None:
        legacy_store = JsonFileNoteStore(LEGACY_NOTES_PATH) if LEGACY_NOTES_PATH else MemoryNoteStore()
    if cache is None:
        cache = WalletTradeCache(ttl_minutes=WALLET_CACHE_TTL_MINUTES)

    return Services(
        cache=cache,
        loader=HistoryLoader(source, cache, page_size=HISTORY_PAGE_SIZE),
        positions=PositionService(store, oracle),
        notes=NotesReconciler.default(store, legacy_store, cache=cache),
    )


_services: Optional[Services] = None


def get_services() -> Services:
    global _services
    if _services is None:
        _services = build_services()
    return _services
