"""
Paginated History Loader
========================
Pulls trade pages from the upstream source, normalizes and deduplicates
them, and keeps the wallet trade cache in step.

- Page 1 of an unfiltered load is served from the cache while it is valid
  and was fetched with the same page size. has_more comes from the upstream
  total stored with the entry. A fetch writes page, total and page size back.
- Invalidating the cache entry drops the accumulated view with it.
- load_more() appends the next page to the wallet's in-memory accumulation;
  the cache is not rewritten for later pages.
- refresh() re-fetches page 1 and replaces the cache entry.
- Failures are classified, never retried, never touch the cache, and report
  has_more=False for that attempt.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from tradejournal.cache.wallet_cache import WalletTradeCache
from tradejournal.core.config import HISTORY_PAGE_SIZE
from tradejournal.core.errors import TradeSourceError, classify_error
from tradejournal.core.logger import get_logger, log_event
from tradejournal.ingestion.base import TradeSource
from tradejournal.ingestion.dedup import deduplicate
from tradejournal.ingestion.models import Trade
from tradejournal.ingestion.normalizer import normalize_trades

logger = get_logger("history.loader")


@dataclass
class LoadResult:
    trades: List[Trade]
    total_count: int
    page: int
    page_size: int
    has_more: bool
    from_cache: bool = False
    error: Optional[TradeSourceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def error_kind(self) -> Optional[str]:
        return self.error.kind if self.error else None

    @property
    def error_message(self) -> Optional[str]:
        return self.error.message if self.error else None


@dataclass
class _HistoryState:
    """What the caller has loaded so far for one wallet."""
    page: int
    page_size: int
    total_count: int
    min_timestamp: Optional[int] = None
    trades: List[Trade] = field(default_factory=list)

    @property
    def has_more(self) -> bool:
        return self.page * self.page_size < self.total_count


class HistoryLoader:
    def __init__(
        self,
        source: TradeSource,
        cache: WalletTradeCache,
        page_size: int = HISTORY_PAGE_SIZE,
        max_age_minutes: Optional[float] = None,
    ):
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.source = source
        self.cache = cache
        self.page_size = page_size
        self.max_age_minutes = max_age_minutes
        self._states: Dict[str, _HistoryState] = {}
        # Accumulated pages carry the same trades (and notes) as the cache entry
        cache.add_invalidation_listener(self._on_cache_invalidated)

    async def load(
        self,
        wallet_id: str,
        page: int = 1,
        page_size: Optional[int] = None,
        min_timestamp: Optional[int] = None,
    ) -> LoadResult:
        """Load one page and make it the wallet's current view."""
        if page < 1:
            raise ValueError("page must be >= 1")
        async with self.cache.lock(wallet_id):
            return await self._load(
                wallet_id, page, page_size or self.page_size, min_timestamp,
                append=False, use_cache=True,
            )

    async def load_more(self, wallet_id: str) -> LoadResult:
        """Append the next page to what has been loaded for this wallet."""
        async with self.cache.lock(wallet_id):
            state = self._states.get(wallet_id)
            if state is None:
                return await self._load(wallet_id, 1, self.page_size, None, append=False, use_cache=True)

            if not state.has_more:
                return self._result(state, has_more=False)

            return await self._load(
                wallet_id, state.page + 1, state.page_size, state.min_timestamp,
                append=True, use_cache=False,
            )

    async def refresh(self, wallet_id: str) -> LoadResult:
        """Re-fetch page 1 from upstream and replace the cache entry."""
        async with self.cache.lock(wallet_id):
            log_event(logger, "history_refresh", {"wallet_id": wallet_id})
            return await self._load(wallet_id, 1, self.page_size, None, append=False, use_cache=False)

    def loaded_trades(self, wallet_id: str) -> List[Trade]:
        state = self._states.get(wallet_id)
        return list(state.trades) if state else []

    def forget(self, wallet_id: str) -> None:
        """Drop the accumulated view for a wallet. The cache is left alone."""
        self._states.pop(wallet_id, None)

    def _on_cache_invalidated(self, wallet_id: Optional[str]) -> None:
        if wallet_id is None:
            self._states.clear()
        else:
            self.forget(wallet_id)

    # ------------------------------------------------------------------

    def _result(self, state: _HistoryState, has_more: bool, from_cache: bool = False,
                error: Optional[TradeSourceError] = None) -> LoadResult:
        return LoadResult(
            trades=list(state.trades),
            total_count=state.total_count,
            page=state.page,
            page_size=state.page_size,
            has_more=has_more,
            from_cache=from_cache,
            error=error,
        )

    async def _load(
        self,
        wallet_id: str,
        page: int,
        page_size: int,
        min_timestamp: Optional[int],
        append: bool,
        use_cache: bool,
    ) -> LoadResult:
        cacheable = page == 1 and min_timestamp is None

        if cacheable and use_cache:
            entry = self.cache.entry(wallet_id, self.max_age_minutes)
            # A slice fetched with another page size does not answer this request
            if entry is not None and entry.page_size in (None, page_size):
                state = _HistoryState(page=1, page_size=page_size, total_count=entry.upstream_total,
                                      trades=list(entry.trades))
                self._states[wallet_id] = state
                logger.info(f"Using cached trades for wallet {wallet_id}", extra={"wallet_id": wallet_id})
                return self._result(state, has_more=state.has_more, from_cache=True)

        try:
            result = await self.source.fetch_trades(
                wallet_id, None, page=page, page_size=page_size, min_timestamp=min_timestamp,
            )
        except Exception as e:
            error = classify_error(e)
            log_event(logger, "history_load_failed", {
                "wallet_id": wallet_id,
                "page": page,
                "kind": error.kind,
                "detail": error.detail,
            }, level=logging.WARNING)
            state = self._states.get(wallet_id)
            if state is None:
                return LoadResult(trades=[], total_count=0, page=page, page_size=page_size,
                                  has_more=False, error=error)
            return self._result(state, has_more=False, error=error)

        trades = deduplicate(normalize_trades(result.trades, wallet_id))

        # The view may have been invalidated while the page was in flight
        state = self._states.get(wallet_id) if append else None
        if state is not None:
            state.trades = deduplicate(state.trades + trades)
            state.page = page
            state.total_count = result.total_count
        else:
            state = _HistoryState(page=page, page_size=page_size, total_count=result.total_count,
                                  min_timestamp=min_timestamp, trades=trades)
            self._states[wallet_id] = state
            if cacheable:
                self.cache.set(wallet_id, trades, total_count=result.total_count, page_size=page_size)

        log_event(logger, "history_page_loaded", {
            "wallet_id": wallet_id,
            "page": page,
            "count": len(trades),
            "total_count": result.total_count,
        })
        return self._result(state, has_more=state.has_more)
