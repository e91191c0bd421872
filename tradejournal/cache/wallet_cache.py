"""
Wallet Trade Cache
==================
Deduplicated trade lists per wallet with a last-write timestamp.

Entries go Absent -> Fresh (set) -> Stale (age > TTL, checked lazily on
read) -> Absent (invalidate, or evicted by the read that found it stale).
There is no background sweeper and nothing survives a restart.

An entry also records the upstream total and the page size it was fetched
with, so a reader can tell whether the cached slice answers its request.

Single get/set calls never interleave under asyncio. Callers doing
read-fetch-write sequences on one wallet hold `lock(wallet_id)`.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from tradejournal.core.config import WALLET_CACHE_TTL_MINUTES
from tradejournal.core.constants import MS_PER_MINUTE
from tradejournal.ingestion.models import Trade

logger = logging.getLogger("cache.wallet")

# Called with the wallet id, or None when every wallet was dropped
InvalidationListener = Callable[[Optional[str]], None]


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class WalletCacheEntry:
    trades: tuple
    written_at: int  # epoch ms
    total_count: Optional[int] = None
    page_size: Optional[int] = None

    @property
    def upstream_total(self) -> int:
        if self.total_count is None:
            return len(self.trades)
        return max(self.total_count, len(self.trades))


class WalletTradeCache:
    def __init__(
        self,
        ttl_minutes: float = WALLET_CACHE_TTL_MINUTES,
        clock: Callable[[], int] = now_ms,
    ):
        self.ttl_minutes = ttl_minutes
        self._clock = clock
        self._entries: Dict[str, WalletCacheEntry] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._listeners: List[InvalidationListener] = []

    def _is_fresh(self, entry: WalletCacheEntry, max_age_minutes: float) -> bool:
        return self._clock() - entry.written_at <= max_age_minutes * MS_PER_MINUTE

    def entry(self, wallet_id: str, max_age_minutes: Optional[float] = None) -> Optional[WalletCacheEntry]:
        """The fresh entry for a wallet, or None. A stale entry is evicted here."""
        entry = self._entries.get(wallet_id)
        if entry is None:
            return None
        if max_age_minutes is None:
            max_age_minutes = self.ttl_minutes
        if not self._is_fresh(entry, max_age_minutes):
            # Lazy eviction
            del self._entries[wallet_id]
            logger.debug(f"Evicted stale cache entry for wallet {wallet_id}")
            return None
        return entry

    def get(self, wallet_id: str, max_age_minutes: Optional[float] = None) -> Optional[List[Trade]]:
        entry = self.entry(wallet_id, max_age_minutes)
        return list(entry.trades) if entry else None

    def set(
        self,
        wallet_id: str,
        trades: List[Trade],
        total_count: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> None:
        """Replace the wallet's entry wholesale and reset its write time."""
        self._entries[wallet_id] = WalletCacheEntry(
            trades=tuple(trades),
            written_at=self._clock(),
            total_count=total_count,
            page_size=page_size,
        )

    def invalidate(self, wallet_id: str) -> None:
        if self._entries.pop(wallet_id, None) is not None:
            logger.info(f"Cleared cache for wallet {wallet_id}", extra={"wallet_id": wallet_id})
        self._drop_idle_lock(wallet_id)
        self._notify(wallet_id)

    def clear(self) -> None:
        self._entries.clear()
        for wallet_id in list(self._locks):
            self._drop_idle_lock(wallet_id)
        self._notify(None)

    def is_valid(self, wallet_id: str, max_age_minutes: Optional[float] = None) -> bool:
        entry = self._entries.get(wallet_id)
        if entry is None:
            return False
        if max_age_minutes is None:
            max_age_minutes = self.ttl_minutes
        return self._is_fresh(entry, max_age_minutes)

    def written_at(self, wallet_id: str) -> Optional[int]:
        entry = self._entries.get(wallet_id)
        return entry.written_at if entry else None

    def lock(self, wallet_id: str) -> asyncio.Lock:
        """Per-wallet lock. Different wallets never contend."""
        lock = self._locks.get(wallet_id)
        if lock is None:
            lock = self._locks[wallet_id] = asyncio.Lock()
        return lock

    def add_invalidation_listener(self, listener: InvalidationListener) -> None:
        """Register state derived from cached trades that must be dropped with them."""
        self._listeners.append(listener)

    def _drop_idle_lock(self, wallet_id: str) -> None:
        # A held lock may have waiters queued on it
        lock = self._locks.get(wallet_id)
        if lock is not None and not lock.locked():
            del self._locks[wallet_id]

    def _notify(self, wallet_id: Optional[str]) -> None:
        for listener in self._listeners:
            try:
                listener(wallet_id)
            except Exception as e:
                logger.error(f"Cache invalidation listener failed for {wallet_id}: {e}")

    def __contains__(self, wallet_id: str) -> bool:
        return self.is_valid(wallet_id)
