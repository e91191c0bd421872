"""
Notes Reconciler
================
A note is conceptually per token, but it is persisted on every trade row of
that token. Older notes may still live only in the legacy key-value tier.

Reads walk the resolver chain (trade store, then legacy) and return the
first non-empty text. Writes go to every trade row one at a time; a failed
row is recorded and skipped, and the legacy tier gets a mirror copy.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from tradejournal.cache.wallet_cache import WalletTradeCache
from tradejournal.core.errors import TradeSourceError, classify_error
from tradejournal.core.logger import get_logger, log_event
from tradejournal.ingestion.base import LegacyNoteStore, TradeStore
from tradejournal.ingestion.dedup import deduplicate
from tradejournal.ingestion.normalizer import normalize_trades
from tradejournal.notes.legacy_store import legacy_note_key
from tradejournal.notes.resolvers import LegacyNoteResolver, NoteResolver, TradeStoreNoteResolver

logger = get_logger("notes.reconciler")


@dataclass
class NoteWriteResult:
    succeeded: List[str] = field(default_factory=list)
    failed: List[Tuple[str, str]] = field(default_factory=list)  # (identifier, reason)
    legacy_written: bool = False
    list_error: Optional[TradeSourceError] = None

    @property
    def complete(self) -> bool:
        return not self.failed and self.list_error is None

    @property
    def partial(self) -> bool:
        return bool(self.succeeded) and bool(self.failed)

    @property
    def total_failure(self) -> bool:
        return not self.succeeded and (bool(self.failed) or self.list_error is not None)

    def to_dict(self) -> dict:
        return {
            "succeeded": list(self.succeeded),
            "failed": [{"identifier": i, "reason": r} for i, r in self.failed],
            "legacy_written": self.legacy_written,
            "complete": self.complete,
            "partial": self.partial,
            "total_failure": self.total_failure,
            "error": self.list_error.message if self.list_error else None,
        }


class NotesReconciler:
    def __init__(
        self,
        resolvers: Sequence[NoteResolver],
        store: Optional[TradeStore] = None,
        legacy_store: Optional[LegacyNoteStore] = None,
        cache: Optional[WalletTradeCache] = None,
    ):
        self.resolvers = list(resolvers)
        self.store = store
        self.legacy_store = legacy_store
        self.cache = cache

    @classmethod
    def default(cls, store: TradeStore, legacy_store: LegacyNoteStore,
                cache: Optional[WalletTradeCache] = None) -> "NotesReconciler":
        return cls(
            [TradeStoreNoteResolver(store), LegacyNoteResolver(legacy_store)],
            store=store,
            legacy_store=legacy_store,
            cache=cache,
        )

    async def resolve_note(self, wallet_id: str, token_address: str) -> str:
        for resolver in self.resolvers:
            try:
                text = await resolver.resolve(wallet_id, token_address)
            except Exception as e:
                logger.warning(
                    f"Note resolver '{resolver.name}' failed for {token_address}: {e}",
                    extra={"wallet_id": wallet_id, "token_address": token_address},
                )
                continue
            if text and text.strip():
                return text
        return ""

    async def save_note(self, wallet_id: str, token_address: str, text: str) -> NoteWriteResult:
        if self.store is None:
            raise RuntimeError("NotesReconciler has no trade store to write to")

        result = NoteWriteResult()

        try:
            rows = await self.store.list_trades(wallet_id, token_address)
        except Exception as e:
            result.list_error = classify_error(e)
            rows = []
            logger.error(
                f"Could not list trades for {token_address}: {e}",
                extra={"wallet_id": wallet_id, "token_address": token_address},
            )

        trades = [t for t in deduplicate(normalize_trades(rows, wallet_id)) if t.token_address == token_address]

        # Sequential on purpose: each failure stays attributable to one trade
        for trade in trades:
            if not trade.identifier:
                result.failed.append(("", "trade has no identifier"))
                continue
            try:
                ok = await self.store.update_note(wallet_id, trade.identifier, text)
            except Exception as e:
                logger.error(
                    f"Error saving note for trade {trade.identifier}: {e}",
                    extra={"wallet_id": wallet_id, "token_address": token_address},
                )
                result.failed.append((trade.identifier, str(e) or e.__class__.__name__))
                continue
            if ok is False:
                result.failed.append((trade.identifier, "store rejected the update"))
            else:
                result.succeeded.append(trade.identifier)

        if self.legacy_store is not None:
            try:
                await self.legacy_store.set(legacy_note_key(wallet_id, token_address), text)
                result.legacy_written = True
            except Exception as e:
                logger.error(
                    f"Legacy note mirror failed for {token_address}: {e}",
                    extra={"wallet_id": wallet_id, "token_address": token_address},
                )

        if result.succeeded and self.cache is not None:
            self.cache.invalidate(wallet_id)

        log_event(logger, "note_saved", {
            "wallet_id": wallet_id,
            "token_address": token_address,
            "succeeded": len(result.succeeded),
            "failed": len(result.failed),
            "legacy_written": result.legacy_written,
        }, level=logging.INFO if result.complete else logging.WARNING)
        return result
