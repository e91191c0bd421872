"""
Note resolver strategies. Each tier answers "what is the note for this
wallet + token?" with text or None; the reconciler walks them in order.
"""
from abc import ABC, abstractmethod
from typing import Optional

from tradejournal.ingestion.base import LegacyNoteStore, TradeStore
from tradejournal.ingestion.normalizer import normalize_trades
from tradejournal.notes.legacy_store import legacy_note_key


class NoteResolver(ABC):
    name = "resolver"

    @abstractmethod
    async def resolve(self, wallet_id: str, token_address: str) -> Optional[str]:
        pass


class TradeStoreNoteResolver(NoteResolver):
    """Most recently written non-empty note among the token's trade rows."""
    name = "trade_store"

    def __init__(self, store: TradeStore):
        self.store = store

    async def resolve(self, wallet_id: str, token_address: str) -> Optional[str]:
        rows = await self.store.list_trades(wallet_id, token_address)
        noted = [
            t for t in normalize_trades(rows, wallet_id)
            if t.token_address == token_address and t.note and t.note.strip()
        ]
        if not noted:
            return None
        # max() keeps the first of equal keys
        latest = max(noted, key=lambda t: t.note_updated_at if t.note_updated_at is not None else t.timestamp)
        return latest.note


class LegacyNoteResolver(NoteResolver):
    name = "legacy"

    def __init__(self, legacy_store: LegacyNoteStore):
        self.legacy_store = legacy_store

    async def resolve(self, wallet_id: str, token_address: str) -> Optional[str]:
        text = await self.legacy_store.get(legacy_note_key(wallet_id, token_address))
        return text if text and text.strip() else None
