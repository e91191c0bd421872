from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List, Dict, Optional

from .models import TradePage


class TradeSource(ABC):
    """
    Upstream trade history. Returns raw trade records; normalization and
    dedup happen on our side.
    """

    @abstractmethod
    async def fetch_trades(
        self,
        wallet_address: str,
        token_address: Optional[str] = None,
        page: int = 1,
        page_size: int = 50,
        min_timestamp: Optional[int] = None,
    ) -> TradePage:
        """Fetch one page of raw trades, newest first, plus the total row count."""
        pass


class TradeStore(ABC):
    """Authoritative trade store. Notes are persisted per trade row."""

    @abstractmethod
    async def list_trades(self, wallet_id: str, token_address: Optional[str] = None) -> List[Dict]:
        pass

    @abstractmethod
    async def update_note(self, wallet_id: str, trade_identifier: str, text: str) -> bool:
        """Write a note onto one trade. Returns False or raises on failure."""
        pass


class PriceOracle(ABC):

    @abstractmethod
    async def current_unit_price(self, token_address: str) -> Decimal:
        """Eventually consistent; may return a stale price or 0."""
        pass


class LegacyNoteStore(ABC):
    """Key-value tier keyed by "{wallet_id}:{token_address}"."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    async def set(self, key: str, text: str) -> None:
        pass
