"""
Legacy per-token note tier. Before notes lived on trade rows they were kept
in a flat key-value store keyed by "{wallet_id}:{token_address}".
"""
import asyncio
import json
import logging
from pathlib import Path
from typing import Dict, Optional, Union

from tradejournal.core.constants import LEGACY_NOTE_KEY_FORMAT
from tradejournal.ingestion.base import LegacyNoteStore

logger = logging.getLogger("notes.legacy")


def legacy_note_key(wallet_id: str, token_address: str) -> str:
    return LEGACY_NOTE_KEY_FORMAT.format(wallet_id=wallet_id, token_address=token_address)


class MemoryNoteStore(LegacyNoteStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, text: str) -> None:
        self._data[key] = text


class JsonFileNoteStore(LegacyNoteStore):
    """Whole-file JSON object on disk. Writes go through a temp file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = asyncio.Lock()

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Legacy notes file {self.path} is not a JSON object")
        return data

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, sort_keys=True)
        tmp.replace(self.path)

    async def get(self, key: str) -> Optional[str]:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
        value = data.get(key)
        return str(value) if value is not None else None

    async def set(self, key: str, text: str) -> None:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            data[key] = text
            await asyncio.to_thread(self._write, data)
        logger.debug(f"Legacy note written for {key}")
