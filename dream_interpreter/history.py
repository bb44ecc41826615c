import asyncio
import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

from .models import DreamEntry

logger = logging.getLogger(__name__)

RECENT_DREAMS_LIMIT = 5
EXCERPT_LENGTH = 150


class HistoryStore(ABC):
    """Wherever saved dreams live. Entries are owned by the user who saved them."""

    @abstractmethod
    async def entries_for(self, user_id: str) -> List[DreamEntry]:
        ...

    @abstractmethod
    async def append(self, entry: DreamEntry) -> DreamEntry:
        ...

    @abstractmethod
    async def delete(self, entry_id: str, user_id: str) -> bool:
        """Remove the entry if `user_id` owns it. False when nothing matched."""

    @abstractmethod
    async def set_favorite(self, entry_id: str, user_id: str,
                           is_favorite: Optional[bool] = None) -> Optional[DreamEntry]:
        """Set the flag, or toggle it when `is_favorite` is None."""


def _owned(row_id: str, row_user: str, entry_id: str, user_id: str) -> bool:
    return row_id == entry_id and row_user == user_id


class InMemoryHistoryStore(HistoryStore):
    def __init__(self, entries: Optional[List[DreamEntry]] = None):
        self._entries: List[DreamEntry] = list(entries or [])

    async def entries_for(self, user_id: str) -> List[DreamEntry]:
        return [entry for entry in self._entries if entry.user_id == user_id]

    async def append(self, entry: DreamEntry) -> DreamEntry:
        self._entries.append(entry)
        return entry

    async def delete(self, entry_id: str, user_id: str) -> bool:
        for i, entry in enumerate(self._entries):
            if _owned(entry.id, entry.user_id, entry_id, user_id):
                del self._entries[i]
                return True
        return False

    async def set_favorite(self, entry_id: str, user_id: str,
                           is_favorite: Optional[bool] = None) -> Optional[DreamEntry]:
        for i, entry in enumerate(self._entries):
            if _owned(entry.id, entry.user_id, entry_id, user_id):
                value = not entry.is_favorite if is_favorite is None else is_favorite
                self._entries[i] = entry.model_copy(update={"is_favorite": value})
                return self._entries[i]
        return None


class JsonFileHistoryStore(HistoryStore):
    """
    Keeps every user's dreams in one JSON array on disk.

    Every read and read-modify-write holds one asyncio.Lock. Writes go to a
    sibling temp file that os.replace swaps in.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = asyncio.Lock()

    def _read_all(self) -> List[Dict]:
        if not self.path.exists():
            return []
        with self.path.open("r", encoding="utf-8") as f:
            return json.load(f)

    def _write_all(self, rows: List[Dict]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(rows, f, indent=2, ensure_ascii=False)
        os.replace(tmp, self.path)

    async def entries_for(self, user_id: str) -> List[DreamEntry]:
        async with self._lock:
            rows = await asyncio.to_thread(self._read_all)
        return [DreamEntry(**row) for row in rows if row.get("userId") == user_id]

    async def append(self, entry: DreamEntry) -> DreamEntry:
        def _append() -> None:
            rows = self._read_all()
            rows.append(entry.model_dump(mode="json", by_alias=True))
            self._write_all(rows)

        async with self._lock:
            await asyncio.to_thread(_append)
        return entry

    async def delete(self, entry_id: str, user_id: str) -> bool:
        def _delete() -> bool:
            rows = self._read_all()
            kept = [row for row in rows if not _owned(row.get("id"), row.get("userId"), entry_id, user_id)]
            if len(kept) == len(rows):
                return False
            self._write_all(kept)
            return True

        async with self._lock:
            return await asyncio.to_thread(_delete)

    async def set_favorite(self, entry_id: str, user_id: str,
                           is_favorite: Optional[bool] = None) -> Optional[DreamEntry]:
        def _set_favorite() -> Optional[Dict]:
            rows = self._read_all()
            for row in rows:
                if _owned(row.get("id"), row.get("userId"), entry_id, user_id):
                    current = bool(row.get("isFavorite", False))
                    row["isFavorite"] = not current if is_favorite is None else is_favorite
                    self._write_all(rows)
                    return row
            return None

        async with self._lock:
            row = await asyncio.to_thread(_set_favorite)
        return DreamEntry(**row) if row is not None else None


class HistoryContextBuilder:
    def __init__(self, store: HistoryStore, limit: int = RECENT_DREAMS_LIMIT):
        self.store = store
        self.limit = limit

    async def recent_entries(self, user_id: str) -> List[DreamEntry]:
        entries = await self.store.entries_for(user_id)
        return sorted(entries, key=lambda entry: entry.date, reverse=True)[: self.limit]

    async def build(self, user_id: Optional[str]) -> str:
        """
        Summarize the user's last few dreams for prompt personalization.
        Lookup failures are logged and treated as "no history".
        """
        if not user_id:
            return ""

        try:
            recent = await self.recent_entries(user_id)
        except Exception:
            logger.exception("Could not load dream history for user %s", user_id)
            return ""

        if not recent:
            return ""

        blocks = []
        for i, entry in enumerate(recent, 1):
            excerpt = entry.dream_text[:EXCERPT_LENGTH]
            if len(entry.dream_text) > EXCERPT_LENGTH:
                excerpt += "..."
            blocks.append(
                f"DREAM #{i} ({entry.date:%Y-%m-%d}):\n"
                f'  "Description: {excerpt}"\n'
                f'  "Symbols: {", ".join(entry.symbol_names())}"\n'
                f'  "Mood: Energy {entry.energy}/100"'
            )

        logger.info("Loaded %d past dreams as context for user %s", len(blocks), user_id)
        return (
            f"USER DREAM HISTORY (LAST {self.limit} DREAMS):\n"
            "Use this to understand the user's psychological state and recurring dream patterns:\n\n"
            + "\n\n".join(blocks)
        )
