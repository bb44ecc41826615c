import asyncio
import hashlib
import logging
import time
from typing import Callable, Dict, Optional, Tuple

from .models import InterpretationResult

logger = logging.getLogger(__name__)


def cache_key(dream_text: str, user_id: Optional[str] = None, persona: Optional[str] = None) -> str:
    """Same (text, user, persona) -> same key, regardless of casing or surrounding whitespace."""
    material = "|".join([dream_text.strip().lower(), user_id or "", persona or ""])
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


class InterpretationCache:
    """Process-local TTL cache of finished interpretations."""

    def __init__(self, ttl: float = 600.0, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._store: Dict[str, Tuple[float, InterpretationResult]] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._store)

    def get(self, key: str) -> Optional[InterpretationResult]:
        entry = self._store.get(key)
        if entry is not None:
            expires_at, value = entry
            if self._clock() < expires_at:
                self.hits += 1
                return value
            self._store.pop(key, None)
        self.misses += 1
        return None

    def set(self, key: str, value: InterpretationResult) -> None:
        self._store[key] = (self._clock() + self.ttl, value)

    def sweep(self) -> int:
        """Drop every expired entry, returning how many were removed."""
        now = self._clock()
        expired = [key for key, (expires_at, _) in self._store.items() if expires_at <= now]
        for key in expired:
            del self._store[key]
        return len(expired)

    def hit_ratio(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0

    def stats(self) -> Dict[str, float]:
        return {
            "entries": len(self._store),
            "hits": self.hits,
            "misses": self.misses,
            "ttl": self.ttl,
        }


async def sweep_periodically(cache: InterpretationCache, period: float) -> None:
    """Background task: evict expired entries every `period` seconds until cancelled."""
    while True:
        await asyncio.sleep(period)
        removed = cache.sweep()
        if removed:
            logger.debug("Cache sweep removed %d expired entries", removed)
