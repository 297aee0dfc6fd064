"""In-memory key-value store."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from .base import KeyValueStore


logger = logging.getLogger(__name__)


@dataclass
class MemoryStore(KeyValueStore):
    """
    Process-local key-value store.

    Holds bytes only, so callers always decode a fresh copy and can never
    mutate what is stored.
    """
    _store: dict[str, bytes] = field(default_factory=dict, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    # Stats
    _hits: int = field(default=0, init=False)
    _misses: int = field(default=0, init=False)

    async def get(self, key: str) -> bytes | None:
        value = self._store.get(key)
        if value is None:
            self._misses += 1
            return None
        self._hits += 1
        return value

    async def put(self, key: str, value: bytes) -> None:
        async with self._lock:
            self._store[key] = bytes(value)

    async def delete(self, key: str) -> bool:
        async with self._lock:
            return self._store.pop(key, None) is not None

    async def clear(self) -> None:
        """Drop every key (simulates a wiped cache)."""
        async with self._lock:
            self._store.clear()

    @property
    def size(self) -> int:
        """Current number of keys."""
        return len(self._store)

    @property
    def stats(self) -> dict:
        """Store statistics."""
        total = self._hits + self._misses
        hit_rate = (self._hits / total * 100) if total > 0 else 0

        return {
            "size": self.size,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate_percent": round(hit_rate, 2),
        }
