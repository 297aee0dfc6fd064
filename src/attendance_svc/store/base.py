"""Storage port for the durable local store."""

from __future__ import annotations

from abc import ABC, abstractmethod


class StoreWriteError(Exception):
    """Raised when a backend cannot persist a value."""
    pass


class StoreReadError(Exception):
    """Raised when a backend cannot be read."""
    pass


class KeyValueStore(ABC):
    """
    Fast key-value cache used as the primary copy of the request collection.

    Values are opaque bytes; the repository decides the encoding.
    """

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """Return the stored bytes for a key, or None if absent."""
        ...

    @abstractmethod
    async def put(self, key: str, value: bytes) -> None:
        """Store bytes under a key. Raises StoreWriteError on failure."""
        ...

    async def delete(self, key: str) -> bool:
        """Remove a key. Returns True if it existed."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release backend resources."""
        return None
