"""Redis key-value store adapter."""

from __future__ import annotations

import logging
import time
from typing import Any

from ..config import RedisConfig
from .base import KeyValueStore, StoreReadError, StoreWriteError


logger = logging.getLogger(__name__)


class RedisStore(KeyValueStore):
    """
    Redis-based primary store for the request collection.

    Shared across service instances and survives restarts.

    Key format: {prefix}{key}
    Value: raw bytes (the repository writes JSON)
    """

    def __init__(self, config: RedisConfig, client: Any = None):
        self.config = config
        self._client = client
        self._connected = client is not None

    async def connect(self) -> bool:
        """Connect to Redis. Returns True if successful."""
        try:
            import redis.asyncio as redis

            self._client = redis.Redis(
                host=self.config.host,
                port=self.config.port,
                db=self.config.db,
                password=self.config.password,
                socket_timeout=self.config.socket_timeout,
                socket_connect_timeout=self.config.socket_connect_timeout,
            )

            # Test connection
            await self._client.ping()
            self._connected = True
            logger.info(f"Connected to Redis at {self.config.host}:{self.config.port}")
            return True

        except Exception as e:
            logger.error(f"Failed to connect to Redis: {e}")
            self._connected = False
            return False

    async def close(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.aclose()
            self._connected = False
            logger.info("Redis connection closed")

    def _key(self, key: str) -> str:
        """Build Redis key."""
        return f"{self.config.prefix}{key}"

    async def get(self, key: str) -> bytes | None:
        if not self._connected or not self._client:
            raise StoreReadError("Redis not connected")

        try:
            return await self._client.get(self._key(key))
        except Exception as e:
            raise StoreReadError(f"Redis get error for {key}: {e}") from e

    async def put(self, key: str, value: bytes) -> None:
        if not self._connected or not self._client:
            raise StoreWriteError("Redis not connected")

        try:
            await self._client.set(self._key(key), value)
        except Exception as e:
            raise StoreWriteError(f"Redis set error for {key}: {e}") from e

    async def delete(self, key: str) -> bool:
        if not self._connected or not self._client:
            raise StoreWriteError("Redis not connected")

        try:
            return bool(await self._client.delete(self._key(key)))
        except Exception as e:
            raise StoreWriteError(f"Redis delete error for {key}: {e}") from e

    @property
    def is_connected(self) -> bool:
        """Check if connected to Redis."""
        return self._connected

    async def health_check(self) -> dict[str, Any]:
        """Get health status of Redis connection."""
        if not self._connected or not self._client:
            return {"status": "disconnected"}

        try:
            start = time.perf_counter()
            await self._client.ping()
            latency_ms = (time.perf_counter() - start) * 1000
            return {
                "status": "connected",
                "host": f"{self.config.host}:{self.config.port}",
                "latency_ms": round(latency_ms, 2),
            }
        except Exception as e:
            return {
                "status": "error",
                "error": str(e),
            }
