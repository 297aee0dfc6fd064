"""Durable local store - primary key-value cache plus a file mirror."""

from .base import KeyValueStore, StoreReadError, StoreWriteError
from .memory import MemoryStore
from .mirror import MirrorError, MirrorFile
from .redis import RedisStore
from .sqlite import SqliteStore

__all__ = [
    "KeyValueStore",
    "StoreReadError",
    "StoreWriteError",
    "MemoryStore",
    "MirrorError",
    "MirrorFile",
    "RedisStore",
    "SqliteStore",
]
