"""Key-value persistence for engine state."""

from pingwatch.storage.base import KeyValueStore
from pingwatch.storage.memory import InMemoryStore
from pingwatch.storage.sql import SqlKeyValueStore

__all__ = ["KeyValueStore", "InMemoryStore", "SqlKeyValueStore"]
