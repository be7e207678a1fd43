"""Dict-backed store for tests and ephemeral runs."""

from typing import Dict, Optional

from pingwatch.storage.base import KeyValueStore


class InMemoryStore(KeyValueStore):
    """Keeps values in a plain dict for the lifetime of the process."""

    def __init__(self, initial: Optional[Dict[str, bytes]] = None):
        self.data: Dict[str, bytes] = dict(initial or {})

    async def load(self, key: str) -> Optional[bytes]:
        return self.data.get(key)

    async def save(self, key: str, data: bytes) -> None:
        self.data[key] = bytes(data)
