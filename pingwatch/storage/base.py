"""Store interface the engine persists through."""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStore(ABC):
    """
    Minimal async key-value store.

    Implementations store opaque bytes; encoding is the caller's concern.
    """

    async def init(self) -> None:
        """Prepare the backing storage. Optional."""

    @abstractmethod
    async def load(self, key: str) -> Optional[bytes]:
        """Return the stored value, or None when the key is absent."""
        raise NotImplementedError

    @abstractmethod
    async def save(self, key: str, data: bytes) -> None:
        """Store a value, replacing any previous one."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release resources. Optional."""
