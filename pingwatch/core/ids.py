"""Identifier and clock providers injected into the engine."""

import itertools
import threading
import uuid
from datetime import datetime, timezone
from typing import Callable

IdFactory = Callable[[], str]
Clock = Callable[[], datetime]


def uuid_id_factory() -> str:
    """Random UUID4 identifier as 32 hex characters."""
    return uuid.uuid4().hex


class CounterIdFactory:
    """
    Monotonic identifiers: ``prefix1``, ``prefix2``, ...

    Safe to share between threads.
    """

    def __init__(self, prefix: str = "", start: int = 1):
        self.prefix = prefix
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def __call__(self) -> str:
        with self._lock:
            return f"{self.prefix}{next(self._counter)}"


def utc_now() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)
