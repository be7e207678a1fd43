"""Globally bounded, most-recent-first log of probe results."""

import threading
from typing import Iterable, List, Optional

from pingwatch.models.probe_result import ProbeResult
from pingwatch.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CAPACITY = 100


class HistoryStore:
    """
    Bounded history of probe results shared by all endpoints.

    Entries are kept ordered newest-first by timestamp. Once the store holds
    ``capacity`` entries, each new result evicts the globally oldest one,
    whichever endpoint it belongs to.

    Example:
        ```python
        history = HistoryStore(capacity=100)
        history.append(result)
        latest = history.latest_for(result.endpoint_id)
        ```
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        """
        Initialize history store.

        Args:
            capacity: Maximum number of results kept across all endpoints
        """
        if capacity < 1:
            raise ValueError("capacity must be at least 1")

        self._capacity = capacity
        self._results: List[ProbeResult] = []
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)

    def append(self, result: ProbeResult) -> None:
        """
        Insert a result and evict from the tail past capacity.

        A result that is at least as recent as the head goes to the head.
        A late completion carrying an older timestamp is placed by timestamp
        so the tail is always the oldest entry.
        """
        with self._lock:
            index = 0
            while (
                index < len(self._results)
                and self._results[index].timestamp > result.timestamp
            ):
                index += 1
            self._results.insert(index, result)

            evicted = 0
            while len(self._results) > self._capacity:
                self._results.pop()
                evicted += 1

        if evicted:
            logger.debug(
                "Evicted oldest results",
                extra={"evicted": evicted, "capacity": self._capacity}
            )

    def all(self) -> List[ProbeResult]:
        """Copy of every stored result, newest first."""
        with self._lock:
            return list(self._results)

    def for_endpoint(self, endpoint_id: str) -> List[ProbeResult]:
        """Results for one endpoint in stored order."""
        with self._lock:
            return [r for r in self._results if r.endpoint_id == endpoint_id]

    def latest_for(self, endpoint_id: str) -> Optional[ProbeResult]:
        """Result with the greatest timestamp for the endpoint, or None."""
        with self._lock:
            return next(
                (r for r in self._results if r.endpoint_id == endpoint_id),
                None
            )

    def remove_all_for(self, endpoint_id: str) -> int:
        """
        Delete every result of an endpoint.

        Returns:
            int: Number of removed results
        """
        with self._lock:
            kept = [r for r in self._results if r.endpoint_id != endpoint_id]
            removed = len(self._results) - len(kept)
            self._results = kept
        return removed

    def replace(self, results: Iterable[ProbeResult]) -> None:
        """Replace the contents, re-sorting newest-first and truncating to capacity."""
        ordered = sorted(results, key=lambda r: r.timestamp, reverse=True)
        with self._lock:
            self._results = ordered[:self._capacity]

    def clear(self) -> None:
        with self._lock:
            self._results = []
