"""Endpoint registry - ordered endpoint definitions and their lifecycle."""

import threading
from typing import Iterable, List, Optional
from urllib.parse import urlparse

from pingwatch.core.events import EndpointAdded, EndpointRemoved, EventBus
from pingwatch.core.history import HistoryStore
from pingwatch.core.ids import Clock, IdFactory, utc_now, uuid_id_factory
from pingwatch.models.endpoint import Endpoint
from pingwatch.models.probe_result import ProbeResult
from pingwatch.utils.logger import get_logger

logger = get_logger(__name__)


class InvalidURLError(ValueError):
    """Raised when an endpoint URL is empty or not an absolute URI."""
    pass


def validate_url(url: Optional[str]) -> str:
    """
    Check that a URL is absolute (scheme and host present).

    Args:
        url: Candidate URL

    Returns:
        str: The URL with surrounding whitespace removed

    Raises:
        InvalidURLError: If the URL is empty or malformed
    """
    candidate = (url or "").strip()
    if not candidate:
        raise InvalidURLError("URL must not be empty")

    try:
        parsed = urlparse(candidate)
        # .port raises ValueError for out-of-range or non-numeric ports
        parsed.port
    except ValueError as e:
        raise InvalidURLError(f"Invalid URL '{candidate}': {e}") from e

    if not parsed.scheme or not parsed.hostname:
        raise InvalidURLError(
            f"Invalid URL '{candidate}': include the scheme and host, e.g. https://example.com"
        )
    if any(ch.isspace() for ch in candidate):
        raise InvalidURLError(f"Invalid URL '{candidate}': whitespace is not allowed")

    return candidate


class EndpointRegistry:
    """
    Registry of monitored endpoints in insertion order.

    Removing an endpoint also deletes its results from the history store.
    Every mutation holds the registry lock for its whole duration.
    """

    def __init__(
        self,
        history: HistoryStore,
        events: Optional[EventBus] = None,
        id_factory: IdFactory = uuid_id_factory,
        clock: Clock = utc_now
    ):
        """
        Initialize registry.

        Args:
            history: History store that receives cascade deletions
            events: Event bus for EndpointAdded / EndpointRemoved
            id_factory: Generator of unique endpoint ids
            clock: Source of creation timestamps
        """
        self.history = history
        self.events = events or EventBus()
        self.id_factory = id_factory
        self.clock = clock
        self._endpoints: List[Endpoint] = []
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._endpoints)

    def __contains__(self, endpoint_id: object) -> bool:
        return self.get(endpoint_id) is not None  # type: ignore[arg-type]

    def add(self, url: str, name: Optional[str] = None) -> Endpoint:
        """
        Register a new endpoint.

        Args:
            url: Absolute URL to monitor
            name: Display name; the URL is used when empty

        Returns:
            Endpoint: The created endpoint

        Raises:
            InvalidURLError: If the URL is empty or malformed. The registry
                is left unchanged.
        """
        clean_url = validate_url(url)
        display_name = (name or "").strip() or clean_url

        with self._lock:
            endpoint_id = self.id_factory()
            if any(e.id == endpoint_id for e in self._endpoints):
                raise RuntimeError(f"Id factory produced a duplicate id: {endpoint_id}")

            endpoint = Endpoint(
                id=endpoint_id,
                url=clean_url,
                display_name=display_name,
                created_at=self.clock()
            )
            self._endpoints.append(endpoint)

        logger.info(
            "Endpoint added",
            extra={"endpoint_id": endpoint.id, "url": endpoint.url}
        )
        self.events.emit(EndpointAdded(endpoint))
        return endpoint

    def remove(self, endpoint_id: str) -> bool:
        """
        Remove an endpoint and all of its probe results.

        Returns:
            bool: False when no endpoint has this id
        """
        with self._lock:
            endpoint = next((e for e in self._endpoints if e.id == endpoint_id), None)
            if endpoint is None:
                return False

            self._endpoints.remove(endpoint)
            removed_results = self.history.remove_all_for(endpoint_id)

        logger.info(
            "Endpoint removed",
            extra={"endpoint_id": endpoint_id, "removed_results": removed_results}
        )
        self.events.emit(EndpointRemoved(endpoint))
        return True

    def record_result(self, result: ProbeResult) -> bool:
        """
        Append a result to history only if its endpoint is still registered.

        Runs under the registry lock so a concurrent remove() cannot leave
        the result behind after its cascade.

        Returns:
            bool: False when the endpoint was removed and the result dropped
        """
        with self._lock:
            if not any(e.id == result.endpoint_id for e in self._endpoints):
                return False
            self.history.append(result)
        return True

    def list(self) -> List[Endpoint]:
        """Snapshot of all endpoints in insertion order."""
        with self._lock:
            return list(self._endpoints)

    def get(self, endpoint_id: str) -> Optional[Endpoint]:
        with self._lock:
            return next((e for e in self._endpoints if e.id == endpoint_id), None)

    def find_by_url(self, url: str) -> Optional[Endpoint]:
        with self._lock:
            return next((e for e in self._endpoints if e.url == url), None)

    def replace(self, endpoints: Iterable[Endpoint]) -> None:
        """Replace the contents with previously persisted endpoints, dropping duplicate ids."""
        seen = set()
        unique: List[Endpoint] = []
        for endpoint in endpoints:
            if endpoint.id in seen:
                logger.warning(
                    "Skipping duplicate endpoint id",
                    extra={"endpoint_id": endpoint.id}
                )
                continue
            seen.add(endpoint.id)
            unique.append(endpoint)

        with self._lock:
            self._endpoints = unique
