"""Monitor engine - wires registry, prober, history, statistics and persistence."""

import asyncio
from typing import List, Optional

from pingwatch.config import Config, RetryConfig
from pingwatch.core.events import EventBus
from pingwatch.core.history import HistoryStore
from pingwatch.core.ids import Clock, IdFactory, utc_now, uuid_id_factory
from pingwatch.core.orchestrator import ProbeOrchestrator
from pingwatch.core.prober import (
    HttpReachabilityCheck,
    Prober,
    ReachabilityCheck,
    SimulatedReachabilityCheck,
)
from pingwatch.core.registry import EndpointRegistry
from pingwatch.core.statistics import compute, summarize
from pingwatch.models.endpoint import Endpoint
from pingwatch.models.probe_result import ProbeResult
from pingwatch.models.snapshot import MonitorSnapshot
from pingwatch.models.statistics import MonitorSummary, Statistics
from pingwatch.storage import codec
from pingwatch.storage.base import KeyValueStore
from pingwatch.storage.memory import InMemoryStore
from pingwatch.storage.sql import SqlKeyValueStore
from pingwatch.utils.logger import get_logger

logger = get_logger(__name__)


def build_check(config: Config) -> ReachabilityCheck:
    """Create the reachability strategy named in the configuration."""
    if config.prober.strategy == "simulated":
        return SimulatedReachabilityCheck(seed=config.prober.simulated_seed)
    return HttpReachabilityCheck(
        method=config.prober.method,
        fallback_to_get=config.prober.fallback_to_get,
        max_connections=config.prober.max_connections,
        user_agent=config.prober.user_agent
    )


def build_store(config: Config) -> KeyValueStore:
    """Create the key-value store named in the configuration."""
    if config.storage.type == "memory":
        return InMemoryStore()
    return SqlKeyValueStore(config.storage.url)


class MonitorEngine:
    """
    Facade over the monitoring engine.

    Holds no global state: the store, reachability check, id factory and
    clock are all injected. Persistence only happens on explicit
    ``save()`` / ``load()`` calls.

    Example:
        ```python
        engine = MonitorEngine(store=InMemoryStore(), check=SimulatedReachabilityCheck(seed=1))
        async with engine:
            endpoint = engine.add_endpoint("https://example.com", "Example")
            await engine.probe_all()
            print(engine.statistics_for(endpoint.id))
            await engine.save()
        ```
    """

    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        check: Optional[ReachabilityCheck] = None,
        events: Optional[EventBus] = None,
        history_capacity: int = 100,
        probe_timeout_ms: int = 10000,
        max_concurrency: int = 1,
        retry: Optional[RetryConfig] = None,
        id_factory: IdFactory = uuid_id_factory,
        clock: Clock = utc_now
    ):
        """
        Initialize engine.

        Args:
            store: Persistence collaborator (in-memory when None)
            check: Reachability strategy (real HTTP when None)
            events: Event bus shared by all components
            history_capacity: Global bound on retained results
            probe_timeout_ms: Default per-probe timeout
            max_concurrency: Maximum probes in flight during probe_all
            retry: RetryConfig for transport failures
            id_factory: Generator of endpoint and result ids
            clock: Source of timestamps
        """
        self.store = store or InMemoryStore()
        self.events = events or EventBus()
        self.history = HistoryStore(capacity=history_capacity)
        self.registry = EndpointRegistry(
            self.history,
            events=self.events,
            id_factory=id_factory,
            clock=clock
        )
        self.prober = Prober(
            check or HttpReachabilityCheck(),
            default_timeout_ms=probe_timeout_ms,
            retry=retry,
            id_factory=id_factory,
            clock=clock
        )
        self.orchestrator = ProbeOrchestrator(
            self.registry,
            self.prober,
            events=self.events,
            max_concurrency=max_concurrency,
            id_factory=id_factory,
            clock=clock
        )
        self._last_error: Optional[str] = None
        self._save_lock = asyncio.Lock()

    @classmethod
    def from_config(
        cls,
        config: Config,
        store: Optional[KeyValueStore] = None,
        check: Optional[ReachabilityCheck] = None,
        events: Optional[EventBus] = None
    ) -> "MonitorEngine":
        """Build an engine from application configuration."""
        return cls(
            store=store or build_store(config),
            check=check or build_check(config),
            events=events,
            history_capacity=config.monitoring.history_capacity,
            probe_timeout_ms=config.monitoring.probe_timeout_ms,
            max_concurrency=config.monitoring.max_concurrent_probes,
            retry=config.retry
        )

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def start(self) -> None:
        """Prepare the store and the reachability check."""
        await self.store.init()
        await self.prober.start()

    async def close(self) -> None:
        """Release the check and the store, waiting for pending event deliveries."""
        await self.events.drain()
        self.events.close()
        await self.prober.close()
        await self.store.close()

    # Observable state

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    @property
    def is_probing(self) -> bool:
        return self.orchestrator.is_running

    # Registry

    def add_endpoint(self, url: str, name: Optional[str] = None) -> Endpoint:
        """
        Register an endpoint.

        Raises:
            InvalidURLError: If the URL is empty or malformed
        """
        return self.registry.add(url, name)

    def remove_endpoint(self, endpoint_id: str) -> bool:
        """Remove an endpoint and its history. False if it does not exist."""
        return self.registry.remove(endpoint_id)

    def list_endpoints(self) -> List[Endpoint]:
        return self.registry.list()

    def get_endpoint(self, endpoint_id: str) -> Optional[Endpoint]:
        return self.registry.get(endpoint_id)

    # Probing

    async def probe_endpoint(
        self,
        endpoint_id: str,
        timeout_ms: Optional[int] = None
    ) -> Optional[ProbeResult]:
        """
        Probe one registered endpoint.

        Returns:
            ProbeResult | None: None when the endpoint does not exist or was
            removed while its probe was in flight
        """
        endpoint = self.registry.get(endpoint_id)
        if endpoint is None:
            self._last_error = f"Endpoint {endpoint_id} not found"
            logger.warning("Probe requested for unknown endpoint", extra={"endpoint_id": endpoint_id})
            return None

        result = await self.orchestrator.probe_one(endpoint, timeout_ms)
        if result is None:
            self._last_error = f"Endpoint {endpoint_id} not found"
            return None

        self._last_error = self.orchestrator.last_error
        return result

    async def probe_all(
        self,
        timeout_ms: Optional[int] = None,
        cancel_event: Optional[asyncio.Event] = None
    ) -> List[ProbeResult]:
        """Probe every endpoint registered at call time. See ProbeOrchestrator.probe_all."""
        results = await self.orchestrator.probe_all(timeout_ms, cancel_event)
        self._last_error = self.orchestrator.last_error
        return results

    # History and statistics

    def history_for(self, endpoint_id: str) -> List[ProbeResult]:
        return self.history.for_endpoint(endpoint_id)

    def latest_for(self, endpoint_id: str) -> Optional[ProbeResult]:
        return self.history.latest_for(endpoint_id)

    def statistics_for(self, endpoint_id: str) -> Statistics:
        """Statistics recomputed from the current history of one endpoint."""
        return compute(self.history.for_endpoint(endpoint_id), endpoint_id)

    def statistics_all(self) -> List[Statistics]:
        """Statistics for every endpoint in registration order."""
        return [self.statistics_for(e.id) for e in self.registry.list()]

    def summary(self) -> MonitorSummary:
        return summarize(self.registry.list(), self.history)

    def snapshot(self) -> MonitorSnapshot:
        """Read-only copy of all endpoints and results for export."""
        return MonitorSnapshot(
            endpoints=self.registry.list(),
            results=self.history.all()
        )

    # Persistence

    async def save(self) -> None:
        """Write endpoints and results to the store as two independent records."""
        snapshot = self.snapshot()
        async with self._save_lock:
            await self.store.save(codec.ENDPOINTS_KEY, codec.encode_endpoints(snapshot.endpoints))
            await self.store.save(codec.RESULTS_KEY, codec.encode_results(snapshot.results))

        logger.debug(
            "Engine state saved",
            extra={"endpoints": len(snapshot.endpoints), "results": len(snapshot.results)}
        )

    async def load(self) -> None:
        """
        Replace in-memory state with the stored records.

        Unreadable records are replaced by empty collections.
        """
        endpoints = codec.decode_endpoints(await self.store.load(codec.ENDPOINTS_KEY))
        results = codec.decode_results(await self.store.load(codec.RESULTS_KEY))

        self.registry.replace(endpoints)
        self.history.replace(results)

        logger.info(
            "Engine state loaded",
            extra={"endpoints": len(endpoints), "results": len(self.history)}
        )
