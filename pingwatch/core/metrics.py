"""Prometheus metrics fed by engine events."""

from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

from pingwatch.core.events import (
    BatchCompleted,
    EndpointAdded,
    EndpointRemoved,
    Event,
    EventBus,
    ProbeCompleted,
)
from pingwatch.utils.logger import get_logger

logger = get_logger(__name__)

RESPONSE_TIME_BUCKETS_MS = (10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000)


class MetricsCollector:
    """Prometheus metrics for probes and the endpoint registry."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """
        Initialize metrics collector.

        Args:
            registry: Optional custom registry
        """
        self.registry = registry or CollectorRegistry()
        self._setup_metrics()
        logger.info("Prometheus metrics collector initialized")

    def _setup_metrics(self) -> None:
        self.probes_total = Counter(
            'pingwatch_probes_total',
            'Total number of probes performed',
            ['outcome'],
            registry=self.registry
        )

        self.probe_response_time = Histogram(
            'pingwatch_probe_response_time_ms',
            'Probe response time in milliseconds',
            buckets=RESPONSE_TIME_BUCKETS_MS,
            registry=self.registry
        )

        self.endpoints = Gauge(
            'pingwatch_endpoints',
            'Number of registered endpoints',
            registry=self.registry
        )

        self.batches_total = Counter(
            'pingwatch_batches_total',
            'Total number of probe-all runs',
            ['cancelled'],
            registry=self.registry
        )

    def attach(self, events: EventBus, endpoint_count: int = 0) -> None:
        """Subscribe to an event bus, starting the endpoint gauge at ``endpoint_count``."""
        self.endpoints.set(endpoint_count)
        events.subscribe(self.handle_event)

    def handle_event(self, event: Event) -> None:
        if isinstance(event, ProbeCompleted):
            self.probes_total.labels(outcome=event.result.outcome.value).inc()
            self.probe_response_time.observe(event.result.response_time_ms)
        elif isinstance(event, EndpointAdded):
            self.endpoints.inc()
        elif isinstance(event, EndpointRemoved):
            self.endpoints.dec()
        elif isinstance(event, BatchCompleted):
            self.batches_total.labels(cancelled=str(event.cancelled).lower()).inc()

    def export(self) -> bytes:
        """Metrics in Prometheus text format."""
        return generate_latest(self.registry)

    @property
    def content_type(self) -> str:
        return CONTENT_TYPE_LATEST
