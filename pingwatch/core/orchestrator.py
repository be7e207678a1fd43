"""Batch probing across all registered endpoints."""

import asyncio
from typing import List, Optional

from pingwatch.core.events import BatchCompleted, EventBus, ProbeCompleted
from pingwatch.core.ids import Clock, IdFactory, utc_now, uuid_id_factory
from pingwatch.core.prober import BAD_GATEWAY_STATUS, Prober
from pingwatch.core.registry import EndpointRegistry
from pingwatch.models.endpoint import Endpoint
from pingwatch.models.probe_result import ProbeOutcome, ProbeResult
from pingwatch.utils.logger import get_logger

logger = get_logger(__name__)


class ProbeOrchestrator:
    """
    Sequences probes over a snapshot of the registry.

    With ``max_concurrency=1`` endpoints are probed strictly one after
    another. Higher values run a bounded pool of probes while results are
    still returned in registration order. A failing endpoint never aborts
    the batch; its error is recorded and exposed through ``last_error``.
    """

    def __init__(
        self,
        registry: EndpointRegistry,
        prober: Prober,
        events: Optional[EventBus] = None,
        max_concurrency: int = 1,
        id_factory: IdFactory = uuid_id_factory,
        clock: Clock = utc_now
    ):
        """
        Initialize orchestrator.

        Args:
            registry: Source of endpoints; records results into its history
            prober: Prober used for each endpoint
            events: Event bus for ProbeCompleted / BatchCompleted
            max_concurrency: Maximum probes in flight
            id_factory: Generator of ids for results the prober failed to produce
            clock: Timestamp source for those results
        """
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")

        self.registry = registry
        self.prober = prober
        self.events = events or EventBus()
        self.max_concurrency = max_concurrency
        self.id_factory = id_factory
        self.clock = clock

        self.last_error: Optional[str] = None
        self._running = 0

    @property
    def is_running(self) -> bool:
        return self._running > 0

    async def probe_one(
        self,
        endpoint: Endpoint,
        timeout_ms: Optional[int] = None
    ) -> Optional[ProbeResult]:
        """
        Probe a single endpoint, record and announce the result.

        Returns:
            ProbeResult | None: The recorded result, or None when the
            endpoint was removed before its result could be recorded
        """
        self._running += 1
        try:
            self.last_error = None
            return await self._probe_and_record(endpoint, timeout_ms)
        finally:
            self._running -= 1

    async def probe_all(
        self,
        timeout_ms: Optional[int] = None,
        cancel_event: Optional[asyncio.Event] = None
    ) -> List[ProbeResult]:
        """
        Probe every endpoint registered at call time.

        Endpoints removed during the run are skipped if not yet started, and
        their results are dropped if their probe was already in flight.

        Args:
            timeout_ms: Per-probe timeout (prober default when None)
            cancel_event: When set, endpoints not yet started are skipped;
                probes already in flight run to completion

        Returns:
            list[ProbeResult]: One result per probed endpoint, in
            registration order. Results are already in the history store.
        """
        endpoints = self.registry.list()
        semaphore = asyncio.Semaphore(self.max_concurrency)
        cancelled = False

        self._running += 1
        self.last_error = None

        logger.info(
            "Probing all endpoints",
            extra={"count": len(endpoints), "max_concurrency": self.max_concurrency}
        )

        async def run(endpoint: Endpoint) -> Optional[ProbeResult]:
            nonlocal cancelled
            async with semaphore:
                if cancel_event is not None and cancel_event.is_set():
                    cancelled = True
                    return None
                if self.registry.get(endpoint.id) is None:
                    return None
                return await self._probe_and_record(endpoint, timeout_ms)

        try:
            if self.max_concurrency == 1:
                outcomes = [await run(endpoint) for endpoint in endpoints]
            else:
                outcomes = await asyncio.gather(*(run(e) for e in endpoints))
        finally:
            self._running -= 1

        results = [r for r in outcomes if r is not None]
        failed = sum(1 for r in results if not r.is_success)

        logger.info(
            "Finished probing all endpoints",
            extra={
                "total": len(endpoints),
                "probed": len(results),
                "successful": len(results) - failed,
                "failed": failed,
                "cancelled": cancelled
            }
        )

        self.events.emit(BatchCompleted(results=tuple(results), cancelled=cancelled))
        return results

    async def _probe_and_record(
        self,
        endpoint: Endpoint,
        timeout_ms: Optional[int]
    ) -> Optional[ProbeResult]:
        try:
            result = await self.prober.probe(endpoint, timeout_ms)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(
                "Prober raised instead of resolving",
                extra={"endpoint_id": endpoint.id, "error": str(e)}
            )
            result = ProbeResult(
                id=self.id_factory(),
                endpoint_id=endpoint.id,
                timestamp=self.clock(),
                outcome=ProbeOutcome.ERROR,
                response_time_ms=0,
                status_code=BAD_GATEWAY_STATUS,
                error_message=f"Probe failed: {e}"
            )

        if not self.registry.record_result(result):
            logger.info(
                "Dropping result for endpoint removed during probe",
                extra={"endpoint_id": endpoint.id, "result_id": result.id}
            )
            return None

        if result.error_message:
            self.last_error = result.error_message

        self.events.emit(ProbeCompleted(result))
        return result
