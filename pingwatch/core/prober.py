"""Prober - bounded-time reachability checks with outcome classification."""

import asyncio
import random
import time
from abc import ABC, abstractmethod
from typing import Optional, Sequence, Tuple

import aiohttp

from pingwatch.config import RetryConfig
from pingwatch.core.ids import Clock, IdFactory, utc_now, uuid_id_factory
from pingwatch.models.endpoint import Endpoint
from pingwatch.models.probe_result import ProbeOutcome, ProbeResult
from pingwatch.utils.logger import get_logger
from pingwatch.utils.retry import RetryError, retry_with_backoff

logger = get_logger(__name__)

DEFAULT_TIMEOUT_MS = 10000

# Synthesised status codes for probes that never got a response
TIMEOUT_STATUS = 408
BAD_GATEWAY_STATUS = 502
UNAVAILABLE_STATUS = 503

FAILURE_STATUS_CODES = (TIMEOUT_STATUS, BAD_GATEWAY_STATUS, UNAVAILABLE_STATUS)

# Methods some servers refuse for HEAD
FALLBACK_STATUSES = (405, 501)

DEMO_STATUSES: Tuple[int, ...] = (200, 200, 200, 301, 404, 500, 503)


def is_success_status(status_code: Optional[int]) -> bool:
    """A probe succeeds exactly when the status code is 2xx or 3xx."""
    return status_code is not None and 200 <= status_code < 400


class ReachabilityCheck(ABC):
    """
    Strategy that performs the actual network check for one URL.

    ``check`` returns the status code of the response, or raises when no
    response could be obtained. It does not need to bound its own duration:
    the Prober cancels it once the timeout elapses.
    """

    async def start(self) -> None:
        """Acquire resources (sessions, sockets). Optional."""

    @abstractmethod
    async def check(self, url: str) -> int:
        raise NotImplementedError

    async def close(self) -> None:
        """Release resources. Optional."""


class HttpReachabilityCheck(ReachabilityCheck):
    """
    Real HTTP check over aiohttp.

    Sends ``method`` (HEAD by default) and follows redirects. When the
    server rejects HEAD with 405 or 501 the request is repeated as GET.
    """

    def __init__(
        self,
        method: str = "HEAD",
        fallback_to_get: bool = True,
        max_connections: int = 20,
        user_agent: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None
    ):
        """
        Initialize HTTP check.

        Args:
            method: HTTP method of the first request
            fallback_to_get: Retry as GET when HEAD is not allowed
            max_connections: Connection pool limit
            user_agent: User-Agent header value
            session: Externally owned session (not closed by this check)
        """
        self.method = method.upper()
        self.fallback_to_get = fallback_to_get
        self.max_connections = max_connections
        self.user_agent = user_agent
        self.session = session
        self._owns_session = session is None

    async def start(self) -> None:
        """Start the HTTP session."""
        if self.session is None:
            headers = {"User-Agent": self.user_agent} if self.user_agent else None
            connector = aiohttp.TCPConnector(limit=self.max_connections)
            self.session = aiohttp.ClientSession(connector=connector, headers=headers)
            self._owns_session = True
            logger.info("HTTP session started")

    async def close(self) -> None:
        """Close the HTTP session if this check created it."""
        if self.session is not None and self._owns_session:
            await self.session.close()
            logger.info("HTTP session closed")
        if self._owns_session:
            self.session = None

    async def check(self, url: str) -> int:
        if self.session is None:
            await self.start()

        async with self.session.request(self.method, url, allow_redirects=True) as response:
            status = response.status

        if (
            self.fallback_to_get
            and self.method != "GET"
            and status in FALLBACK_STATUSES
        ):
            logger.debug(
                "Method not allowed, falling back to GET",
                extra={"url": url, "method": self.method, "status_code": status}
            )
            async with self.session.get(url, allow_redirects=True) as response:
                # Only the status line matters; skip reading the body
                status = response.status

        return status


class SimulatedReachabilityCheck(ReachabilityCheck):
    """
    Seeded stand-in that draws status codes from a fixed distribution.

    Useful for demos and for exercising the engine without network access.
    The same seed always produces the same sequence of statuses and delays.
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        statuses: Sequence[int] = DEMO_STATUSES,
        min_delay_ms: int = 20,
        max_delay_ms: int = 300,
        failure_rate: float = 0.0
    ):
        if not statuses:
            raise ValueError("statuses must not be empty")
        if min_delay_ms < 0 or max_delay_ms < min_delay_ms:
            raise ValueError("delay range must satisfy 0 <= min_delay_ms <= max_delay_ms")

        self.statuses = tuple(statuses)
        self.min_delay_ms = min_delay_ms
        self.max_delay_ms = max_delay_ms
        self.failure_rate = failure_rate
        self._random = random.Random(seed)

    async def check(self, url: str) -> int:
        delay_ms = self._random.uniform(self.min_delay_ms, self.max_delay_ms)
        fails = self._random.random() < self.failure_rate
        status = self._random.choice(self.statuses)

        await asyncio.sleep(delay_ms / 1000)

        if fails:
            raise ConnectionError(f"Simulated network error for {url}")
        return status


class Prober:
    """
    Runs one reachability check against one endpoint and classifies it.

    ``probe`` always returns a ProbeResult and never outlives its timeout
    (per attempt when retries are enabled). Only task cancellation
    escapes it.

    Example:
        ```python
        async with Prober(HttpReachabilityCheck()) as prober:
            result = await prober.probe(endpoint, timeout_ms=5000)
            print(result.outcome, result.response_time_ms)
        ```
    """

    def __init__(
        self,
        check: ReachabilityCheck,
        default_timeout_ms: int = DEFAULT_TIMEOUT_MS,
        retry: Optional[RetryConfig] = None,
        id_factory: IdFactory = uuid_id_factory,
        clock: Clock = utc_now
    ):
        """
        Initialize prober.

        Args:
            check: Reachability strategy
            default_timeout_ms: Timeout used when probe() gets none
            retry: Retry policy for transport failures (single attempt when None)
            id_factory: Generator of probe result ids
            clock: Source of result timestamps
        """
        if default_timeout_ms <= 0:
            raise ValueError("default_timeout_ms must be positive")

        self.check = check
        self.default_timeout_ms = default_timeout_ms
        self.retry = retry or RetryConfig()
        self.id_factory = id_factory
        self.clock = clock

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def start(self) -> None:
        await self.check.start()

    async def close(self) -> None:
        await self.check.close()

    async def _attempt(self, url: str, timeout_s: float) -> int:
        return await asyncio.wait_for(self.check.check(url), timeout=timeout_s)

    async def probe(self, endpoint: Endpoint, timeout_ms: Optional[int] = None) -> ProbeResult:
        """
        Probe an endpoint.

        Args:
            endpoint: Endpoint to check
            timeout_ms: Per-attempt time limit in milliseconds

        Returns:
            ProbeResult: SUCCESS for 2xx/3xx responses, ERROR otherwise
        """
        timeout_ms = timeout_ms or self.default_timeout_ms
        if timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")

        status_code: Optional[int] = None
        error_message: Optional[str] = None
        started = time.perf_counter()

        try:
            status_code = await retry_with_backoff(
                self._attempt,
                endpoint.url,
                timeout_ms / 1000,
                max_attempts=self.retry.max_attempts,
                base_delay=self.retry.base_delay,
                multiplier=self.retry.multiplier,
                max_delay=self.retry.max_delay,
                jitter=self.retry.jitter,
                exceptions=(Exception,)
            )
        except RetryError as e:
            status_code, error_message = self._classify_failure(e.__cause__, timeout_ms)

        elapsed_ms = max(0, int((time.perf_counter() - started) * 1000 + 0.5))

        if error_message is None and not is_success_status(status_code):
            error_message = f"Unexpected status code {status_code}"

        outcome = ProbeOutcome.ERROR if error_message is not None else ProbeOutcome.SUCCESS

        result = ProbeResult(
            id=self.id_factory(),
            endpoint_id=endpoint.id,
            timestamp=self.clock(),
            outcome=outcome,
            response_time_ms=elapsed_ms,
            status_code=status_code,
            error_message=error_message
        )

        log = logger.info if outcome is ProbeOutcome.SUCCESS else logger.warning
        log(
            "Probe completed",
            extra={
                "endpoint_id": endpoint.id,
                "url": endpoint.url,
                "outcome": outcome.value,
                "status_code": status_code,
                "response_time_ms": elapsed_ms,
                "error": error_message
            }
        )

        return result

    @staticmethod
    def _classify_failure(
        error: Optional[BaseException],
        timeout_ms: int
    ) -> Tuple[int, str]:
        """Map a failed check to a synthesised status code and message."""
        if isinstance(error, asyncio.TimeoutError):
            return TIMEOUT_STATUS, f"Request timed out after {timeout_ms}ms"
        if isinstance(error, (aiohttp.ClientConnectorError, ConnectionError)):
            return UNAVAILABLE_STATUS, f"Connection error: {error}"
        if isinstance(error, aiohttp.ClientError):
            return BAD_GATEWAY_STATUS, f"Client error: {error}"
        return BAD_GATEWAY_STATUS, f"Unexpected error: {error!r}"
