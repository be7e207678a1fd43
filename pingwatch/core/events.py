"""Engine events and a non-blocking observer bus."""

import asyncio
import inspect
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Set, Tuple, Union

from pingwatch.models.endpoint import Endpoint
from pingwatch.models.probe_result import ProbeResult
from pingwatch.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class EndpointAdded:
    endpoint: Endpoint


@dataclass(frozen=True)
class EndpointRemoved:
    endpoint: Endpoint


@dataclass(frozen=True)
class ProbeCompleted:
    result: ProbeResult


@dataclass(frozen=True)
class BatchCompleted:
    """Emitted exactly once at the end of every probe-all run."""
    results: Tuple[ProbeResult, ...]
    cancelled: bool = False


Event = Union[EndpointAdded, EndpointRemoved, ProbeCompleted, BatchCompleted]
Observer = Callable[[Event], Any]


def _noop() -> None:
    pass


class EventBus:
    """
    Fan-out of engine events to zero or more observers.

    Delivery never blocks the emitting operation. Coroutine observers run as
    tasks on the running loop. Plain callables run on a single worker thread,
    so a slow observer never stalls the loop or the caller, and events reach
    them in emission order. Observer failures are logged and dropped.

    Example:
        ```python
        bus = EventBus()
        bus.subscribe(lambda event: print(type(event).__name__))
        bus.emit(ProbeCompleted(result))
        bus.flush()
        ```
    """

    def __init__(self):
        self._observers: List[Observer] = []
        self._tasks: Set[asyncio.Task] = set()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()

    def subscribe(self, observer: Observer) -> None:
        """Register an observer. Subscribing twice is a no-op."""
        if observer not in self._observers:
            self._observers.append(observer)

    def unsubscribe(self, observer: Observer) -> None:
        """Remove an observer if present."""
        if observer in self._observers:
            self._observers.remove(observer)

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    def emit(self, event: Event) -> None:
        """Deliver an event to every observer without waiting on them."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        for observer in list(self._observers):
            if inspect.iscoroutinefunction(observer):
                if loop is None:
                    logger.warning(
                        "Dropping event for async observer, no running loop",
                        extra={"event": type(event).__name__}
                    )
                    continue
                task = loop.create_task(self._run_async(observer, event))
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)
            else:
                self._get_executor().submit(self._run_sync, observer, event)

    async def drain(self) -> None:
        """Wait for every delivery emitted so far (used on shutdown and in tests)."""
        await asyncio.sleep(0)
        executor = self._executor
        if executor is not None:
            # The single worker runs submissions in order
            await asyncio.wrap_future(executor.submit(_noop))
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def flush(self, timeout: Optional[float] = None) -> None:
        """
        Block until plain-callable deliveries emitted so far have run.

        Only for callers without a running loop; async code uses drain().

        Raises:
            concurrent.futures.TimeoutError: If deliveries take longer than timeout
        """
        executor = self._executor
        if executor is not None:
            executor.submit(_noop).result(timeout)

    def close(self) -> None:
        """Stop the delivery thread after it finishes queued deliveries."""
        with self._executor_lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=1,
                    thread_name_prefix="pingwatch-events"
                )
            return self._executor

    @staticmethod
    def _run_sync(observer: Observer, event: Event) -> None:
        try:
            observer(event)
        except Exception as e:
            logger.error(
                "Event observer failed",
                extra={"event": type(event).__name__, "error": str(e)}
            )

    @staticmethod
    async def _run_async(observer: Observer, event: Event) -> None:
        try:
            await observer(event)
        except Exception as e:
            logger.error(
                "Async event observer failed",
                extra={"event": type(event).__name__, "error": str(e)}
            )
