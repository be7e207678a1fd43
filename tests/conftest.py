"""Pytest configuration and fixtures."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterator, List, Optional, Union

import pytest

from pingwatch.config import Config, MonitoringConfig, StorageConfig
from pingwatch.core.events import EventBus
from pingwatch.core.history import HistoryStore
from pingwatch.core.ids import CounterIdFactory
from pingwatch.core.engine import MonitorEngine
from pingwatch.core.prober import Prober, ReachabilityCheck
from pingwatch.core.registry import EndpointRegistry
from pingwatch.models.probe_result import ProbeOutcome, ProbeResult
from pingwatch.storage.memory import InMemoryStore

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class StepClock:
    """Clock that advances one second per call."""

    def __init__(self, start: datetime = BASE_TIME, step: timedelta = timedelta(seconds=1)):
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        now = self.current
        self.current = now + self.step
        return now


class ScriptedCheck(ReachabilityCheck):
    """
    Reachability check answering from a per-URL script.

    A scripted value is either a status code or an exception to raise.
    """

    def __init__(
        self,
        responses: Optional[Dict[str, Union[int, BaseException]]] = None,
        default: Union[int, BaseException] = 200,
        delays: Optional[Dict[str, float]] = None
    ):
        self.responses = responses or {}
        self.default = default
        self.delays = delays or {}
        self.calls: List[str] = []
        self.started = False
        self.closed = False
        self.in_flight = 0
        self.max_in_flight = 0

    async def start(self) -> None:
        self.started = True

    async def close(self) -> None:
        self.closed = True

    async def check(self, url: str) -> int:
        self.calls.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            delay = self.delays.get(url, 0)
            if delay:
                await asyncio.sleep(delay)
            else:
                await asyncio.sleep(0)
            response = self.responses.get(url, self.default)
            if isinstance(response, BaseException):
                raise response
            return response
        finally:
            self.in_flight -= 1


def make_result(
    endpoint_id: str,
    seconds: int,
    outcome: ProbeOutcome = ProbeOutcome.SUCCESS,
    response_time_ms: int = 100,
    status_code: Optional[int] = None,
    result_id: Optional[str] = None
) -> ProbeResult:
    """Build a probe result at BASE_TIME + seconds."""
    if status_code is None:
        status_code = 200 if outcome is ProbeOutcome.SUCCESS else 503
    return ProbeResult(
        id=result_id or f"{endpoint_id}-{seconds}",
        endpoint_id=endpoint_id,
        timestamp=BASE_TIME + timedelta(seconds=seconds),
        outcome=outcome,
        response_time_ms=response_time_ms,
        status_code=status_code,
        error_message=None if outcome is ProbeOutcome.SUCCESS else "Connection error"
    )


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def id_factory() -> CounterIdFactory:
    return CounterIdFactory(prefix="id-")


@pytest.fixture
def events() -> Iterator[EventBus]:
    bus = EventBus()
    yield bus
    bus.close()


@pytest.fixture
def history() -> HistoryStore:
    return HistoryStore(capacity=100)


@pytest.fixture
def registry(history, events, id_factory, clock) -> EndpointRegistry:
    return EndpointRegistry(history, events=events, id_factory=id_factory, clock=clock)


@pytest.fixture
def check() -> ScriptedCheck:
    return ScriptedCheck()


@pytest.fixture
def prober(check, id_factory, clock) -> Prober:
    return Prober(check, default_timeout_ms=1000, id_factory=id_factory, clock=clock)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def engine(store, check, id_factory, clock) -> MonitorEngine:
    """Engine over an in-memory store and a scripted check."""
    return MonitorEngine(
        store=store,
        check=check,
        history_capacity=100,
        probe_timeout_ms=1000,
        id_factory=id_factory,
        clock=clock
    )


@pytest.fixture
def test_config() -> Config:
    """Configuration that never touches disk or network."""
    return Config(
        monitoring=MonitoringConfig(probe_timeout_ms=1000),
        storage=StorageConfig(type="memory", url="sqlite+aiosqlite:///:memory:")
    )
