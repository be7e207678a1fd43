"""Tests for the periodic probing scheduler."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from pingwatch.core.scheduler import JOB_ID, MonitoringScheduler
from pingwatch.storage import codec


@pytest.mark.unit
class TestMonitoringScheduler:
    """Test scheduler lifecycle and runs."""

    def test_rejects_invalid_interval(self, engine):
        with pytest.raises(ValueError):
            MonitoringScheduler(engine, interval_seconds=0)

    def test_no_job_before_start(self, engine):
        scheduler = MonitoringScheduler(engine)

        assert scheduler.get_job_status() is None
        assert scheduler.running is False

    async def test_start_and_stop(self, engine):
        scheduler = MonitoringScheduler(engine, interval_seconds=30)

        scheduler.start()
        try:
            assert scheduler.running is True
            status = scheduler.get_job_status()
            assert status["job_id"] == JOB_ID
            assert status["next_run_time"] is not None
            assert status["runs"] == 0
            assert "30" in status["trigger"]
        finally:
            scheduler.stop()

        assert scheduler.running is False

    def test_stop_when_not_started(self, engine):
        MonitoringScheduler(engine).stop()

    async def test_run_once_probes_and_saves(self, engine, store):
        engine.add_endpoint("https://a.example.com")
        engine.add_endpoint("https://b.example.com")
        scheduler = MonitoringScheduler(engine)

        results = await scheduler.run_once()

        assert len(results) == 2
        assert scheduler.runs == 1
        assert len(codec.decode_results(store.data[codec.RESULTS_KEY])) == 2

    async def test_run_once_swallows_failures(self, engine):
        engine.probe_all = AsyncMock(side_effect=RuntimeError("store offline"))
        scheduler = MonitoringScheduler(engine)

        assert await scheduler.run_once() == []
        assert await scheduler.run_once() == []
        assert scheduler.runs == 2

    async def test_run_once_skips_while_another_run_is_in_flight(self, engine, check):
        engine.add_endpoint("https://a.example.com")
        engine.add_endpoint("https://b.example.com")
        check.delays["https://a.example.com"] = 0.05
        scheduler = MonitoringScheduler(engine)

        manual = asyncio.create_task(engine.probe_all())
        await asyncio.sleep(0.01)

        assert await scheduler.run_once() == []
        assert scheduler.runs == 0

        assert len(await manual) == 2
        assert check.calls == ["https://a.example.com", "https://b.example.com"]
        assert len(engine.history) == 2
