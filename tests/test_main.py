"""Tests for application wiring and startup."""

import logging

import pytest

from pingwatch.config import (
    Config,
    EndpointConfig,
    LoggingConfig,
    MonitoringConfig,
    ProberConfig,
    StorageConfig,
)
from pingwatch.core.engine import MonitorEngine
from pingwatch.core.ids import CounterIdFactory, uuid_id_factory
from pingwatch.main import create_app, seed_endpoints
from pingwatch.utils.logger import get_logger, setup_logging


def app_config(**monitoring) -> Config:
    return Config(
        monitoring=MonitoringConfig(probe_timeout_ms=500, **monitoring),
        prober=ProberConfig(strategy="simulated", simulated_seed=1),
        storage=StorageConfig(type="memory"),
        logging=LoggingConfig(level="WARNING", format="text"),
        endpoints=[
            EndpointConfig(url="https://a.example.com", name="A"),
            EndpointConfig(url="https://b.example.com"),
        ]
    )


@pytest.mark.unit
class TestSeedEndpoints:

    def test_adds_configured_endpoints(self, engine):
        added = seed_endpoints(engine, app_config())

        assert added == 2
        assert [e.display_name for e in engine.list_endpoints()] == ["A", "https://b.example.com"]

    def test_skips_existing_urls(self, engine):
        engine.add_endpoint("https://a.example.com", "Already here")

        added = seed_endpoints(engine, app_config())

        assert added == 1
        assert engine.list_endpoints()[0].display_name == "Already here"

    def test_skips_invalid_urls(self, engine):
        config = Config(endpoints=[EndpointConfig(url="nope"), EndpointConfig(url="https://ok.example.com")])

        assert seed_endpoints(engine, config) == 1
        assert [e.url for e in engine.list_endpoints()] == ["https://ok.example.com"]


@pytest.mark.functional
class TestLifespan:
    """Test startup and shutdown of the application."""

    async def test_lifespan_builds_and_seeds_engine(self):
        app = create_app(app_config())

        async with app.router.lifespan_context(app):
            engine = app.state.engine
            assert [e.url for e in engine.list_endpoints()] == [
                "https://a.example.com",
                "https://b.example.com",
            ]
            assert app.state.scheduler is None
            await engine.probe_all()

        assert len(engine.history) == 2

    async def test_lifespan_starts_scheduler_when_enabled(self):
        app = create_app(app_config(scheduler_enabled=True, probe_interval_seconds=3600))

        async with app.router.lifespan_context(app):
            assert app.state.scheduler.running is True

        assert app.state.scheduler.running is False

    async def test_lifespan_restores_saved_state(self, store, check):
        first = MonitorEngine(store=store, check=check)
        first.add_endpoint("https://saved.example.com")
        await first.save()

        second = MonitorEngine(store=store, check=check)
        app = create_app(app_config(), engine=second)

        async with app.router.lifespan_context(app):
            urls = [e.url for e in second.list_endpoints()]

        assert urls == [
            "https://saved.example.com",
            "https://a.example.com",
            "https://b.example.com",
        ]


@pytest.mark.unit
class TestUtilities:

    def test_counter_id_factory(self):
        ids = CounterIdFactory(prefix="ep-")

        assert [ids(), ids(), ids()] == ["ep-1", "ep-2", "ep-3"]

    def test_uuid_ids_are_distinct_hex(self):
        first, second = uuid_id_factory(), uuid_id_factory()

        assert first != second
        assert len(first) == 32
        int(first, 16)

    def test_setup_logging_to_file(self, tmp_path):
        log_file = tmp_path / "logs" / "pingwatch.log"

        setup_logging(level="DEBUG", log_format="json", log_file=str(log_file), console=False)
        get_logger("pingwatch.test").info("Probe completed", extra={"endpoint_id": "x"})
        for handler in logging.getLogger().handlers:
            handler.flush()

        content = log_file.read_text()
        assert '"message": "Probe completed"' in content
        assert '"endpoint_id": "x"' in content

        setup_logging(level="WARNING", log_format="text", console=True)
