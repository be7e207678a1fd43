"""Configuration loading tests."""

import pytest

from pingwatch.config import (
    Config,
    LoggingConfig,
    MonitoringConfig,
    ProberConfig,
    RetryConfig,
    StorageConfig,
    load_config,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "APP_ENV",
        "CONFIG_PATH",
        "PINGWATCH_STORAGE_URL",
        "LOG_LEVEL",
        "PINGWATCH_PROBE_TIMEOUT_MS",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.mark.unit
class TestConfigModels:
    """Test defaults and validators."""

    def test_defaults(self):
        config = Config()

        assert config.monitoring.history_capacity == 100
        assert config.monitoring.probe_timeout_ms == 10000
        assert config.monitoring.max_concurrent_probes == 1
        assert config.monitoring.scheduler_enabled is False
        assert config.prober.strategy == "http"
        assert config.prober.method == "HEAD"
        assert config.retry.max_attempts == 1
        assert config.storage.type == "sqlite"
        assert config.endpoints == []

    @pytest.mark.parametrize("field", [
        "history_capacity",
        "probe_timeout_ms",
        "max_concurrent_probes",
        "probe_interval_seconds",
    ])
    def test_monitoring_values_must_be_positive(self, field):
        with pytest.raises(ValueError):
            MonitoringConfig(**{field: 0})

    def test_prober_method_is_normalised(self):
        assert ProberConfig(method="get").method == "GET"

    def test_prober_rejects_unknown_values(self):
        with pytest.raises(ValueError):
            ProberConfig(strategy="icmp")
        with pytest.raises(ValueError):
            ProberConfig(method="POST")

    def test_retry_attempts_are_bounded(self):
        with pytest.raises(ValueError):
            RetryConfig(max_attempts=0)
        with pytest.raises(ValueError):
            RetryConfig(max_attempts=11)

    def test_storage_type(self):
        with pytest.raises(ValueError):
            StorageConfig(type="redis")

    def test_logging_level_is_normalised(self):
        assert LoggingConfig(level="debug").level == "DEBUG"
        with pytest.raises(ValueError):
            LoggingConfig(level="verbose")
        with pytest.raises(ValueError):
            LoggingConfig(format="xml")


@pytest.mark.unit
class TestLoadConfig:
    """Test YAML loading and environment overrides."""

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "monitoring:\n"
            "  history_capacity: 50\n"
            "  max_concurrent_probes: 4\n"
            "prober:\n"
            "  strategy: simulated\n"
            "  simulated_seed: 9\n"
            "storage:\n"
            "  type: memory\n"
            "endpoints:\n"
            "  - url: https://example.com\n"
            "    name: Example\n"
            "  - url: https://api.example.com\n"
        )

        config = load_config(str(path))

        assert config.monitoring.history_capacity == 50
        assert config.monitoring.max_concurrent_probes == 4
        assert config.prober.strategy == "simulated"
        assert config.prober.simulated_seed == 9
        assert config.storage.type == "memory"
        assert [e.url for e in config.endpoints] == ["https://example.com", "https://api.example.com"]
        assert config.endpoints[1].name is None

    def test_config_path_from_environment(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        path.write_text("monitoring:\n  probe_timeout_ms: 1234\n")
        monkeypatch.setenv("CONFIG_PATH", str(path))

        assert load_config().monitoring.probe_timeout_ms == 1234

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")

        assert load_config(str(path)) == Config()

    def test_missing_file_in_development_uses_defaults(self, tmp_path):
        config = load_config(str(tmp_path / "absent.yaml"))

        assert config == Config()

    def test_missing_file_in_production_raises(self, tmp_path, monkeypatch):
        monkeypatch.setenv("APP_ENV", "production")

        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "absent.yaml"))

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("monitoring: [unclosed\n")

        with pytest.raises(ValueError):
            load_config(str(path))

    def test_non_mapping_document(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(ValueError):
            load_config(str(path))

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("monitoring:\n  history_capacity: 0\n")

        with pytest.raises(ValueError, match="validation failed"):
            load_config(str(path))

    def test_environment_overrides(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("storage:\n  url: sqlite+aiosqlite:///./from-file.db\n")
        monkeypatch.setenv("PINGWATCH_STORAGE_URL", "sqlite+aiosqlite:///./from-env.db")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("PINGWATCH_PROBE_TIMEOUT_MS", "2500")

        config = load_config(str(path))

        assert config.storage.url == "sqlite+aiosqlite:///./from-env.db"
        assert config.logging.level == "DEBUG"
        assert config.monitoring.probe_timeout_ms == 2500

    @pytest.mark.parametrize("value", ["abc", "0", "-10"])
    def test_invalid_timeout_override(self, tmp_path, monkeypatch, value):
        monkeypatch.setenv("PINGWATCH_PROBE_TIMEOUT_MS", value)

        with pytest.raises(ValueError):
            load_config(str(tmp_path / "absent.yaml"))

    @pytest.mark.parametrize("value", ["verbose", "trace", "1"])
    def test_invalid_log_level_override(self, tmp_path, monkeypatch, value):
        monkeypatch.setenv("LOG_LEVEL", value)

        with pytest.raises(ValueError, match="LOG_LEVEL"):
            load_config(str(tmp_path / "absent.yaml"))

    def test_log_level_override_keeps_other_logging_settings(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("logging:\n  format: text\n  console: false\n")
        monkeypatch.setenv("LOG_LEVEL", "warning")

        config = load_config(str(path))

        assert config.logging.level == "WARNING"
        assert config.logging.format == "text"
        assert config.logging.console is False
