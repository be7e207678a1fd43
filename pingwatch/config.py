"""Configuration management with Pydantic settings."""

import os
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from pingwatch.utils.logger import get_logger

logger = get_logger(__name__)


class EndpointConfig(BaseModel):
    """Endpoint seeded into the registry on startup."""
    url: str
    name: Optional[str] = None


class MonitoringConfig(BaseModel):
    """Engine settings."""
    history_capacity: int = 100
    probe_timeout_ms: int = 10000
    max_concurrent_probes: int = 1
    probe_interval_seconds: int = 60
    scheduler_enabled: bool = False

    @field_validator('history_capacity')
    @classmethod
    def capacity_must_be_positive(cls, v):
        if v < 1:
            raise ValueError('history_capacity must be at least 1')
        return v

    @field_validator('probe_timeout_ms')
    @classmethod
    def timeout_must_be_positive(cls, v):
        if v < 1:
            raise ValueError('probe_timeout_ms must be at least 1')
        return v

    @field_validator('max_concurrent_probes')
    @classmethod
    def max_concurrent_must_be_positive(cls, v):
        if v < 1:
            raise ValueError('max_concurrent_probes must be at least 1')
        return v

    @field_validator('probe_interval_seconds')
    @classmethod
    def interval_must_be_positive(cls, v):
        if v < 1:
            raise ValueError('probe_interval_seconds must be at least 1 second')
        return v


class ProberConfig(BaseModel):
    """Reachability strategy settings."""
    strategy: str = "http"
    method: str = "HEAD"
    fallback_to_get: bool = True
    max_connections: int = 20
    user_agent: str = "pingwatch"
    simulated_seed: Optional[int] = None

    @field_validator('strategy')
    @classmethod
    def strategy_must_be_supported(cls, v):
        supported = ['http', 'simulated']
        if v not in supported:
            raise ValueError(f'strategy must be one of {supported}')
        return v

    @field_validator('method')
    @classmethod
    def method_must_be_supported(cls, v):
        v = v.upper()
        if v not in ('HEAD', 'GET'):
            raise ValueError('method must be HEAD or GET')
        return v


class RetryConfig(BaseModel):
    """Retry policy for transport failures. One attempt disables retries."""
    max_attempts: int = 1
    base_delay: float = 0.5
    multiplier: float = 2.0
    max_delay: float = 5.0
    jitter: bool = True

    @field_validator('max_attempts')
    @classmethod
    def attempts_must_be_bounded(cls, v):
        if not (1 <= v <= 10):
            raise ValueError('max_attempts must be between 1 and 10')
        return v


class StorageConfig(BaseModel):
    """Persistence settings."""
    type: str = "sqlite"
    url: str = "sqlite+aiosqlite:///./data/pingwatch.db"

    @field_validator('type')
    @classmethod
    def storage_type_must_be_supported(cls, v):
        supported = ['memory', 'sqlite']
        if v not in supported:
            raise ValueError(f'storage type must be one of {supported}')
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    format: str = "json"
    file: Optional[str] = None
    console: bool = True

    @field_validator('level')
    @classmethod
    def log_level_must_be_valid(cls, v):
        if isinstance(v, str):
            v = v.upper()
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v not in valid_levels:
            raise ValueError(f'log level must be one of {valid_levels}')
        return v

    @field_validator('format')
    @classmethod
    def format_must_be_valid(cls, v):
        if v not in ('json', 'text'):
            raise ValueError('log format must be json or text')
        return v


class CORSConfig(BaseModel):
    """CORS configuration."""
    enabled: bool = True
    allow_origins: List[str] = Field(default_factory=lambda: ["*"])
    allow_methods: List[str] = Field(default_factory=lambda: ["*"])
    allow_headers: List[str] = Field(default_factory=lambda: ["*"])


class APIConfig(BaseModel):
    """API server configuration."""
    host: str = "0.0.0.0"
    port: int = 8000
    cors: CORSConfig = Field(default_factory=CORSConfig)

    @field_validator('port')
    @classmethod
    def port_must_be_valid(cls, v):
        if not (1 <= v <= 65535):
            raise ValueError('port must be between 1 and 65535')
        return v


class Config(BaseModel):
    """Main configuration class."""
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)
    prober: ProberConfig = Field(default_factory=ProberConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    endpoints: List[EndpointConfig] = Field(default_factory=list)


def load_config(config_path: Optional[str] = None) -> Config:
    """
    Load configuration from a YAML file and environment variables.

    Args:
        config_path: YAML file path; defaults to $CONFIG_PATH or config/config.yaml

    Returns:
        Config: Loaded configuration

    Raises:
        FileNotFoundError: If the config file is missing outside development
        ValueError: If the file is not valid YAML or fails validation
    """
    app_env = os.getenv("APP_ENV", "development")
    config_path = config_path or os.getenv("CONFIG_PATH", "config/config.yaml")

    config_data = {}
    if os.path.exists(config_path):
        try:
            with open(config_path, 'r') as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in config file {config_path}: {e}")
        if not isinstance(config_data, dict):
            raise ValueError(f"Config file {config_path} must contain a mapping")
    elif app_env != "development":
        raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        logger.info("No config file found, using defaults", extra={"path": config_path})

    try:
        config = Config(**config_data)
    except ValidationError as e:
        raise ValueError(f"Configuration validation failed: {e}")

    storage_url = os.getenv("PINGWATCH_STORAGE_URL")
    if storage_url:
        config.storage.url = storage_url

    log_level = os.getenv("LOG_LEVEL")
    if log_level:
        try:
            config.logging = LoggingConfig(**{**config.logging.model_dump(), "level": log_level})
        except ValidationError as e:
            raise ValueError(f"LOG_LEVEL override is invalid: {e}")

    probe_timeout = os.getenv("PINGWATCH_PROBE_TIMEOUT_MS")
    if probe_timeout:
        try:
            timeout_ms = int(probe_timeout)
        except ValueError:
            raise ValueError(f"PINGWATCH_PROBE_TIMEOUT_MS must be an integer, got {probe_timeout!r}")
        if timeout_ms < 1:
            raise ValueError("PINGWATCH_PROBE_TIMEOUT_MS must be at least 1")
        config.monitoring.probe_timeout_ms = timeout_ms

    return config
