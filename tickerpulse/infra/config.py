"""Config loading utilities for the ticker poller and dashboard."""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml

DEFAULT_CONFIG_PATH = "config/settings.yaml"
DEFAULT_SUPPORTED_COINS = ["btc_krw", "etc_krw", "eth_krw", "xrp_krw"]
TEST_ENV_DIR_NAME = "korbit_sphere"


@dataclass
class EndpointConfig:
    base_url: str = "https://api.korbit.co.kr"
    path: str = "/v1/ticker/detailed"
    timeout_seconds: float = 10.0


@dataclass
class PulseSettings:
    requests_per_minute: float = 60.0
    min_interval: float = 1.0
    max_interval: float = 60.0
    backoff_factor: float = 2.0
    recovery_factor: float = 1.0


@dataclass
class StorageConfig:
    root: str = "."
    data_dir: str = "data"
    log_dir: str = "log"

    def data_path(self, test_mode: bool = False) -> Path:
        return self.base_path(test_mode) / self.data_dir

    def log_path(self, test_mode: bool = False) -> Path:
        return self.base_path(test_mode) / self.log_dir

    def base_path(self, test_mode: bool = False) -> Path:
        base = Path(self.root).expanduser()
        return base / TEST_ENV_DIR_NAME if test_mode else base


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file_logs: bool = True


@dataclass
class MetricsConfig:
    emit_textfile: bool = False
    path: str = "var/metrics.prom"


@dataclass
class DashboardConfig:
    host: str = "127.0.0.1"
    port: int = 8000
    enable: bool = False


@dataclass
class AppConfig:
    coin: Optional[str] = None
    supported_coins: List[str] = field(default_factory=lambda: list(DEFAULT_SUPPORTED_COINS))
    timezone: str = "UTC"
    endpoint: EndpointConfig = field(default_factory=EndpointConfig)
    pulse: PulseSettings = field(default_factory=PulseSettings)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    dashboard: DashboardConfig = field(default_factory=DashboardConfig)


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load configuration from YAML, defaulting every section when absent."""

    resolved = Path(path or env_or_default("CONFIG_PATH", DEFAULT_CONFIG_PATH)).expanduser()
    if not resolved.exists():
        logging.getLogger(__name__).warning("Config file %s not found, using defaults", resolved)
        return AppConfig()
    with resolved.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    return parse_config(raw)


def parse_config(raw: dict) -> AppConfig:
    endpoint = raw.get("endpoint") or {}
    pulse = raw.get("pulse") or {}
    storage = raw.get("storage") or {}
    log_cfg = raw.get("logging") or {}
    metrics = raw.get("metrics") or {}
    dashboard = raw.get("dashboard") or {}

    return AppConfig(
        coin=raw.get("coin"),
        supported_coins=list(raw.get("supported_coins") or DEFAULT_SUPPORTED_COINS),
        timezone=raw.get("timezone", "UTC"),
        endpoint=EndpointConfig(
            base_url=endpoint.get("base_url", "https://api.korbit.co.kr"),
            path=endpoint.get("path", "/v1/ticker/detailed"),
            timeout_seconds=float(endpoint.get("timeout_seconds", 10.0)),
        ),
        pulse=PulseSettings(
            requests_per_minute=float(pulse.get("requests_per_minute", 60.0)),
            min_interval=_bounded_seconds(pulse, "min_interval", 1.0),
            max_interval=_bounded_seconds(pulse, "max_interval", 60.0),
            backoff_factor=float(pulse.get("backoff_factor", 2.0)),
            recovery_factor=float(pulse.get("recovery_factor", 1.0)),
        ),
        storage=StorageConfig(
            root=storage.get("root", "."),
            data_dir=storage.get("data_dir", "data"),
            log_dir=storage.get("log_dir", "log"),
        ),
        logging=LoggingConfig(
            level=log_cfg.get("level", "INFO"),
            file_logs=log_cfg.get("file_logs", True),
        ),
        metrics=MetricsConfig(
            emit_textfile=metrics.get("emit_textfile", False),
            path=metrics.get("path", "var/metrics.prom"),
        ),
        dashboard=DashboardConfig(
            host=dashboard.get("host", "127.0.0.1"),
            port=int(dashboard.get("port", 8000)),
            enable=dashboard.get("enable", False),
        ),
    )


def _bounded_seconds(section: dict, key: str, default: float) -> float:
    value = float(section.get(key, default))
    if not math.isfinite(value) or value <= 0:
        raise ValueError(f"pulse.{key} must be a positive, finite number of seconds, got {value!r}")
    return value


def env_or_default(key: str, default: str) -> str:
    return os.getenv(key, default)


__all__ = [
    "load_config",
    "parse_config",
    "AppConfig",
    "EndpointConfig",
    "PulseSettings",
    "StorageConfig",
    "LoggingConfig",
    "MetricsConfig",
    "DashboardConfig",
    "TEST_ENV_DIR_NAME",
]
