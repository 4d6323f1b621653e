"""Infrastructure utilities for config, logging, metrics, and persistence."""

from .compress import DailyArchiver
from .config import AppConfig, load_config
from .logging import configure_logging
from .metrics import MetricsSink
from .storage import DailyLineWriter

__all__ = [
    "AppConfig",
    "load_config",
    "configure_logging",
    "MetricsSink",
    "DailyArchiver",
    "DailyLineWriter",
]
