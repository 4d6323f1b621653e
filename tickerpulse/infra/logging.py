"""Logging configuration helpers."""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

HTTP_LOGGER = "tickerpulse.http"
APP_LOGGER = "tickerpulse.app"


class JsonFormatter(logging.Formatter):
    """Emit structured JSON logs for downstream parsing."""

    _standard_attrs = {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
    }

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 - logging interface name
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack_info"] = record.stack_info

        extras = {key: value for key, value in record.__dict__.items() if key not in self._standard_attrs}
        payload.update(extras)
        return json.dumps(payload, default=str)


class LabelFilter(logging.Filter):
    """Stamp every record with the coin the process is polling."""

    def __init__(self, label: str) -> None:
        super().__init__()
        self.label = label

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "label"):
            record.label = self.label
        return True


def configure_logging(
    default_level: str = "INFO",
    label: Optional[str] = None,
    log_dir: Optional[Path] = None,
    channels: Iterable[str] = (HTTP_LOGGER, APP_LOGGER),
) -> None:
    """Configure the root logger using environment overrides.

    With ``log_dir`` set, each channel also writes to
    ``<log_dir>/debug/<channel>_<label>.log`` and
    ``<log_dir>/error/<channel>_<label>.log``.
    """

    level_name = os.getenv("LOG_LEVEL", default_level)
    level = getattr(logging, level_name.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter())
    if label:
        handler.addFilter(LabelFilter(label))
    root.addHandler(handler)

    if log_dir is None:
        return
    suffix = f"_{label}" if label else ""
    for channel in channels:
        logger = logging.getLogger(channel)
        logger.setLevel(logging.DEBUG)
        for stale in list(logger.handlers):
            logger.removeHandler(stale)
            stale.close()
        short_name = channel.rsplit(".", 1)[-1]
        for sub_dir, file_level in (("debug", logging.DEBUG), ("error", logging.ERROR)):
            path = Path(log_dir) / sub_dir / f"{short_name}{suffix}.log"
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(path, encoding="utf-8")
            file_handler.setLevel(file_level)
            file_handler.setFormatter(JsonFormatter())
            if label:
                file_handler.addFilter(LabelFilter(label))
            logger.addHandler(file_handler)


__all__ = ["configure_logging", "JsonFormatter", "LabelFilter", "HTTP_LOGGER", "APP_LOGGER"]
