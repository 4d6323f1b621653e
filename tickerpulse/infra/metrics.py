"""Lightweight metrics sink for poller instrumentation."""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional


@dataclass
class MetricsSink:
    """Collects response counters and pulse gauges."""

    counters: Dict[str, int] = field(default_factory=dict)
    gauges: Dict[str, float] = field(default_factory=dict)
    metrics_file: Path = Path("var/metrics.prom")
    emit_textfile: bool = False
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("tickerpulse.metrics"))
    _lock: threading.Lock = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._lock = threading.Lock()

    def record_response(self, status_code: Optional[int], interval: float, elapsed_ms: Optional[float]) -> None:
        """Count one cycle outcome and refresh the pulse gauges."""

        counter = "transport_faults_total" if status_code is None else f"responses_{status_code}_total"
        with self._lock:
            self.counters["requests_total"] = self.counters.get("requests_total", 0) + 1
            self.counters[counter] = self.counters.get(counter, 0) + 1
            self.gauges["pulse_interval_seconds"] = float(interval)
            if elapsed_ms is not None:
                self.gauges["last_latency_ms"] = float(elapsed_ms)
            self._persist_unlocked()

    def export(self) -> Dict[str, float | int]:
        with self._lock:
            snapshot = {**self.counters, **self.gauges}
        return snapshot

    def render(self) -> str:
        with self._lock:
            return self._render_prom_text()

    def _persist_unlocked(self) -> None:
        if not self.emit_textfile:
            return
        try:
            self.metrics_file.parent.mkdir(parents=True, exist_ok=True)
            temp_path = self.metrics_file.with_suffix(".tmp")
            temp_path.write_text(self._render_prom_text(), encoding="utf-8")
            os.replace(temp_path, self.metrics_file)
        except OSError as exc:
            self.logger.warning("Could not write metrics textfile: %s", exc)

    def _render_prom_text(self) -> str:
        lines = []
        for name, value in sorted(self.counters.items()):
            lines.append(f"tickerpulse_{name} {int(value)}")
        for name, value in sorted(self.gauges.items()):
            lines.append(f"tickerpulse_{name} {float(value)}")
        return "\n".join(lines) + "\n"


__all__ = ["MetricsSink"]
