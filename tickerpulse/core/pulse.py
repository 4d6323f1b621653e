"""Adaptive polling interval driven by observed HTTP status codes.

The baseline interval spreads a per-minute request quota across every
tracked channel so the aggregate rate of all pollers sharing the quota stays
under the server's limit. Throttling responses push the interval up by a
multiplicative factor; a run of consecutive throttles only counts once.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

OK = 200
TOO_MANY_REQUESTS = 429


@dataclass
class PulseConfig:
    """Rate budget and backoff bounds, in seconds."""

    requests_per_minute: float = 60.0
    channel_count: int = 1
    min_interval: float = 1.0
    max_interval: float = 60.0
    backoff_factor: float = 2.0
    # 1.0 keeps the interval where it is on success; > 1.0 steps back toward baseline
    recovery_factor: float = 1.0


@dataclass
class PulseState:
    current_interval: float
    last_status: Optional[int] = None
    consecutive_throttles: int = 0


class PulseController:
    """Own the current polling interval and adjust it per status code."""

    def __init__(self, config: Optional[PulseConfig] = None, logger: Optional[logging.Logger] = None) -> None:
        self.config = config or PulseConfig()
        self.logger = logger or logging.getLogger(__name__)
        self._floor = self._safe_floor()
        self._ceiling = max(self._floor, self._safe_ceiling())
        self.baseline = self._clamp(self._compute_baseline())
        self.state = PulseState(current_interval=self.baseline)

    def get_interval(self) -> float:
        return self.state.current_interval

    def update(self, status_code: Optional[int]) -> bool:
        """Fold one observed status code into the state.

        Returns True when the interval changed. Codes other than 200 and 429,
        including ``None`` for a missing response, are remembered as the last
        status but leave the interval and the throttle streak untouched.
        """

        if status_code == TOO_MANY_REQUESTS:
            return self._on_throttled()
        if status_code == OK:
            return self._on_success()
        self.state.last_status = status_code
        return False

    def reset(self) -> None:
        self.state = PulseState(current_interval=self.baseline)

    def _on_throttled(self) -> bool:
        state = self.state
        repeated = state.last_status == TOO_MANY_REQUESTS
        state.last_status = TOO_MANY_REQUESTS
        state.consecutive_throttles += 1
        if repeated:
            return False
        factor = self._finite(self.config.backoff_factor, 1.0)
        return self._set_interval(state.current_interval * max(factor, 1.0))

    def _on_success(self) -> bool:
        state = self.state
        state.last_status = OK
        state.consecutive_throttles = 0
        factor = self._finite(self.config.recovery_factor, 1.0)
        if factor <= 1.0 or state.current_interval <= self.baseline:
            return False
        return self._set_interval(max(self.baseline, state.current_interval / factor))

    def _set_interval(self, value: float) -> bool:
        previous = self.state.current_interval
        self.state.current_interval = self._clamp(value)
        changed = self.state.current_interval != previous
        if changed:
            self.logger.debug(
                "Pulse interval adjusted",
                extra={"event": "pulse_adjusted", "previous": previous, "interval": self.state.current_interval},
            )
        return changed

    def _compute_baseline(self) -> float:
        quota = self._finite(self.config.requests_per_minute, 0.0)
        channels = self.config.channel_count
        if quota <= 0 or not channels or channels <= 0:
            self.logger.warning(
                "Invalid pulse budget, falling back to minimum interval",
                extra={"event": "pulse_invalid_budget", "requests_per_minute": quota, "channel_count": channels},
            )
            return self._floor
        return 60.0 / (quota / channels)

    def _clamp(self, value: float) -> float:
        if math.isnan(value) or value <= 0:
            return self._floor
        return min(max(value, self._floor), self._ceiling)

    def _safe_ceiling(self) -> float:
        ceiling = self._finite(self.config.max_interval, 0.0)
        if ceiling > 0:
            return ceiling
        self.logger.warning(
            "Invalid maximum interval, using %ss",
            PulseConfig.max_interval,
            extra={"event": "pulse_invalid_ceiling", "max_interval": self.config.max_interval},
        )
        return PulseConfig.max_interval

    def _safe_floor(self) -> float:
        floor = self._finite(self.config.min_interval, 0.0)
        return floor if floor > 0 else 1.0

    @staticmethod
    def _finite(value: object, default: float) -> float:
        try:
            number = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return default
        return number if math.isfinite(number) else default


__all__ = ["PulseConfig", "PulseController", "PulseState"]
