"""Wall-clock helpers that bucket instants into calendar days."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional
from zoneinfo import ZoneInfo

DAY_KEY_FORMAT = "%Y-%m-%d"


@dataclass(frozen=True, order=True)
class TimePoint:
    """An observed instant with day-bucket and display accessors."""

    instant: datetime

    @property
    def day_key(self) -> str:
        return self.instant.strftime(DAY_KEY_FORMAT)

    def display(self) -> str:
        return self.instant.isoformat(timespec="milliseconds")

    def is_day_passed(self, other: "TimePoint") -> bool:
        """Return True when ``other`` falls in a different calendar day."""

        return self.day_key != other.day_key

    def seconds_since(self, other: "TimePoint") -> float:
        return (self.instant - other.instant).total_seconds()


class Clock:
    """Produce :class:`TimePoint` values in a fixed timezone."""

    def __init__(self, tz: str = "UTC", now_fn: Optional[Callable[[], datetime]] = None) -> None:
        self.tz = timezone.utc if tz.upper() == "UTC" else ZoneInfo(tz)
        self._now_fn = now_fn

    def now(self) -> TimePoint:
        if self._now_fn is None:
            return TimePoint(datetime.now(self.tz))
        instant = self._now_fn()
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=self.tz)
        return TimePoint(instant.astimezone(self.tz))


__all__ = ["Clock", "TimePoint", "DAY_KEY_FORMAT"]
