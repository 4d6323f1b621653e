"""Fire a one-shot archival action when the calendar day rolls over."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set

from tickerpulse.core.clock import TimePoint


class ArchivalTrigger:
    """Detect day transitions between successive samples.

    The reference day is the day of the last sample passed to :meth:`check`.
    Until the first sample has been seen, the ``previous`` argument stands in
    for it; with neither available nothing can have rolled over.
    """

    def __init__(
        self,
        archive: Callable[[str], Awaitable[object]],
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._archive = archive
        self.logger = logger or logging.getLogger(__name__)
        self.last_day: Optional[str] = None
        self.archived: Set[str] = set()
        self._tasks: Set[asyncio.Task] = set()

    def check(self, current: TimePoint, previous: Optional[TimePoint]) -> Optional[str]:
        """Schedule archival of the day that just ended, if any.

        Returns the archived day key, or None when no archival was fired.
        """

        reference = self.last_day
        if reference is None and previous is not None:
            reference = previous.day_key
        self.last_day = current.day_key

        if reference is None or reference == current.day_key:
            return None
        if reference in self.archived:
            self.logger.warning("Day %s already archived, skipping", reference, extra={"event": "archive_duplicate"})
            return None

        self.archived.add(reference)
        self.logger.info(
            "Day rolled over, archiving %s",
            reference,
            extra={"event": "archive_fired", "day": reference, "next_day": current.day_key},
        )
        task = asyncio.get_running_loop().create_task(self._run(reference))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return reference

    async def drain(self) -> None:
        """Wait for outstanding archive tasks to finish."""

        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run(self, day_key: str) -> None:
        try:
            await self._archive(day_key)
        except Exception:
            self.logger.exception("Archival of %s failed", day_key, extra={"event": "archive_fault", "day": day_key})


__all__ = ["ArchivalTrigger"]
