"""Timer-driven loop that fires one request cycle per interval."""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Awaitable, Callable, Optional


class LoopState(str, enum.Enum):
    IDLE = "idle"
    ARMED = "armed"
    RUNNING = "running"
    STOPPED = "stopped"


class SchedulingLoop:
    """Fire ``cycle`` repeatedly, re-arming after each cycle completes.

    The loop keeps the interval it was armed with until :meth:`restart` is
    called, at which point it reads ``interval_source`` again. Cycles never
    overlap: the next timer is only armed once the previous cycle finished,
    and there is never more than one pending timer.
    """

    def __init__(
        self,
        cycle: Callable[[], Awaitable[object]],
        interval_source: Callable[[], float],
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._cycle = cycle
        self._interval_source = interval_source
        self.logger = logger or logging.getLogger(__name__)
        self.state = LoopState.IDLE
        self.interval: Optional[float] = None
        self.cycles = 0
        self._timer: Optional[asyncio.TimerHandle] = None
        self._in_flight: Optional[asyncio.Task] = None
        self._restart_pending = False
        self._done: Optional[asyncio.Future] = None

    @property
    def in_flight(self) -> bool:
        return self._in_flight is not None and not self._in_flight.done()

    def start(self) -> None:
        if self.state is not LoopState.IDLE:
            raise RuntimeError(f"Loop cannot start from state {self.state.value}")
        self._done = asyncio.get_running_loop().create_future()
        self.interval = self._interval_source()
        self._arm()

    def restart(self) -> None:
        """Cancel the pending timer and re-arm with the current interval."""

        if self.state in (LoopState.IDLE, LoopState.STOPPED):
            return
        self._cancel_timer()
        if self.in_flight:
            # re-armed by the cycle's completion
            self._restart_pending = True
            return
        self.interval = self._interval_source()
        self._arm()

    def stop(self) -> None:
        if self.state is LoopState.STOPPED:
            return
        self.state = LoopState.STOPPED
        self._cancel_timer()
        self.logger.info("Scheduling loop stopped", extra={"event": "loop_stopped", "cycles": self.cycles})
        if self._done is not None and not self._done.done():
            self._done.set_result(None)

    async def wait(self) -> None:
        """Block until the loop stops; re-raise a fault that escaped a cycle."""

        if self._done is None:
            raise RuntimeError("Loop was never started")
        await self._done
        await self.settle()

    async def settle(self) -> None:
        """Wait for the in-flight cycle, if any, to finish."""

        task = self._in_flight
        if task is not None and not task.done() and task is not asyncio.current_task():
            await asyncio.wait({task})

    def _arm(self) -> None:
        loop = asyncio.get_running_loop()
        if self.interval is None:
            raise RuntimeError("Loop armed without an interval")
        self._timer = loop.call_later(self.interval, self._fire)
        self.state = LoopState.ARMED
        self.logger.debug("Timer armed", extra={"event": "loop_armed", "interval": self.interval})

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self) -> None:
        self._timer = None
        if self.state is LoopState.STOPPED or self.in_flight:
            return
        self.state = LoopState.RUNNING
        self._in_flight = asyncio.get_running_loop().create_task(self._run_cycle())

    async def _run_cycle(self) -> None:
        try:
            await self._cycle()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            # surfaced by wait()
            self.state = LoopState.STOPPED
            self._cancel_timer()
            if self._done is not None and not self._done.done():
                self._done.set_exception(exc)
            return
        finally:
            self.cycles += 1

        if self.state is LoopState.STOPPED:
            return
        if self._restart_pending:
            self._restart_pending = False
            self.interval = self._interval_source()
        self._arm()


__all__ = ["LoopState", "SchedulingLoop"]
