"""Wire the polling core to transport, storage, and archival for one coin."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from tickerpulse.core.archival import ArchivalTrigger
from tickerpulse.core.clock import Clock, TimePoint
from tickerpulse.core.dispatcher import CycleContext, StatusCode, StatusDispatcher
from tickerpulse.core.pulse import PulseController
from tickerpulse.core.scheduler import SchedulingLoop
from tickerpulse.data.ticker_client import TickerResponse
from tickerpulse.infra.logging import APP_LOGGER, HTTP_LOGGER
from tickerpulse.infra.metrics import MetricsSink
from tickerpulse.infra.storage import DailyLineWriter


class PulseService:
    """Owns the process-wide polling state for a single currency pair.

    The current interval lives in the :class:`PulseController`; the time and
    status of the previous cycle live here and are only written by the
    dispatcher hooks, which run strictly one cycle at a time.
    """

    def __init__(
        self,
        coin: str,
        transport: Callable[[], Awaitable[TickerResponse]],
        pulse: PulseController,
        writer: DailyLineWriter,
        archive: Callable[[str], Awaitable[object]],
        clock: Optional[Clock] = None,
        metrics: Optional[MetricsSink] = None,
        close_transport: Optional[Callable[[], None]] = None,
        http_logger: Optional[logging.Logger] = None,
        app_logger: Optional[logging.Logger] = None,
    ) -> None:
        self.coin = coin
        self.pulse = pulse
        self.writer = writer
        self.clock = clock or Clock()
        self.metrics = metrics or MetricsSink()
        self.close_transport = close_transport
        self.http_logger = http_logger or logging.getLogger(HTTP_LOGGER)
        self.app_logger = app_logger or logging.getLogger(APP_LOGGER)

        self.current_time: Optional[TimePoint] = None
        self.previous_time: Optional[TimePoint] = None
        self.previous_status: Optional[int] = None
        self.samples_written = 0

        self.archival = ArchivalTrigger(archive, logger=self.app_logger)
        self.dispatcher = StatusDispatcher(transport, logger=self.http_logger)
        self.loop = SchedulingLoop(self.dispatcher.send, self.pulse.get_interval, logger=self.app_logger)
        self._bind()

    def _bind(self) -> None:
        self.dispatcher.before_all(self._before_all)
        self.dispatcher.after_all(self._after_all)
        self.dispatcher.bind(StatusCode.OK, self._on_ok)
        self.dispatcher.bind(StatusCode.TOO_MANY_REQUESTS, self._on_too_many_requests)
        self.dispatcher.bind(StatusCode.FORBIDDEN, self._on_forbidden)

    # --- lifecycle --------------------------------------------------------
    def start(self) -> None:
        self.app_logger.info(
            "Starting ticker poller for %s",
            self.coin,
            extra={"event": "service_started", "interval": self.pulse.get_interval()},
        )
        self.loop.start()

    async def run(self) -> None:
        """Start polling and block until the loop stops or faults."""

        self.start()
        try:
            await self.loop.wait()
        finally:
            await self.archival.drain()

    async def stop(self) -> None:
        self.app_logger.info("Stopping ticker poller for %s", self.coin, extra={"event": "service_stopping"})
        self.dispatcher.close()
        self.loop.stop()
        await self.loop.settle()
        await self.archival.drain()
        if self.close_transport is not None:
            self.close_transport()
            self.close_transport = None

    def snapshot(self) -> Dict[str, Any]:
        state = self.pulse.state
        return {
            "coin": self.coin,
            "loop_state": self.loop.state.value,
            "cycles": self.loop.cycles,
            "armed_interval": self.loop.interval,
            "interval": state.current_interval,
            "baseline": self.pulse.baseline,
            "last_status": state.last_status,
            "consecutive_throttles": state.consecutive_throttles,
            "previous_status": self.previous_status,
            "previous_time": self.previous_time.display() if self.previous_time else None,
            "samples_written": self.samples_written,
        }

    # --- hooks ------------------------------------------------------------
    def _before_all(self, context: CycleContext) -> None:
        context.interval_changed = self.pulse.update(context.status_code)
        self.current_time = self.clock.now()
        context.request_time = self.current_time
        context.previous_time = self.previous_time
        context.previous_status = self.previous_status
        self.metrics.record_response(context.status_code, self.pulse.get_interval(), context.response.elapsed_ms)
        if context.status_code is None:
            self.http_logger.warning(
                "No response from ticker endpoint: %s",
                context.response.error,
                extra={"event": "transport_fault"},
            )

    def _after_all(self, context: CycleContext) -> None:
        self.previous_time = context.request_time
        self.previous_status = context.status_code

    # --- status handlers --------------------------------------------------
    async def _on_ok(self, context: CycleContext) -> None:
        now = context.request_time
        if now is None:
            raise RuntimeError("Success handler ran before the request time was recorded")
        self.archival.check(now, context.previous_time)
        self.writer.set_format(lambda data: f"{now.display()} {data}\n")
        try:
            await self.writer.write_with_format_async(now.day_key, context.body)
        except OSError as exc:
            self.app_logger.error(
                "Failed to persist sample: %s",
                exc,
                extra={"event": "persistence_fault", "day": now.day_key},
            )
        else:
            self.samples_written += 1
        if context.interval_changed:
            self.loop.restart()

    def _on_too_many_requests(self, context: CycleContext) -> None:
        # 429 arrives in bursts; adjust the timer once per streak
        if context.previous_status == StatusCode.TOO_MANY_REQUESTS:
            return
        self.http_logger.debug(
            "status code is %s with %sms",
            context.status_code,
            int(self.pulse.get_interval() * 1000),
            extra={"event": "throttled", "interval": self.pulse.get_interval()},
        )
        self.loop.restart()

    def _on_forbidden(self, context: CycleContext) -> None:
        if context.previous_status == StatusCode.FORBIDDEN:
            return
        self.http_logger.error(
            "Received 403 Forbidden from ticker endpoint",
            extra={"event": "forbidden", "body": context.body[:200]},
        )


__all__ = ["PulseService"]
