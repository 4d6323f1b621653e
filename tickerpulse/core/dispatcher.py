"""Route each ticker response to a handler bound to its HTTP status code.

Every cycle runs in a fixed order: the pre-hook sees the raw response, then
the handler bound to its status code (if any), then the post-hook. Only the
closed set of codes in :class:`StatusCode` can be bound; any other code falls
through without invoking a handler.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from tickerpulse.core.clock import TimePoint
from tickerpulse.data.ticker_client import TickerResponse


class StatusCode(IntEnum):
    OK = 200
    FORBIDDEN = 403
    TOO_MANY_REQUESTS = 429


@dataclass
class CycleContext:
    """State threaded through the hooks and handler of a single cycle."""

    response: TickerResponse
    request_time: Optional[TimePoint] = None
    previous_time: Optional[TimePoint] = None
    previous_status: Optional[int] = None
    interval_changed: bool = False

    @property
    def status_code(self) -> Optional[int]:
        return self.response.status_code

    @property
    def body(self) -> str:
        return self.response.body


Callback = Callable[[CycleContext], Union[None, Awaitable[None]]]
Transport = Callable[[], Awaitable[TickerResponse]]


class StatusDispatcher:
    """Send one request per :meth:`send` call and dispatch on the status code."""

    def __init__(self, transport: Transport, logger: Optional[logging.Logger] = None) -> None:
        self._transport = transport
        self._handlers: Dict[StatusCode, Callback] = {}
        self._before: Optional[Callback] = None
        self._after: Optional[Callback] = None
        self._closed = False
        self.logger = logger or logging.getLogger(__name__)

    def bind(self, status_code: Union[int, StatusCode], handler: Callback) -> None:
        """Register ``handler`` for ``status_code``; a later bind replaces it."""

        try:
            code = StatusCode(int(status_code))
        except ValueError:
            raise ValueError(f"Status code {status_code!r} cannot be bound") from None
        if code in self._handlers:
            self.logger.debug("Replacing handler for status %s", int(code))
        self._handlers[code] = handler

    def before_all(self, hook: Callback) -> None:
        self._before = hook

    def after_all(self, hook: Callback) -> None:
        self._after = hook

    def handler_for(self, status_code: Optional[int]) -> Optional[Callback]:
        if status_code is None:
            return None
        try:
            return self._handlers.get(StatusCode(status_code))
        except ValueError:
            return None

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Discard any response that completes after this call."""

        self._closed = True

    async def send(self) -> Optional[CycleContext]:
        """Run one request cycle. Returns None when the result was discarded."""

        if self._closed:
            return None
        response = await self._request()
        if self._closed:
            self.logger.debug(
                "Discarding response received after shutdown",
                extra={"event": "response_discarded", "status_code": response.status_code},
            )
            return None

        context = CycleContext(response=response)
        await self._invoke(self._before, context)
        handler = self.handler_for(response.status_code)
        if handler is None:
            self.logger.debug(
                "No handler bound for status",
                extra={"event": "unhandled_status", "status_code": response.status_code},
            )
        else:
            await self._invoke(handler, context)
        await self._invoke(self._after, context)
        return context

    async def _request(self) -> TickerResponse:
        try:
            return await self._transport()
        except (OSError, ValueError) as exc:
            self.logger.warning("Transport raised: %s", exc, extra={"event": "transport_fault"})
            return TickerResponse.failed(str(exc) or exc.__class__.__name__)

    @staticmethod
    async def _invoke(callback: Optional[Callback], context: CycleContext) -> Any:
        if callback is None:
            return None
        result = callback(context)
        if inspect.isawaitable(result):
            return await result
        return result


__all__ = ["CycleContext", "StatusCode", "StatusDispatcher"]
