"""HTTP transport for the ticker endpoint.

One call issues a single GET and reports the status code and raw body. Any
network failure is folded into a response without a status code so callers
never have to guard the polling loop against transport exceptions.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Dict, Optional

import requests


@dataclass
class TickerEndpoint:
    """Where and how to fetch the ticker.

    Attributes:
        base_url: Scheme and host of the exchange API.
        path: Ticker resource path.
        currency_pair: Value for the ``currency_pair`` query parameter.
        timeout_seconds: Per-request timeout enforced by the transport.
    """

    base_url: str = "https://api.korbit.co.kr"
    path: str = "/v1/ticker/detailed"
    currency_pair: str = "btc_krw"
    timeout_seconds: float = 10.0

    @property
    def url(self) -> str:
        return f"{self.base_url.rstrip('/')}{self.path}"


@dataclass
class TickerResponse:
    """Outcome of one request. ``status_code`` is None when no response arrived."""

    status_code: Optional[int]
    body: str = ""
    elapsed_ms: Optional[float] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status_code is not None and 200 <= self.status_code < 300

    @classmethod
    def failed(cls, error: str, elapsed_ms: Optional[float] = None) -> "TickerResponse":
        return cls(status_code=None, body="", elapsed_ms=elapsed_ms, error=error)


class TickerClient:
    """Fetch the ticker for one currency pair via ``requests``."""

    def __init__(
        self,
        endpoint: Optional[TickerEndpoint] = None,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.endpoint = endpoint or TickerEndpoint()
        self.session = session or requests.Session()
        self.logger = logger or logging.getLogger(__name__)

    def fetch(self) -> TickerResponse:
        """Issue one blocking GET and wrap the outcome."""

        started = time.monotonic()
        try:
            response = self.session.get(
                self.endpoint.url,
                params=self._params(),
                headers={"Accept": "application/json"},
                timeout=self.endpoint.timeout_seconds,
            )
        except requests.RequestException as exc:
            elapsed_ms = (time.monotonic() - started) * 1000
            self.logger.warning(
                "GET %s failed: %s",
                self.endpoint.url,
                exc,
                extra={"event": "transport_fault", "elapsed_ms": elapsed_ms},
            )
            return TickerResponse.failed(str(exc) or exc.__class__.__name__, elapsed_ms=elapsed_ms)

        elapsed_ms = (time.monotonic() - started) * 1000
        return TickerResponse(status_code=response.status_code, body=response.text, elapsed_ms=elapsed_ms)

    async def send(self) -> TickerResponse:
        """Run :meth:`fetch` off the event loop."""

        return await asyncio.to_thread(self.fetch)

    def close(self) -> None:
        self.session.close()

    def _params(self) -> Dict[str, str]:
        return {"currency_pair": self.endpoint.currency_pair}


__all__ = ["TickerClient", "TickerEndpoint", "TickerResponse"]
