"""Data access layer for the ticker endpoint."""

from .ticker_client import TickerClient, TickerEndpoint, TickerResponse

__all__ = [
    "TickerClient",
    "TickerEndpoint",
    "TickerResponse",
]
