"""Minimal FastAPI dashboard exposing pulse state and metrics."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from tickerpulse.infra.config import DashboardConfig
from tickerpulse.service import PulseService


def create_app(service: PulseService) -> FastAPI:
    app = FastAPI(title="Ticker Pulse Dashboard", version="0.1")

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {"status": "ok", "coin": service.coin, "loop_state": service.loop.state.value}

    @app.get("/pulse")
    async def pulse() -> Dict[str, Any]:
        return service.snapshot()

    @app.get("/metrics", response_class=PlainTextResponse)
    async def metrics() -> str:
        return service.metrics.render()

    return app


async def run_dashboard(config: DashboardConfig, service: PulseService) -> None:
    """Serve the dashboard if enabled."""

    if not config.enable:
        return

    import uvicorn

    app = create_app(service)
    config_kwargs = {"host": config.host, "port": config.port, "log_level": "info"}
    server = uvicorn.Server(uvicorn.Config(app, **config_kwargs))
    # signals belong to the poller
    server.install_signal_handlers = lambda: None  # type: ignore[method-assign]
    await server.serve()


__all__ = ["create_app", "run_dashboard"]
