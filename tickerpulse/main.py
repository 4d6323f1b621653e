"""Entry point for polling one coin's ticker and archiving it daily."""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from typing import List, Optional, Sequence

from tickerpulse.core.clock import Clock
from tickerpulse.core.pulse import PulseConfig, PulseController
from tickerpulse.dashboard.app import run_dashboard
from tickerpulse.data.ticker_client import TickerClient, TickerEndpoint
from tickerpulse.infra.compress import DailyArchiver
from tickerpulse.infra.config import AppConfig, load_config
from tickerpulse.infra.logging import APP_LOGGER, configure_logging
from tickerpulse.infra.metrics import MetricsSink
from tickerpulse.infra.storage import DailyLineWriter
from tickerpulse.service import PulseService

# Invalid Argument: unknown option, or an option requiring a value was given none
EXIT_INVALID_ARGUMENT = 9


def parse_args(argv: Optional[Sequence[str]], supported_coins: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="tickerpulse",
        description="Poll a market ticker at an adaptive interval and archive samples daily.",
    )
    parser.add_argument("coin", nargs="?", help=f"currency pair to poll ({', '.join(supported_coins)})")
    parser.add_argument("-t", "--test", action="store_true", help="write data and logs under the test sandbox")
    parser.add_argument("-c", "--config", default=None, help="path to the YAML settings file")
    return parser.parse_args(argv)


def build_pulse_config(config: AppConfig) -> PulseConfig:
    settings = config.pulse
    return PulseConfig(
        requests_per_minute=settings.requests_per_minute,
        channel_count=len(config.supported_coins),
        min_interval=settings.min_interval,
        max_interval=settings.max_interval,
        backoff_factor=settings.backoff_factor,
        recovery_factor=settings.recovery_factor,
    )


def build_service(config: AppConfig, coin: str, test_mode: bool = False) -> PulseService:
    """Instantiate the poller and its collaborators from configuration."""

    data_dir = config.storage.data_path(test_mode) / coin
    endpoint = TickerEndpoint(
        base_url=config.endpoint.base_url,
        path=config.endpoint.path,
        currency_pair=coin,
        timeout_seconds=config.endpoint.timeout_seconds,
    )
    client = TickerClient(endpoint)
    archiver = DailyArchiver(data_dir)
    metrics = MetricsSink(emit_textfile=config.metrics.emit_textfile)
    if config.metrics.path:
        metrics.metrics_file = config.storage.base_path(test_mode) / config.metrics.path
    return PulseService(
        coin=coin,
        transport=client.send,
        close_transport=client.close,
        pulse=PulseController(build_pulse_config(config)),
        writer=DailyLineWriter(data_dir),
        archive=archiver.archive_async,
        clock=Clock(config.timezone),
        metrics=metrics,
    )


async def run(service: PulseService, config: AppConfig) -> None:
    loop = asyncio.get_running_loop()
    logger = logging.getLogger(APP_LOGGER)

    def _request_stop(signame: str) -> None:
        logger.debug("%s:: restart or stop process", signame, extra={"event": "signal", "signal": signame})
        loop.create_task(service.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _request_stop, sig.name)
        except NotImplementedError:  # pragma: no cover - Windows event loops
            pass

    dashboard = loop.create_task(run_dashboard(config.dashboard, service))
    try:
        await service.run()
    finally:
        await service.stop()
        dashboard.cancel()
        await asyncio.gather(dashboard, return_exceptions=True)


def main(argv: Optional[Sequence[str]] = None) -> int:
    config = load_config(_config_path(argv))
    args = parse_args(argv, config.supported_coins)
    coin = args.coin or config.coin
    if coin not in config.supported_coins:
        print(f"unsupported coin {coin!r}; expected one of {', '.join(config.supported_coins)}", file=sys.stderr)
        return EXIT_INVALID_ARGUMENT

    log_dir = config.storage.log_path(args.test) if config.logging.file_logs else None
    configure_logging(config.logging.level, label=coin, log_dir=log_dir)
    logger = logging.getLogger(APP_LOGGER)

    service = build_service(config, coin, test_mode=args.test)
    try:
        asyncio.run(run(service, config))
    except Exception:
        logger.exception("Process uncaught exception", extra={"event": "uncaught_exception"})
        return 1
    logger.info("Process exiting", extra={"event": "exit", "code": 0})
    return 0


def _config_path(argv: Optional[Sequence[str]]) -> Optional[str]:
    # --config has to be known before the supported coins are
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("-c", "--config", default=None)
    known, _ = pre.parse_known_args(argv)
    return known.config


if __name__ == "__main__":
    sys.exit(main())
