"""Uptime monitor entry point."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import signal

import httpx
import structlog

from uptime_monitor.config import ConfigError, MonitorConfig, load_config
from uptime_monitor.notifications import SlackNotifier
from uptime_monitor.probe import HttpProbe
from uptime_monitor.scheduler import CheckCycle, MonitorScheduler


logger = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_ALERTED = 2


def configure_logging(level: str = "INFO") -> None:
    numeric_level = getattr(logging, str(level).upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # httpx logs full request URLs at INFO, which would leak the webhook secret.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


async def run_monitor(config: MonitorConfig, once: bool = False) -> int:
    logger.info(
        "Starting uptime monitor",
        domain_count=len(config.domains),
        interval_minutes=config.check_interval_minutes,
        alerts_enabled=config.alerts_enabled,
    )

    async with httpx.AsyncClient() as http_client:
        cycle = CheckCycle(
            config=config,
            probe=HttpProbe(http_client),
            notifier=SlackNotifier(
                config.slack_webhook_url,
                client=http_client,
                timeout=config.notify_timeout_seconds,
            ),
        )

        if once:
            report = await cycle.run()
            return EXIT_ALERTED if report is not None and report.alerted else EXIT_OK

        scheduler = MonitorScheduler(cycle, config.check_interval_minutes)
        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, stop_event.set)
            except NotImplementedError:
                # Windows event loops do not support signal handlers; Ctrl+C still raises.
                pass

        scheduler.start()
        try:
            await stop_event.wait()
        finally:
            logger.info("Shutting down uptime monitor")
            scheduler.stop()

    return EXIT_OK


def main() -> int:
    parser = argparse.ArgumentParser(description="Recurring domain uptime checker with Slack alerts")
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML/JSON config (default: $UPTIME_MONITOR_CONFIG or config/monitor.yaml)",
    )
    parser.add_argument("--once", action="store_true", help="Run one check cycle and exit")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (INFO, WARNING, ...); overrides the config file",
    )
    args = parser.parse_args()

    configure_logging(args.log_level or os.getenv("LOG_LEVEL", "INFO"))

    try:
        config = load_config(args.config)
    except ConfigError as e:
        logger.error("Error loading config", error=str(e))
        return EXIT_CONFIG_ERROR

    if not args.log_level and config.log_level:
        configure_logging(config.log_level)

    try:
        return asyncio.run(run_monitor(config, once=bool(args.once)))
    except KeyboardInterrupt:
        logger.info("Shutting down uptime monitor")
        return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
