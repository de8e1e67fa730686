"""
PM2 Alerts Main Entry Point

Connects to the supervisor, feeds lifecycle events into the observer
and delivers notifications to Slack.

Exit codes:
    1  required configuration missing or invalid
    2  failed to connect to the supervisor
    3  failed to launch the event stream, or lost it mid-stream
"""

import asyncio
import logging
import sys
from enum import IntEnum
from typing import Optional

import structlog
import uvicorn
from dotenv import load_dotenv

from .config_loader import ConfigError, Settings, load_config
from .dispatcher import NotificationDispatcher
from .notification_workflow import NotificationWorkflow
from .observer import LifecycleObserver
from .api.server import IngestServer
from .tools.debouncer import seconds_from_ms
from .tools.event_filter import EventFilter
from .tools.message_formatter import MessageFormatter
from .tools.slack_client import SlackClient
from .tools.supervisor_client import (
    BusLaunchError,
    SupervisorClient,
    SupervisorConnectError,
)

logger = structlog.get_logger(__name__)

DRAIN_TIMEOUT_SECONDS = 10.0


class ExitCode(IntEnum):
    CONFIG_MISSING = 1
    SUPERVISOR_CONNECT_FAILED = 2
    BUS_LAUNCH_FAILED = 3


class FatalStartupError(Exception):
    """Startup failure that terminates the process with a specific code"""

    def __init__(self, exit_code: ExitCode, message: str):
        super().__init__(message)
        self.exit_code = exit_code


def configure_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """Configure structured logging"""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
            if log_format == "json"
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class AlertsRunner:
    """
    Alerts Runner

    Builds the observer and dispatcher from settings and runs the
    configured ingest mode.
    """

    def __init__(
        self,
        settings: Settings,
        supervisor: Optional[SupervisorClient] = None,
        slack_client: Optional[SlackClient] = None,
    ):
        """
        Initialize runner.

        Args:
            settings: Loaded settings
            supervisor: Supervisor client (built from settings if omitted)
            slack_client: Webhook client (built from settings if omitted)
        """
        self.settings = settings
        self.supervisor = supervisor or SupervisorClient(
            base_url=settings.supervisor_url,
            timeout=settings.supervisor_timeout,
            connect_attempts=settings.connect_attempts,
        )
        self.slack_client = slack_client or SlackClient()

        workflow = NotificationWorkflow(
            supervisor=self.supervisor,
            slack_client=self.slack_client,
            formatter=MessageFormatter(
                hostname=settings.hostname,
                mentions=settings.mentions,
                tz=settings.timezone,
            ),
            resolve_url=settings.webhook_url_for,
        )
        self.dispatcher = NotificationDispatcher(workflow)
        self.observer = LifecycleObserver(
            sink=self.dispatcher,
            event_filter=EventFilter(
                allowed_events=settings.events,
                allowed_apps=settings.filter,
            ),
            debounce_seconds=seconds_from_ms(settings.debounce_ms),
            suppress_seconds=seconds_from_ms(settings.suppress_ms),
        )

    async def connect(self) -> None:
        try:
            await self.supervisor.connect()
        except SupervisorConnectError as e:
            await self.close_clients()
            raise FatalStartupError(ExitCode.SUPERVISOR_CONNECT_FAILED, str(e)) from e

    async def run_stream(self) -> None:
        """Pump the supervisor event stream into the observer"""
        try:
            events = await self.supervisor.launch_bus()
        except BusLaunchError as e:
            await self.close_clients()
            raise FatalStartupError(ExitCode.BUS_LAUNCH_FAILED, str(e)) from e

        await self.dispatcher.start()
        try:
            async for event in events:
                self.observer.ingest(event)
        except BusLaunchError as e:
            await self.shutdown()
            raise FatalStartupError(ExitCode.BUS_LAUNCH_FAILED, str(e)) from e
        except BaseException:
            await self.shutdown()
            raise

        logger.warning("Event stream closed by supervisor")
        await self.shutdown(flush=True)

    async def run_http(self) -> None:
        """Serve the push ingest API"""
        server = IngestServer(observer=self.observer, dispatcher=self.dispatcher)
        config = uvicorn.Config(
            server.app,
            host=self.settings.host,
            port=self.settings.port,
            log_level=self.settings.log_level.lower(),
        )
        logger.info("Starting ingest server", host=self.settings.host, port=self.settings.port)
        try:
            await uvicorn.Server(config).serve()
        finally:
            await self.close_clients()

    async def run(self) -> None:
        await self.connect()
        if self.settings.ingest_mode == "http":
            await self.run_http()
        else:
            await self.run_stream()

    async def shutdown(self, flush: bool = False) -> None:
        """
        Stop timers, the dispatcher and HTTP clients.

        Args:
            flush: Classify pending windows and deliver queued
                notifications (bounded by DRAIN_TIMEOUT_SECONDS) first
        """
        if flush:
            self.observer.flush_pending()
            try:
                await asyncio.wait_for(self.dispatcher.drain(), timeout=DRAIN_TIMEOUT_SECONDS)
            except asyncio.TimeoutError:
                logger.warning(
                    "Gave up waiting for queued notifications",
                    pending=self.dispatcher.pending,
                )
        self.observer.close()
        await self.dispatcher.stop()
        await self.close_clients()

    async def close_clients(self) -> None:
        await self.supervisor.close()
        await self.slack_client.close()


def main() -> None:
    """Console entry point"""
    load_dotenv()

    try:
        settings = load_config()
    except ConfigError as e:
        configure_logging()
        logger.error("Configuration error", error=str(e))
        sys.exit(ExitCode.CONFIG_MISSING)

    configure_logging(settings.log_level, settings.log_format)

    runner = AlertsRunner(settings)
    try:
        asyncio.run(runner.run())
    except FatalStartupError as e:
        logger.error("Fatal startup error", exit_code=int(e.exit_code), error=str(e))
        sys.exit(e.exit_code)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")


if __name__ == "__main__":
    main()
