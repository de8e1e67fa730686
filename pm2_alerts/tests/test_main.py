"""
Tests for the runner and entry point
"""

import json
import os

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock

from .. import main as main_module
from ..config_loader import Settings
from ..main import AlertsRunner, ExitCode, FatalStartupError
from ..tools.supervisor_client import BusLaunchError, SupervisorClient, SupervisorConnectError
from ..schemas.events import ProcessDescription
from ..schemas.notification import SendSlackOutput
from .helpers import PROCESS_DESCRIPTION, DroppingStream, make_event

GLOBAL_URL = "https://hooks.slack.com/services/T000/B000/XXX"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("PM2_SLACK_"):
            monkeypatch.delenv(key)
    monkeypatch.setattr(main_module, "load_dotenv", lambda: None)


@pytest.fixture
def supervisor():
    client = MagicMock()
    client.connect = AsyncMock()
    client.launch_bus = AsyncMock()
    client.describe = AsyncMock(return_value=[ProcessDescription(**PROCESS_DESCRIPTION)])
    client.close = AsyncMock()
    return client


@pytest.fixture
def slack_client():
    client = MagicMock()
    client.send_message = AsyncMock(return_value=SendSlackOutput(success=True, status_code=200))
    client.close = AsyncMock()
    return client


def make_runner(supervisor, slack_client, **overrides) -> AlertsRunner:
    settings = Settings(url=GLOBAL_URL, **overrides)
    return AlertsRunner(settings, supervisor=supervisor, slack_client=slack_client)


async def stream(*events):
    for event in events:
        yield event


class TestAlertsRunner:
    """Tests for startup and stream pumping"""

    def test_wiring_from_settings(self, supervisor, slack_client):
        runner = make_runner(
            supervisor,
            slack_client,
            filter="api",
            debounce_ms=500,
        )

        assert runner.observer.event_filter.allowed_apps == {"api"}
        assert runner.observer.debouncer.delay_seconds == 0.5
        assert runner.observer.sink is runner.dispatcher

    @pytest.mark.asyncio
    async def test_connect_failure_is_fatal(self, supervisor, slack_client):
        supervisor.connect.side_effect = SupervisorConnectError("refused")
        runner = make_runner(supervisor, slack_client)

        with pytest.raises(FatalStartupError) as exc_info:
            await runner.run()

        assert exc_info.value.exit_code == ExitCode.SUPERVISOR_CONNECT_FAILED
        supervisor.launch_bus.assert_not_awaited()
        supervisor.close.assert_awaited()
        slack_client.close.assert_awaited()

    @pytest.mark.asyncio
    async def test_bus_launch_failure_is_fatal(self, supervisor, slack_client):
        supervisor.launch_bus.side_effect = BusLaunchError("no bus")
        runner = make_runner(supervisor, slack_client)

        with pytest.raises(FatalStartupError) as exc_info:
            await runner.run()

        assert exc_info.value.exit_code == ExitCode.BUS_LAUNCH_FAILED
        supervisor.close.assert_awaited()
        slack_client.close.assert_awaited()

    @pytest.mark.asyncio
    async def test_stream_lost_is_fatal(self, slack_client):
        def handler(request):
            if request.url.path == "/health":
                return httpx.Response(200)
            line = json.dumps({"event": "exit", "process": {"name": "api", "pm_id": 0}})
            return httpx.Response(200, stream=DroppingStream(line))

        supervisor = SupervisorClient(
            base_url="http://supervisor",
            transport=httpx.MockTransport(handler),
        )
        runner = make_runner(supervisor, slack_client, debounce_ms=60_000)

        with pytest.raises(FatalStartupError) as exc_info:
            await runner.run()

        assert exc_info.value.exit_code == ExitCode.BUS_LAUNCH_FAILED
        assert runner.observer.tracker.state("api").exited == {0}
        assert not runner.observer.debouncer.is_pending("api")
        slack_client.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_stream_end_flushes_final_burst(self, supervisor, slack_client):
        supervisor.launch_bus.return_value = stream(
            make_event("exit", instance_id=0),
            make_event("exit", instance_id=1),
            make_event("exit", app="worker", instance_id=2),
        )
        runner = make_runner(supervisor, slack_client, filter="api", debounce_ms=60_000)

        await runner.run()

        # Open window classified and handed to the workflow before shutdown
        supervisor.describe.assert_awaited_once_with("api")
        slack_client.send_message.assert_awaited_once()
        assert runner.observer.tracker.state("api").is_empty()
        assert not runner.observer.tracker.has_state("worker")
        assert not runner.observer.debouncer.is_pending("api")
        assert runner.dispatcher.pending == 0
        supervisor.close.assert_awaited_once()
        slack_client.close.assert_awaited_once()


class TestMain:
    """Tests for the console entry point"""

    def test_missing_url_exits_1(self):
        with pytest.raises(SystemExit) as exc_info:
            main_module.main()

        assert exc_info.value.code == ExitCode.CONFIG_MISSING

    def test_fatal_startup_exit_code(self, monkeypatch):
        monkeypatch.setenv("PM2_SLACK_URL", GLOBAL_URL)

        async def fail(self):
            raise FatalStartupError(ExitCode.SUPERVISOR_CONNECT_FAILED, "refused")

        monkeypatch.setattr(AlertsRunner, "run", fail)

        with pytest.raises(SystemExit) as exc_info:
            main_module.main()

        assert exc_info.value.code == 2

    def test_unknown_timezone_exits_1(self, monkeypatch):
        monkeypatch.setenv("PM2_SLACK_URL", GLOBAL_URL)
        monkeypatch.setenv("PM2_SLACK_TIMEZONE", "Mars/Olympus")

        with pytest.raises(SystemExit) as exc_info:
            main_module.main()

        assert exc_info.value.code == ExitCode.CONFIG_MISSING
