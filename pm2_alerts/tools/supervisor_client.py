"""
Supervisor Client

Async HTTP client for the process-supervisor bridge.

Endpoints:
- GET /health              connect handshake
- GET /events              NDJSON stream of process:event messages
- GET /processes/{name}    JSON list of process descriptions
"""

import json
from typing import AsyncIterator, List, Optional
from urllib.parse import quote

import httpx
import structlog
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..schemas.events import ProcessDescription, RawEvent

logger = structlog.get_logger(__name__)


class SupervisorClientError(Exception):
    """Base exception for supervisor client errors"""
    pass


class SupervisorConnectError(SupervisorClientError):
    """Supervisor unreachable during the connect handshake"""
    pass


class BusLaunchError(SupervisorClientError):
    """Event stream could not be opened"""
    pass


class DescribeError(SupervisorClientError):
    """Process description lookup failed"""
    pass


class SupervisorClient:
    """
    Supervisor bridge client.

    Supports:
    - Connect handshake with retry and exponential backoff (via tenacity)
    - Streaming lifecycle events as RawEvent
    - Describing an application's processes
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:9615",
        timeout: float = 10.0,
        connect_attempts: int = 3,
        retry_backoff: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize supervisor client.

        Args:
            base_url: Supervisor bridge base URL
            timeout: Request timeout in seconds (not applied to the event stream read)
            connect_attempts: Handshake attempts before giving up
            retry_backoff: Exponential backoff multiplier between attempts
            transport: Optional httpx transport (tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.connect_attempts = connect_attempts
        self.retry_backoff = retry_backoff
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def connect(self) -> None:
        """
        Verify the supervisor is reachable.

        Raises:
            SupervisorConnectError: handshake failed after all attempts
        """
        client = self._get_client()
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.connect_attempts),
                wait=wait_exponential(multiplier=self.retry_backoff, min=0, max=10),
                retry=retry_if_exception_type((httpx.TimeoutException, httpx.ConnectError)),
                reraise=True,
            ):
                with attempt:
                    response = await client.get("/health")
                    response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Failed to connect to supervisor", url=self.base_url, error=str(e))
            raise SupervisorConnectError(f"Cannot connect to supervisor at {self.base_url}: {e}") from e

        logger.info("Connected to supervisor", url=self.base_url)

    async def launch_bus(self) -> AsyncIterator[RawEvent]:
        """
        Open the event stream.

        The stream is opened eagerly so launch failures surface here and
        not on first iteration.

        Returns:
            Async iterator of RawEvent

        Raises:
            BusLaunchError: stream could not be opened
        """
        client = self._get_client()
        request = client.build_request(
            "GET",
            "/events",
            timeout=httpx.Timeout(self.timeout, read=None),
        )
        try:
            response = await client.send(request, stream=True)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            await e.response.aclose()
            logger.error("Failed to launch event bus", status_code=e.response.status_code)
            raise BusLaunchError(f"Event stream rejected: HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error("Failed to launch event bus", error=str(e))
            raise BusLaunchError(f"Event stream unavailable: {e}") from e

        logger.info("Event bus launched", url=f"{self.base_url}/events")
        return self._iter_events(response)

    async def _iter_events(self, response: httpx.Response) -> AsyncIterator[RawEvent]:
        """
        Parse NDJSON lines into RawEvent, skipping malformed ones.

        Raises:
            BusLaunchError: connection lost mid-stream
        """
        try:
            async for line in response.aiter_lines():
                if not line.strip():
                    continue
                try:
                    data = json.loads(line)
                    yield RawEvent.from_bus_payload(data)
                except (json.JSONDecodeError, ValidationError, AttributeError) as e:
                    logger.warning("Skipping malformed bus message", error=str(e))
        except httpx.HTTPError as e:
            logger.error("Event bus connection lost", error=str(e))
            raise BusLaunchError(f"Event stream interrupted: {e}") from e
        finally:
            await response.aclose()

    async def describe(self, app_name: str) -> List[ProcessDescription]:
        """
        Describe an application's processes.

        Args:
            app_name: Application name

        Returns:
            Non-empty list of ProcessDescription

        Raises:
            DescribeError: lookup failed or returned nothing
        """
        client = self._get_client()
        try:
            response = await client.get(f"/processes/{quote(app_name, safe='')}")
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise DescribeError(f"Failed to describe {app_name}: {e}") from e

        if not isinstance(data, list) or not data:
            raise DescribeError(f"No process description for {app_name}")

        try:
            return [ProcessDescription(**item) for item in data]
        except (TypeError, ValidationError) as e:
            raise DescribeError(f"Invalid process description for {app_name}: {e}") from e

    async def close(self) -> None:
        """Close HTTP client"""
        if self._client:
            await self._client.aclose()
            self._client = None
