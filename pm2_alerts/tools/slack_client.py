"""Slack Webhook Client"""
from typing import Optional
import httpx
import structlog

from ..schemas.notification import SlackPayload, SendSlackOutput

logger = structlog.get_logger(__name__)


class SlackClient:
    """
    Slack incoming-webhook client.

    One POST per notification; failures are reported, never retried.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def send_message(
        self,
        webhook_url: str,
        payload: SlackPayload,
    ) -> SendSlackOutput:
        """
        Post a message to a Slack webhook.

        Returns:
            SendSlackOutput; success is False on any HTTP failure
        """
        logger.info(
            "Sending Slack message",
            attachments=len(payload.attachments),
            username=payload.username,
        )

        try:
            client = await self._get_client()
            response = await client.post(webhook_url, json=payload.model_dump())
            response.raise_for_status()

            logger.info("Slack message sent", status_code=response.status_code)
            return SendSlackOutput(
                success=True,
                status_code=response.status_code,
            )

        except httpx.HTTPStatusError as e:
            logger.warning(
                "Slack webhook rejected message",
                status_code=e.response.status_code,
                error=str(e),
            )
            return SendSlackOutput(
                success=False,
                status_code=e.response.status_code,
                error=str(e),
            )

        except httpx.HTTPError as e:
            logger.warning("Slack webhook unavailable", error=str(e))
            return SendSlackOutput(success=False, error=str(e))

    async def close(self):
        """Close HTTP client"""
        if self._client:
            await self._client.aclose()
            self._client = None
