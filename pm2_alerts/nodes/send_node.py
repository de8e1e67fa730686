"""Send Node - deliver the payload to the app's webhook"""
from typing import Any, Callable, Optional
import structlog

from ..schemas.notification import SlackPayload
from ..tools.slack_client import SlackClient

logger = structlog.get_logger(__name__)


async def send_node(
    state: dict[str, Any],
    client: SlackClient,
    resolve_url: Callable[[str], Optional[str]],
) -> dict[str, Any]:
    """
    Post the formatted payload once. No retry.
    """
    app_name = state.get("app_name", "")
    webhook_url = resolve_url(app_name)
    nodes = state.get("nodes_executed", []) + ["send"]

    if not webhook_url:
        logger.error("No webhook URL configured", app=app_name)
        return {
            "current_node": "send",
            "nodes_executed": nodes,
            "sent": False,
            "status": "failed",
            "error": "no webhook URL",
        }

    result = await client.send_message(
        webhook_url=webhook_url,
        payload=SlackPayload(**state["slack_payload"]),
    )

    update = {
        "current_node": "send",
        "nodes_executed": nodes,
        "webhook_url": webhook_url,
        "sent": result.success,
        "status_code": result.status_code,
        "status": "sent" if result.success else "failed",
    }
    if not result.success:
        update["error"] = result.error or "delivery failed"
    return update
