"""Format Message Node - build the Slack payload"""
from typing import Any
import structlog

from ..schemas.events import ProcessDescription, SemanticNotification
from ..tools.message_formatter import MessageFormatter

logger = structlog.get_logger(__name__)


async def format_message_node(state: dict[str, Any], formatter: MessageFormatter) -> dict[str, Any]:
    """
    Generate the webhook payload from the notification and its description.
    """
    notification = SemanticNotification(
        app_name=state["app_name"],
        kind=state["kind"],
        message=state.get("message", ""),
        instance_ids=state.get("instance_ids", []),
    )
    description = ProcessDescription(**(state.get("description") or {}))

    try:
        payload = formatter.format_message(notification, description)
    except Exception as e:
        logger.error("Failed to format message", app=notification.app_name, error=str(e))
        return {
            "current_node": "format",
            "nodes_executed": state.get("nodes_executed", []) + ["format"],
            "status": "failed",
            "error": f"Message formatting failed: {str(e)}",
        }

    return {
        "current_node": "format",
        "nodes_executed": state.get("nodes_executed", []) + ["format"],
        "slack_payload": payload.model_dump(),
        "status": "formatted",
    }
