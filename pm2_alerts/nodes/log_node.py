"""Log Results Node - record the notification outcome"""
from typing import Any
import structlog

logger = structlog.get_logger(__name__)


async def log_results_node(state: dict[str, Any]) -> dict[str, Any]:
    """
    Record notification outcome and build the result summary.
    """
    app_name = state.get("app_name", "unknown")
    kind = state.get("kind", "unknown")
    sent = state.get("sent", False)
    error = state.get("error")

    if sent:
        logger.info(
            "Notification delivered",
            app=app_name,
            kind=kind,
            instance_ids=state.get("instance_ids", []),
            status_code=state.get("status_code"),
        )
    else:
        logger.warning(
            "Notification not delivered",
            app=app_name,
            kind=kind,
            error=error,
        )

    return {
        "current_node": "log",
        "nodes_executed": state.get("nodes_executed", []) + ["log"],
        "status": "completed" if sent else "failed",
        "result": {
            "app_name": app_name,
            "kind": kind,
            "sent": sent,
            "error": error,
        },
    }
