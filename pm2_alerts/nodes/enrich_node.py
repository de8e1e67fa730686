"""
Enrich Node

Look up runtime metrics for the notified application.
Flow: enrich -> format | log (on failure)
"""

from typing import Any

import structlog

from ..tools.supervisor_client import SupervisorClient

logger = structlog.get_logger(__name__)


async def enrich_node(state: dict[str, Any], supervisor: SupervisorClient) -> dict[str, Any]:
    """
    Enrich Node - Describe the app via the supervisor.

    A failed lookup aborts delivery of this notification only.

    Args:
        state: Current workflow state
        supervisor: Supervisor client used for the lookup

    Returns:
        Updated state with the first process description
    """
    app_name = state.get("app_name", "")

    try:
        descriptions = await supervisor.describe(app_name)
    except Exception as e:
        logger.error(
            "Failed to get process description",
            app=app_name,
            kind=state.get("kind"),
            error=str(e),
        )
        return {
            "current_node": "enrich",
            "nodes_executed": state.get("nodes_executed", []) + ["enrich"],
            "status": "failed",
            "error": f"describe failed: {e}",
        }

    return {
        "current_node": "enrich",
        "nodes_executed": state.get("nodes_executed", []) + ["enrich"],
        "description": descriptions[0].model_dump(),
        "status": "enriched",
    }
