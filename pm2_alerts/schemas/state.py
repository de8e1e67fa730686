"""
LangGraph Workflow State Definitions

TypedDicts that flow through the notification workflow nodes.
"""

from typing import Any, TypedDict, Optional, List, Literal


class WorkflowState(TypedDict, total=False):
    """
    Base workflow state.

    Common fields:
    - Task identification (task_id)
    - Execution tracking (current_node, nodes_executed)
    - Results (result, error)
    """

    # ============== Task Identification ==============
    task_id: str                          # Unique per dispatched notification

    # ============== Execution Tracking ==============
    current_node: str                     # Currently executing node name
    started_at: str                       # ISO timestamp of start
    nodes_executed: list[str]             # List of executed node names

    # ============== Final Results ==============
    result: dict[str, Any]                # Structured summary of the run
    error: Optional[str]                  # Set by the node that failed


class NotificationState(WorkflowState, total=False):
    """
    State for the notification workflow.

    Flow: ENRICH -> FORMAT -> SEND -> LOG
    """
    # Notification request
    app_name: str
    kind: str
    message: str
    instance_ids: List[int]

    # Enrichment
    description: Optional[dict[str, Any]]

    # Formatting
    slack_payload: Optional[dict[str, Any]]

    # Delivery
    webhook_url: Optional[str]
    sent: bool
    status_code: Optional[int]

    status: Literal["running", "enriched", "formatted", "sent", "failed", "completed"]
