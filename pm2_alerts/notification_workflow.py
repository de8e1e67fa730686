"""
Notification Workflow

LangGraph workflow delivering one semantic notification.
Flow: ENRICH -> FORMAT -> SEND -> LOG
ENRICH or FORMAT failures route straight to LOG; nothing is sent.
"""

from typing import Any, Callable, Optional

import structlog
from langgraph.graph import StateGraph, START, END

from .workflow import BaseWorkflow, make_error_check
from .schemas.events import SemanticNotification
from .schemas.state import NotificationState
from .tools.message_formatter import MessageFormatter
from .tools.slack_client import SlackClient
from .tools.supervisor_client import SupervisorClient
from .nodes import (
    enrich_node,
    format_message_node,
    send_node,
    log_results_node,
)

logger = structlog.get_logger(__name__)


class NotificationWorkflow(BaseWorkflow):
    """
    Notification Workflow

    - ENRICH: describe the app for uptime/memory/CPU
    - FORMAT: build the Slack attachment payload
    - SEND: post to the per-app or global webhook
    - LOG: record the outcome
    """

    def __init__(
        self,
        supervisor: SupervisorClient,
        slack_client: SlackClient,
        formatter: MessageFormatter,
        resolve_url: Callable[[str], Optional[str]],
        name: str = "notification",
    ):
        """
        Args:
            supervisor: Used for the describe lookup
            slack_client: Webhook sender
            formatter: Payload builder
            resolve_url: Maps an app name to its webhook URL
        """
        super().__init__(name=name)
        self.supervisor = supervisor
        self.slack_client = slack_client
        self.formatter = formatter
        self.resolve_url = resolve_url

    def get_state_class(self) -> type:
        """Return NotificationState TypedDict"""
        return NotificationState

    def build_graph(self, graph: StateGraph) -> None:
        """Wire nodes with their collaborators bound"""

        async def enrich(state: dict) -> dict:
            return await enrich_node(state, self.supervisor)

        async def format_message(state: dict) -> dict:
            return await format_message_node(state, self.formatter)

        async def send(state: dict) -> dict:
            return await send_node(state, self.slack_client, self.resolve_url)

        graph.add_node("enrich", enrich)
        graph.add_node("format", format_message)
        graph.add_node("send", send)
        graph.add_node("log", log_results_node)

        check_error = make_error_check()

        graph.add_edge(START, "enrich")
        graph.add_conditional_edges(
            "enrich",
            check_error,
            {"success": "format", "error": "log"},
        )
        graph.add_conditional_edges(
            "format",
            check_error,
            {"success": "send", "error": "log"},
        )
        graph.add_edge("send", "log")
        graph.add_edge("log", END)

    async def execute(self, notification: SemanticNotification) -> dict[str, Any]:
        """
        Deliver one notification.

        Returns:
            Result summary from the LOG node
        """
        final_state = await self.run(
            app_name=notification.app_name,
            kind=notification.kind,
            message=notification.message,
            instance_ids=list(notification.instance_ids),
        )
        return final_state.get("result", {})
