"""
Workflow Base

Thin wrapper over a LangGraph StateGraph: subclasses declare their state
TypedDict and wire nodes; this class compiles once and runs.
"""

from typing import Any, Callable
from datetime import datetime
from abc import ABC, abstractmethod
from uuid import uuid4

import structlog
from langgraph.graph import StateGraph

logger = structlog.get_logger(__name__)


class BaseWorkflow(ABC):
    """Compile-once LangGraph runner"""

    def __init__(self, name: str):
        self.name = name
        self._compiled = None

    @abstractmethod
    def get_state_class(self) -> type:
        """TypedDict describing the graph state"""

    @abstractmethod
    def build_graph(self, graph: StateGraph) -> None:
        """Add nodes and edges to ``graph``"""

    def get_initial_state(self, **inputs: Any) -> dict[str, Any]:
        """Bookkeeping fields plus the caller's inputs"""
        return {
            "task_id": inputs.pop("task_id", None) or uuid4().hex[:12],
            "current_node": "start",
            "started_at": datetime.utcnow().isoformat(),
            "nodes_executed": [],
            "error": None,
            **inputs,
        }

    def compile(self) -> Any:
        if self._compiled is None:
            graph = StateGraph(self.get_state_class())
            self.build_graph(graph)
            self._compiled = graph.compile()
            logger.info("Workflow graph compiled", workflow=self.name)
        return self._compiled

    async def run(self, **inputs: Any) -> dict[str, Any]:
        """
        Run the graph to completion.

        Args:
            **inputs: Initial state fields

        Returns:
            Final state
        """
        state = self.get_initial_state(**inputs)
        logger.debug("Running workflow", workflow=self.name, task_id=state["task_id"])

        final_state = await self.compile().ainvoke(state)

        nodes = final_state.get("nodes_executed", [])
        if final_state.get("error"):
            logger.warning(
                "Workflow ended with error",
                workflow=self.name,
                task_id=final_state.get("task_id"),
                error=final_state["error"],
                nodes=nodes,
            )
        else:
            logger.debug("Workflow done", workflow=self.name, nodes=nodes)

        return final_state


def make_error_check() -> Callable[[dict], str]:
    """Conditional-edge router: "error" when the state carries one"""

    def route(state: dict) -> str:
        return "error" if state.get("error") else "success"

    return route
