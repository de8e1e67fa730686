"""
Instance Set Tracker

Per-application sets of instance ids seen exiting and coming online
since the last debounce flush.
"""

from dataclasses import dataclass, field
from typing import Set

import structlog

logger = structlog.get_logger(__name__)


@dataclass
class AppDebounceState:
    """
    Accumulated lifecycle state for one application.

    An id may sit in both sets at once (exited, then back online
    within the same window).
    """
    exited: Set[int] = field(default_factory=set)
    online: Set[int] = field(default_factory=set)

    def is_empty(self) -> bool:
        return not self.exited and not self.online


class InstanceSetTracker:
    """Owned registry of AppDebounceState keyed by application name"""

    def __init__(self):
        self._states: dict[str, AppDebounceState] = {}

    def state(self, app_name: str) -> AppDebounceState:
        """Get state for an app, creating it on first access"""
        if app_name not in self._states:
            self._states[app_name] = AppDebounceState()
        return self._states[app_name]

    def has_state(self, app_name: str) -> bool:
        return app_name in self._states

    def record_exit(self, app_name: str, instance_id: int) -> None:
        self.state(app_name).exited.add(instance_id)

    def record_online(self, app_name: str, instance_id: int) -> None:
        self.state(app_name).online.add(instance_id)

    def reset(self, app_name: str) -> None:
        """
        Clear both sets for an app.

        The (now empty) state is kept rather than deleted.
        """
        state = self.state(app_name)
        state.exited.clear()
        state.online.clear()
        logger.debug("Reset instance sets", app=app_name)
