"""
Event Filter

Decides whether a raw supervisor event is eligible for processing.
"""

from typing import Iterable, Optional

import structlog

from ..schemas.events import RawEvent

logger = structlog.get_logger(__name__)

DEFAULT_EVENTS = ("online", "exit", "stopped", "errored", "disconnected")


class EventFilter:
    """
    Allow-list filter over event types and application names.

    An empty allow-list admits everything on that axis. Events without an
    instance id are always rejected since the instance tracker needs one.
    """

    def __init__(
        self,
        allowed_events: Optional[Iterable[str]] = DEFAULT_EVENTS,
        allowed_apps: Optional[Iterable[str]] = None,
    ):
        """
        Initialize event filter.

        Args:
            allowed_events: Event types to accept (empty = all)
            allowed_apps: Application names to accept (empty = all)
        """
        self.allowed_events = frozenset(allowed_events or ())
        self.allowed_apps = frozenset(allowed_apps or ())

    def accept(self, app_name: str, event_type: str) -> bool:
        """Check event type and application against the allow-lists"""
        if self.allowed_events and event_type not in self.allowed_events:
            return False
        if self.allowed_apps and app_name not in self.allowed_apps:
            return False
        return True

    def accept_event(self, event: RawEvent) -> bool:
        """
        Check a full raw event.

        Args:
            event: Incoming raw event

        Returns:
            True if the event should reach the state machine
        """
        if event.instance_id is None:
            logger.debug(
                "Dropping event without instance id",
                app=event.app_name,
                event_type=event.event,
            )
            return False
        return self.accept(event.app_name, event.event)
