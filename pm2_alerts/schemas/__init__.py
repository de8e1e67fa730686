"""
PM2 Alerts Schemas
"""

from .events import (
    RawEvent,
    SemanticNotification,
    ProcessDescription,
    ProcessMonit,
    UNKNOWN_APP,
)
from .notification import SlackAttachment, SlackPayload, SendSlackOutput
from .state import WorkflowState, NotificationState

__all__ = [
    "RawEvent",
    "SemanticNotification",
    "ProcessDescription",
    "ProcessMonit",
    "UNKNOWN_APP",
    "SlackAttachment",
    "SlackPayload",
    "SendSlackOutput",
    "WorkflowState",
    "NotificationState",
]
