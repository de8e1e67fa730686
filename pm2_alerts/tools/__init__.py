"""
PM2 Alerts Tools
"""

from .event_filter import EventFilter, DEFAULT_EVENTS
from .instance_tracker import InstanceSetTracker, AppDebounceState
from .debouncer import LifecycleDebouncer, NoisyEventSuppressor
from .classifier import (
    LifecycleClassification,
    classify,
    lifecycle_message,
    SENTINEL_EVENTS,
)
from .supervisor_client import (
    SupervisorClient,
    SupervisorClientError,
    SupervisorConnectError,
    BusLaunchError,
    DescribeError,
)
from .slack_client import SlackClient
from .message_formatter import MessageFormatter

__all__ = [
    "EventFilter",
    "DEFAULT_EVENTS",
    "InstanceSetTracker",
    "AppDebounceState",
    "LifecycleDebouncer",
    "NoisyEventSuppressor",
    "LifecycleClassification",
    "classify",
    "lifecycle_message",
    "SENTINEL_EVENTS",
    "SupervisorClient",
    "SupervisorClientError",
    "SupervisorConnectError",
    "BusLaunchError",
    "DescribeError",
    "SlackClient",
    "MessageFormatter",
]
