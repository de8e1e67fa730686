"""
PM2 Alerts

Turns bursts of PM2 process lifecycle events into a handful of
readable Slack notifications.

Quick Start:
    export PM2_SLACK_URL=https://hooks.slack.com/services/XXXXX/YYYYY/ZZZZZ
    export PM2_SLACK_SUPERVISOR_URL=http://127.0.0.1:9615
    pm2-alerts

Embedding:
    from pm2_alerts import LifecycleObserver, RawEvent

    observer = LifecycleObserver(sink=my_dispatcher)
    observer.ingest(RawEvent(app_name="api", instance_id=0, event="exit"))
"""

from .observer import LifecycleObserver
from .dispatcher import NotificationDispatcher
from .notification_workflow import NotificationWorkflow
from .config_loader import load_config, Settings, ConfigError
from .schemas.events import RawEvent, SemanticNotification

__version__ = "1.0.0"

__all__ = [
    "LifecycleObserver",
    "NotificationDispatcher",
    "NotificationWorkflow",
    "load_config",
    "Settings",
    "ConfigError",
    "RawEvent",
    "SemanticNotification",
]
