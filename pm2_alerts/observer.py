"""
Lifecycle Observer

Coalesces raw per-instance supervisor events into application-level
notifications.

Paths:
- exit / online: accumulate into per-app instance sets, classify once
  the per-app debounce window goes quiet
- stopped / errored / disconnected: notify immediately
- noisy types (log, error, kill, ...): notify on first occurrence, then
  mute that (app, event) pair for the suppression window
"""

from typing import Optional, Protocol

import structlog

from .schemas.events import RawEvent, SemanticNotification
from .tools.classifier import (
    SENTINEL_EVENTS,
    classify,
    lifecycle_message,
    noisy_message,
    sentinel_message,
)
from .tools.debouncer import (
    DEFAULT_DELAY_SECONDS,
    LifecycleDebouncer,
    NoisyEventSuppressor,
)
from .tools.event_filter import EventFilter
from .tools.instance_tracker import InstanceSetTracker

logger = structlog.get_logger(__name__)

NOISY_EVENTS = (
    "log",
    "error",
    "kill",
    "exception",
    "reload",
    "delete",
    "restart overlimit",
)


class NotificationSink(Protocol):
    """Dispatcher boundary. Must not block."""

    def notify(self, notification: SemanticNotification) -> None:
        ...


class LifecycleObserver:
    """
    Owns the per-app instance sets and both timer tables.

    All methods run on the event loop thread; no locking.
    """

    def __init__(
        self,
        sink: NotificationSink,
        event_filter: Optional[EventFilter] = None,
        debounce_seconds: float = DEFAULT_DELAY_SECONDS,
        suppress_seconds: float = DEFAULT_DELAY_SECONDS,
    ):
        """
        Initialize observer.

        Args:
            sink: Receives classified notifications
            event_filter: Eligibility filter (defaults to the standard allow-list)
            debounce_seconds: Quiet period before classifying exit/online bursts
            suppress_seconds: Mute window for noisy event types
        """
        self.sink = sink
        self.event_filter = event_filter or EventFilter()
        self.tracker = InstanceSetTracker()
        self.debouncer = LifecycleDebouncer(self._flush, delay_seconds=debounce_seconds)
        self.suppressor = NoisyEventSuppressor(window_seconds=suppress_seconds)

    def ingest(self, event: RawEvent) -> bool:
        """
        Process one raw event.

        Args:
            event: Incoming supervisor event

        Returns:
            True if the event passed the filter
        """
        if not self.event_filter.accept_event(event):
            return False

        app = event.app_name
        event_type = event.event

        if event_type == "exit":
            self.tracker.record_exit(app, event.instance_id)
            self.debouncer.touch(app)
        elif event_type == "online":
            self.tracker.record_online(app, event.instance_id)
            self.debouncer.touch(app)
        elif event_type in SENTINEL_EVENTS:
            self._emit(app, event_type, sentinel_message(app, event_type))
        elif event_type in NOISY_EVENTS:
            if self.suppressor.should_notify(app, event_type):
                self._emit(app, event_type, noisy_message(app, event_type))
        else:
            logger.debug("Ignoring unhandled event type", app=app, event_type=event_type)

        return True

    def _flush(self, app: str) -> None:
        """Debounce timer callback: classify, maybe notify, then reset"""
        state = self.tracker.state(app)
        classification = classify(state.exited, state.online)

        if classification is None:
            if not state.is_empty():
                logger.info(
                    "Ambiguous instance sets, no notification",
                    app=app,
                    exited=sorted(state.exited),
                    online=sorted(state.online),
                )
        else:
            self._emit(
                app,
                classification.kind,
                lifecycle_message(app, classification),
                classification.instance_ids,
            )

        self.tracker.reset(app)

    def _emit(self, app: str, kind: str, message: str, instance_ids=()) -> None:
        notification = SemanticNotification(
            app_name=app,
            kind=kind,
            message=message,
            instance_ids=list(instance_ids),
        )
        logger.info("Emitting notification", app=app, kind=kind, text=message)
        self.sink.notify(notification)

    def flush_pending(self) -> None:
        """Classify every open lifecycle window immediately"""
        self.debouncer.flush()

    def close(self) -> None:
        """Cancel pending timers (shutdown only)"""
        self.debouncer.close()
        self.suppressor.close()
