"""
Debounce Scheduler

Two per-key timer tables over asyncio.TimerHandle:

- LifecycleDebouncer: trailing-edge. Each touch cancels the pending
  timer for the key and schedules a new one, so a steady stream of
  events keeps extending the window.
- NoisyEventSuppressor: leading-edge mute. The first occurrence of a
  key passes and arms a timer; repeats are dropped until it fires.
"""

import asyncio
from typing import Callable, Hashable, Optional

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_DELAY_SECONDS = 2.0


class LifecycleDebouncer:
    """
    Trailing-edge debounce keyed by application name.

    At most one pending timer per key.
    """

    def __init__(
        self,
        on_fire: Callable[[str], None],
        delay_seconds: float = DEFAULT_DELAY_SECONDS,
    ):
        """
        Initialize lifecycle debouncer.

        Args:
            on_fire: Called with the key once the window goes quiet
            delay_seconds: Quiet period required before firing
        """
        self.on_fire = on_fire
        self.delay_seconds = delay_seconds
        self._timers: dict[str, asyncio.TimerHandle] = {}

    def touch(self, key: str) -> None:
        """Cancel any pending timer for key and start a fresh window"""
        existing = self._timers.pop(key, None)
        if existing is not None:
            existing.cancel()

        loop = asyncio.get_running_loop()
        self._timers[key] = loop.call_later(self.delay_seconds, self._fire, key)

        logger.debug(
            "Debounce window (re)started",
            key=key,
            delay_seconds=self.delay_seconds,
            extended=existing is not None,
        )

    def _fire(self, key: str) -> None:
        self._timers.pop(key, None)
        self.on_fire(key)

    def is_pending(self, key: str) -> bool:
        return key in self._timers

    def flush(self) -> None:
        """Fire every pending window now instead of waiting for it"""
        for key in list(self._timers):
            handle = self._timers.pop(key)
            handle.cancel()
            self.on_fire(key)

    def close(self) -> None:
        """Cancel every pending timer (shutdown only)"""
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()


class NoisyEventSuppressor:
    """
    Leading-edge mute keyed by (application, event type).

    Suppressed occurrences neither re-arm nor extend the window.
    """

    def __init__(self, window_seconds: float = DEFAULT_DELAY_SECONDS):
        """
        Initialize suppressor.

        Args:
            window_seconds: Mute duration after a notifying occurrence
        """
        self.window_seconds = window_seconds
        self._muted: dict[Hashable, asyncio.TimerHandle] = {}

    def should_notify(self, app_name: str, event_type: str) -> bool:
        """
        Record an occurrence and report whether it should notify.

        Returns:
            True for the first occurrence of a key outside a mute window
        """
        key = (app_name, event_type)
        if key in self._muted:
            logger.debug("Suppressed repeated event", app=app_name, event_type=event_type)
            return False

        loop = asyncio.get_running_loop()
        self._muted[key] = loop.call_later(self.window_seconds, self._release, key)
        return True

    def _release(self, key: Hashable) -> None:
        self._muted.pop(key, None)

    def is_muted(self, app_name: str, event_type: str) -> bool:
        return (app_name, event_type) in self._muted

    def close(self) -> None:
        """Cancel every pending mute (shutdown only)"""
        for handle in self._muted.values():
            handle.cancel()
        self._muted.clear()


def seconds_from_ms(value_ms: Optional[int]) -> float:
    """Convert a millisecond setting to the seconds call_later expects"""
    if value_ms is None:
        return DEFAULT_DELAY_SECONDS
    return value_ms / 1000.0
