"""
Notification Dispatcher

Non-blocking handoff between the observer and the notification
workflow. notify() only enqueues; a background worker delivers.
"""

import asyncio
from typing import Optional

import structlog

from .notification_workflow import NotificationWorkflow
from .schemas.events import SemanticNotification

logger = structlog.get_logger(__name__)


class NotificationDispatcher:
    """
    Queue-backed dispatcher.

    Delivery failures are logged and swallowed; they never reach the
    observer and are never retried.
    """

    def __init__(
        self,
        workflow: NotificationWorkflow,
        max_queue_size: int = 1000,
    ):
        """
        Args:
            workflow: Runs enrich/format/send for each notification
            max_queue_size: Notifications beyond this are dropped
        """
        self.workflow = workflow
        self._queue: asyncio.Queue[SemanticNotification] = asyncio.Queue(maxsize=max_queue_size)
        self._worker: Optional[asyncio.Task] = None

    def notify(self, notification: SemanticNotification) -> None:
        """Enqueue a notification without waiting for delivery"""
        try:
            self._queue.put_nowait(notification)
        except asyncio.QueueFull:
            logger.warning(
                "Notification queue full, dropping",
                app=notification.app_name,
                kind=notification.kind,
            )

    async def start(self) -> None:
        """Start the background delivery worker"""
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._run(), name="notification-dispatcher")
            logger.info("Dispatcher started")

    async def _run(self) -> None:
        while True:
            notification = await self._queue.get()
            try:
                await self.workflow.execute(notification)
            except Exception as e:
                logger.exception(
                    "Notification dispatch failed",
                    app=notification.app_name,
                    kind=notification.kind,
                    error=str(e),
                )
            finally:
                self._queue.task_done()

    async def drain(self) -> None:
        """Wait until every queued notification has been handled"""
        await self._queue.join()

    async def stop(self) -> None:
        """Cancel the worker; undelivered notifications are abandoned"""
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None
            logger.info("Dispatcher stopped")

    @property
    def pending(self) -> int:
        return self._queue.qsize()
