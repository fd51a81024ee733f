"""Notification poller: refreshes the unread badge as a fallback to push."""
from __future__ import annotations

import asyncio
import logging

from chat_client.services.notification_service import NotificationCenter

logger = logging.getLogger(__name__)


class NotificationPoller:
    """Background task calling ``refresh_unread_count`` every ``interval`` seconds."""

    def __init__(self, center: NotificationCenter, interval: float) -> None:
        self._center = center
        self._interval = interval
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="notification-poller")
        logger.info("Notification poller started (interval=%.1fs)", self._interval)

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("Notification poller stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self._center.refresh_unread_count()
            except Exception:
                logger.exception("Notification poller loop error")
