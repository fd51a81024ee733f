from __future__ import annotations

import dataclasses
import logging
from typing import Any

from chat_client.application.exceptions import AppError
from chat_client.application.ports.api import NotificationApi
from chat_client.domain.entities.notification import Notification
from chat_client.infrastructure.ws.connection import ConnectionManager
from chat_client.infrastructure.ws.protocol import NOTIFICATION_NEW, NOTIFICATIONS_UPDATED

logger = logging.getLogger(__name__)


class NotificationCenter:
    """Unread badge and notification panel.

    Push events and the poller both call the same refresh; whichever response
    completes last sets the visible state.
    """

    def __init__(self, api: NotificationApi, *, page_size: int = 10) -> None:
        self._api = api
        self._page_size = page_size
        self._notifications: list[Notification] = []
        self.unread_count = 0
        self.panel_open = False
        self.loading = False

    def bind(self, connection: ConnectionManager) -> None:
        connection.on(NOTIFICATION_NEW, self._on_push)
        connection.on(NOTIFICATIONS_UPDATED, self._on_push)

    @property
    def notifications(self) -> tuple[Notification, ...]:
        return tuple(self._notifications)

    async def refresh_unread_count(self) -> int:
        try:
            self.unread_count = await self._api.unread_count()
        except AppError as exc:
            logger.warning("Fetching unread notification count failed: %s", exc.detail)
        return self.unread_count

    async def load_notifications(self) -> None:
        self.loading = True
        try:
            self._notifications = await self._api.list_notifications(self._page_size)
        except AppError as exc:
            logger.warning("Fetching notifications failed: %s", exc.detail)
        finally:
            self.loading = False

    async def open_panel(self) -> None:
        self.panel_open = True
        if not self._notifications:
            await self.load_notifications()

    def close_panel(self) -> None:
        self.panel_open = False

    async def mark_read(self, notification_id: str) -> None:
        try:
            await self._api.mark_notification_read(notification_id)
        except AppError as exc:
            logger.warning("Marking notification %s read failed: %s", notification_id, exc.detail)
            return
        self._notifications = [
            dataclasses.replace(n, is_read=True) if n.id == notification_id else n
            for n in self._notifications
        ]
        self.unread_count = max(0, self.unread_count - 1)

    async def mark_all_read(self) -> None:
        try:
            await self._api.mark_all_notifications_read()
        except AppError as exc:
            logger.warning("Marking all notifications read failed: %s", exc.detail)
            return
        self._notifications = [dataclasses.replace(n, is_read=True) for n in self._notifications]
        self.unread_count = 0

    async def _on_push(self, payload: Any = None) -> None:
        await self.refresh_unread_count()
        if self.panel_open:
            await self.load_notifications()
