from __future__ import annotations

import logging
from typing import Any, Callable, Iterable

from chat_client.infrastructure.ws.connection import ConnectionManager
from chat_client.infrastructure.ws.protocol import USERS_ONLINE, parse_user_ids

logger = logging.getLogger(__name__)

PresenceListener = Callable[[frozenset[str]], None]


class PresenceTracker:
    """Online user ids, replaced wholesale by every ``users_online`` broadcast.

    There is no heartbeat and no staleness tracking: a snapshot stands until
    the next broadcast, whatever order broadcasts arrive in.
    """

    def __init__(self) -> None:
        self._online: frozenset[str] = frozenset()
        self._listeners: list[PresenceListener] = []

    @property
    def online(self) -> frozenset[str]:
        return self._online

    def bind(self, connection: ConnectionManager) -> None:
        connection.on(USERS_ONLINE, self._on_users_online)

    def add_listener(self, listener: PresenceListener) -> None:
        self._listeners.append(listener)

    def apply_broadcast(self, user_ids: Iterable[Any]) -> None:
        self._online = frozenset(str(user_id) for user_id in user_ids)
        logger.debug("Presence updated: %d online", len(self._online))
        for listener in self._listeners:
            listener(self._online)

    def is_online(self, user_id: Any) -> bool:
        return str(user_id) in self._online

    async def _on_users_online(self, payload: Any = None) -> None:
        self.apply_broadcast(parse_user_ids(payload))
