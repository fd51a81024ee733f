"""Active thread state and the sender-side typing indicator."""
from __future__ import annotations

import asyncio
import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Callable, Iterable, Sequence

from chat_client.domain.entities.message import Message
from chat_client.domain.value_objects.enums import TypingState
from chat_client.infrastructure.ws.connection import ConnectionManager
from chat_client.infrastructure.ws.protocol import STOP_TYPING, TYPING, TypingEvent

logger = logging.getLogger(__name__)

ScrollListener = Callable[[int], None]

EMPTY_THREAD_TEXT = "No messages yet. Start the conversation!"


def _saved_since(message: Message, since: datetime | None) -> bool:
    if since is None:
        return True
    created_at = message.created_at
    if created_at is None:
        return False
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return created_at >= since


class MessageThread:
    """Messages of the active conversation in arrival order.

    The list is append-only between history loads and is never re-sorted by
    timestamp. Scroll listeners fire whenever the message count grows.
    """

    def __init__(self) -> None:
        self._messages: list[Message] = []
        self._scroll_listeners: list[ScrollListener] = []
        self.counterpart_typing = False

    def __len__(self) -> int:
        return len(self._messages)

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    def add_scroll_listener(self, listener: ScrollListener) -> None:
        self._scroll_listeners.append(listener)

    def contains_client_id(self, client_msg_id: object) -> bool:
        return any(m.client_msg_id == client_msg_id for m in self._messages)

    def append(self, message: Message) -> bool:
        """Append a message; a repeated correlation id is ignored."""
        if message.client_msg_id is not None and self.contains_client_id(message.client_msg_id):
            logger.debug("Skipping duplicate message %s", message.client_msg_id)
            return False
        before = len(self._messages)
        self._messages.append(message)
        self._notify_if_grew(before)
        return True

    def replace_history(
        self,
        history: Iterable[Message],
        *,
        keep: Sequence[Message] = (),
        since: datetime | None = None,
    ) -> None:
        """Install fetched history, then re-append ``keep`` entries it lacks.

        ``keep`` holds messages that arrived while the fetch was in flight.
        Entries with a correlation id are matched on it. Entries without one
        are matched on sender and content against history saved at or after
        ``since``, each history entry absorbing at most one of them.
        """
        before = len(self._messages)
        merged = list(history)
        client_ids = {m.client_msg_id for m in merged if m.client_msg_id is not None}
        recent = Counter(
            (m.sender_id, m.content)
            for m in merged
            if m.client_msg_id is None and _saved_since(m, since)
        )
        for message in keep:
            if message.client_msg_id is not None:
                if message.client_msg_id in client_ids:
                    continue
            else:
                body = (message.sender_id, message.content)
                if recent[body] > 0:
                    recent[body] -= 1
                    continue
            merged.append(message)
        self._messages = merged
        self._notify_if_grew(before)

    def clear(self) -> None:
        self._messages = []
        self.counterpart_typing = False

    def render_lines(self, own_user_id: str, counterpart_name: str = "") -> list[str]:
        if not self._messages:
            return [EMPTY_THREAD_TEXT]
        lines = []
        for message in self._messages:
            who = "me" if message.sender_id == own_user_id else (counterpart_name or message.sender_id)
            stamp = message.created_at.strftime("%H:%M") if message.created_at else "--:--"
            lines.append(f"[{stamp}] {who}: {message.content}")
        if self.counterpart_typing:
            lines.append(f"{counterpart_name or 'Counterpart'} is typing...")
        return lines

    def _notify_if_grew(self, before: int) -> None:
        count = len(self._messages)
        if count <= before:
            return
        for listener in self._scroll_listeners:
            listener(count)


class TypingIndicator:
    """Sender-side typing state machine.

    ``Idle --keystroke--> Typing`` emits ``typing`` once; the idle timeout or a
    sent message moves back to ``Idle`` and emits ``stop_typing`` once.
    """

    def __init__(self, connection: ConnectionManager, *, idle_seconds: float = 3.0) -> None:
        self._connection = connection
        self._idle_seconds = idle_seconds
        self._state = TypingState.IDLE
        self._receiver_id: str | None = None
        self._timer: asyncio.Task[None] | None = None

    @property
    def state(self) -> TypingState:
        return self._state

    @property
    def receiver_id(self) -> str | None:
        return self._receiver_id

    async def keystroke(self, receiver_id: str) -> None:
        if self._state == TypingState.TYPING and receiver_id != self._receiver_id:
            await self.stop()
        if self._state == TypingState.IDLE:
            self._state = TypingState.TYPING
            self._receiver_id = receiver_id
            await self._connection.emit(TYPING, TypingEvent(receiver_id=receiver_id).to_wire())
        self._arm_timer()

    async def message_sent(self) -> None:
        await self.stop()

    async def stop(self) -> None:
        if self._state == TypingState.IDLE:
            return
        self._cancel_timer()
        receiver_id = self._receiver_id
        self._state = TypingState.IDLE
        self._receiver_id = None
        await self._connection.emit(STOP_TYPING, TypingEvent(receiver_id=receiver_id).to_wire())

    def _arm_timer(self) -> None:
        self._cancel_timer()
        self._timer = asyncio.create_task(self._expire(), name="typing-idle-timer")

    def _cancel_timer(self) -> None:
        timer, self._timer = self._timer, None
        if timer is not None and timer is not asyncio.current_task():
            timer.cancel()

    async def _expire(self) -> None:
        await asyncio.sleep(self._idle_seconds)
        self._timer = None
        await self.stop()
