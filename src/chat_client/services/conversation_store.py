"""Client-side projection of conversations, directory and the active thread."""
from __future__ import annotations

import dataclasses
import logging
import uuid
from datetime import datetime, timedelta
from typing import Any, Iterable

from chat_client.application.banner import Banner
from chat_client.application.dto.session import SessionIdentity
from chat_client.application.exceptions import AppError
from chat_client.application.policies.error_messages import (
    history_error_text,
    list_error_text,
    send_error_text,
)
from chat_client.application.ports.api import MessagingApi
from chat_client.application.ports.clock import Clock, SystemClock
from chat_client.domain.entities.conversation import ConversationSummary, DirectoryEntry
from chat_client.domain.entities.counterpart import Counterpart
from chat_client.domain.entities.message import Message
from chat_client.domain.value_objects.enums import BannerLevel, EntrySource, Role
from chat_client.infrastructure.http.correlation_id import request_scope
from chat_client.infrastructure.ws.connection import ConnectionManager
from chat_client.infrastructure.ws.protocol import (
    RECEIVE_MESSAGE,
    SEND_MESSAGE,
    USER_STOPPED_TYPING,
    USER_TYPING,
    ReceiveMessageEvent,
    SendMessageEvent,
)
from chat_client.services.message_stream import MessageThread, TypingIndicator

logger = logging.getLogger(__name__)

HISTORY_CLOCK_SKEW = timedelta(seconds=5)

_DIRECTORY_PATHS: dict[tuple[Role, str], str] = {
    (Role.STUDENT, "assigned"): "/student/assigned-tutors",
    (Role.STUDENT, "public"): "/tutor/public",
    (Role.TUTOR, "assigned"): "/tutor/assigned-students",
    (Role.TUTOR, "public"): "/tutor/assigned-students",
}


def directory_path(role: Role, scope: str) -> str | None:
    """Directory endpoint listing who ``role`` may message, if any."""
    return _DIRECTORY_PATHS.get((role, scope))


def merge_entries(
    conversations: Iterable[ConversationSummary],
    directory: Iterable[Counterpart],
) -> list[DirectoryEntry]:
    """Conversations first, then directory counterparts not already listed."""
    entries = [
        DirectoryEntry(
            counterpart=c.counterpart,
            source=EntrySource.CONVERSATION,
            last_message=c.last_message,
            last_message_time=c.last_message_time,
            unread_count=c.unread_count,
        )
        for c in conversations
    ]
    seen = {e.counterpart_id for e in entries}
    for counterpart in directory:
        if counterpart.id in seen:
            continue
        seen.add(counterpart.id)
        entries.append(DirectoryEntry(counterpart=counterpart, source=EntrySource.DIRECTORY))
    return entries


def search_entries(entries: Iterable[DirectoryEntry], query: str) -> list[DirectoryEntry]:
    """Case-insensitive substring match over name and email."""
    needle = query.strip().lower()
    if not needle:
        return list(entries)
    return [
        e for e in entries
        if needle in (e.counterpart.name or "").lower()
        or needle in (e.counterpart.email or "").lower()
    ]


class ConversationStore:
    """Conversation summaries, the permitted-counterpart directory and the
    active thread of one messaging session.

    REST results and push events are applied in the order they complete on
    the event loop. History responses are tagged with a generation so that a
    response for a conversation the user already left is dropped, and pushes
    that land while a history fetch is in flight are kept.
    """

    def __init__(
        self,
        api: MessagingApi,
        connection: ConnectionManager,
        session: SessionIdentity,
        banner: Banner,
        typing: TypingIndicator,
        *,
        clock: Clock | None = None,
        directory_scope: str = "public",
    ) -> None:
        self._api = api
        self._connection = connection
        self._session = session
        self._banner = banner
        self._typing = typing
        self._clock = clock or SystemClock()
        self._directory_scope = directory_scope
        self._conversations: list[ConversationSummary] = []
        self._directory: list[Counterpart] = []
        self._active: Counterpart | None = None
        self._history_generation = 0
        self.thread = MessageThread()
        self.loading = False

    def bind(self, connection: ConnectionManager) -> None:
        connection.on(RECEIVE_MESSAGE, self._on_receive_message)
        connection.on(USER_TYPING, self._on_user_typing)
        connection.on(USER_STOPPED_TYPING, self._on_user_stopped_typing)

    # -- read side --------------------------------------------------------

    @property
    def conversations(self) -> tuple[ConversationSummary, ...]:
        return tuple(self._conversations)

    @property
    def directory(self) -> tuple[Counterpart, ...]:
        return tuple(self._directory)

    @property
    def active(self) -> Counterpart | None:
        return self._active

    @property
    def entries(self) -> list[DirectoryEntry]:
        return merge_entries(self._conversations, self._directory)

    def search(self, query: str) -> list[DirectoryEntry]:
        return search_entries(self.entries, query)

    def summary(self, counterpart_id: str) -> ConversationSummary | None:
        for conversation in self._conversations:
            if conversation.counterpart_id == counterpart_id:
                return conversation
        return None

    # -- REST loads -------------------------------------------------------

    async def load_conversations(self) -> bool:
        self.loading = True
        try:
            self._conversations = await self._api.list_conversations()
        except AppError as exc:
            logger.warning("Loading conversations failed: %s", exc.detail)
            self._banner.show(list_error_text(exc, "conversations"))
            return False
        finally:
            self.loading = False
        logger.debug("Loaded %d conversations", len(self._conversations))
        return True

    async def load_directory(self) -> bool:
        path = directory_path(self._session.role, self._directory_scope)
        if path is None:
            self._directory = []
            return True
        try:
            self._directory = await self._api.list_directory(path)
        except AppError as exc:
            logger.warning("Loading directory %s failed: %s", path, exc.detail)
            self._banner.show(list_error_text(exc, "contacts"))
            return False
        return True

    async def select_conversation(self, counterpart: Counterpart) -> bool:
        if self._typing.receiver_id not in (None, counterpart.id):
            await self._typing.stop()
        self._active = counterpart
        self.thread.clear()
        self._banner.clear(BannerLevel.ERROR)
        self._update_summary(counterpart.id, unread_count=0)
        return await self.load_history(counterpart)

    async def load_history(self, counterpart: Counterpart) -> bool:
        self._history_generation += 1
        generation = self._history_generation
        marker = len(self.thread)
        since = self._clock.now() - HISTORY_CLOCK_SKEW
        try:
            history = await self._api.get_conversation(counterpart.id)
        except AppError as exc:
            logger.warning("Loading history with %s failed: %s", counterpart.id, exc.detail)
            if generation == self._history_generation:
                self._banner.show(history_error_text(exc))
            return False

        if generation != self._history_generation or not self._is_active(counterpart.id):
            logger.debug("Dropping stale history for %s", counterpart.id)
            return False
        self.thread.replace_history(history, keep=self.thread.messages[marker:], since=since)
        return True

    async def mark_conversation_read(self, counterpart_id: str) -> None:
        try:
            await self._api.mark_conversation_read(counterpart_id)
        except AppError as exc:
            logger.warning("Marking %s read failed: %s", counterpart_id, exc.detail)

    # -- push -------------------------------------------------------------

    async def on_push_message(
        self,
        sender_id: str,
        content: str,
        timestamp: datetime | None,
        *,
        sender_type: str | None = None,
        client_msg_id: uuid.UUID | None = None,
    ) -> None:
        if sender_id == self._session.user_id:
            # Own echo: the event does not name the receiver.
            return

        is_active = self._is_active(sender_id)
        if is_active:
            appended = self.thread.append(
                Message(
                    id=uuid.uuid4().hex,
                    sender_id=sender_id,
                    receiver_id=self._session.user_id,
                    content=content,
                    created_at=timestamp,
                    is_read=True,
                    sender_type=sender_type or self._session.counterpart_role.value,
                    client_msg_id=client_msg_id,
                )
            )
            if not appended:
                return

        current = self.summary(sender_id)
        unread = current.unread_count if current else 0
        self._upsert_summary(
            sender_id,
            last_message=content,
            last_message_time=timestamp,
            unread_count=unread if is_active else unread + 1,
        )

    async def _on_receive_message(self, payload: Any = None) -> None:
        try:
            event = ReceiveMessageEvent.model_validate(payload or {})
        except ValueError:
            logger.warning("Ignoring malformed %s payload: %r", RECEIVE_MESSAGE, payload)
            return
        await self.on_push_message(
            event.sender_id,
            event.content,
            event.timestamp or self._clock.now(),
            sender_type=event.sender_type,
            client_msg_id=event.client_msg_id,
        )

    async def _on_user_typing(self, payload: Any = None) -> None:
        if self._active is not None:
            self.thread.counterpart_typing = True

    async def _on_user_stopped_typing(self, payload: Any = None) -> None:
        self.thread.counterpart_typing = False

    # -- outgoing ---------------------------------------------------------

    async def on_keystroke(self) -> None:
        if self._active is not None:
            await self._typing.keystroke(self._active.id)

    async def send_message(self, receiver_id: str, content: str) -> Message | None:
        """Optimistically append, then emit on the push channel and persist.

        A failed persist leaves the message in place and shows a banner.
        """
        if not content.strip():
            return None

        now = self._clock.now()
        client_msg_id = uuid.uuid4()
        sender_type = self._session.role.value
        receiver_type = self._session.counterpart_role.value
        message = Message(
            id=f"local-{client_msg_id.hex}",
            sender_id=self._session.user_id,
            receiver_id=receiver_id,
            content=content,
            created_at=now,
            is_read=False,
            sender_type=sender_type,
            client_msg_id=client_msg_id,
        )
        if self._is_active(receiver_id):
            self.thread.append(message)
        self._upsert_summary(
            receiver_id, last_message=content, last_message_time=now, unread_count=0,
        )

        await self._connection.emit(
            SEND_MESSAGE,
            SendMessageEvent(
                sender_id=self._session.user_id,
                receiver_id=receiver_id,
                content=content,
                sender_type=sender_type,
                receiver_type=receiver_type,
                client_msg_id=client_msg_id,
            ).to_wire(),
        )
        await self._typing.message_sent()

        try:
            with request_scope(client_msg_id.hex):
                await self._api.send_message(
                    receiver_id, content, sender_type, receiver_type, client_msg_id,
                )
        except AppError as exc:
            logger.warning("Persisting message to %s failed: %s", receiver_id, exc.detail)
            self._banner.show(send_error_text(exc, self._session.counterpart_role))
        return message

    # -- helpers ----------------------------------------------------------

    def _is_active(self, counterpart_id: str) -> bool:
        return self._active is not None and self._active.id == counterpart_id

    def _lookup_counterpart(self, counterpart_id: str) -> Counterpart:
        if self._is_active(counterpart_id):
            return self._active  # type: ignore[return-value]
        for counterpart in self._directory:
            if counterpart.id == counterpart_id:
                return counterpart
        return Counterpart(id=counterpart_id, name="")

    def _update_summary(self, counterpart_id: str, **changes: Any) -> bool:
        for index, conversation in enumerate(self._conversations):
            if conversation.counterpart_id == counterpart_id:
                self._conversations[index] = dataclasses.replace(conversation, **changes)
                return True
        return False

    def _upsert_summary(self, counterpart_id: str, **changes: Any) -> None:
        if self._update_summary(counterpart_id, **changes):
            return
        summary = ConversationSummary(counterpart=self._lookup_counterpart(counterpart_id))
        self._conversations.insert(0, dataclasses.replace(summary, **changes))
