"""Shared test fixtures."""
from __future__ import annotations

import asyncio
import inspect
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

import pytest
import pytest_asyncio

from chat_client.application.banner import Banner
from chat_client.application.dto.session import SessionIdentity
from chat_client.application.exceptions import AppError, TransportError
from chat_client.application.ports.transport import CLIENT_DISCONNECT
from chat_client.domain.entities.conversation import ConversationSummary
from chat_client.domain.entities.counterpart import Counterpart
from chat_client.domain.entities.message import Message
from chat_client.domain.entities.notification import Notification
from chat_client.domain.value_objects.enums import Role
from chat_client.infrastructure.http.correlation_id import correlation_id_ctx
from chat_client.infrastructure.ws.connection import ConnectionManager, ReconnectPolicy
from chat_client.services.conversation_store import ConversationStore
from chat_client.services.message_stream import TypingIndicator

BASE_TIME = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def student() -> SessionIdentity:
    return SessionIdentity(user_id="s-1", role=Role.STUDENT)


@pytest.fixture
def tutor() -> SessionIdentity:
    return SessionIdentity(user_id="t-1", role=Role.TUTOR)


def make_counterpart(
    counterpart_id: str = "t-1",
    *,
    name: str = "Ada Lovelace",
    email: str | None = "ada@example.com",
) -> Counterpart:
    return Counterpart(id=counterpart_id, name=name, email=email)


def make_summary(
    counterpart_id: str = "t-1",
    *,
    name: str = "Ada Lovelace",
    email: str | None = "ada@example.com",
    unread: int = 0,
    last_message: str | None = "see you",
) -> ConversationSummary:
    return ConversationSummary(
        counterpart=make_counterpart(counterpart_id, name=name, email=email),
        last_message=last_message,
        last_message_time=BASE_TIME,
        unread_count=unread,
    )


def make_message(
    *,
    sender_id: str = "t-1",
    receiver_id: str = "s-1",
    content: str = "hello",
    created_at: datetime | None = BASE_TIME,
    client_msg_id: UUID | None = None,
    sender_type: str = "tutor",
) -> Message:
    return Message(
        id=uuid.uuid4().hex,
        sender_id=sender_id,
        receiver_id=receiver_id,
        content=content,
        created_at=created_at,
        is_read=True,
        sender_type=sender_type,
        client_msg_id=client_msg_id,
    )


def make_notification(notification_id: str = "n-1", *, is_read: bool = False) -> Notification:
    return Notification(
        id=notification_id,
        title="Class scheduled",
        message="Algebra on Monday",
        type="class_scheduled",
        priority="normal",
        is_read=is_read,
        created_at=BASE_TIME,
    )


def minutes(n: int) -> datetime:
    return BASE_TIME + timedelta(minutes=n)


@dataclass
class FakeTransport:
    """In-memory PushTransport; ``fire`` plays server events."""

    fail_connects: int = 0
    connect_errors: list[Exception] = field(default_factory=list)
    emit_error: bool = False
    connected: bool = False
    connect_calls: int = 0
    emitted: list[tuple[str, Any]] = field(default_factory=list)
    _handlers: dict[str, list[Any]] = field(default_factory=dict)

    async def connect(self, url: str, *, timeout: float) -> None:
        self.connect_calls += 1
        if self.connect_errors:
            raise self.connect_errors.pop(0)
        if self.fail_connects > 0:
            self.fail_connects -= 1
            raise TransportError("connection refused")
        self.connected = True

    async def disconnect(self) -> None:
        self.connected = False
        await self.fire("disconnect", CLIENT_DISCONNECT)

    async def emit(self, event: str, data: Any = None) -> None:
        if self.emit_error:
            raise TransportError("socket closed")
        self.emitted.append((event, data))

    def on(self, event: str, handler: Any) -> None:
        self._handlers.setdefault(event, []).append(handler)

    async def fire(self, event: str, *args: Any) -> None:
        for handler in self._handlers.get(event, []):
            result = handler(*args)
            if inspect.isawaitable(result):
                await result

    async def drop(self, reason: str) -> None:
        self.connected = False
        await self.fire("disconnect", reason)

    def events(self, name: str) -> list[Any]:
        return [data for event, data in self.emitted if event == name]


@dataclass
class FakeMessagingApi:
    """In-memory MessagingApi + NotificationApi."""

    conversations: list[ConversationSummary] = field(default_factory=list)
    histories: dict[str, list[Message]] = field(default_factory=dict)
    directories: dict[str, list[Counterpart]] = field(default_factory=dict)
    notifications: list[Notification] = field(default_factory=list)
    unread: int = 0
    send_error: AppError | None = None
    history_error: AppError | None = None
    list_error: AppError | None = None
    notification_error: AppError | None = None
    history_gates: dict[str, asyncio.Event] = field(default_factory=dict)
    sent: list[dict[str, Any]] = field(default_factory=list)
    request_ids: list[str] = field(default_factory=list)
    read_marked: list[str] = field(default_factory=list)
    notifications_read: list[str] = field(default_factory=list)
    calls: list[str] = field(default_factory=list)
    closed: bool = False

    async def list_conversations(self) -> list[ConversationSummary]:
        self.calls.append("list_conversations")
        if self.list_error:
            raise self.list_error
        return list(self.conversations)

    async def get_conversation(self, counterpart_id: str) -> list[Message]:
        self.calls.append(f"get_conversation:{counterpart_id}")
        gate = self.history_gates.get(counterpart_id)
        if gate is not None:
            await gate.wait()
        if self.history_error:
            raise self.history_error
        return list(self.histories.get(counterpart_id, []))

    async def send_message(
        self,
        receiver_id: str,
        content: str,
        sender_type: str,
        receiver_type: str,
        client_msg_id: UUID,
    ) -> Message | None:
        self.sent.append(
            {
                "receiverId": receiver_id,
                "content": content,
                "senderType": sender_type,
                "receiverType": receiver_type,
                "clientMsgId": client_msg_id,
            }
        )
        self.request_ids.append(correlation_id_ctx.get())
        if self.send_error:
            raise self.send_error
        return None

    async def mark_conversation_read(self, counterpart_id: str) -> None:
        self.read_marked.append(counterpart_id)

    async def list_directory(self, path: str) -> list[Counterpart]:
        self.calls.append(f"list_directory:{path}")
        if self.list_error:
            raise self.list_error
        return list(self.directories.get(path, []))

    async def unread_count(self) -> int:
        self.calls.append("unread_count")
        if self.notification_error:
            raise self.notification_error
        return self.unread

    async def list_notifications(self, limit: int) -> list[Notification]:
        self.calls.append(f"list_notifications:{limit}")
        if self.notification_error:
            raise self.notification_error
        return self.notifications[:limit]

    async def mark_notification_read(self, notification_id: str) -> None:
        if self.notification_error:
            raise self.notification_error
        self.notifications_read.append(notification_id)

    async def mark_all_notifications_read(self) -> None:
        if self.notification_error:
            raise self.notification_error
        self.notifications_read.append("*")

    async def aclose(self) -> None:
        self.closed = True


@dataclass
class RecordingSleep:
    """Stand-in for asyncio.sleep that records delays without waiting."""

    delays: list[float] = field(default_factory=list)

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def api() -> FakeMessagingApi:
    return FakeMessagingApi()


@pytest.fixture
def banner() -> Banner:
    return Banner()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def connection(transport, student, banner, sleep) -> ConnectionManager:
    return ConnectionManager(
        transport,
        student,
        "http://testserver",
        banner,
        policy=ReconnectPolicy(attempts=5, delay=1.0, delay_max=5.0, timeout=1.0),
        sleep=sleep,
    )


@pytest.fixture
def typing_indicator(connection) -> TypingIndicator:
    return TypingIndicator(connection, idle_seconds=0.05)


@pytest_asyncio.fixture
async def store(api, connection, student, banner, typing_indicator):
    await connection.start()
    store = ConversationStore(api, connection, student, banner, typing_indicator)
    store.bind(connection)
    yield store
    await typing_indicator.stop()
