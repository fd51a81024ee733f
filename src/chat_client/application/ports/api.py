from __future__ import annotations

from typing import Protocol
from uuid import UUID

from chat_client.domain.entities.conversation import ConversationSummary
from chat_client.domain.entities.counterpart import Counterpart
from chat_client.domain.entities.message import Message
from chat_client.domain.entities.notification import Notification


class MessagingApi(Protocol):
    """REST endpoints the messaging client depends on."""

    async def list_conversations(self) -> list[ConversationSummary]: ...

    async def get_conversation(self, counterpart_id: str) -> list[Message]: ...

    async def send_message(
        self,
        receiver_id: str,
        content: str,
        sender_type: str,
        receiver_type: str,
        client_msg_id: UUID,
    ) -> Message | None: ...

    async def mark_conversation_read(self, counterpart_id: str) -> None: ...

    async def list_directory(self, path: str) -> list[Counterpart]: ...


class NotificationApi(Protocol):
    async def unread_count(self) -> int: ...

    async def list_notifications(self, limit: int) -> list[Notification]: ...

    async def mark_notification_read(self, notification_id: str) -> None: ...

    async def mark_all_notifications_read(self) -> None: ...
