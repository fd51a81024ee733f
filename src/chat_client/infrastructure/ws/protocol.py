"""Socket.IO event names and payload models."""
from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

# Client -> Server
USER_ONLINE = "user_online"
SEND_MESSAGE = "send_message"
TYPING = "typing"
STOP_TYPING = "stop_typing"

# Server -> Client
USERS_ONLINE = "users_online"
RECEIVE_MESSAGE = "receive_message"
USER_TYPING = "user_typing"
USER_STOPPED_TYPING = "user_stopped_typing"
NOTIFICATION_NEW = "notification:new"
NOTIFICATIONS_UPDATED = "notifications:updated"


class _Event(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class SendMessageEvent(_Event):
    sender_id: str = Field(alias="senderId")
    receiver_id: str = Field(alias="receiverId")
    content: str
    sender_type: str = Field(alias="senderType")
    receiver_type: str = Field(alias="receiverType")
    client_msg_id: UUID | None = Field(None, alias="clientMsgId")


class TypingEvent(_Event):
    receiver_id: str = Field(alias="receiverId")


class ReceiveMessageEvent(_Event):
    sender_id: str = Field(alias="senderId")
    content: str
    timestamp: datetime | None = None
    sender_type: str | None = Field(None, alias="senderType")
    client_msg_id: UUID | None = Field(None, alias="clientMsgId")


def parse_user_ids(payload: Any) -> list[str]:
    """``users_online`` carries a bare list of ids."""
    if not payload:
        return []
    return [str(user_id) for user_id in payload]
