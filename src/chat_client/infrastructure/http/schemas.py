"""Wire models for the platform REST API responses."""
from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _ref_id(value: Any) -> Any:
    """Populated references arrive as objects, bare ones as ids."""
    if isinstance(value, dict):
        return value.get("_id") or value.get("id")
    return value


class _Payload(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )


class UserPayload(_Payload):
    id: str | None = Field(None, validation_alias=AliasChoices("_id", "id", "userId"))
    name: str | None = None
    email: str | None = None
    avatar: str | None = Field(
        None, validation_alias=AliasChoices("avatar", "profileImage", "avatarUrl"),
    )


class ConversationPayload(_Payload):
    user_id: str = Field(alias="userId")
    user: UserPayload | None = None
    last_message: str | None = Field(None, alias="lastMessage")
    last_message_time: datetime | None = Field(None, alias="lastMessageTime")
    unread_count: int | None = Field(0, alias="unreadCount")

    @field_validator("user_id", mode="before")
    @classmethod
    def _flatten_user_id(cls, value: Any) -> Any:
        return _ref_id(value)


class MessagePayload(_Payload):
    id: str | None = Field(None, alias="_id")
    sender: str
    receiver: str
    content: str
    created_at: datetime | None = Field(None, alias="createdAt")
    is_read: bool = Field(False, alias="isRead")
    sender_type: str | None = Field(None, alias="senderType")
    client_msg_id: UUID | None = Field(None, alias="clientMsgId")

    @field_validator("sender", "receiver", mode="before")
    @classmethod
    def _flatten_ref(cls, value: Any) -> Any:
        return _ref_id(value)


class NotificationPayload(_Payload):
    id: str = Field(alias="_id")
    title: str = ""
    message: str = ""
    type: str = "other"
    priority: str | None = "normal"
    is_read: bool = Field(False, alias="isRead")
    created_at: datetime | None = Field(None, alias="createdAt")
    action_url: str | None = Field(None, alias="actionUrl")


class SendMessageRequest(_Payload):
    receiver_id: str = Field(alias="receiverId")
    content: str
    sender_type: str = Field(alias="senderType")
    receiver_type: str = Field(alias="receiverType")
    client_msg_id: UUID = Field(alias="clientMsgId")
