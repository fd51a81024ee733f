from __future__ import annotations

import uuid

from chat_client.domain.entities.conversation import ConversationSummary
from chat_client.domain.entities.counterpart import Counterpart
from chat_client.domain.entities.message import Message
from chat_client.domain.entities.notification import Notification
from chat_client.domain.value_objects.enums import NotificationPriority
from chat_client.infrastructure.http.schemas import (
    ConversationPayload,
    MessagePayload,
    NotificationPayload,
    UserPayload,
)


def resolve_avatar(avatar: str | None, media_base_url: str) -> str | None:
    if not avatar:
        return None
    if avatar.startswith("http") or not media_base_url:
        return avatar
    return f"{media_base_url.rstrip('/')}/{avatar.lstrip('/')}"


def user_to_counterpart(
    payload: UserPayload,
    *,
    fallback_id: str | None = None,
    media_base_url: str = "",
) -> Counterpart:
    return Counterpart(
        id=str(payload.id or fallback_id or ""),
        name=payload.name or "",
        email=payload.email,
        avatar=resolve_avatar(payload.avatar, media_base_url),
    )


def conversation_to_entity(
    payload: ConversationPayload,
    *,
    media_base_url: str = "",
) -> ConversationSummary:
    user = payload.user or UserPayload()
    return ConversationSummary(
        counterpart=user_to_counterpart(
            user, fallback_id=payload.user_id, media_base_url=media_base_url,
        ),
        last_message=payload.last_message,
        last_message_time=payload.last_message_time,
        unread_count=payload.unread_count or 0,
    )


def message_to_entity(payload: MessagePayload) -> Message:
    return Message(
        id=payload.id or uuid.uuid4().hex,
        sender_id=payload.sender,
        receiver_id=payload.receiver,
        content=payload.content,
        created_at=payload.created_at,
        is_read=payload.is_read,
        sender_type=payload.sender_type or "",
        client_msg_id=payload.client_msg_id,
    )


def notification_to_entity(payload: NotificationPayload) -> Notification:
    return Notification(
        id=payload.id,
        title=payload.title,
        message=payload.message,
        type=payload.type,
        priority=payload.priority or NotificationPriority.NORMAL,
        is_read=payload.is_read,
        created_at=payload.created_at,
        action_url=payload.action_url,
    )
