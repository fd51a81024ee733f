"""httpx client for the platform REST API."""
from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

import httpx

from chat_client.application.exceptions import (
    AppError,
    ForbiddenError,
    NotFoundError,
    RequestFailedError,
    UnauthorizedError,
    ValidationError,
)
from chat_client.domain.entities.conversation import ConversationSummary
from chat_client.domain.entities.counterpart import Counterpart
from chat_client.domain.entities.message import Message
from chat_client.domain.entities.notification import Notification
from chat_client.infrastructure.http.correlation_id import attach_correlation_id
from chat_client.infrastructure.http.mappers import (
    conversation_to_entity,
    message_to_entity,
    notification_to_entity,
    user_to_counterpart,
)
from chat_client.infrastructure.http.schemas import (
    ConversationPayload,
    MessagePayload,
    NotificationPayload,
    SendMessageRequest,
    UserPayload,
)

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = "Request timeout. Please try again."
NETWORK_MESSAGE = "Unable to connect to server. Please check your connection."

_DIRECTORY_KEYS = ("tutors", "students", "users")


async def _log_response(response: httpx.Response) -> None:
    request = response.request
    logger.debug("%s %s - %d", request.method, request.url.path, response.status_code)


def create_http_client(
    base_url: str,
    token: str,
    *,
    timeout: float,
    cookie_name: str = "token",
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Build the shared AsyncClient carrying the session credentials."""
    return httpx.AsyncClient(
        base_url=base_url,
        headers={"Authorization": f"Bearer {token}"},
        cookies={cookie_name: token},
        timeout=timeout,
        transport=transport,
        event_hooks={
            "request": [attach_correlation_id],
            "response": [_log_response],
        },
    )


def _error_for(response: httpx.Response) -> AppError:
    detail = response.reason_phrase
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        detail = body.get("message") or body.get("detail") or detail

    status = response.status_code
    if status == 401:
        return UnauthorizedError(detail)
    if status == 403:
        return ForbiddenError(detail)
    if status == 404:
        return NotFoundError(detail)
    if status in (400, 422):
        return ValidationError(detail)
    return RequestFailedError(detail, status_code=status)


class HttpMessagingApi:
    """Implements application.ports.api.MessagingApi and NotificationApi."""

    def __init__(self, client: httpx.AsyncClient, *, media_base_url: str = "") -> None:
        self._client = client
        self._media_base_url = media_base_url

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            logger.warning("%s %s timed out", method, path)
            raise RequestFailedError(TIMEOUT_MESSAGE) from exc
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise RequestFailedError(NETWORK_MESSAGE) from exc

        if response.is_error:
            error = _error_for(response)
            logger.warning(
                "%s %s rejected with %d: %s",
                method, path, response.status_code, error.detail,
            )
            raise error

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise RequestFailedError("Malformed response from server") from exc

    # -- messages ---------------------------------------------------------

    async def list_conversations(self) -> list[ConversationSummary]:
        data = await self._request("GET", "/messages/conversations")
        raw = (data or {}).get("conversations") or []
        return [
            conversation_to_entity(
                ConversationPayload.model_validate(item),
                media_base_url=self._media_base_url,
            )
            for item in raw
        ]

    async def get_conversation(self, counterpart_id: str) -> list[Message]:
        data = await self._request("GET", f"/messages/conversation/{counterpart_id}")
        raw = (data or {}).get("messages") or []
        return [message_to_entity(MessagePayload.model_validate(item)) for item in raw]

    async def send_message(
        self,
        receiver_id: str,
        content: str,
        sender_type: str,
        receiver_type: str,
        client_msg_id: UUID,
    ) -> Message | None:
        body = SendMessageRequest(
            receiver_id=receiver_id,
            content=content,
            sender_type=sender_type,
            receiver_type=receiver_type,
            client_msg_id=client_msg_id,
        )
        data = await self._request(
            "POST", "/messages/send", json=body.model_dump(mode="json", by_alias=True),
        )
        saved = (data or {}).get("message")
        if not isinstance(saved, dict):
            return None
        return message_to_entity(MessagePayload.model_validate(saved))

    async def mark_conversation_read(self, counterpart_id: str) -> None:
        await self._request("PUT", f"/messages/read/{counterpart_id}")

    async def list_directory(self, path: str) -> list[Counterpart]:
        data = await self._request("GET", path)
        if isinstance(data, dict):
            raw = next((data[key] for key in _DIRECTORY_KEYS if key in data), [])
        else:
            raw = data or []
        return [
            user_to_counterpart(
                UserPayload.model_validate(item), media_base_url=self._media_base_url,
            )
            for item in raw
        ]

    # -- notifications ----------------------------------------------------

    async def unread_count(self) -> int:
        data = await self._request("GET", "/notifications/unread/count")
        return int(((data or {}).get("data") or {}).get("unreadCount", 0))

    async def list_notifications(self, limit: int) -> list[Notification]:
        data = await self._request("GET", "/notifications", params={"limit": limit})
        raw = (data or {}).get("data") or []
        return [
            notification_to_entity(NotificationPayload.model_validate(item))
            for item in raw
        ]

    async def mark_notification_read(self, notification_id: str) -> None:
        await self._request("PUT", f"/notifications/{notification_id}/read")

    async def mark_all_notifications_read(self) -> None:
        await self._request("PUT", "/notifications/read-all")
