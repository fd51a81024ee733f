from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx

from chat_client.application.banner import Banner
from chat_client.application.dto.session import SessionIdentity
from chat_client.application.ports.transport import PushTransport
from chat_client.config import Settings, settings as default_settings
from chat_client.infrastructure.auth.session_token import SessionTokenReader
from chat_client.infrastructure.http.api_client import HttpMessagingApi, create_http_client
from chat_client.infrastructure.ws.connection import ConnectionManager, ReconnectPolicy
from chat_client.infrastructure.ws.socketio_transport import SocketIOTransport
from chat_client.services.conversation_store import ConversationStore
from chat_client.services.message_stream import TypingIndicator
from chat_client.services.notification_service import NotificationCenter
from chat_client.services.presence_tracker import PresenceTracker
from chat_client.workers.notification_poller import NotificationPoller

logger = logging.getLogger(__name__)


class MessagingSession:
    """Everything the messaging UI needs for one logged-in user.

    Created at login and closed at logout; owns the single push connection.
    """

    def __init__(
        self,
        identity: SessionIdentity,
        api: HttpMessagingApi,
        transport: PushTransport,
        *,
        settings: Settings = default_settings,
    ) -> None:
        self.identity = identity
        self.api = api
        self.banner = Banner()
        self.connection = ConnectionManager(
            transport,
            identity,
            settings.SOCKET_URL,
            self.banner,
            policy=ReconnectPolicy(
                attempts=settings.RECONNECT_ATTEMPTS,
                delay=settings.RECONNECT_DELAY,
                delay_max=settings.RECONNECT_DELAY_MAX,
                timeout=settings.CONNECT_TIMEOUT,
            ),
        )
        self.presence = PresenceTracker()
        self.presence.bind(self.connection)

        self.typing = TypingIndicator(self.connection, idle_seconds=settings.TYPING_IDLE_SECONDS)
        self.conversations = ConversationStore(
            api,
            self.connection,
            identity,
            self.banner,
            self.typing,
            directory_scope=settings.DIRECTORY_SCOPE,
        )
        self.conversations.bind(self.connection)

        self.notifications = NotificationCenter(api, page_size=settings.NOTIFICATION_PAGE_SIZE)
        self.notifications.bind(self.connection)
        self.poller = NotificationPoller(self.notifications, settings.NOTIFICATION_POLL_SECONDS)

    async def start(self) -> None:
        await self.connection.start()
        await asyncio.gather(
            self.conversations.load_conversations(),
            self.conversations.load_directory(),
            self.notifications.refresh_unread_count(),
        )
        # Pushes missed while disconnected only show up through a refetch.
        self.connection.add_connected_listener(self.notifications.refresh_unread_count)
        await self.poller.start()
        logger.info(
            "Messaging session started for %s %s", self.identity.role, self.identity.user_id,
        )

    async def close(self) -> None:
        await self.poller.stop()
        await self.typing.stop()
        await self.connection.close()
        await self.api.aclose()
        logger.info("Messaging session closed for %s", self.identity.user_id)

    async def __aenter__(self) -> MessagingSession:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


def create_session(
    token: str,
    *,
    settings: Settings = default_settings,
    transport: PushTransport | None = None,
    http_transport: httpx.AsyncBaseTransport | None = None,
) -> MessagingSession:
    identity = SessionTokenReader(settings.JWT_SECRET, settings.JWT_ALGORITHM).read(token)
    client = create_http_client(
        settings.API_URL,
        token,
        timeout=settings.API_TIMEOUT_SECONDS,
        cookie_name=settings.AUTH_COOKIE_NAME,
        transport=http_transport,
    )
    api = HttpMessagingApi(client, media_base_url=settings.media_base_url)
    if transport is None:
        transport = SocketIOTransport(
            headers={
                "Authorization": f"Bearer {token}",
                "Cookie": f"{settings.AUTH_COOKIE_NAME}={token}",
            },
            auth={"token": token},
            transports=settings.SOCKET_TRANSPORTS,
        )
    return MessagingSession(identity, api, transport, settings=settings)


@asynccontextmanager
async def open_session(token: str, **kwargs: object) -> AsyncIterator[MessagingSession]:
    """Start a session for ``token`` and close it on exit."""
    session = create_session(token, **kwargs)  # type: ignore[arg-type]
    await session.start()
    try:
        yield session
    finally:
        await session.close()
