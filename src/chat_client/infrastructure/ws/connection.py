"""Session-owned push connection with reconnection policy."""
from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from chat_client.application.banner import Banner
from chat_client.application.dto.session import SessionIdentity
from chat_client.application.exceptions import TransportError
from chat_client.application.policies.error_messages import (
    CONNECTION_LOST,
    RECONNECT_FAILED,
)
from chat_client.application.ports.transport import (
    CLIENT_DISCONNECT,
    SERVER_DISCONNECT,
    EventHandler,
    PushTransport,
)
from chat_client.domain.value_objects.enums import BannerLevel, ConnectionState
from chat_client.infrastructure.ws.protocol import USER_ONLINE

logger = logging.getLogger(__name__)

StateListener = Callable[[ConnectionState], None]
ConnectedListener = Callable[[], Awaitable[None] | None]


@dataclass(frozen=True, slots=True)
class ReconnectPolicy:
    attempts: int = 5
    delay: float = 1.0
    delay_max: float = 5.0
    timeout: float = 10.0

    def backoff(self, retry: int) -> float:
        return min(self.delay * (2 ** retry), self.delay_max)

    def schedule(self, *, immediate: bool) -> list[float]:
        """Delays before each connect try.

        ``immediate`` adds an undelayed first try ahead of the bounded retries.
        """
        retries = [self.backoff(n) for n in range(self.attempts)]
        return [0.0, *retries] if immediate else retries


def _log_task_failure(task: asyncio.Task[Any]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Task %s failed", task.get_name(), exc_info=exc)


async def _call(listener: Callable[..., Any], *args: Any) -> None:
    result = listener(*args)
    if inspect.isawaitable(result):
        await result


class ConnectionManager:
    """Owns the single push connection of a messaging session.

    Every successful connection, initial or not, is followed by exactly one
    ``user_online`` announcement so the server can rebuild presence.
    """

    def __init__(
        self,
        transport: PushTransport,
        session: SessionIdentity,
        url: str,
        banner: Banner,
        *,
        policy: ReconnectPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._transport = transport
        self._session = session
        self._url = url
        self._banner = banner
        self._policy = policy or ReconnectPolicy()
        self._sleep = sleep
        self._state = ConnectionState.IDLE
        self._state_listeners: list[StateListener] = []
        self._connected_listeners: list[ConnectedListener] = []
        self._reconnect_task: asyncio.Task[bool] | None = None
        self._closed = False
        self._transport.on("disconnect", self._on_disconnect)

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state == ConnectionState.CONNECTED

    def on(self, event: str, handler: EventHandler) -> None:
        """Subscribe to a server event."""
        self._transport.on(event, handler)

    def add_state_listener(self, listener: StateListener) -> None:
        self._state_listeners.append(listener)

    def add_connected_listener(self, listener: ConnectedListener) -> None:
        self._connected_listeners.append(listener)

    async def start(self) -> bool:
        if self._state == ConnectionState.RECONNECTING:
            return await self.wait_reconnected()
        if self._state in (ConnectionState.CONNECTING, ConnectionState.CONNECTED):
            return self.connected
        self._closed = False
        self._set_state(ConnectionState.CONNECTING)
        return await self._establish(immediate=True)

    async def close(self) -> None:
        self._closed = True
        if self._reconnect_task is not None and not self._reconnect_task.done():
            self._reconnect_task.cancel()
            try:
                await self._reconnect_task
            except asyncio.CancelledError:
                pass
        self._reconnect_task = None
        if self._transport.connected:
            await self._transport.disconnect()
        self._set_state(ConnectionState.CLOSED)

    async def wait_reconnected(self) -> bool:
        """Await the in-flight reconnect, if any."""
        if self._reconnect_task is None:
            return self.connected
        return await self._reconnect_task

    async def emit(self, event: str, data: Any = None) -> bool:
        """Emit an event; failures are logged and never drop the connection."""
        try:
            await self._transport.emit(event, data)
        except TransportError as exc:
            logger.warning("Emit %s failed: %s", event, exc.detail)
            return False
        return True

    async def _establish(self, *, immediate: bool) -> bool:
        schedule = self._policy.schedule(immediate=immediate)
        for attempt, delay in enumerate(schedule, start=1):
            if delay:
                await self._sleep(delay)
            if self._closed:
                return False
            try:
                await asyncio.wait_for(
                    self._transport.connect(self._url, timeout=self._policy.timeout),
                    timeout=self._policy.timeout,
                )
            except (TransportError, asyncio.TimeoutError) as exc:
                logger.warning(
                    "Connect attempt %d/%d to %s failed: %s",
                    attempt, len(schedule), self._url, exc,
                )
                continue
            except Exception:
                logger.exception(
                    "Connect attempt %d/%d to %s raised", attempt, len(schedule), self._url,
                )
                continue
            await self._on_connected()
            return True

        self._set_state(ConnectionState.FAILED)
        self._banner.show(RECONNECT_FAILED, BannerLevel.FATAL)
        logger.error("Giving up on %s after %d attempts", self._url, len(schedule))
        return False

    async def _on_connected(self) -> None:
        self._set_state(ConnectionState.CONNECTED)
        self._banner.clear(BannerLevel.TRANSIENT)
        await self.emit(USER_ONLINE, self._session.user_id)
        for listener in self._connected_listeners:
            try:
                await _call(listener)
            except Exception:
                logger.exception("Connected listener failed")

    async def _on_disconnect(self, reason: str | None = None) -> None:
        if self._closed or reason == CLIENT_DISCONNECT:
            return
        if self._reconnect_task is not None and not self._reconnect_task.done():
            return

        logger.info("Connection lost (%s), reconnecting", reason)
        self._banner.show(CONNECTION_LOST, BannerLevel.TRANSIENT)
        self._set_state(ConnectionState.RECONNECTING)
        self._reconnect_task = asyncio.create_task(
            self._establish(immediate=reason == SERVER_DISCONNECT),
            name="socket-reconnect",
        )
        self._reconnect_task.add_done_callback(_log_task_failure)

    def _set_state(self, state: ConnectionState) -> None:
        if state == self._state:
            return
        logger.debug("Connection state %s -> %s", self._state, state)
        self._state = state
        for listener in self._state_listeners:
            listener(state)
