"""python-socketio adapter implementing application.ports.transport.PushTransport."""
from __future__ import annotations

import asyncio
import logging
from typing import Any

import socketio

from chat_client.application.exceptions import TransportError
from chat_client.application.ports.transport import (
    CLIENT_DISCONNECT,
    TRANSPORT_ERROR,
    EventHandler,
)

logger = logging.getLogger(__name__)

_SETTLE_POLL_SECONDS = 0.02


class SocketIOTransport:
    """Thin wrapper over ``socketio.AsyncClient``.

    The library's own reconnection loop is disabled; ``ConnectionManager``
    owns the retry policy.

    The disconnect handler runs before engine.io has finished closing the
    old connection, so ``connect`` first waits for the engine.io client to
    reach its disconnected state.
    """

    def __init__(
        self,
        *,
        headers: dict[str, str] | None = None,
        auth: dict[str, Any] | None = None,
        transports: list[str] | None = None,
    ) -> None:
        self._headers = headers or {}
        self._auth = auth
        self._transports = transports
        self._handlers: dict[str, EventHandler] = {}
        self._sio = socketio.AsyncClient(
            reconnection=False,
            logger=False,
            engineio_logger=False,
        )
        self._sio.on("disconnect", self._on_disconnect)
        self._closing = False

    @property
    def connected(self) -> bool:
        return self._sio.connected

    async def connect(self, url: str, *, timeout: float) -> None:
        self._closing = False
        await self._wait_settled(timeout)
        try:
            await self._sio.connect(
                url,
                headers=self._headers,
                auth=self._auth,
                transports=self._transports,
                wait_timeout=timeout,
            )
        except (socketio.exceptions.SocketIOError, ValueError) as exc:
            raise TransportError(str(exc)) from exc
        logger.info("Socket connected: sid=%s", self._sio.sid)

    async def disconnect(self) -> None:
        self._closing = True
        await self._sio.disconnect()

    async def emit(self, event: str, data: Any = None) -> None:
        try:
            await self._sio.emit(event, data)
        except socketio.exceptions.SocketIOError as exc:
            raise TransportError(f"emit {event} failed: {exc}") from exc

    def on(self, event: str, handler: EventHandler) -> None:
        if event == "disconnect":
            self._handlers[event] = handler
            return
        self._sio.on(event, handler)

    async def _wait_settled(self, timeout: float) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while self._sio.eio.state != "disconnected":
            if loop.time() >= deadline:
                raise TransportError(
                    f"previous connection still {self._sio.eio.state} after {timeout}s"
                )
            await asyncio.sleep(_SETTLE_POLL_SECONDS)

    async def _on_disconnect(self, reason: str | None = None) -> None:
        if reason is None:
            reason = CLIENT_DISCONNECT if self._closing else TRANSPORT_ERROR
        logger.info("Socket disconnected: %s", reason)
        handler = self._handlers.get("disconnect")
        if handler is not None:
            result = handler(reason)
            if result is not None:
                await result
