from __future__ import annotations

from typing import Any, Awaitable, Callable, Protocol

EventHandler = Callable[..., Awaitable[None] | None]


class PushTransport(Protocol):
    """A persistent bidirectional event channel (Socket.IO in production).

    Implementations raise ``TransportError`` from ``connect`` and ``emit`` and
    invoke the ``disconnect`` handler with a reason string whenever an
    established connection ends.
    """

    @property
    def connected(self) -> bool: ...

    async def connect(self, url: str, *, timeout: float) -> None: ...

    async def disconnect(self) -> None: ...

    async def emit(self, event: str, data: Any = None) -> None: ...

    def on(self, event: str, handler: EventHandler) -> None: ...


SERVER_DISCONNECT = "server disconnect"
CLIENT_DISCONNECT = "client disconnect"
TRANSPORT_ERROR = "transport error"
