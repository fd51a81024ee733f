from __future__ import annotations

import logging
from typing import Callable

from chat_client.application.dto.banner import BannerMessage
from chat_client.domain.value_objects.enums import BannerLevel

logger = logging.getLogger(__name__)

BannerListener = Callable[[BannerMessage | None], None]


class Banner:
    """The session's single status line.

    A fatal banner is terminal: later messages and clears leave it in place.
    """

    def __init__(self) -> None:
        self._current: BannerMessage | None = None
        self._listeners: list[BannerListener] = []

    @property
    def current(self) -> BannerMessage | None:
        return self._current

    @property
    def text(self) -> str:
        return self._current.text if self._current else ""

    def add_listener(self, listener: BannerListener) -> None:
        self._listeners.append(listener)

    def show(self, text: str, level: BannerLevel = BannerLevel.ERROR) -> None:
        if self._is_fatal() and level != BannerLevel.FATAL:
            logger.debug("Banner %r suppressed by fatal banner", text)
            return
        self._set(BannerMessage(text=text, level=level))

    def clear(self, *levels: BannerLevel) -> None:
        """Clear the banner; with ``levels`` only if it is one of them."""
        if self._current is None or self._is_fatal():
            return
        if levels and self._current.level not in levels:
            return
        self._set(None)

    def _is_fatal(self) -> bool:
        return self._current is not None and self._current.level == BannerLevel.FATAL

    def _set(self, message: BannerMessage | None) -> None:
        self._current = message
        for listener in self._listeners:
            listener(message)
