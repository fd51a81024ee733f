"""Entrypoint: python -m chat_client [session-token]"""
from __future__ import annotations

import asyncio
import logging
import sys

from chat_client.client import MessagingSession, open_session
from chat_client.config import settings

logger = logging.getLogger("chat_client")


def _watch(session: MessagingSession) -> None:
    store = session.conversations

    session.banner.add_listener(
        lambda message: logger.warning("%s", message.text) if message else None
    )
    session.connection.add_state_listener(lambda state: logger.info("Connection %s", state))
    session.presence.add_listener(
        lambda online: logger.info("Online: %s", ", ".join(sorted(online)) or "-")
    )

    def _on_new_message(_count: int) -> None:
        name = store.active.name if store.active else ""
        logger.info("%s", store.thread.render_lines(session.identity.user_id, name)[-1])

    store.thread.add_scroll_listener(_on_new_message)


async def _run(token: str) -> None:
    async with open_session(token) as session:
        _watch(session)
        for entry in session.conversations.entries:
            marker = "*" if session.presence.is_online(entry.counterpart_id) else " "
            logger.info(
                "%s %s <%s> unread=%d",
                marker, entry.counterpart.name, entry.counterpart.email or "-", entry.unread_count,
            )
        logger.info("Unread notifications: %d", session.notifications.unread_count)
        await asyncio.Event().wait()


def main() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    token = sys.argv[1] if len(sys.argv) > 1 else settings.SESSION_TOKEN
    if not token:
        raise SystemExit("usage: python -m chat_client <session-token> (or set SESSION_TOKEN)")
    try:
        asyncio.run(_run(token))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
