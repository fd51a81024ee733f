from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from chat_client.domain.entities.counterpart import Counterpart
from chat_client.domain.value_objects.enums import EntrySource


@dataclass(frozen=True, slots=True)
class ConversationSummary:
    counterpart: Counterpart
    last_message: str | None = None
    last_message_time: datetime | None = None
    unread_count: int = 0

    @property
    def counterpart_id(self) -> str:
        return self.counterpart.id


@dataclass(frozen=True, slots=True)
class DirectoryEntry:
    """One row of the combined conversation + directory list."""

    counterpart: Counterpart
    source: EntrySource
    last_message: str | None = None
    last_message_time: datetime | None = None
    unread_count: int = 0

    @property
    def counterpart_id(self) -> str:
        return self.counterpart.id
