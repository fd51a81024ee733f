from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Message:
    id: str
    sender_id: str
    receiver_id: str
    content: str
    created_at: datetime | None
    is_read: bool
    sender_type: str
    client_msg_id: UUID | None = None
