from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Notification:
    id: str
    title: str
    message: str
    type: str
    priority: str
    is_read: bool
    created_at: datetime | None
    action_url: str | None = None
