from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Counterpart:
    id: str
    name: str
    email: str | None = None
    avatar: str | None = None
