from __future__ import annotations

from dataclasses import dataclass

from chat_client.domain.value_objects.enums import Role


@dataclass(frozen=True, slots=True)
class SessionIdentity:
    """Authenticated session holder, read from the platform session token."""

    user_id: str
    role: Role

    @property
    def counterpart_role(self) -> Role:
        """Role on the other side of a one-to-one conversation."""
        return Role.STUDENT if self.role == Role.TUTOR else Role.TUTOR
