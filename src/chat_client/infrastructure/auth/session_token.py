from __future__ import annotations

import jwt

from chat_client.application.dto.session import SessionIdentity
from chat_client.application.exceptions import UnauthorizedError
from chat_client.domain.value_objects.enums import Role


class SessionTokenReader:
    """Read the session holder's identity from a platform JWT.

    The platform signs ``{"id": ..., "role": ...}``. With a shared secret the
    signature and expiry are verified; without one the claims are only read,
    since the server re-checks the token on every request anyway.
    """

    def __init__(self, secret: str = "", algorithm: str = "HS256") -> None:
        self._secret = secret
        self._algorithm = algorithm

    def read(self, token: str) -> SessionIdentity:
        try:
            if self._secret:
                payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
            else:
                payload = jwt.decode(token, options={"verify_signature": False})
        except jwt.PyJWTError as exc:
            raise UnauthorizedError(f"Invalid session token: {exc}") from exc

        user_id = payload.get("id", payload.get("sub"))
        if user_id is None:
            raise UnauthorizedError("Session token carries no user id")

        role_raw = payload.get("role", Role.STUDENT)
        role = Role(role_raw) if role_raw in Role.__members__.values() else Role.STUDENT
        return SessionIdentity(user_id=str(user_id), role=role)
