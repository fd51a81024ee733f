"""User-facing banner text for failures caught at a call site."""
from __future__ import annotations

from chat_client.application.exceptions import (
    AppError,
    ForbiddenError,
    UnauthorizedError,
)
from chat_client.domain.value_objects.enums import Role

CONNECTION_LOST = "Connection lost. Reconnecting..."
RECONNECT_FAILED = "Unable to reconnect. Please refresh the page."
SESSION_EXPIRED = "Your session has expired. Please log in again."


def history_error_text(exc: AppError) -> str:
    if isinstance(exc, ForbiddenError):
        return "You are not authorized to view this conversation."
    if isinstance(exc, UnauthorizedError):
        return SESSION_EXPIRED
    return "Failed to load messages."


def send_error_text(exc: AppError, counterpart_role: Role) -> str:
    if isinstance(exc, ForbiddenError):
        return f"You are not authorized to chat with this {counterpart_role.value}."
    if isinstance(exc, UnauthorizedError):
        return SESSION_EXPIRED
    return "Failed to send message. Please try again."


def list_error_text(exc: AppError, what: str) -> str:
    if isinstance(exc, UnauthorizedError):
        return SESSION_EXPIRED
    return f"Failed to load {what}."
