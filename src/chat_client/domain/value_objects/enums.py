from __future__ import annotations

from enum import StrEnum


class Role(StrEnum):
    STUDENT = "student"
    TUTOR = "tutor"
    ADMIN = "admin"


class EntrySource(StrEnum):
    CONVERSATION = "conversation"
    DIRECTORY = "directory"


class ConnectionState(StrEnum):
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    FAILED = "failed"
    CLOSED = "closed"


class TypingState(StrEnum):
    IDLE = "idle"
    TYPING = "typing"


class BannerLevel(StrEnum):
    TRANSIENT = "transient"
    ERROR = "error"
    FATAL = "fatal"


class NotificationPriority(StrEnum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"
