from __future__ import annotations

from typing import Literal

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    API_URL: str = "http://localhost:5000/api"
    SOCKET_URL: str = "http://localhost:5000"
    SOCKET_TRANSPORTS: list[str] = ["websocket"]

    API_TIMEOUT_SECONDS: float = 30.0

    CONNECT_TIMEOUT: float = 10.0
    RECONNECT_ATTEMPTS: int = 5
    RECONNECT_DELAY: float = 1.0
    RECONNECT_DELAY_MAX: float = 5.0

    TYPING_IDLE_SECONDS: float = 3.0

    NOTIFICATION_POLL_SECONDS: float = 30.0
    NOTIFICATION_PAGE_SIZE: int = 10

    DIRECTORY_SCOPE: Literal["assigned", "public"] = "public"

    AUTH_COOKIE_NAME: str = "token"
    JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"
    SESSION_TOKEN: str = ""

    LOG_LEVEL: str = "INFO"

    @property
    def media_base_url(self) -> str:
        """Origin used to resolve relative avatar paths."""
        return self.API_URL.removesuffix("/api")

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
