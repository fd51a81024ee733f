from __future__ import annotations

from dataclasses import dataclass

from chat_client.domain.value_objects.enums import BannerLevel


@dataclass(frozen=True, slots=True)
class BannerMessage:
    text: str
    level: BannerLevel
