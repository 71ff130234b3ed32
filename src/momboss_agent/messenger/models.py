"""WhatsApp message models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from momboss_agent.core.types import ContentType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class IncomingMessage:
    whatsapp_number: str  # E.164, without the "whatsapp:" prefix
    text: str
    profile_name: Optional[str] = None
    message_sid: Optional[str] = None
    media_url: Optional[str] = None
    media_content_type: Optional[str] = None
    timestamp: datetime = field(default_factory=_utcnow)

    @property
    def content_type(self) -> ContentType:
        if not self.media_url:
            return ContentType.TEXT
        if (self.media_content_type or "image/").startswith("image/"):
            return ContentType.IMAGE
        return ContentType.DOCUMENT

    @property
    def is_empty(self) -> bool:
        return not self.text.strip() and not self.media_url


@dataclass(frozen=True, slots=True)
class OutgoingMessage:
    to: str
    text: str
    media_url: Optional[str] = None
