"""Data models for storage layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from momboss_agent.core.types import ContentType, ConversationStatus, Direction, SenderType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Conversation:
    id: str
    whatsapp_number: str
    vendor_name: Optional[str] = None
    wp_user_id: Optional[int] = None
    wp_store_id: Optional[int] = None
    status: ConversationStatus = ConversationStatus.ACTIVE
    created_at: datetime = field(default_factory=_utcnow)
    last_message_at: Optional[datetime] = None


@dataclass(frozen=True)
class MessageRecord:
    conversation_id: str
    direction: Direction
    sender_type: SenderType
    content: Optional[str]
    content_type: ContentType = ContentType.TEXT
    media_url: Optional[str] = None
    message_sid: Optional[str] = None
    tool_calls: Optional[list[dict[str, Any]]] = None
    tokens_used: Optional[int] = None
    created_at: datetime = field(default_factory=_utcnow)
    id: Optional[int] = None


@dataclass
class VendorLink:
    whatsapp_number: str
    wp_user_id: int
    wp_store_id: Optional[int] = None
    store_name: Optional[str] = None
    store_url: Optional[str] = None
    verified: bool = False
    verified_at: Optional[datetime] = None


@dataclass(frozen=True)
class ActionLogEntry:
    whatsapp_number: str
    action: str
    tool_name: str
    success: bool
    input: Any = None
    output: Any = None
    error_message: Optional[str] = None
    duration_ms: Optional[int] = None
    created_at: datetime = field(default_factory=_utcnow)
    id: Optional[int] = None
