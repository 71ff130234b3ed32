"""Message handler: inbound WhatsApp message -> stored turn -> agent -> stored reply."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from momboss_agent.ai.agent import Agent
from momboss_agent.core.rate_limit import RateLimiter
from momboss_agent.core.types import ContentType, Direction, SenderType
from momboss_agent.log import get_logger
from momboss_agent.messenger.models import IncomingMessage
from momboss_agent.storage.conversation_repo import ConversationRepository
from momboss_agent.storage.models import MessageRecord

logger = get_logger(__name__)

THROTTLED_REPLY = "You're sending messages too quickly. Please wait a minute and try again."


@dataclass
class HandledMessage:
    reply: str
    conversation_id: Optional[str] = None
    tool_calls: list[dict[str, Any]] = field(default_factory=list)
    tokens_used: int = 0
    throttled: bool = False


class MessageHandler:
    """Handles the full flow for one inbound message.

    Rate limit -> conversation -> store inbound -> agent -> store outbound.
    The reply itself is returned; delivery belongs to the caller.
    """

    def __init__(self, agent: Agent, conversation_repo: ConversationRepository, rate_limiter: RateLimiter):
        self._agent = agent
        self._repo = conversation_repo
        self._rate_limiter = rate_limiter

    async def handle(self, message: IncomingMessage) -> HandledMessage | None:
        """Process *message*; returns None when there is nothing to answer."""
        if message.is_empty:
            logger.warning("empty_message_ignored", whatsapp_number=message.whatsapp_number)
            return None

        if not await self._rate_limiter.allow(message.whatsapp_number):
            return HandledMessage(reply=THROTTLED_REPLY, throttled=True)

        logger.info(
            "message_received",
            whatsapp_number=message.whatsapp_number,
            profile_name=message.profile_name,
            has_media=message.media_url is not None,
            length=len(message.text),
        )

        conversation = await self._repo.get_or_create_conversation(
            message.whatsapp_number, profile_name=message.profile_name
        )
        await self._repo.append_message(
            MessageRecord(
                conversation_id=conversation.id,
                direction=Direction.INBOUND,
                sender_type=SenderType.USER,
                content=message.text or None,
                content_type=message.content_type,
                media_url=message.media_url,
                message_sid=message.message_sid,
                created_at=message.timestamp,
            )
        )

        response = await self._agent.process_message(message.whatsapp_number, message.text, message.media_url)
        tool_calls = [record.to_dict() for record in response.tool_calls]

        await self._repo.append_message(
            MessageRecord(
                conversation_id=conversation.id,
                direction=Direction.OUTBOUND,
                sender_type=SenderType.AGENT,
                content=response.reply,
                content_type=ContentType.TEXT,
                tool_calls=tool_calls or None,
                tokens_used=response.tokens_used,
            )
        )

        return HandledMessage(
            reply=response.reply,
            conversation_id=conversation.id,
            tool_calls=tool_calls,
            tokens_used=response.tokens_used,
        )
