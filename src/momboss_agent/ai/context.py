"""Build the per-message conversation context the agent reasons over."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

from momboss_agent.core.errors import ConversationNotFoundError
from momboss_agent.core.types import Direction
from momboss_agent.storage.conversation_repo import ConversationRepository

Role = Literal["user", "assistant"]

DEFAULT_HISTORY_WINDOW = 20


@dataclass(frozen=True)
class Turn:
    role: Role
    content: str


@dataclass(frozen=True)
class ConversationContext:
    """Ephemeral snapshot of one vendor's conversation, rebuilt for every inbound message."""

    conversation_id: str
    whatsapp_number: str
    vendor_name: Optional[str]
    wp_user_id: Optional[int]
    wp_store_id: Optional[int]
    is_verified: bool
    history: tuple[Turn, ...] = ()

    @property
    def has_linked_account(self) -> bool:
        return self.wp_user_id is not None or self.wp_store_id is not None


class ContextBuilder:
    """Loads recent history and vendor-link status for a WhatsApp number."""

    def __init__(self, conversation_repo: ConversationRepository, history_window: int = DEFAULT_HISTORY_WINDOW):
        self._repo = conversation_repo
        self._history_window = history_window

    async def build(self, whatsapp_number: str) -> ConversationContext:
        """Return the context for *whatsapp_number*.

        Raises ConversationNotFoundError if the ingestion path has not created
        the conversation yet.
        """
        conversation = await self._repo.get_conversation(whatsapp_number)
        if conversation is None:
            raise ConversationNotFoundError(whatsapp_number)

        recent = await self._repo.recent_messages(conversation.id, limit=self._history_window)
        history = tuple(
            Turn(role="user" if m.direction == Direction.INBOUND else "assistant", content=m.content)
            for m in reversed(recent)
            if m.content
        )

        link = await self._repo.get_vendor_link(whatsapp_number)
        # Conversations linked before verification existed only carry the ids.
        wp_user_id = (link.wp_user_id if link else None) or conversation.wp_user_id
        wp_store_id = (link.wp_store_id if link else None) or conversation.wp_store_id

        return ConversationContext(
            conversation_id=conversation.id,
            whatsapp_number=whatsapp_number,
            vendor_name=conversation.vendor_name,
            wp_user_id=wp_user_id,
            wp_store_id=wp_store_id,
            is_verified=link.verified if link else False,
            history=history,
        )
