"""Conversation repository: conversations, their messages, and vendor links."""

from __future__ import annotations

import json
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Optional

from momboss_agent.core.types import ContentType, ConversationStatus, Direction, SenderType
from momboss_agent.log import get_logger
from momboss_agent.storage.database import Database, format_timestamp, parse_timestamp
from momboss_agent.storage.models import Conversation, MessageRecord, VendorLink

logger = get_logger(__name__)


class ConversationRepository:
    """CRUD over conversations, the append-only message log, and vendor links."""

    def __init__(self, db: Database):
        self._db = db

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    async def get_conversation(self, whatsapp_number: str) -> Optional[Conversation]:
        cursor = await self._db.conn.execute(
            "SELECT * FROM conversations WHERE whatsapp_number = ?",
            (whatsapp_number,),
        )
        row = await cursor.fetchone()
        return self._row_to_conversation(row) if row else None

    async def create_conversation(
        self, whatsapp_number: str, display_name: Optional[str] = None
    ) -> Conversation:
        conversation_id = uuid.uuid4().hex
        await self._db.conn.execute(
            """INSERT INTO conversations (id, whatsapp_number, vendor_name, status)
               VALUES (?, ?, ?, ?)""",
            (conversation_id, whatsapp_number, display_name, ConversationStatus.ACTIVE.value),
        )
        await self._db.conn.commit()
        logger.info("conversation_created", whatsapp_number=whatsapp_number)
        conversation = await self.get_conversation(whatsapp_number)
        assert conversation is not None
        return conversation

    async def get_or_create_conversation(
        self, whatsapp_number: str, profile_name: Optional[str] = None
    ) -> Conversation:
        """Get the conversation for a number, creating it on first contact.

        A display name we did not have yet is filled in from *profile_name*.
        """
        conversation = await self.get_conversation(whatsapp_number)
        if conversation is None:
            try:
                return await self.create_conversation(whatsapp_number, profile_name)
            except sqlite3.IntegrityError:
                # Lost a race with a concurrent first message from the same number
                conversation = await self.get_conversation(whatsapp_number)
                assert conversation is not None
                return conversation

        if profile_name and not conversation.vendor_name:
            await self._db.conn.execute(
                "UPDATE conversations SET vendor_name = ? WHERE id = ?",
                (profile_name, conversation.id),
            )
            await self._db.conn.commit()
            conversation.vendor_name = profile_name
        return conversation

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    async def append_message(self, record: MessageRecord) -> int:
        """Append a message and bump the conversation's last-message timestamp."""
        created_at = format_timestamp(record.created_at)
        cursor = await self._db.conn.execute(
            """INSERT INTO messages
               (conversation_id, direction, sender_type, content, content_type,
                media_url, message_sid, tool_calls_json, tokens_used, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                record.conversation_id,
                record.direction.value,
                record.sender_type.value,
                record.content,
                record.content_type.value,
                record.media_url,
                record.message_sid,
                json.dumps(record.tool_calls, default=str) if record.tool_calls is not None else None,
                record.tokens_used,
                created_at,
            ),
        )
        await self._db.conn.execute(
            "UPDATE conversations SET last_message_at = ? WHERE id = ?",
            (created_at, record.conversation_id),
        )
        await self._db.conn.commit()
        return cursor.lastrowid  # type: ignore[return-value]

    async def recent_messages(self, conversation_id: str, limit: int = 20) -> list[MessageRecord]:
        """Return up to *limit* most recent messages, newest first."""
        cursor = await self._db.conn.execute(
            """SELECT * FROM messages
               WHERE conversation_id = ?
               ORDER BY created_at DESC, id DESC
               LIMIT ?""",
            (conversation_id, limit),
        )
        rows = await cursor.fetchall()
        return [self._row_to_message(row) for row in rows]

    # ------------------------------------------------------------------
    # Vendor links
    # ------------------------------------------------------------------

    async def get_vendor_link(self, whatsapp_number: str) -> Optional[VendorLink]:
        cursor = await self._db.conn.execute(
            "SELECT * FROM vendor_links WHERE whatsapp_number = ?",
            (whatsapp_number,),
        )
        row = await cursor.fetchone()
        return self._row_to_vendor_link(row) if row else None

    async def link_vendor(
        self,
        whatsapp_number: str,
        wp_user_id: int,
        wp_store_id: Optional[int] = None,
        store_name: Optional[str] = None,
        store_url: Optional[str] = None,
    ) -> VendorLink:
        """Upsert a verified vendor link and point the conversation at the store."""
        now = format_timestamp(datetime.now(timezone.utc))
        await self._db.conn.execute(
            """INSERT INTO vendor_links
               (whatsapp_number, wp_user_id, wp_store_id, store_name, store_url,
                verified, verified_at, updated_at)
               VALUES (?, ?, ?, ?, ?, 1, ?, ?)
               ON CONFLICT(whatsapp_number) DO UPDATE SET
                   wp_user_id = excluded.wp_user_id,
                   wp_store_id = excluded.wp_store_id,
                   store_name = excluded.store_name,
                   store_url = excluded.store_url,
                   verified = 1,
                   verified_at = excluded.verified_at,
                   updated_at = excluded.updated_at""",
            (whatsapp_number, wp_user_id, wp_store_id, store_name, store_url, now, now),
        )
        await self._db.conn.execute(
            "UPDATE conversations SET wp_user_id = ?, wp_store_id = ? WHERE whatsapp_number = ?",
            (wp_user_id, wp_store_id, whatsapp_number),
        )
        await self._db.conn.commit()
        logger.info("vendor_linked", whatsapp_number=whatsapp_number, wp_user_id=wp_user_id)

        link = await self.get_vendor_link(whatsapp_number)
        assert link is not None
        return link

    async def find_vendor_links_by_user_ids(self, wp_user_ids: list[int]) -> list[VendorLink]:
        """Verified links whose WordPress user is one of *wp_user_ids*."""
        if not wp_user_ids:
            return []
        placeholders = ", ".join("?" for _ in wp_user_ids)
        cursor = await self._db.conn.execute(
            f"SELECT * FROM vendor_links WHERE verified = 1 AND wp_user_id IN ({placeholders})",
            tuple(wp_user_ids),
        )
        rows = await cursor.fetchall()
        return [self._row_to_vendor_link(row) for row in rows]

    async def list_verified_vendor_links(self) -> list[VendorLink]:
        cursor = await self._db.conn.execute(
            "SELECT * FROM vendor_links WHERE verified = 1 ORDER BY whatsapp_number"
        )
        rows = await cursor.fetchall()
        return [self._row_to_vendor_link(row) for row in rows]

    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_conversation(row) -> Conversation:
        return Conversation(
            id=row["id"],
            whatsapp_number=row["whatsapp_number"],
            vendor_name=row["vendor_name"],
            wp_user_id=row["wp_user_id"],
            wp_store_id=row["wp_store_id"],
            status=ConversationStatus(row["status"]),
            created_at=parse_timestamp(row["created_at"]),
            last_message_at=parse_timestamp(row["last_message_at"]),
        )

    @staticmethod
    def _row_to_message(row) -> MessageRecord:
        tool_calls_json = row["tool_calls_json"]
        return MessageRecord(
            id=row["id"],
            conversation_id=row["conversation_id"],
            direction=Direction(row["direction"]),
            sender_type=SenderType(row["sender_type"]),
            content=row["content"],
            content_type=ContentType(row["content_type"]),
            media_url=row["media_url"],
            message_sid=row["message_sid"],
            tool_calls=json.loads(tool_calls_json) if tool_calls_json else None,
            tokens_used=row["tokens_used"],
            created_at=parse_timestamp(row["created_at"]),
        )

    @staticmethod
    def _row_to_vendor_link(row) -> VendorLink:
        return VendorLink(
            whatsapp_number=row["whatsapp_number"],
            wp_user_id=row["wp_user_id"],
            wp_store_id=row["wp_store_id"],
            store_name=row["store_name"],
            store_url=row["store_url"],
            verified=bool(row["verified"]),
            verified_at=parse_timestamp(row["verified_at"]),
        )
