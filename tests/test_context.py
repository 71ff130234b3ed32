"""ContextBuilder: history window, ordering and vendor-link status."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from conftest import VENDOR_NUMBER

from momboss_agent.ai.context import ContextBuilder, Turn
from momboss_agent.core.errors import ConversationNotFoundError
from momboss_agent.core.types import ContentType, Direction, SenderType
from momboss_agent.storage.models import MessageRecord

T0 = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)


async def _store(repo, conversation_id, turns):
    for i, (direction, content) in enumerate(turns):
        await repo.append_message(
            MessageRecord(
                conversation_id=conversation_id,
                direction=direction,
                sender_type=SenderType.USER if direction == Direction.INBOUND else SenderType.AGENT,
                content=content,
                content_type=ContentType.TEXT if content else ContentType.IMAGE,
                created_at=T0 + timedelta(seconds=i),
            )
        )


async def test_unknown_number_raises(conversation_repo):
    with pytest.raises(ConversationNotFoundError):
        await ContextBuilder(conversation_repo).build("+254700000001")


async def test_history_is_oldest_first_and_skips_empty(conversation_repo):
    conversation = await conversation_repo.get_or_create_conversation(VENDOR_NUMBER, "Wanjiku")
    await _store(
        conversation_repo,
        conversation.id,
        [
            (Direction.INBOUND, "Hi"),
            (Direction.OUTBOUND, "Hello! How can I help?"),
            (Direction.INBOUND, None),
            (Direction.INBOUND, "Show my orders"),
        ],
    )

    context = await ContextBuilder(conversation_repo).build(VENDOR_NUMBER)

    assert context.history == (
        Turn("user", "Hi"),
        Turn("assistant", "Hello! How can I help?"),
        Turn("user", "Show my orders"),
    )
    assert context.vendor_name == "Wanjiku"
    assert context.is_verified is False
    assert context.has_linked_account is False


async def test_history_window_keeps_newest(conversation_repo):
    conversation = await conversation_repo.get_or_create_conversation(VENDOR_NUMBER)
    await _store(conversation_repo, conversation.id, [(Direction.INBOUND, f"m{i}") for i in range(6)])

    context = await ContextBuilder(conversation_repo, history_window=3).build(VENDOR_NUMBER)

    assert [t.content for t in context.history] == ["m3", "m4", "m5"]


async def test_linked_vendor(conversation_repo):
    await conversation_repo.get_or_create_conversation(VENDOR_NUMBER)
    await conversation_repo.link_vendor(VENDOR_NUMBER, wp_user_id=42, wp_store_id=42, store_name="Wanjiku Bakes")

    context = await ContextBuilder(conversation_repo).build(VENDOR_NUMBER)

    assert context.is_verified is True
    assert context.wp_user_id == 42
    assert context.wp_store_id == 42


async def test_building_twice_without_writes_is_stable(conversation_repo):
    conversation = await conversation_repo.get_or_create_conversation(VENDOR_NUMBER, "Wanjiku")
    await _store(conversation_repo, conversation.id, [(Direction.INBOUND, "Hi"), (Direction.OUTBOUND, "Hello!")])
    await conversation_repo.link_vendor(VENDOR_NUMBER, wp_user_id=42, wp_store_id=42, store_name="Wanjiku Bakes")
    builder = ContextBuilder(conversation_repo)

    first = await builder.build(VENDOR_NUMBER)
    second = await builder.build(VENDOR_NUMBER)

    assert first == second


async def test_ids_on_conversation_count_as_linked_but_unverified(db, conversation_repo):
    await conversation_repo.get_or_create_conversation(VENDOR_NUMBER)
    await db.conn.execute(
        "UPDATE conversations SET wp_user_id = ?, wp_store_id = ? WHERE whatsapp_number = ?",
        (42, 42, VENDOR_NUMBER),
    )
    await db.conn.commit()

    context = await ContextBuilder(conversation_repo).build(VENDOR_NUMBER)

    assert context.wp_user_id == 42
    assert context.wp_store_id == 42
    assert context.has_linked_account is True
    assert context.is_verified is False
