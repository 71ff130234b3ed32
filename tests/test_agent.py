"""Agent loop behaviour with a scripted model and the in-memory store backend."""

from __future__ import annotations

import asyncio
import json

import pytest
from conftest import (
    VENDOR_NUMBER,
    ScriptedAIClient,
    text_response,
    tool_call,
    tool_response,
)

from momboss_agent.ai.agent import APOLOGY_REPLY, FALLBACK_REPLY, Agent, build_transcript, normalize_arguments
from momboss_agent.ai.context import ContextBuilder, Turn
from momboss_agent.ai.dispatcher import ToolDispatcher
from momboss_agent.ai.tools.base import LINK_REQUIRED_ERROR
from momboss_agent.ai.tools.catalog import to_api_tools
from momboss_agent.ai.tools.registry import ToolRegistry


@pytest.fixture
def registry(commerce, conversation_repo, platform) -> ToolRegistry:
    registry = ToolRegistry()
    registry.discover_and_register(commerce, conversation_repo, platform)
    return registry


@pytest.fixture
def make_agent(registry, conversation_repo, action_log_repo, agent_config, platform):
    def _make(client: ScriptedAIClient) -> Agent:
        return Agent(
            client,
            ContextBuilder(conversation_repo),
            ToolDispatcher(registry, action_log_repo, timeout=agent_config.tool_timeout),
            agent_config,
            platform,
        )

    return _make


@pytest.fixture
async def conversation(conversation_repo):
    return await conversation_repo.get_or_create_conversation(VENDOR_NUMBER, "Wanjiku")


async def _link(conversation_repo) -> None:
    await conversation_repo.link_vendor(VENDOR_NUMBER, wp_user_id=42, wp_store_id=42, store_name="Wanjiku Bakes")


class TestProcessMessage:
    async def test_plain_reply_makes_one_model_call(self, make_agent, conversation, commerce, action_log_repo):
        client = ScriptedAIClient([text_response("Hello! How can I help your store today?")])

        response = await make_agent(client).process_message(VENDOR_NUMBER, "Hi")

        assert response.reply == "Hello! How can I help your store today?"
        assert response.rounds == 1
        assert response.tool_calls == []
        assert response.tokens_used == 15
        assert len(client.requests) == 1
        assert client.requests[0]["messages"] == [{"role": "user", "content": "Hi"}]
        assert len(client.requests[0]["tools"]) == 15
        assert client.requests[0]["tools"] == to_api_tools()
        assert commerce.calls == []
        assert await action_log_repo.list_for_number(VENDOR_NUMBER) == []

    async def test_tool_results_are_fed_back(self, make_agent, conversation, conversation_repo, commerce):
        await _link(conversation_repo)
        client = ScriptedAIClient(
            [
                tool_response(tool_call("list_products", {"per_page": 5}), text="Let me check."),
                text_response("You have 1 product: Chocolate Cake."),
            ]
        )

        response = await make_agent(client).process_message(VENDOR_NUMBER, "Show my products")

        assert response.reply == "You have 1 product: Chocolate Cake."
        assert response.rounds == 2
        assert response.tokens_used == 30
        assert [r.name for r in response.tool_calls] == ["list_products"]

        second = client.requests[1]["messages"]
        assert second[-2]["role"] == "assistant"
        assert second[-2]["content"][0] == {"type": "text", "text": "Let me check."}
        assert second[-2]["content"][1]["type"] == "tool_use"
        result_block = second[-1]["content"][0]
        assert result_block["type"] == "tool_result"
        assert result_block["tool_use_id"] == "toolu_list_products"
        assert "is_error" not in result_block
        assert json.loads(result_block["content"])["count"] == 1

    async def test_round_cap_still_runs_final_round_tools(self, make_agent, conversation, action_log_repo):
        client = ScriptedAIClient(
            [
                tool_response(tool_call("get_help", {"topic": "orders"}), text="One moment."),
                tool_response(tool_call("get_help", {"topic": "products"})),
                tool_response(tool_call("get_help", {"topic": "store"})),
                text_response("never reached"),
            ]
        )

        response = await make_agent(client).process_message(VENDOR_NUMBER, "help")

        assert response.rounds == 3
        assert len(client.requests) == 3
        assert len(response.tool_calls) == 3
        assert response.reply == "One moment."
        assert response.tokens_used == 45
        assert len(await action_log_repo.list_for_number(VENDOR_NUMBER)) == 3

    async def test_round_cap_without_any_text_falls_back(self, make_agent, conversation):
        client = ScriptedAIClient([tool_response(tool_call("get_help")) for _ in range(3)])

        response = await make_agent(client).process_message(VENDOR_NUMBER, "help")

        assert response.reply == FALLBACK_REPLY

    async def test_empty_model_reply_falls_back(self, make_agent, conversation):
        response = await make_agent(ScriptedAIClient([text_response("")])).process_message(VENDOR_NUMBER, "?")

        assert response.reply == FALLBACK_REPLY

    async def test_malformed_arguments_become_empty_input(self, make_agent, conversation):
        client = ScriptedAIClient([tool_response(tool_call("get_help", "{not json")), text_response("Here you go")])

        response = await make_agent(client).process_message(VENDOR_NUMBER, "help")

        assert response.tool_calls[0].input == {}
        assert response.tool_calls[0].result["topic"] == "general"

    async def test_unknown_tool_is_reported_to_model(self, make_agent, conversation):
        client = ScriptedAIClient([tool_response(tool_call("book_flight")), text_response("I can't do that yet.")])

        response = await make_agent(client).process_message(VENDOR_NUMBER, "Book me a flight")

        assert response.tool_calls[0].result == {"success": False, "error": "Unknown tool: book_flight"}
        block = client.requests[1]["messages"][-1]["content"][0]
        assert block["is_error"] is True

    async def test_model_error_returns_apology(self, make_agent, conversation):
        client = ScriptedAIClient()
        client.error = RuntimeError("overloaded")

        response = await make_agent(client).process_message(VENDOR_NUMBER, "Hi")

        assert response.reply == APOLOGY_REPLY

    async def test_missing_conversation_returns_apology(self, make_agent):
        client = ScriptedAIClient([text_response("Hi")])

        response = await make_agent(client).process_message("+254799999999", "Hi")

        assert response.reply == APOLOGY_REPLY
        assert client.requests == []

    async def test_unverified_vendor_cannot_mutate_store(self, make_agent, conversation, commerce):
        client = ScriptedAIClient(
            [
                tool_response(tool_call("create_product", {"name": "Mandazi", "regular_price": "250"})),
                text_response("Please share your store email so I can link your account."),
            ]
        )

        response = await make_agent(client).process_message(VENDOR_NUMBER, "Add mandazi for 250")

        assert "Not yet verified" in client.requests[0]["system"]
        assert response.tool_calls[0].result == {"success": False, "error": LINK_REQUIRED_ERROR}
        assert commerce.called("create_product") == []

    async def test_context_refreshed_after_verification(self, make_agent, conversation, commerce):
        client = ScriptedAIClient(
            [
                tool_response(tool_call("verify_vendor", {"store_id": "42"})),
                tool_response(tool_call("create_product", {"name": "Mandazi", "regular_price": "250"})),
                text_response("Linked and created!"),
            ]
        )

        response = await make_agent(client).process_message(VENDOR_NUMBER, "My store id is 42, add mandazi")

        assert response.reply == "Linked and created!"
        assert "Not yet verified" in client.requests[0]["system"]
        assert "Verified & Linked" in client.requests[1]["system"]
        assert response.tool_calls[1].succeeded
        assert len(commerce.called("create_product")) == 1

    async def test_media_url_is_appended_to_message(self, make_agent, conversation):
        client = ScriptedAIClient([text_response("Nice photo!")])

        await make_agent(client).process_message(VENDOR_NUMBER, "Use this", media_url="https://cdn.example/cake.jpg")

        content = client.requests[0]["messages"][-1]["content"]
        assert content == "Use this\n\n[The vendor sent an image/file: https://cdn.example/cake.jpg]"


    async def test_round_tools_run_concurrently_before_next_model_call(
        self, conversation_repo, action_log_repo, agent_config, platform, conversation
    ):
        events: list[str] = []

        def slow(name):
            async def handler(tool_input, context):
                events.append(f"start:{name}")
                await asyncio.sleep(0.05)
                events.append(f"end:{name}")
                return {"success": True, "tool": name}

            return handler

        class RecordingClient(ScriptedAIClient):
            async def chat(self, *args, **kwargs):
                events.append("chat")
                return await super().chat(*args, **kwargs)

        registry = ToolRegistry()
        registry.register("slow_a", slow("a"))
        registry.register("slow_b", slow("b"))
        client = RecordingClient([tool_response(tool_call("slow_a"), tool_call("slow_b")), text_response("Both done.")])
        agent = Agent(
            client,
            ContextBuilder(conversation_repo),
            ToolDispatcher(registry, action_log_repo, timeout=agent_config.tool_timeout),
            agent_config,
            platform,
        )

        response = await agent.process_message(VENDOR_NUMBER, "go")

        assert response.reply == "Both done."
        assert events[0] == "chat"
        assert set(events[1:3]) == {"start:a", "start:b"}
        assert set(events[3:5]) == {"end:a", "end:b"}
        assert events[5] == "chat"
        assert [r.name for r in response.tool_calls] == ["slow_a", "slow_b"]
        result_ids = [b["tool_use_id"] for b in client.requests[1]["messages"][-1]["content"]]
        assert result_ids == ["toolu_slow_a", "toolu_slow_b"]

class TestBuildTranscript:
    def test_skips_inbound_already_in_history(self):
        history = (Turn("user", "Hi"), Turn("assistant", "Hello!"), Turn("user", "Show orders"))

        messages = build_transcript(history, "Show orders")

        assert messages == [
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": "Hello!"},
            {"role": "user", "content": "Show orders"},
        ]

    def test_drops_leading_assistant_turns_and_merges_runs(self):
        history = (Turn("assistant", "New order!"), Turn("user", "a"), Turn("user", "b"))

        messages = build_transcript(history, "c")

        assert messages == [{"role": "user", "content": "a\n\nb\n\nc"}]

    def test_media_only_message(self):
        messages = build_transcript((), "", "https://cdn.example/a.jpg")

        assert messages == [{"role": "user", "content": "[The vendor sent an image/file: https://cdn.example/a.jpg]"}]


@pytest.mark.parametrize(
    "raw,expected",
    [
        ({"a": 1}, {"a": 1}),
        ('{"a": 1}', {"a": 1}),
        ("[1, 2]", {}),
        ("{oops", {}),
        (None, {}),
    ],
)
def test_normalize_arguments(raw, expected):
    assert normalize_arguments(raw) == expected
