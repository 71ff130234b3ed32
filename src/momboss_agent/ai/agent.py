"""The agent loop: context, model, bounded tool rounds, final reply."""

from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from momboss_agent.ai.client import AIClient, AIResponse, ToolUseRequest
from momboss_agent.ai.context import ContextBuilder, ConversationContext, Turn
from momboss_agent.ai.dispatcher import ToolDispatcher
from momboss_agent.ai.prompts import build_system_prompt
from momboss_agent.ai.tools.base import ToolSpec
from momboss_agent.ai.tools.catalog import TOOL_CATALOG, to_api_tools
from momboss_agent.config import AgentConfig, PlatformConfig
from momboss_agent.log import get_logger

logger = get_logger(__name__)

APOLOGY_REPLY = "Sorry, I ran into a problem. Please try again in a moment."
FALLBACK_REPLY = "I'm here to help! What can I do for you today?"
MEDIA_MARKER = "\n\n[The vendor sent an image/file: {url}]"


@dataclass(frozen=True)
class ToolCallRecord:
    name: str
    input: dict[str, Any]
    result: dict[str, Any]

    @property
    def succeeded(self) -> bool:
        return self.result.get("success") is not False

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "input": self.input, "result": self.result}


@dataclass
class AgentResponse:
    reply: str = ""
    tool_calls: list[ToolCallRecord] = field(default_factory=list)
    tokens_used: int = 0
    rounds: int = 0


def normalize_arguments(raw: Any) -> dict[str, Any]:
    """Tool arguments as a dict; anything unparseable becomes ``{}``."""
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, (str, bytes)):
        try:
            parsed = json.loads(raw)
        except ValueError:
            return {}
        return parsed if isinstance(parsed, dict) else {}
    return {}


def build_transcript(history: Sequence[Turn], text: str, media_url: Optional[str] = None) -> list[dict[str, Any]]:
    """History plus the new message, shaped for the Messages API.

    The API wants the first turn from the user and roles alternating, so
    leading assistant turns are dropped and runs of one role are merged. The
    inbound message is normally already the newest history turn (ingestion
    stores it first); it is not repeated.
    """
    turns = list(history)
    if turns and turns[-1].role == "user" and turns[-1].content == text:
        turns.pop()

    current = text
    if media_url:
        current = (current + MEDIA_MARKER.format(url=media_url)).strip()
    turns.append(Turn(role="user", content=current))

    messages: list[dict[str, Any]] = []
    for turn in turns:
        if not messages and turn.role != "user":
            continue
        if messages and messages[-1]["role"] == turn.role:
            messages[-1]["content"] += "\n\n" + turn.content
        else:
            messages.append({"role": turn.role, "content": turn.content})
    return messages


class Agent:
    """Turns one inbound vendor message into a reply, calling tools as the model asks."""

    def __init__(
        self,
        ai_client: AIClient,
        context_builder: ContextBuilder,
        dispatcher: ToolDispatcher,
        config: AgentConfig,
        platform: PlatformConfig,
        catalog: tuple[ToolSpec, ...] = TOOL_CATALOG,
    ):
        self._ai = ai_client
        self._context_builder = context_builder
        self._dispatcher = dispatcher
        self._config = config
        self._platform = platform
        self._tools = to_api_tools(catalog)

    async def process_message(
        self, whatsapp_number: str, text: str, media_url: Optional[str] = None
    ) -> AgentResponse:
        """Always returns a reply; errors become the apology message."""
        start = time.monotonic()
        response = AgentResponse()
        try:
            await self._run(response, whatsapp_number, text or "", media_url)
        except Exception:
            logger.exception("agent_failed", whatsapp_number=whatsapp_number, rounds=response.rounds)
            response.reply = APOLOGY_REPLY

        logger.info(
            "message_processed",
            whatsapp_number=whatsapp_number,
            rounds=response.rounds,
            tool_calls=len(response.tool_calls),
            tokens=response.tokens_used,
            duration_ms=int((time.monotonic() - start) * 1000),
        )
        return response

    async def _run(
        self,
        response: AgentResponse,
        whatsapp_number: str,
        text: str,
        media_url: Optional[str],
    ) -> None:
        context = await self._context_builder.build(whatsapp_number)
        messages = build_transcript(context.history, text, media_url)
        last_text = ""

        while response.rounds < self._config.max_tool_rounds:
            response.rounds += 1
            ai_response = await self._ai.chat(
                system=build_system_prompt(context, self._platform),
                messages=messages,
                model=self._config.model,
                max_tokens=self._config.max_tokens,
                temperature=self._config.temperature,
                tools=self._tools,
            )
            response.tokens_used += ai_response.total_tokens
            if ai_response.text:
                last_text = ai_response.text

            if not ai_response.tool_calls:
                response.reply = ai_response.text or last_text or FALLBACK_REPLY
                return

            records = await self._run_tools(ai_response.tool_calls, context)
            response.tool_calls.extend(record for _, record in records)
            messages.append({"role": "assistant", "content": _assistant_blocks(ai_response, records)})
            messages.append({"role": "user", "content": [_result_block(call_id, r) for call_id, r in records]})

            if any(r.name == "verify_vendor" and r.succeeded for _, r in records):
                context = await self._context_builder.build(whatsapp_number)

        logger.warning("tool_rounds_exhausted", whatsapp_number=whatsapp_number, rounds=response.rounds)
        response.reply = last_text or FALLBACK_REPLY

    async def _run_tools(
        self, calls: list[ToolUseRequest], context: ConversationContext
    ) -> list[tuple[str, ToolCallRecord]]:
        """Execute one round's tool calls concurrently, keeping request order."""

        async def _one(call: ToolUseRequest) -> tuple[str, ToolCallRecord]:
            arguments = normalize_arguments(call.arguments)
            logger.info("tool_requested", tool=call.name, tool_use_id=call.id)
            result = await self._dispatcher.execute(call.name, arguments, context)
            return call.id, ToolCallRecord(name=call.name, input=arguments, result=result)

        return list(await asyncio.gather(*(_one(c) for c in calls)))


def _assistant_blocks(ai_response: AIResponse, records: list[tuple[str, ToolCallRecord]]) -> list[dict[str, Any]]:
    blocks: list[dict[str, Any]] = []
    if ai_response.text:
        blocks.append({"type": "text", "text": ai_response.text})
    for call_id, record in records:
        blocks.append({"type": "tool_use", "id": call_id, "name": record.name, "input": record.input})
    return blocks


def _result_block(call_id: str, record: ToolCallRecord) -> dict[str, Any]:
    block: dict[str, Any] = {
        "type": "tool_result",
        "tool_use_id": call_id,
        "content": json.dumps(record.result, default=str, ensure_ascii=False),
    }
    if not record.succeeded:
        block["is_error"] = True
    return block
