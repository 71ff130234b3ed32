"""AI client abstraction over the Anthropic tool-use Messages API."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from momboss_agent.config import AnthropicConfig
from momboss_agent.log import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ToolUseRequest:
    """One tool invocation requested by the model.

    ``arguments`` is whatever the backend produced: normally a dict, but a raw
    JSON string (possibly malformed) is passed through untouched so the agent
    loop decides how to recover.
    """

    id: str
    name: str
    arguments: Any


@dataclass
class AIResponse:
    """Unified response from the AI backend."""

    text: str
    tool_calls: list[ToolUseRequest] = field(default_factory=list)
    input_tokens: int = 0
    output_tokens: int = 0
    stop_reason: str | None = None
    raw: Any = None  # Backend-specific raw response

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class AIClient(ABC):
    """Abstract base class for AI backends."""

    @abstractmethod
    async def chat(
        self,
        system: str,
        messages: list[dict[str, Any]],
        model: str,
        max_tokens: int = 512,
        temperature: float = 0.4,
        tools: list[dict[str, Any]] | None = None,
    ) -> AIResponse:
        """Send a conversation to the model and return its (possibly tool-calling) response."""
        ...

    async def close(self) -> None:
        """Release network resources."""


class AnthropicClient(AIClient):
    """Anthropic API backend using the official SDK."""

    def __init__(self, config: AnthropicConfig):
        import anthropic

        self._client = anthropic.AsyncAnthropic(
            api_key=config.api_key,
            base_url=config.base_url,
            max_retries=config.max_retries,
            timeout=config.timeout,
        )

    async def chat(
        self,
        system: str,
        messages: list[dict[str, Any]],
        model: str,
        max_tokens: int = 512,
        temperature: float = 0.4,
        tools: list[dict[str, Any]] | None = None,
    ) -> AIResponse:
        kwargs: dict[str, Any] = {
            "model": model,
            "max_tokens": max_tokens,
            "system": system,
            "messages": messages,
            "temperature": temperature,
        }
        if tools:
            kwargs["tools"] = tools
            kwargs["tool_choice"] = {"type": "auto"}

        logger.debug("api_request", model=model, message_count=len(messages))
        response = await self._client.messages.create(**kwargs)
        logger.debug(
            "api_response",
            model=model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            stop_reason=response.stop_reason,
        )

        texts: list[str] = []
        tool_calls: list[ToolUseRequest] = []
        for block in response.content:
            if block.type == "text":
                texts.append(block.text)
            elif block.type == "tool_use":
                tool_calls.append(ToolUseRequest(id=block.id, name=block.name, arguments=block.input))

        return AIResponse(
            text="\n".join(t for t in texts if t).strip(),
            tool_calls=tool_calls,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            stop_reason=response.stop_reason,
            raw=response,
        )

    async def close(self) -> None:
        await self._client.close()
