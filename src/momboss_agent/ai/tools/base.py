"""Tool declarations, handler groups, and argument coercion helpers."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from momboss_agent.core.errors import ToolInputError

if TYPE_CHECKING:
    from momboss_agent.ai.context import ConversationContext

ToolResult = dict[str, Any]
ToolHandler = Callable[[dict[str, Any], "ConversationContext"], Awaitable[ToolResult]]

_PRICE_NOISE = re.compile(r"[^\d.\-]")

LINK_REQUIRED_ERROR = (
    "This vendor has not linked their store yet. "
    "Ask for their store email or store ID and use verify_vendor first."
)


@dataclass(frozen=True)
class ToolSpec:
    """A capability offered to the model: name, when-to-use text, and parameter schema."""

    name: str
    description: str
    input_schema: dict[str, Any]

    def to_api_dict(self) -> dict[str, Any]:
        """Serialize to the Anthropic API tool definition format."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
        }


class ToolGroup(ABC):
    """A set of tool handlers sharing one backend dependency."""

    @abstractmethod
    def handlers(self) -> dict[str, ToolHandler]:
        """Map of tool name to handler coroutine."""
        ...


def success(**payload: Any) -> ToolResult:
    return {"success": True, **payload}


def failure(error: str, **payload: Any) -> ToolResult:
    return {"success": False, "error": error, **payload}


def require_verified(context: ConversationContext) -> ToolResult | None:
    """Failure result for store-mutating tools when the number is not a verified vendor."""
    if not context.is_verified:
        return failure(LINK_REQUIRED_ERROR)
    return None


def require_linked_account(context: ConversationContext) -> ToolResult | None:
    """Failure result for vendor-scoped reads when no store account is known."""
    if not context.has_linked_account:
        return failure(LINK_REQUIRED_ERROR)
    return None


def get_int(tool_input: dict[str, Any], key: str, *, required: bool = False, default: int | None = None) -> int | None:
    """Read an integer argument, accepting numeric strings like "42"."""
    value = tool_input.get(key)
    if value is None or value == "":
        if required:
            raise ToolInputError(f"{key} is required")
        return default
    if isinstance(value, bool):
        raise ToolInputError(f"{key} must be a number")
    try:
        return int(float(value))
    except (TypeError, ValueError):
        raise ToolInputError(f"{key} must be a number, got {value!r}") from None


def get_str(tool_input: dict[str, Any], key: str, *, required: bool = False, default: str | None = None) -> str | None:
    value = tool_input.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ToolInputError(f"{key} is required")
        return default
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if not isinstance(value, str):
        raise ToolInputError(f"{key} must be text")
    return value.strip()


def get_choice(
    tool_input: dict[str, Any],
    key: str,
    choices: tuple[str, ...],
    *,
    required: bool = False,
    default: str | None = None,
) -> str | None:
    value = get_str(tool_input, key, required=required, default=default)
    if value is not None and value not in choices:
        raise ToolInputError(f"{key} must be one of: {', '.join(choices)}")
    return value


def get_price(tool_input: dict[str, Any], key: str, *, required: bool = False) -> str | None:
    """Prices travel as strings (WooCommerce convention); validate they are numeric."""
    value = get_str(tool_input, key, required=required)
    if value is None:
        return None
    cleaned = _PRICE_NOISE.sub("", value).lstrip(".")
    try:
        if float(cleaned) < 0:
            raise ToolInputError(f"{key} cannot be negative")
    except ValueError:
        raise ToolInputError(f"{key} must be a number, got {value!r}") from None
    return cleaned
