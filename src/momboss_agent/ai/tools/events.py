"""Event creation tool."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from momboss_agent.ai.tools.base import (
    ToolGroup,
    ToolHandler,
    ToolResult,
    get_choice,
    get_price,
    get_str,
    require_verified,
    success,
)
from momboss_agent.ai.tools.catalog import EVENT_TYPES
from momboss_agent.core.errors import ToolInputError
from momboss_agent.services.commerce import CommerceClient

if TYPE_CHECKING:
    from momboss_agent.ai.context import ConversationContext


def _iso_datetime(tool_input: dict[str, Any], key: str, *, required: bool = False) -> str | None:
    value = get_str(tool_input, key, required=required)
    if value is None:
        return None
    try:
        datetime.fromisoformat(value)
    except ValueError:
        raise ToolInputError(f'{key} must be an ISO date like "2026-03-15T10:00:00", got {value!r}') from None
    return value


class EventTools(ToolGroup):
    def __init__(self, commerce: CommerceClient):
        self._commerce = commerce

    def handlers(self) -> dict[str, ToolHandler]:
        return {"create_event": self.create_event}

    async def create_event(self, tool_input: dict[str, Any], context: ConversationContext) -> ToolResult:
        denied = require_verified(context)
        if denied:
            return denied

        start_date = _iso_datetime(tool_input, "start_date", required=True)

        event = await self._commerce.create_event(
            title=get_str(tool_input, "title", required=True),
            start_date=start_date,
            description=get_str(tool_input, "description"),
            end_date=_iso_datetime(tool_input, "end_date"),
            venue=get_str(tool_input, "venue"),
            event_type=get_choice(tool_input, "type", EVENT_TYPES, default="virtual"),
            ticket_price=get_price(tool_input, "ticket_price"),
            status=get_choice(tool_input, "status", ("publish", "draft"), default="draft"),
        )
        return success(event=event)
