"""Store tools: categories, store profile, and dashboard stats."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from momboss_agent.ai.tools.base import (
    LINK_REQUIRED_ERROR,
    ToolGroup,
    ToolHandler,
    ToolResult,
    failure,
    get_int,
    success,
)
from momboss_agent.services.commerce import CommerceClient

if TYPE_CHECKING:
    from momboss_agent.ai.context import ConversationContext


class StoreTools(ToolGroup):
    def __init__(self, commerce: CommerceClient):
        self._commerce = commerce

    def handlers(self) -> dict[str, ToolHandler]:
        return {
            "list_categories": self.list_categories,
            "get_vendor_info": self.get_vendor_info,
            "get_vendor_stats": self.get_vendor_stats,
        }

    async def list_categories(self, tool_input: dict[str, Any], context: ConversationContext) -> ToolResult:
        categories = await self._commerce.list_categories(per_page=get_int(tool_input, "per_page", default=50))
        return success(categories=categories, count=len(categories))

    async def get_vendor_info(self, tool_input: dict[str, Any], context: ConversationContext) -> ToolResult:
        """Public store profile; any store may be looked up by id."""
        vendor_id = get_int(tool_input, "vendor_id") or context.wp_store_id
        if vendor_id is None:
            return failure(LINK_REQUIRED_ERROR)
        vendor = await self._commerce.get_vendor(vendor_id)
        return success(vendor=vendor)

    async def get_vendor_stats(self, tool_input: dict[str, Any], context: ConversationContext) -> ToolResult:
        """Sales figures are private: only the linked store's own stats are returned."""
        own_store = context.wp_store_id or context.wp_user_id
        if own_store is None:
            return failure(LINK_REQUIRED_ERROR)
        requested = get_int(tool_input, "vendor_id")
        if requested is not None and requested != own_store:
            return failure("You can only view the stats of your own store.")
        stats = await self._commerce.get_vendor_stats(own_store)
        return success(stats=stats)
