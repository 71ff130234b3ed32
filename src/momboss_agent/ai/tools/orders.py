"""Order tools."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from momboss_agent.ai.tools.base import (
    ToolGroup,
    ToolHandler,
    ToolResult,
    failure,
    get_choice,
    get_int,
    require_linked_account,
    require_verified,
    success,
)
from momboss_agent.ai.tools.catalog import ORDER_STATUSES
from momboss_agent.core.types import OrderStatus
from momboss_agent.services.commerce import CommerceClient

if TYPE_CHECKING:
    from momboss_agent.ai.context import ConversationContext

_LIST_FILTERS = ("any", *(s.value for s in OrderStatus))

FOREIGN_ORDER_ERROR = "That order belongs to another store."


def _belongs_elsewhere(order: dict[str, Any], context: ConversationContext) -> bool:
    # Orders without vendor attribution are single-store orders
    vendor_ids = order.get("vendor_ids") or []
    owner = context.wp_user_id or context.wp_store_id
    return bool(vendor_ids) and owner is not None and owner not in vendor_ids


class OrderTools(ToolGroup):
    def __init__(self, commerce: CommerceClient):
        self._commerce = commerce

    def handlers(self) -> dict[str, ToolHandler]:
        return {
            "list_orders": self.list_orders,
            "get_order": self.get_order,
            "update_order_status": self.update_order_status,
        }

    async def list_orders(self, tool_input: dict[str, Any], context: ConversationContext) -> ToolResult:
        denied = require_linked_account(context)
        if denied:
            return denied
        orders = await self._commerce.list_orders(
            vendor_id=context.wp_user_id or context.wp_store_id,
            status=get_choice(tool_input, "status", _LIST_FILTERS, default="any"),
            per_page=get_int(tool_input, "per_page", default=10),
            page=get_int(tool_input, "page", default=1),
        )
        return success(orders=orders, count=len(orders))

    async def get_order(self, tool_input: dict[str, Any], context: ConversationContext) -> ToolResult:
        denied = require_linked_account(context)
        if denied:
            return denied
        order = await self._commerce.get_order(get_int(tool_input, "order_id", required=True))
        if _belongs_elsewhere(order, context):
            return failure(FOREIGN_ORDER_ERROR)
        return success(order=order)

    async def update_order_status(self, tool_input: dict[str, Any], context: ConversationContext) -> ToolResult:
        denied = require_verified(context)
        if denied:
            return denied
        order_id = get_int(tool_input, "order_id", required=True)
        status = get_choice(tool_input, "status", ORDER_STATUSES, required=True)
        if _belongs_elsewhere(await self._commerce.get_order(order_id), context):
            return failure(FOREIGN_ORDER_ERROR)
        order = await self._commerce.update_order_status(order_id, status)
        return success(order=order, message=f"Order #{order.get('number') or order_id} is now {order.get('status')}.")
