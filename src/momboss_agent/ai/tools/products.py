"""Product tools: create, list, inspect and update a vendor's listings."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from momboss_agent.ai.tools.base import (
    ToolGroup,
    ToolHandler,
    ToolResult,
    failure,
    get_choice,
    get_int,
    get_price,
    get_str,
    require_linked_account,
    require_verified,
    success,
)
from momboss_agent.ai.tools.catalog import PRODUCT_STATUSES
from momboss_agent.core.errors import ToolInputError
from momboss_agent.services.commerce import CommerceClient

if TYPE_CHECKING:
    from momboss_agent.ai.context import ConversationContext

_TEXT_FIELDS = ("name", "description", "short_description", "sku")
FOREIGN_PRODUCT_ERROR = "That product belongs to another store."


def _owner_id(context: ConversationContext) -> int | None:
    return context.wp_user_id or context.wp_store_id


def _belongs_elsewhere(author: Any, context: ConversationContext) -> bool:
    owner = _owner_id(context)
    return author is not None and owner is not None and int(author) != owner


def _categories(value: Any) -> list[dict[str, int]]:
    if not isinstance(value, list):
        raise ToolInputError("categories must be a list of {id} objects")
    categories = []
    for item in value:
        raw = item.get("id") if isinstance(item, dict) else item
        try:
            categories.append({"id": int(raw)})
        except (TypeError, ValueError):
            raise ToolInputError(f"invalid category id: {raw!r}") from None
    return categories


def _images(value: Any) -> list[dict[str, str]]:
    if not isinstance(value, list):
        raise ToolInputError("images must be a list of {src} objects")
    images = []
    for item in value:
        if isinstance(item, str):
            item = {"src": item}
        if not isinstance(item, dict) or not item.get("src"):
            raise ToolInputError("every image needs a src URL")
        image = {"src": str(item["src"])}
        if item.get("name"):
            image["name"] = str(item["name"])
        images.append(image)
    return images


def _stock_fields(tool_input: dict[str, Any]) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    if isinstance(tool_input.get("manage_stock"), bool):
        fields["manage_stock"] = tool_input["manage_stock"]
    quantity = get_int(tool_input, "stock_quantity")
    if quantity is not None:
        if quantity < 0:
            raise ToolInputError("stock_quantity cannot be negative")
        fields["stock_quantity"] = quantity
        fields.setdefault("manage_stock", True)
    return fields


class ProductTools(ToolGroup):
    """WooCommerce product handlers scoped to the linked vendor."""

    def __init__(self, commerce: CommerceClient):
        self._commerce = commerce

    def handlers(self) -> dict[str, ToolHandler]:
        return {
            "create_product": self.create_product,
            "list_products": self.list_products,
            "get_product": self.get_product,
            "update_product": self.update_product,
        }

    async def create_product(self, tool_input: dict[str, Any], context: ConversationContext) -> ToolResult:
        denied = require_verified(context)
        if denied:
            return denied

        payload: dict[str, Any] = {
            "name": get_str(tool_input, "name", required=True),
            "regular_price": get_price(tool_input, "regular_price", required=True),
            "status": get_choice(tool_input, "status", PRODUCT_STATUSES, default="draft"),
        }
        for key in _TEXT_FIELDS[1:]:
            value = get_str(tool_input, key)
            if value is not None:
                payload[key] = value
        sale_price = get_price(tool_input, "sale_price")
        if sale_price is not None:
            payload["sale_price"] = sale_price
        if tool_input.get("categories"):
            payload["categories"] = _categories(tool_input["categories"])
        if tool_input.get("images"):
            payload["images"] = _images(tool_input["images"])
        payload.update(_stock_fields(tool_input))

        product = await self._commerce.create_product(payload)
        message = f'Product "{product["name"]}" created'
        if product.get("status") == "draft":
            message += " as a draft. Review it, then ask me to publish it."
        else:
            message += "."
        return success(product=product, message=message)

    async def list_products(self, tool_input: dict[str, Any], context: ConversationContext) -> ToolResult:
        denied = require_linked_account(context)
        if denied:
            return denied
        products = await self._commerce.list_products(
            vendor_id=_owner_id(context),
            status=get_choice(tool_input, "status", ("any", *PRODUCT_STATUSES), default="any"),
            per_page=get_int(tool_input, "per_page", default=10),
            page=get_int(tool_input, "page", default=1),
            search=get_str(tool_input, "search"),
        )
        return success(products=products, count=len(products))

    async def get_product(self, tool_input: dict[str, Any], context: ConversationContext) -> ToolResult:
        denied = require_linked_account(context)
        if denied:
            return denied
        product = await self._commerce.get_product(get_int(tool_input, "product_id", required=True))
        if _belongs_elsewhere(product.pop("author", None), context):
            return failure(FOREIGN_PRODUCT_ERROR)
        return success(product=product)

    async def update_product(self, tool_input: dict[str, Any], context: ConversationContext) -> ToolResult:
        denied = require_verified(context)
        if denied:
            return denied
        product_id = get_int(tool_input, "product_id", required=True)

        updates: dict[str, Any] = {}
        for key in _TEXT_FIELDS:
            value = get_str(tool_input, key)
            if value is not None:
                updates[key] = value
        regular_price = get_price(tool_input, "regular_price")
        if regular_price is not None:
            updates["regular_price"] = regular_price
        # An empty sale price ends the sale
        if tool_input.get("sale_price") == "":
            updates["sale_price"] = ""
        else:
            sale_price = get_price(tool_input, "sale_price")
            if sale_price is not None:
                updates["sale_price"] = sale_price
        status = get_choice(tool_input, "status", PRODUCT_STATUSES)
        if status is not None:
            updates["status"] = status
        updates.update(_stock_fields(tool_input))

        if not updates:
            raise ToolInputError("nothing to update; include at least one field to change")

        current = await self._commerce.get_product(product_id)
        if _belongs_elsewhere(current.get("author"), context):
            return failure(FOREIGN_PRODUCT_ERROR)

        product = await self._commerce.update_product(product_id, updates)
        return success(product=product, message=f'Product "{product["name"]}" updated.')
