"""Business insights: store performance, pricing, and general advice."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from momboss_agent.ai.tools.base import (
    ToolGroup,
    ToolHandler,
    ToolResult,
    failure,
    get_choice,
    get_int,
    success,
)
from momboss_agent.ai.tools.catalog import INSIGHT_TYPES
from momboss_agent.config import PlatformConfig
from momboss_agent.core.types import InsightType
from momboss_agent.log import get_logger
from momboss_agent.services.commerce import CommerceClient

if TYPE_CHECKING:
    from momboss_agent.ai.context import ConversationContext

logger = get_logger(__name__)

NOT_LINKED_ERROR = "Vendor not verified. Link your store first!"

PRODUCT_RECOMMENDATIONS = (
    "🍰 Homemade baked goods: consistently high demand",
    "🧴 Natural beauty products: organic and handmade are trending",
    "👶 Baby products: always in demand from the community",
    "🎨 Custom crafts: personalized items have high margins",
    "📱 Digital products: courses, templates, guides (no shipping!)",
)

PRICING_ADVICE = (
    "Price competitively: check similar products on the platform",
    "Consider offering bundle deals (e.g. buy 3 get 10% off)",
    "Use sale prices strategically during holidays and events",
    "Factor payment fees and delivery costs into your pricing",
)

MARKETING_TIPS = (
    "📸 Use high-quality photos; natural light works best",
    "📝 Write clear descriptions: include size, ingredients, materials",
    "📱 Post to the community Facebook group",
    "🕕 Best posting times: 6-8 AM and 6-9 PM (when moms browse)",
    "💬 Respond to customer questions quickly; speed wins sales",
    "🏷️ Use sale prices during holidays (Valentine's, Mother's Day, Black Friday)",
    "🔄 Repost your best sellers every 2 weeks",
)

WEEKLY_ACTIONS = (
    "Review your top-selling products and make sure they're in stock",
    "Consider creating an ad for your best product",
    "Reply to any pending customer questions",
)


class InsightTools(ToolGroup):
    def __init__(self, commerce: CommerceClient, platform: PlatformConfig):
        self._commerce = commerce
        self._platform = platform

    def handlers(self) -> dict[str, ToolHandler]:
        return {"get_business_insights": self.get_business_insights}

    async def get_business_insights(self, tool_input: dict[str, Any], context: ConversationContext) -> ToolResult:
        insight_type = InsightType(get_choice(tool_input, "insight_type", INSIGHT_TYPES, required=True))

        match insight_type:
            case InsightType.PRODUCT_RECOMMENDATIONS:
                return success(
                    recommendations=list(PRODUCT_RECOMMENDATIONS),
                    market=self._platform.market,
                    tip="Start with what you know and love. Your passion comes through in your products!",
                )
            case InsightType.MARKETING_TIPS:
                return success(tips=list(MARKETING_TIPS))

        store_id = context.wp_store_id or context.wp_user_id
        if store_id is None:
            return failure(NOT_LINKED_ERROR)
        requested = get_int(tool_input, "vendor_id")
        if requested is not None and requested != store_id:
            return failure("Insights are only available for your own store.")

        match insight_type:
            case InsightType.SALES_SUMMARY:
                return await self._sales_summary(store_id)
            case InsightType.PRICING_ADVICE:
                return await self._pricing_advice(store_id)
            case _:
                return await self._weekly_report(store_id)

    async def _sales_summary(self, store_id: int) -> ToolResult:
        stats = await self._commerce.get_vendor_stats(store_id)
        orders = await self._commerce.list_orders(vendor_id=store_id, per_page=20)
        return success(
            insights={
                **stats,
                "recent_orders": len(orders),
                "tip": f"To boost sales, try posting a product ad to the {self._platform.name} Facebook group!",
            }
        )

    async def _pricing_advice(self, store_id: int) -> ToolResult:
        products = await self._commerce.list_products(vendor_id=store_id)
        return success(
            pricing={
                "your_products": products,
                "currency": self._platform.currency,
                "advice": list(PRICING_ADVICE),
            }
        )

    async def _weekly_report(self, store_id: int) -> ToolResult:
        """Each source is optional; a failed read shows up as a missing figure."""
        stats, orders, products = await asyncio.gather(
            self._commerce.get_vendor_stats(store_id),
            self._commerce.list_orders(vendor_id=store_id, per_page=50),
            self._commerce.list_products(vendor_id=store_id),
            return_exceptions=True,
        )
        unavailable = [
            name
            for name, result in (("stats", stats), ("orders", orders), ("products", products))
            if isinstance(result, BaseException)
        ]
        if unavailable:
            logger.warning("weekly_report_partial", store_id=store_id, unavailable=unavailable)

        report: dict[str, Any] = {
            "stats": None if isinstance(stats, BaseException) else stats,
            "total_orders": None if isinstance(orders, BaseException) else len(orders),
            "total_products": None if isinstance(products, BaseException) else len(products),
            "actions": list(WEEKLY_ACTIONS),
        }
        if unavailable:
            report["unavailable"] = unavailable
        return success(weekly_report=report)
