"""Ad copy generation for Facebook, Instagram and WhatsApp."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from momboss_agent.ai.tools.base import (
    ToolGroup,
    ToolHandler,
    ToolResult,
    get_choice,
    get_int,
    get_str,
    require_linked_account,
    success,
)
from momboss_agent.ai.tools.catalog import AD_TONES
from momboss_agent.config import PlatformConfig
from momboss_agent.services.commerce import CommerceClient

if TYPE_CHECKING:
    from momboss_agent.ai.context import ConversationContext

TONE_OPENERS = {
    "fun": "🎉",
    "professional": "✅",
    "luxurious": "💎",
    "urgent": "⏰ Limited time!",
    "heartfelt": "💜",
}


class MarketingTools(ToolGroup):
    def __init__(self, commerce: CommerceClient, platform: PlatformConfig):
        self._commerce = commerce
        self._platform = platform

    def handlers(self) -> dict[str, ToolHandler]:
        return {"generate_ad_copy": self.generate_ad_copy}

    async def generate_ad_copy(self, tool_input: dict[str, Any], context: ConversationContext) -> ToolResult:
        name = get_str(tool_input, "product_name")
        description = get_str(tool_input, "product_description", default="")
        price = get_str(tool_input, "price", default="")
        audience = get_str(tool_input, "target_audience", default=f"women entrepreneurs in {self._platform.market}")
        tone = get_choice(tool_input, "tone", AD_TONES, default="fun")

        product_id = get_int(tool_input, "product_id")
        if product_id is not None:
            denied = require_linked_account(context)
            if denied:
                return denied
            product = await self._commerce.get_product(product_id)
            name = product.get("name") or name
            description = product.get("description") or description
            price = product.get("price") or price

        if not name:
            return success(
                needs_input=True,
                message="Which product should I advertise? Send me its name, or a product ID.",
            )

        return success(
            product=name,
            tone=tone,
            target_audience=audience,
            ad_copy=self._render(name, description, price, tone),
            tip=f"Share the Facebook version in the {self._platform.name} Facebook group for maximum reach!",
        )

    def _render(self, name: str, description: str, price: str, tone: str) -> dict[str, str]:
        p = self._platform
        opener = TONE_OPENERS[tone]
        tag = p.name.replace(" ", "")

        facebook = f"{opener} {name}\n\n"
        if description:
            facebook += f"{description}\n\n"
        if price:
            facebook += f"💰 Only {p.currency} {price}!\n\n"
        facebook += f"🛒 Shop now on {p.name} → {p.site_url}\n\n#{tag} #WomenInBusiness #{p.market.replace(' ', '')} #ShopLocal"

        instagram = f"✨ {name} ✨\n\n{description or f'Made with love by a {p.name} 💜'}\n"
        if price:
            instagram += f"\n💰 {p.currency} {price}"
        instagram += f"\n\n🔗 Link in bio\n\n#{tag} #SupportWomen #ShopSmall #WomenEntrepreneurs"

        whatsapp = f"{opener} Hey! Check out *{name}* on {p.name}!\n\n"
        if description:
            whatsapp += f"{description}\n"
        if price:
            whatsapp += f"💰 Price: {p.currency} {price}\n"
        whatsapp += f"\n🛒 Order now: {p.site_url}\n\nSupport a {p.name} today!"

        return {"facebook": facebook, "instagram": instagram, "whatsapp": whatsapp}
