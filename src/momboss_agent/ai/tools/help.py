"""Static help menu."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from momboss_agent.ai.tools.base import ToolGroup, ToolHandler, ToolResult, success
from momboss_agent.config import PlatformConfig

if TYPE_CHECKING:
    from momboss_agent.ai.context import ConversationContext

HELP_TEXT = {
    "general": """\
Here's what I can help you with on {name}! 🤱💼

📦 *Products*: create, view, update and manage your listings
🛒 *Orders*: check orders, view details, update status
🏪 *Store*: view your store profile and sales stats
📅 *Events*: create workshops, meetups and webinars
📣 *Advertising*: generate marketing ads for your products (AMY)
📊 *Insights*: business advice, trends and pricing tips (MIRA)
🔧 *Support*: help with platform issues (STEVE)
✅ *Account*: link your WhatsApp to your {name} store

Just tell me what you need! For example:
• "Add a new product"
• "Show me my recent orders"
• "How is my store doing?"
• "Advertise my chocolate cake"
• "Create an event for next month\"""",
    "products": """\
📦 *Product Management*

I can help you:
• *Create a product*: tell me the name and price (in {currency}), I'll handle the rest
• *List products*: see all your products or search by name
• *Update a product*: change price, description, stock or status
• *Check stock*: see what's in stock and what's running low

Tips:
• Send me a photo and I can use it as the product image! 📸
• Products are created as drafts so you can review before publishing
• Say "publish product #123" to make it live""",
    "orders": """\
🛒 *Order Management*

I can help you:
• *View orders*: see recent orders or filter by status
• *Order details*: get full info on a specific order
• *Update status*: mark orders as processing, completed, etc.

Order flow: pending → processing → completed
Other statuses: on-hold, cancelled, refunded

💡 You'll also get WhatsApp notifications when new orders come in!""",
    "store": """\
🏪 *Store Info*

I can help you:
• *Store profile*: view your store details
• *Sales stats*: see your total orders and revenue in {currency}
• *Store rating*: check your store's customer rating

Just ask "How is my store doing?" and I'll pull up your dashboard!""",
    "events": """\
📅 *Events (LULU)*

I can help you create events on {name}:
• Workshops, meetups, webinars and more
• Virtual, hybrid or in-person events
• Set date, time, venue and ticket price (in {currency})
• Events are created as drafts by default

Just say "Create an event" and I'll guide you through it!""",
    "advertising": """\
📣 *Advertising (AMY)*

AMY writes marketing copy for your products:
• *Facebook post*: ready for the {name} community group
• *Instagram caption*: with hashtags and a call-to-action
• *WhatsApp status*: share with your contacts

Just say "Advertise [product name]" or "Promote my [product]"!""",
    "insights": """\
📊 *Business Insights (MIRA)*

MIRA is your personal business advisor:
• *Sales summary*: how your store is performing
• *Product recommendations*: what's trending in {market}
• *Pricing advice*: pricing tips for your listings
• *Marketing tips*: best posting times and strategies
• *Weekly report*: a performance summary

Ask "What should I sell?" or "Give me business advice!\"""",
}


class HelpTools(ToolGroup):
    def __init__(self, platform: PlatformConfig):
        self._platform = platform

    def handlers(self) -> dict[str, ToolHandler]:
        return {"get_help": self.get_help}

    async def get_help(self, tool_input: dict[str, Any], context: ConversationContext) -> ToolResult:
        """Unknown or missing topics fall back to the general overview."""
        topic = tool_input.get("topic")
        if not isinstance(topic, str) or topic not in HELP_TEXT:
            topic = "general"
        text = HELP_TEXT[topic].format(
            name=self._platform.name,
            currency=self._platform.currency,
            market=self._platform.market,
        )
        return success(topic=topic, help_text=text)
