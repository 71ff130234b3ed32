"""WhatsApp notifications for WooCommerce order and product webhooks."""

from __future__ import annotations

from typing import Any, Optional

import httpx

from momboss_agent.config import PlatformConfig
from momboss_agent.log import get_logger
from momboss_agent.messenger.models import OutgoingMessage
from momboss_agent.messenger.twilio import TwilioSender
from momboss_agent.services.commerce import order_vendor_ids
from momboss_agent.storage.action_log_repo import ActionLogRepository
from momboss_agent.storage.conversation_repo import ConversationRepository
from momboss_agent.storage.models import ActionLogEntry, VendorLink

logger = get_logger(__name__)

SUPPORTED_TOPICS = ("order.created", "order.updated", "product.created", "product.updated")


def _customer_name(order: dict[str, Any]) -> str:
    billing = order.get("billing") or {}
    return f"{billing.get('first_name') or ''} {billing.get('last_name') or ''}".strip()


class OrderNotifier:
    """Routes WooCommerce webhook topics to WhatsApp messages for vendors and customers."""

    def __init__(
        self,
        sender: TwilioSender,
        conversation_repo: ConversationRepository,
        action_log_repo: ActionLogRepository,
        platform: PlatformConfig,
    ):
        self._sender = sender
        self._repo = conversation_repo
        self._action_log = action_log_repo
        self._platform = platform

    async def handle(self, topic: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Dispatch one webhook; returns a summary of who was notified."""
        logger.info("woocommerce_webhook", topic=topic, resource_id=payload.get("id"))
        match topic:
            case "order.created":
                return await self.order_created(payload)
            case "order.updated":
                return await self.order_updated(payload)
            case "product.created":
                return await self.product_created(payload)
            case "product.updated":
                return await self.product_updated(payload)
            case _:
                logger.info("woocommerce_webhook_unhandled", topic=topic)
                return {"handled": False}

    async def _send(self, to: str, text: str) -> bool:
        try:
            await self._sender.send(OutgoingMessage(to=to, text=text))
        except httpx.HTTPError as e:
            logger.error("notification_send_failed", to=to, error=str(e))
            return False
        return True

    async def _vendor_link(self, vendor_id: Any) -> Optional[VendorLink]:
        try:
            wp_user_id = int(vendor_id)
        except (TypeError, ValueError):
            return None
        links = await self._repo.find_vendor_links_by_user_ids([wp_user_id])
        return links[0] if links else None

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    async def order_created(self, order: dict[str, Any]) -> dict[str, Any]:
        number = order.get("number") or order.get("id")
        currency = order.get("currency") or self._platform.currency
        total = order.get("total")
        customer = _customer_name(order)
        customer_phone = (order.get("billing") or {}).get("phone")
        items = "\n".join(
            f"• {item.get('name')} × {item.get('quantity')}: {currency} {item.get('total')}"
            for item in order.get("line_items") or []
        )

        links = await self._repo.find_vendor_links_by_user_ids(order_vendor_ids(order))
        vendors_notified = 0
        for link in links:
            text = (
                f"🛒 *New Order!* #{number}\n\n"
                f"Hey {link.store_name or self._platform.name}! You just got a new order! 🎉\n\n"
                f"👤 Customer: {customer}\n"
                f"💰 Total: {currency} {total}\n\n"
                f"*Items:*\n{items}\n\n"
                "📦 Please prepare this order for pickup/delivery.\n\n"
                f'Reply "order {number}" for full details.'
            )
            if await self._send(link.whatsapp_number, text):
                vendors_notified += 1

        customer_notified = False
        if customer_phone:
            text = (
                f"✅ *Order Confirmed!* #{number}\n\n"
                f"Hi {customer}! 🎉\n\n"
                f"Your order from {self._platform.name} has been confirmed!\n\n"
                f"*Items:*\n{items}\n\n"
                f"💰 Total: {currency} {total}\n\n"
                "We'll update you when your order is being prepared. "
                "Thank you for supporting women entrepreneurs! 🤱💼"
            )
            customer_notified = await self._send(customer_phone, text)

        summary = {"handled": True, "vendors_notified": vendors_notified, "customer_notified": customer_notified}
        await self._action_log.append(
            ActionLogEntry(
                whatsapp_number=links[0].whatsapp_number if links else "system",
                action="order_notification",
                tool_name="order_created",
                success=True,
                input={"order_id": order.get("id"), "order_number": number},
                output=summary,
            )
        )
        return summary

    async def order_updated(self, order: dict[str, Any]) -> dict[str, Any]:
        number = order.get("number") or order.get("id")
        status = order.get("status")
        customer = _customer_name(order)
        customer_phone = (order.get("billing") or {}).get("phone")

        customer_messages = {
            "processing": f"📋 Order #{number} is now being *processed*! The vendor is preparing your items.",
            "on-hold": f"⏸️ Order #{number} is *on hold*. We'll update you when it resumes.",
            "completed": (
                f"🎉 Order #{number} is *complete*! Thank you for shopping on {self._platform.name}, "
                f"{customer}! We hope you love it! 💜"
            ),
            "cancelled": f"❌ Order #{number} has been *cancelled*. If this was unexpected, please reach out to us.",
            "refunded": f"💰 Order #{number} has been *refunded*. The refund will appear in your account shortly.",
            "failed": f"⚠️ There was an issue with Order #{number}. Please check your payment method and try again.",
        }

        customer_notified = False
        message = customer_messages.get(status)
        if message and customer_phone:
            customer_notified = await self._send(customer_phone, message)

        vendors_notified = 0
        for link in await self._repo.find_vendor_links_by_user_ids(order_vendor_ids(order)):
            if status == "completed":
                text = f"✅ Order #{number} marked as *completed*! Great work, {link.store_name or 'there'}! 💪🎉"
            elif status in ("cancelled", "refunded"):
                text = f"⚠️ Order #{number} has been *{status}*. Check your dashboard for details."
            else:
                continue
            if await self._send(link.whatsapp_number, text):
                vendors_notified += 1

        return {"handled": True, "vendors_notified": vendors_notified, "customer_notified": customer_notified}

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    async def product_created(self, product: dict[str, Any]) -> dict[str, Any]:
        link = await self._vendor_link(product.get("author") or product.get("vendor_id"))
        if link is None:
            return {"handled": True, "vendors_notified": 0}

        name = product.get("name")
        status = product.get("status")
        price = product.get("regular_price")
        lines = [
            "📦 *New Product Added!*",
            "",
            f'"{name}" has been created {"as a draft" if status == "draft" else f"and is {status}"}.',
        ]
        if price:
            lines.append(f"💰 Price: {self._platform.currency} {price}")
        if status == "draft":
            lines += ["", "📝 Remember to publish it when you're ready!"]
        lines += ["", f'💡 Want me to create a marketing ad for this product? Just say "advertise {name}"!']

        sent = await self._send(link.whatsapp_number, "\n".join(lines))
        return {"handled": True, "vendors_notified": int(sent)}

    async def product_updated(self, product: dict[str, Any]) -> dict[str, Any]:
        """Only publishing is worth a message."""
        if product.get("status") != "publish":
            return {"handled": True, "vendors_notified": 0}
        link = await self._vendor_link(product.get("author") or product.get("vendor_id"))
        if link is None:
            return {"handled": True, "vendors_notified": 0}

        text = (
            f'🟢 Your product "{product.get("name")}" is now *live* on {self._platform.name}! 🎉\n\n'
            f"🔗 {product.get('permalink') or 'Check your store to see it!'}"
        )
        sent = await self._send(link.whatsapp_number, text)
        return {"handled": True, "vendors_notified": int(sent)}
