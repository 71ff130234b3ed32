"""Workflow-automation bridge: lets n8n workflows message vendors and drive the agent."""

from __future__ import annotations

import hmac
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from momboss_agent.ai.agent import Agent
from momboss_agent.config import N8nConfig
from momboss_agent.core.errors import BridgeRequestError
from momboss_agent.log import get_logger
from momboss_agent.messenger.models import OutgoingMessage
from momboss_agent.messenger.twilio import TwilioSender, strip_channel_prefix
from momboss_agent.storage.action_log_repo import ActionLogRepository
from momboss_agent.storage.conversation_repo import ConversationRepository
from momboss_agent.storage.models import ActionLogEntry

logger = get_logger(__name__)

SECRET_HEADER = "x-n8n-secret"

BRIDGE_ACTIONS = (
    "send_whatsapp - Send a WhatsApp message",
    "notify_vendor - Notify a vendor by ID or number",
    "run_agent - Run AI agent for a message",
    "log_action - Log an action",
    "broadcast - Message all verified vendors",
    "health_check - System health check",
)


class AutomationBridge:
    """Executes one named action per request on behalf of an automation workflow."""

    def __init__(
        self,
        config: N8nConfig,
        agent: Agent,
        sender: TwilioSender,
        conversation_repo: ConversationRepository,
        action_log_repo: ActionLogRepository,
        platform_name: str = "MomBoss",
    ):
        self._config = config
        self._agent = agent
        self._sender = sender
        self._repo = conversation_repo
        self._action_log = action_log_repo
        self._platform_name = platform_name

    def authorized(self, secret: Optional[str]) -> bool:
        if not self._config.requires_secret:
            return True
        return hmac.compare_digest((secret or "").encode(), self._config.webhook_secret.encode())

    def info(self) -> dict[str, Any]:
        return {
            "status": "ok",
            "service": f"{self._platform_name} n8n Webhook Bridge",
            "description": f"Allows n8n workflows to interact with the {self._platform_name} AI agent system",
            "actions": list(BRIDGE_ACTIONS),
            "auth": f"Include {SECRET_HEADER} header with N8N_WEBHOOK_SECRET value",
        }

    async def handle(self, action: Any, params: dict[str, Any]) -> dict[str, Any]:
        """Run *action*; bad requests raise BridgeRequestError carrying the HTTP status."""
        logger.info("n8n_action_received", action=action, params=sorted(params))
        match action:
            case "send_whatsapp":
                return await self.send_whatsapp(params)
            case "notify_vendor":
                return await self.notify_vendor(params)
            case "run_agent":
                return await self.run_agent(params)
            case "log_action":
                return await self.log_action(params)
            case "broadcast":
                return await self.broadcast(params)
            case "health_check":
                return {
                    "status": "ok",
                    "service": f"{self._platform_name} Agent n8n Bridge",
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                }
            case _:
                raise BridgeRequestError(f"Unknown action: {action}")

    async def _send(self, to: str, text: str) -> dict[str, Any]:
        try:
            sid = await self._sender.send(OutgoingMessage(to=to, text=text))
        except httpx.HTTPError as e:
            logger.error("n8n_send_failed", to=to, error=str(e))
            return {"success": False, "error": str(e)}
        return {"success": True, "messageSids": [sid]}

    async def send_whatsapp(self, params: dict[str, Any]) -> dict[str, Any]:
        to, message = params.get("to"), params.get("message")
        if not to or not message:
            raise BridgeRequestError('Missing "to" and "message" fields')
        return await self._send(str(to), str(message))

    async def notify_vendor(self, params: dict[str, Any]) -> dict[str, Any]:
        message = params.get("message")
        if not message:
            raise BridgeRequestError('Missing "message"')

        target = params.get("whatsapp_number")
        if not target and params.get("vendor_id"):
            try:
                vendor_id = int(params["vendor_id"])
            except (TypeError, ValueError):
                vendor_id = None
            links = await self._repo.find_vendor_links_by_user_ids([vendor_id]) if vendor_id else []
            if links:
                target = links[0].whatsapp_number
        if not target:
            raise BridgeRequestError("Could not find WhatsApp number for vendor", status=404)

        return await self._send(str(target), str(message))

    async def run_agent(self, params: dict[str, Any]) -> dict[str, Any]:
        """Answer *message* as if the vendor had sent it; the reply is delivered unless auto_send is false."""
        number, message = params.get("whatsapp_number"), params.get("message")
        if not number or not message:
            raise BridgeRequestError('Missing "whatsapp_number" and "message"')

        number = strip_channel_prefix(str(number))
        await self._repo.get_or_create_conversation(number)
        response = await self._agent.process_message(number, str(message))

        delivered = None
        if params.get("auto_send") is not False:
            delivered = await self._send(number, response.reply)

        return {
            "success": True,
            "reply": response.reply,
            "toolCalls": [record.to_dict() for record in response.tool_calls],
            "tokensUsed": response.tokens_used,
            "delivery": delivered,
        }

    async def log_action(self, params: dict[str, Any]) -> dict[str, Any]:
        await self._action_log.append(
            ActionLogEntry(
                whatsapp_number=params.get("whatsapp_number") or "n8n",
                action=params.get("action_name") or "n8n_action",
                tool_name=params.get("tool_name") or "n8n",
                input=params.get("input") or None,
                output=params.get("output") or None,
                success=params.get("success") is not False,
            )
        )
        return {"success": True, "logged": True}

    async def broadcast(self, params: dict[str, Any]) -> dict[str, Any]:
        message = params.get("message")
        if not message:
            raise BridgeRequestError('Missing "message"')

        links = await self._repo.list_verified_vendor_links()
        sent = failed = 0
        for link in links:
            result = await self._send(link.whatsapp_number, str(message))
            if result["success"]:
                sent += 1
            else:
                failed += 1

        logger.info("n8n_broadcast_done", total=len(links), sent=sent, failed=failed)
        return {"success": True, "totalVendors": len(links), "sent": sent, "failed": failed}
