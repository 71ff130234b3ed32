"""HTTP surface: Twilio WhatsApp webhook, WooCommerce and n8n webhooks, test chat, health."""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, AsyncIterator

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse, Response

from momboss_agent.core.errors import BridgeRequestError
from momboss_agent.log import get_logger
from momboss_agent.messenger.models import IncomingMessage
from momboss_agent.messenger.twilio import EMPTY_TWIML, parse_webhook_form, render_twiml, strip_channel_prefix
from momboss_agent.services.automation import SECRET_HEADER

if TYPE_CHECKING:
    from momboss_agent.app import MomBossAgentApp

logger = get_logger(__name__)

TWIML_MEDIA_TYPE = "text/xml"
DEFAULT_TEST_NUMBER = "+254700000000"
DEFAULT_TEST_PROFILE = "Test Vendor"


def _twiml(body: str) -> Response:
    return Response(content=body, status_code=200, media_type=TWIML_MEDIA_TYPE)


def build_router(agent_app: MomBossAgentApp) -> APIRouter:
    router = APIRouter(prefix="/api")

    @router.post("/whatsapp")
    async def whatsapp_webhook(request: Request) -> Response:
        """Twilio delivers each inbound WhatsApp message here and relays our TwiML reply.

        Errors still answer 200 with empty TwiML so Twilio does not retry.
        """
        try:
            form = await request.form()
            message = parse_webhook_form(form)
            handled = await agent_app.handler.handle(message)
        except Exception:
            logger.exception("whatsapp_webhook_failed")
            return _twiml(EMPTY_TWIML)
        if handled is None:
            return _twiml(EMPTY_TWIML)
        return _twiml(render_twiml(handled.reply))

    @router.get("/whatsapp")
    async def whatsapp_status() -> dict[str, Any]:
        return {
            "status": "ok",
            "service": f"{agent_app.config.platform.name} WhatsApp Agent",
            "webhook": "/api/whatsapp",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "services": [await agent_app.service_manager.get_maintenance().status()],
        }

    @router.post("/test-chat")
    async def test_chat(request: Request) -> JSONResponse:
        """Run one message through the full pipeline without Twilio (development only)."""
        if agent_app.config.environment == "production":
            return JSONResponse({"error": "Test endpoint disabled in production"}, status_code=403)

        start = time.monotonic()
        try:
            body = await request.json()
        except ValueError:
            body = None
        if not isinstance(body, dict) or not body.get("message"):
            return JSONResponse({"error": 'Missing "message" in request body'}, status_code=400)

        message = IncomingMessage(
            whatsapp_number=strip_channel_prefix(str(body.get("from") or DEFAULT_TEST_NUMBER)),
            text=str(body["message"]),
            profile_name=body.get("profileName") or DEFAULT_TEST_PROFILE,
        )
        try:
            handled = await agent_app.handler.handle(message)
        except Exception as e:
            logger.exception("test_chat_failed")
            return JSONResponse({"error": str(e)}, status_code=500)

        duration = int((time.monotonic() - start) * 1000)
        return JSONResponse(
            {
                "reply": handled.reply if handled else "",
                "toolCalls": handled.tool_calls if handled else [],
                "tokensUsed": handled.tokens_used if handled else 0,
                "duration": duration,
                "conversationId": handled.conversation_id if handled else None,
            }
        )

    @router.get("/health")
    async def health() -> JSONResponse:
        report = await agent_app.health()
        return JSONResponse(report, status_code=200 if report["status"] == "healthy" else 503)

    @router.post("/webhooks/woocommerce")
    async def woocommerce_webhook(request: Request) -> JSONResponse:
        topic = request.headers.get("x-wc-webhook-topic", "")
        try:
            payload = await request.json()
        except ValueError:
            # WooCommerce pings a new webhook with a form-encoded webhook_id
            logger.info("woocommerce_webhook_ping", topic=topic)
            return JSONResponse({"received": True, "topic": topic})

        try:
            result = await agent_app.notifier.handle(topic, payload if isinstance(payload, dict) else {})
        except Exception:
            logger.exception("woocommerce_webhook_failed", topic=topic)
            return JSONResponse({"error": "Webhook processing failed"}, status_code=500)
        return JSONResponse({"received": True, "topic": topic, **result})

    @router.post("/webhooks/n8n")
    async def n8n_webhook(request: Request) -> JSONResponse:
        """One action per request from an n8n workflow: ``{"action": ..., **params}``."""
        if not agent_app.automation.authorized(request.headers.get(SECRET_HEADER)):
            logger.warning("n8n_webhook_unauthorized")
            return JSONResponse({"error": "Unauthorized"}, status_code=401)

        try:
            body = await request.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            return JSONResponse({"error": "Request body must be a JSON object"}, status_code=400)

        params = dict(body)
        action = params.pop("action", None)
        try:
            result = await agent_app.automation.handle(action, params)
        except BridgeRequestError as e:
            return JSONResponse({"error": str(e)}, status_code=e.status)
        except Exception as e:
            logger.exception("n8n_webhook_failed", action=action)
            return JSONResponse({"error": "Failed to process n8n webhook", "details": str(e)}, status_code=500)
        return JSONResponse(result)

    @router.get("/webhooks/n8n")
    async def n8n_info() -> dict[str, Any]:
        return agent_app.automation.info()

    return router


def create_app(agent_app: MomBossAgentApp) -> FastAPI:
    """FastAPI application whose lifespan starts and stops *agent_app*."""

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        await agent_app.start()
        try:
            yield
        finally:
            await agent_app.stop()

    app = FastAPI(title=f"{agent_app.config.platform.name} WhatsApp Agent", lifespan=lifespan)
    app.include_router(build_router(agent_app))
    return app
