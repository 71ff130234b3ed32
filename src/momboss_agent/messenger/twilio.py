"""Twilio WhatsApp transport: webhook parsing, TwiML replies, outbound REST sends."""

from __future__ import annotations

from typing import Any, Mapping, Optional
from xml.sax.saxutils import escape

import httpx

from momboss_agent.config import TwilioConfig
from momboss_agent.log import get_logger
from momboss_agent.messenger.models import IncomingMessage, OutgoingMessage

logger = get_logger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"
EMPTY_TWIML = "<Response></Response>"
DEV_MODE_SID = "dev-mode-no-sid"


def strip_channel_prefix(address: str) -> str:
    return address.removeprefix("whatsapp:").strip()


def with_channel_prefix(number: str) -> str:
    return number if number.startswith("whatsapp:") else f"whatsapp:{number}"


def parse_webhook_form(form: Mapping[str, Any]) -> IncomingMessage:
    """Build an IncomingMessage from Twilio's form-encoded webhook fields."""
    try:
        num_media = int(form.get("NumMedia") or 0)
    except ValueError:
        num_media = 0
    media_url = form.get("MediaUrl0") if num_media > 0 else None

    return IncomingMessage(
        whatsapp_number=strip_channel_prefix(str(form.get("From") or "")),
        text=str(form.get("Body") or ""),
        profile_name=form.get("ProfileName") or None,
        message_sid=form.get("MessageSid") or None,
        media_url=media_url or None,
        media_content_type=form.get("MediaContentType0") if media_url else None,
    )


def render_twiml(reply: Optional[str]) -> str:
    if not reply:
        return EMPTY_TWIML
    return f"<Response><Message>{escape(reply)}</Message></Response>"


class TwilioSender:
    """Sends WhatsApp messages through the Twilio Messages REST API.

    Without credentials (dev mode) messages are logged instead of sent.
    """

    def __init__(self, config: TwilioConfig, transport: httpx.AsyncBaseTransport | None = None):
        self._config = config
        self._client: httpx.AsyncClient | None = None
        if not config.dev_mode:
            self._client = httpx.AsyncClient(
                base_url=f"{TWILIO_API_BASE}/Accounts/{config.account_sid}",
                auth=(config.account_sid, config.auth_token),
                timeout=config.timeout,
                transport=transport,
            )
        else:
            logger.warning("twilio_dev_mode", detail="no credentials; outbound messages are logged, not sent")

    @property
    def dev_mode(self) -> bool:
        return self._client is None

    async def send(self, message: OutgoingMessage) -> str:
        """Send *message* and return the Twilio message SID."""
        to = with_channel_prefix(message.to)
        if self._client is None:
            logger.info("twilio_dev_send", to=to, text=message.text, media_url=message.media_url)
            return DEV_MODE_SID

        data = {"From": self._config.whatsapp_number, "To": to, "Body": message.text}
        if message.media_url:
            data["MediaUrl"] = message.media_url
        response = await self._client.post("/Messages.json", data=data)
        response.raise_for_status()
        sid = response.json()["sid"]
        logger.info("twilio_message_sent", to=to, sid=sid)
        return sid

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
