"""Link a WhatsApp number to a marketplace store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from momboss_agent.ai.tools.base import ToolGroup, ToolHandler, ToolResult, failure, success
from momboss_agent.core.errors import CommerceAPIError
from momboss_agent.log import get_logger
from momboss_agent.services.commerce import CommerceClient
from momboss_agent.storage.conversation_repo import ConversationRepository

if TYPE_CHECKING:
    from momboss_agent.ai.context import ConversationContext

logger = get_logger(__name__)

STORE_ID_NOT_FOUND = "Could not find a store with that ID. Please double-check and try again."
EMAIL_NOT_FOUND = (
    "Could not find a store with that email address. "
    "Please check and try again, or provide your store ID instead."
)
MISSING_IDENTIFIER = "Please provide either your store email or store ID so I can verify your account."

VENDOR_PAGE_SIZE = 100
MAX_VENDOR_PAGES = 5


def _store_id(tool_input: dict[str, Any]) -> Optional[int]:
    value = tool_input.get("store_id")
    if value is None or isinstance(value, bool) or value == "":
        return None
    try:
        return int(float(str(value).strip().lstrip("#")))
    except ValueError:
        return None


class VerificationTools(ToolGroup):
    """The only tool that writes a VendorLink."""

    def __init__(self, commerce: CommerceClient, conversation_repo: ConversationRepository):
        self._commerce = commerce
        self._repo = conversation_repo

    def handlers(self) -> dict[str, ToolHandler]:
        return {"verify_vendor": self.verify_vendor}

    async def verify_vendor(self, tool_input: dict[str, Any], context: ConversationContext) -> ToolResult:
        """Match by store id first, then by store email.

        Never raises: lookup problems come back as a failure result and
        nothing is written.
        """
        store_id = _store_id(tool_input)
        raw_email = tool_input.get("store_email")
        email = raw_email.strip().lower() if isinstance(raw_email, str) else ""

        try:
            if store_id is not None:
                vendor = await self._find_by_id(store_id)
                if vendor is None:
                    return failure(STORE_ID_NOT_FOUND)
            elif email:
                vendor = await self._find_by_email(email)
                if vendor is None:
                    return failure(EMAIL_NOT_FOUND)
            else:
                return failure(MISSING_IDENTIFIER)

            await self._repo.link_vendor(
                context.whatsapp_number,
                wp_user_id=vendor["id"],
                wp_store_id=vendor["id"],
                store_name=vendor.get("store_name"),
                store_url=vendor.get("shop_url"),
            )
        except Exception as e:
            logger.exception("vendor_verification_failed", whatsapp_number=context.whatsapp_number)
            return failure(f"Verification failed: {e}")

        logger.info("vendor_verified", whatsapp_number=context.whatsapp_number, store_id=vendor["id"])
        return success(
            verified=True,
            vendor={"store_name": vendor.get("store_name"), "store_id": vendor["id"]},
            message=f'Successfully linked to store "{vendor.get("store_name")}"!',
        )

    async def _find_by_id(self, store_id: int) -> Optional[dict[str, Any]]:
        try:
            return await self._commerce.get_vendor(store_id)
        except CommerceAPIError as e:
            if e.status in (400, 404):
                return None
            raise

    async def _find_by_email(self, email: str) -> Optional[dict[str, Any]]:
        for page in range(1, MAX_VENDOR_PAGES + 1):
            vendors = await self._commerce.list_vendors(per_page=VENDOR_PAGE_SIZE, page=page)
            for vendor in vendors:
                if (vendor.get("email") or "").strip().lower() == email:
                    return vendor
            if len(vendors) < VENDOR_PAGE_SIZE:
                break
        return None
