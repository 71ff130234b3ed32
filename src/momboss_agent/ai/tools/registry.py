"""Tool registry: maps catalog names to handlers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from momboss_agent.ai.tools.base import ToolGroup, ToolHandler, ToolSpec
from momboss_agent.ai.tools.catalog import TOOL_CATALOG
from momboss_agent.core.errors import CatalogMismatchError
from momboss_agent.log import get_logger

if TYPE_CHECKING:
    from momboss_agent.config import PlatformConfig
    from momboss_agent.services.commerce import CommerceClient
    from momboss_agent.storage.conversation_repo import ConversationRepository

logger = get_logger(__name__)


class ToolRegistry:
    """Registry of tool handlers, keyed by catalog name."""

    def __init__(self) -> None:
        self._handlers: dict[str, ToolHandler] = {}

    def register(self, name: str, handler: ToolHandler) -> None:
        self._handlers[name] = handler
        logger.debug("tool_registered", tool_name=name)

    def register_group(self, group: ToolGroup) -> None:
        for name, handler in group.handlers().items():
            self.register(name, handler)

    def get(self, name: str) -> ToolHandler | None:
        return self._handlers.get(name)

    def names(self) -> list[str]:
        return sorted(self._handlers)

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

    def discover_and_register(
        self,
        commerce: CommerceClient,
        conversation_repo: ConversationRepository,
        platform: PlatformConfig,
    ) -> None:
        """Import and register all built-in tool groups."""
        from momboss_agent.ai.tools.events import EventTools
        from momboss_agent.ai.tools.help import HelpTools
        from momboss_agent.ai.tools.insights import InsightTools
        from momboss_agent.ai.tools.marketing import MarketingTools
        from momboss_agent.ai.tools.orders import OrderTools
        from momboss_agent.ai.tools.products import ProductTools
        from momboss_agent.ai.tools.store import StoreTools
        from momboss_agent.ai.tools.verification import VerificationTools

        self.register_group(ProductTools(commerce))
        self.register_group(OrderTools(commerce))
        self.register_group(StoreTools(commerce))
        self.register_group(EventTools(commerce))
        self.register_group(VerificationTools(commerce, conversation_repo))
        self.register_group(MarketingTools(commerce, platform))
        self.register_group(InsightTools(commerce, platform))
        self.register_group(HelpTools(platform))
        logger.info("tools_registered", count=len(self._handlers))

    def validate_catalog(self, catalog: tuple[ToolSpec, ...] = TOOL_CATALOG) -> None:
        """Raise CatalogMismatchError unless every catalog entry has exactly one handler."""
        declared = {spec.name for spec in catalog}
        missing = sorted(declared - self._handlers.keys())
        extra = sorted(self._handlers.keys() - declared)
        if missing or extra:
            raise CatalogMismatchError(missing, extra)
