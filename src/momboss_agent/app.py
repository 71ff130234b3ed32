"""Application orchestrator - wires all components and manages lifecycle."""

from __future__ import annotations

from typing import Any

from momboss_agent.ai.agent import Agent
from momboss_agent.ai.client import AIClient, AnthropicClient
from momboss_agent.ai.context import ContextBuilder
from momboss_agent.ai.dispatcher import ToolDispatcher
from momboss_agent.ai.handler import MessageHandler
from momboss_agent.ai.tools.catalog import CATALOG_VERSION
from momboss_agent.ai.tools.registry import ToolRegistry
from momboss_agent.config import AppConfig
from momboss_agent.core.errors import ConfigError
from momboss_agent.core.rate_limit import InMemoryRateLimiter
from momboss_agent.log import get_logger
from momboss_agent.messenger.twilio import TwilioSender
from momboss_agent.services.automation import AutomationBridge
from momboss_agent.services.commerce import CommerceClient
from momboss_agent.services.notifications import OrderNotifier
from momboss_agent.services.service_manager import ServiceManager
from momboss_agent.storage.action_log_repo import ActionLogRepository
from momboss_agent.storage.conversation_repo import ConversationRepository
from momboss_agent.storage.database import Database

logger = get_logger(__name__)


class MomBossAgentApp:
    """Top-level application orchestrator.

    Construction wires every component and checks that the tool catalog and
    the registered handlers agree; ``start`` opens the database and starts
    background services.
    """

    def __init__(
        self,
        config: AppConfig,
        ai_client: AIClient | None = None,
        commerce: CommerceClient | None = None,
        sender: TwilioSender | None = None,
    ):
        self.config = config
        self.db = Database(config.storage.db_path)
        self.conversation_repo = ConversationRepository(self.db)
        self.action_log_repo = ActionLogRepository(self.db)
        self.rate_limiter = InMemoryRateLimiter(
            max_requests=config.rate_limit.max_requests,
            window_seconds=config.rate_limit.window_seconds,
        )
        self.service_manager = ServiceManager(config, self.rate_limiter, commerce=commerce, sender=sender)

        self.tool_registry = ToolRegistry()
        self.tool_registry.discover_and_register(
            self.service_manager.get_commerce(), self.conversation_repo, config.platform
        )
        self.tool_registry.validate_catalog()

        self.ai_client = ai_client or self._create_ai_client()
        self.dispatcher = ToolDispatcher(self.tool_registry, self.action_log_repo, timeout=config.agent.tool_timeout)
        self.agent = Agent(
            ai_client=self.ai_client,
            context_builder=ContextBuilder(self.conversation_repo, history_window=config.agent.history_window),
            dispatcher=self.dispatcher,
            config=config.agent,
            platform=config.platform,
        )
        self.handler = MessageHandler(self.agent, self.conversation_repo, self.rate_limiter)
        self.notifier = OrderNotifier(
            self.service_manager.get_sender(),
            self.conversation_repo,
            self.action_log_repo,
            config.platform,
        )
        self.automation = AutomationBridge(
            config.n8n,
            self.agent,
            self.service_manager.get_sender(),
            self.conversation_repo,
            self.action_log_repo,
            platform_name=config.platform.name,
        )

    async def start(self) -> None:
        await self.db.initialize()
        await self.service_manager.start_all()
        logger.info(
            "momboss_agent_started",
            environment=self.config.environment,
            model=self.config.agent.model,
            tools=len(self.tool_registry),
            catalog_version=CATALOG_VERSION,
        )

    async def stop(self) -> None:
        """Gracefully shut down all components."""
        await self.service_manager.stop_all()
        await self.ai_client.close()
        await self.db.close()
        logger.info("momboss_agent_stopped")

    async def health(self) -> dict[str, Any]:
        database = await self.db.ping()
        commerce = await self.service_manager.get_commerce().check_connection()
        services = await self.service_manager.health_check_all()
        healthy = database and all(c.get("connected") for c in commerce.values())
        return {
            "status": "healthy" if healthy else "degraded",
            "database": {"connected": database},
            "commerce": commerce,
            "services": services,
            "twilio": {"dev_mode": self.service_manager.get_sender().dev_mode},
        }

    def _create_ai_client(self) -> AIClient:
        if not self.config.anthropic:
            raise ConfigError("No 'anthropic' section in config; an API key is required")
        return AnthropicClient(self.config.anthropic)
