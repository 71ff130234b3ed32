"""Service lifecycle manager."""

from __future__ import annotations

from momboss_agent.config import AppConfig
from momboss_agent.core.rate_limit import RateLimiter
from momboss_agent.log import get_logger
from momboss_agent.messenger.twilio import TwilioSender
from momboss_agent.services.commerce import CommerceClient
from momboss_agent.services.maintenance import MaintenanceService

logger = get_logger(__name__)


class ServiceManager:
    """Owns the outbound clients and background services."""

    def __init__(
        self,
        config: AppConfig,
        rate_limiter: RateLimiter,
        commerce: CommerceClient | None = None,
        sender: TwilioSender | None = None,
    ):
        self._commerce = commerce or CommerceClient(config.commerce)
        self._sender = sender or TwilioSender(config.twilio)
        self._maintenance = MaintenanceService(rate_limiter, config.rate_limit)

    def get_commerce(self) -> CommerceClient:
        return self._commerce

    def get_sender(self) -> TwilioSender:
        return self._sender

    def get_maintenance(self) -> MaintenanceService:
        return self._maintenance

    async def start_all(self) -> None:
        await self._maintenance.start()
        logger.info("all_services_started", twilio_dev_mode=self._sender.dev_mode)

    async def stop_all(self) -> None:
        """Stop services and close HTTP clients."""
        await self._maintenance.stop()
        await self._sender.close()
        await self._commerce.close()
        logger.info("all_services_stopped")

    async def health_check_all(self) -> dict[str, bool]:
        return {"maintenance": await self._maintenance.health_check()}
