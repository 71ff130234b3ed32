"""Lifecycle interface for background services."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class Service(ABC):
    """A component started with the app and stopped on shutdown."""

    @property
    @abstractmethod
    def service_name(self) -> str:
        ...

    @abstractmethod
    async def start(self) -> None:
        ...

    @abstractmethod
    async def stop(self) -> None:
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        ...

    async def status(self) -> dict[str, Any]:
        """Summary for the status endpoint."""
        return {"name": self.service_name, "healthy": await self.health_check()}
