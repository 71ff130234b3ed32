"""Per-identity rate limiting, checked by the ingestion path before the agent runs."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

from momboss_agent.log import get_logger

logger = get_logger(__name__)


class RateLimiter(ABC):
    """Decides whether a key (e.g. a WhatsApp number) may make another request.

    Implementations backed by shared storage can replace the in-memory one
    for multi-instance deployments.
    """

    @abstractmethod
    async def allow(self, key: str) -> bool:
        """Record one request for *key* and return False if it exceeds the limit."""
        ...

    @abstractmethod
    async def sweep(self) -> int:
        """Drop expired windows. Returns the number of entries removed."""
        ...


@dataclass
class _Window:
    count: int
    reset_at: float


class InMemoryRateLimiter(RateLimiter):
    """Fixed-window counter held in process memory."""

    def __init__(
        self,
        max_requests: int = 20,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, _Window] = {}

    async def allow(self, key: str) -> bool:
        now = self._clock()
        window = self._windows.get(key)

        if window is None or now > window.reset_at:
            self._windows[key] = _Window(count=1, reset_at=now + self._window_seconds)
            return True

        if window.count >= self._max_requests:
            logger.warning(
                "rate_limited",
                key=key,
                count=window.count,
                max_requests=self._max_requests,
            )
            return False

        window.count += 1
        return True

    async def sweep(self) -> int:
        now = self._clock()
        expired = [k for k, w in self._windows.items() if now > w.reset_at]
        for key in expired:
            del self._windows[key]
        if expired:
            logger.debug("rate_limit_swept", removed=len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._windows)
