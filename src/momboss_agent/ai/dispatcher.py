"""Run one tool invocation: resolve, bound, convert failures, audit."""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Any

from momboss_agent.ai.tools.base import ToolResult, failure
from momboss_agent.ai.tools.registry import ToolRegistry
from momboss_agent.core.errors import CommerceAPIError, ToolInputError
from momboss_agent.log import get_logger
from momboss_agent.storage.action_log_repo import ActionLogRepository
from momboss_agent.storage.models import ActionLogEntry

if TYPE_CHECKING:
    from momboss_agent.ai.context import ConversationContext

logger = get_logger(__name__)

DEFAULT_TOOL_TIMEOUT = 20.0


class ToolDispatcher:
    """Executes tools by name and records every invocation in the action log.

    ``execute`` never raises for tool-level problems: unknown names, bad
    arguments, backend errors and timeouts all come back as
    ``{"success": False, "error": ...}`` so the model can explain them.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        action_log_repo: ActionLogRepository,
        timeout: float = DEFAULT_TOOL_TIMEOUT,
    ):
        self._registry = registry
        self._action_log = action_log_repo
        self._timeout = timeout

    async def execute(self, name: str, tool_input: dict[str, Any], context: ConversationContext) -> ToolResult:
        start = time.monotonic()
        handler = self._registry.get(name)

        if handler is None:
            logger.warning("unknown_tool", tool=name, whatsapp_number=context.whatsapp_number)
            result = failure(f"Unknown tool: {name}")
        else:
            try:
                result = await asyncio.wait_for(handler(tool_input, context), timeout=self._timeout)
            except asyncio.TimeoutError:
                logger.warning("tool_timeout", tool=name, timeout=self._timeout)
                result = failure(f"{name} timed out after {self._timeout:g}s. Please try again.")
            except ToolInputError as e:
                result = failure(f"Invalid input for {name}: {e}")
            except CommerceAPIError as e:
                result = failure(f"{e.operation} failed: {e}")
            except Exception as e:
                logger.exception("tool_execution_error", tool=name)
                result = failure(f"{name} failed: {e}")

        duration_ms = max(0, int((time.monotonic() - start) * 1000))
        succeeded = result.get("success") is not False
        logger.info("tool_executed", tool=name, success=succeeded, duration_ms=duration_ms)

        await self._record(name, tool_input, result, succeeded, duration_ms, context)
        return result

    async def _record(
        self,
        name: str,
        tool_input: dict[str, Any],
        result: ToolResult,
        succeeded: bool,
        duration_ms: int,
        context: ConversationContext,
    ) -> None:
        """Audit writes are best-effort; a failure here must not change the tool result."""
        entry = ActionLogEntry(
            whatsapp_number=context.whatsapp_number,
            action=name,
            tool_name=name,
            success=succeeded,
            input=tool_input,
            output=result,
            error_message=None if succeeded else str(result.get("error") or ""),
            duration_ms=duration_ms,
        )
        try:
            await self._action_log.append(entry)
        except Exception as e:
            logger.error("action_log_write_failed", tool=name, error=str(e))
