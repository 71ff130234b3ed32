"""Exception hierarchy shared across the agent."""

from __future__ import annotations


class MomBossError(Exception):
    """Base class for all agent errors."""


class ConfigError(MomBossError):
    """Configuration file is present but invalid."""


class ConversationNotFoundError(MomBossError):
    """No conversation exists for the identity; the ingestion path must create it first."""

    def __init__(self, whatsapp_number: str):
        super().__init__(f"No conversation found for {whatsapp_number}")
        self.whatsapp_number = whatsapp_number


class CommerceAPIError(MomBossError):
    """A WooCommerce / Dokan / WordPress REST call failed."""

    def __init__(self, operation: str, message: str, status: int | None = None):
        self.operation = operation
        self.message = message
        self.status = status
        prefix = f"Error ({status})" if status is not None else "Error"
        super().__init__(f"{prefix}: {message}")


class ToolInputError(MomBossError):
    """A tool was called with missing or malformed arguments."""


class CatalogMismatchError(MomBossError):
    """The tool catalog and the handler registry are out of sync."""

    def __init__(self, missing: list[str], extra: list[str]):
        self.missing = missing
        self.extra = extra
        parts = []
        if missing:
            parts.append(f"no handler for: {', '.join(missing)}")
        if extra:
            parts.append(f"not in catalog: {', '.join(extra)}")
        super().__init__("Tool catalog mismatch (" + "; ".join(parts) + ")")


class BridgeRequestError(MomBossError):
    """An automation bridge request was rejected; ``status`` is the HTTP status to answer with."""

    def __init__(self, message: str, status: int = 400):
        super().__init__(message)
        self.status = status
