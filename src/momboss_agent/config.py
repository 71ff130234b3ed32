"""Configuration loader with YAML parsing, env-var interpolation, and Pydantic validation."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Literal, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from momboss_agent.core.errors import ConfigError


class AnthropicConfig(BaseModel):
    api_key: str
    base_url: Optional[str] = None
    max_retries: int = 2
    timeout: int = 60


class AgentConfig(BaseModel):
    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 512
    temperature: float = 0.4
    max_tool_rounds: int = Field(default=3, ge=1, le=10)
    history_window: int = Field(default=20, ge=1)
    tool_timeout: float = 20.0  # seconds per tool invocation


class CommerceConfig(BaseModel):
    base_url: str = "https://momboss.space"
    consumer_key: str = ""
    consumer_secret: str = ""
    wp_username: str = ""
    wp_app_password: str = ""
    timeout: float = 15.0


class TwilioConfig(BaseModel):
    account_sid: str = ""
    auth_token: str = ""
    whatsapp_number: str = "whatsapp:+14155238886"
    timeout: float = 15.0

    @property
    def dev_mode(self) -> bool:
        """No usable credentials: outbound messages are logged instead of sent."""
        return (
            not self.account_sid
            or self.account_sid.startswith(("AC_PLACEHOLDER", "${"))
            or not self.auth_token
            or self.auth_token.startswith("${")
        )


class N8nConfig(BaseModel):
    webhook_secret: str = ""

    @property
    def requires_secret(self) -> bool:
        """Unset or unresolved secrets leave the bridge open, as in development."""
        return bool(self.webhook_secret) and not self.webhook_secret.startswith("${")


class PlatformConfig(BaseModel):
    name: str = "MomBoss"
    site_url: str = "momboss.space"
    currency: str = "KES"
    market: str = "Kenya"


class RateLimitConfig(BaseModel):
    max_requests: int = 20
    window_seconds: float = 60.0
    sweep_interval_seconds: int = 300


class StorageConfig(BaseModel):
    db_path: str = "./data/momboss_agent.db"


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000


class AppConfig(BaseModel):
    environment: Literal["development", "production"] = "development"
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"
    data_dir: str = "./data"
    anthropic: Optional[AnthropicConfig] = None
    agent: AgentConfig = Field(default_factory=AgentConfig)
    commerce: CommerceConfig = Field(default_factory=CommerceConfig)
    twilio: TwilioConfig = Field(default_factory=TwilioConfig)
    n8n: N8nConfig = Field(default_factory=N8nConfig)
    platform: PlatformConfig = Field(default_factory=PlatformConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)


_ENV_VAR_PATTERN = re.compile(r"\$\{(\w+)\}")


def _interpolate_env_vars(text: str, extra: dict[str, str] | None = None) -> str:
    """Replace ${VAR_NAME} patterns with environment variable values."""

    def _replace(match: re.Match) -> str:
        var_name = match.group(1)
        if extra and var_name in extra:
            return extra[var_name]
        value = os.environ.get(var_name)
        if value is None:
            return match.group(0)
        return value

    return _ENV_VAR_PATTERN.sub(_replace, text)


def load_config(config_path: str | Path = "config.yaml", env_path: str | Path = ".env") -> AppConfig:
    """Load and validate configuration from YAML file with env-var interpolation."""
    env_file = Path(env_path)
    if env_file.exists():
        load_dotenv(env_file)

    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_file}")

    raw_text = config_file.read_text(encoding="utf-8")

    # First pass: extract data_dir for self-referencing
    raw_data = yaml.safe_load(raw_text) or {}
    data_dir = _interpolate_env_vars(str(raw_data.get("data_dir", "./data")))

    # Second pass: interpolate all env vars
    interpolated = _interpolate_env_vars(raw_text, extra={"data_dir": data_dir})
    data = yaml.safe_load(interpolated) or {}

    try:
        return AppConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_file}: {e}") from e
