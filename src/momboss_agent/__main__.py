"""CLI entry point for momboss-agent."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

from momboss_agent.app import MomBossAgentApp
from momboss_agent.config import AppConfig, load_config
from momboss_agent.log import setup_logging
from momboss_agent.messenger.models import IncomingMessage


def _add_config_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-c", "--config", default="config.yaml", help="Path to config file")
    parser.add_argument("-e", "--env", default=".env", help="Path to .env file")


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="momboss-agent",
        description="WhatsApp assistant for marketplace vendors, powered by Claude tool use",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Run the webhook server")
    _add_config_args(serve_parser)
    serve_parser.add_argument("--host", help="Bind address (overrides config)")
    serve_parser.add_argument("--port", type=int, help="Port (overrides config)")

    check_parser = subparsers.add_parser("config-check", help="Validate configuration")
    _add_config_args(check_parser)

    chat_parser = subparsers.add_parser("chat", help="Send one message through the agent and print the reply")
    _add_config_args(chat_parser)
    chat_parser.add_argument("message", help="Message text")
    chat_parser.add_argument("--from", dest="sender", default="+254700000000", help="Sender WhatsApp number")
    chat_parser.add_argument("--name", default="Test Vendor", help="Sender profile name")

    args = parser.parse_args()

    if args.command is None:
        # Default to serve
        args = parser.parse_args(["serve"])

    if args.command == "config-check":
        _check_config(args.config, args.env)
    elif args.command == "chat":
        _chat(args.config, args.env, args.message, args.sender, args.name)
    elif args.command == "serve":
        _serve(args.config, args.env, args.host, args.port)


def _load(config_path: str, env_path: str) -> AppConfig:
    try:
        return load_config(config_path, env_path)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Run 'python install.py' first or copy config.example.yaml to config.yaml")
        sys.exit(1)
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)


def _check_config(config_path: str, env_path: str) -> None:
    """Validate configuration and print summary."""
    config = _load(config_path, env_path)
    print(f"Configuration valid: {config_path}")
    print(f"  Environment : {config.environment}")
    print(f"  Platform    : {config.platform.name} ({config.platform.site_url}, {config.platform.currency})")
    print(f"  Model       : {config.agent.model} (max {config.agent.max_tool_rounds} tool rounds)")
    print(f"  Anthropic   : {'configured' if config.anthropic else 'MISSING'}")
    print(f"  Commerce    : {config.commerce.base_url}")
    print(f"  Twilio      : {'dev mode (log only)' if config.twilio.dev_mode else config.twilio.whatsapp_number}")
    print(f"  Storage     : {config.storage.db_path}")
    print(f"  Rate limit  : {config.rate_limit.max_requests} / {config.rate_limit.window_seconds:g}s")
    if not config.anthropic:
        sys.exit(1)


def _chat(config_path: str, env_path: str, text: str, sender: str, name: str) -> None:
    config = _load(config_path, env_path)
    setup_logging(config.log_level, config.log_format)

    async def _async_chat() -> None:
        app = MomBossAgentApp(config)
        await app.start()
        try:
            handled = await app.handler.handle(
                IncomingMessage(whatsapp_number=sender, text=text, profile_name=name)
            )
        finally:
            await app.stop()

        if handled is None:
            print("(message ignored)")
            return
        print(handled.reply)
        for call in handled.tool_calls:
            print(f"\n[tool] {call['name']} {json.dumps(call['input'], ensure_ascii=False)}", file=sys.stderr)
        print(f"\n[tokens] {handled.tokens_used}", file=sys.stderr)

    asyncio.run(_async_chat())


def _serve(config_path: str, env_path: str, host: str | None, port: int | None) -> None:
    """Load config and run the webhook server."""
    import uvicorn

    from momboss_agent.web.server import create_app

    config = _load(config_path, env_path)
    setup_logging(config.log_level, config.log_format)

    app = create_app(MomBossAgentApp(config))
    uvicorn.run(
        app,
        host=host or config.server.host,
        port=port or config.server.port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
