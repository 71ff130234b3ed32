"""Shared fixtures: a temp SQLite database, a scripted model, and an in-memory store backend."""

from __future__ import annotations

from typing import Any

import pytest

from momboss_agent.ai.client import AIClient, AIResponse, ToolUseRequest
from momboss_agent.ai.context import ConversationContext
from momboss_agent.config import AgentConfig, AppConfig, PlatformConfig
from momboss_agent.core.errors import CommerceAPIError
from momboss_agent.storage.action_log_repo import ActionLogRepository
from momboss_agent.storage.conversation_repo import ConversationRepository
from momboss_agent.storage.database import Database

VENDOR_NUMBER = "+254711000111"


class ScriptedAIClient(AIClient):
    """Replays canned responses and records every request."""

    def __init__(self, responses: list[AIResponse] | None = None):
        self.responses = list(responses or [])
        self.requests: list[dict[str, Any]] = []
        self.error: Exception | None = None

    async def chat(self, system, messages, model, max_tokens=512, temperature=0.4, tools=None) -> AIResponse:
        self.requests.append(
            {"system": system, "messages": [dict(m) for m in messages], "model": model, "tools": tools}
        )
        if self.error is not None:
            raise self.error
        if not self.responses:
            return AIResponse(text="All done.", input_tokens=1, output_tokens=1)
        return self.responses.pop(0)


def tool_call(name: str, arguments: Any = None, call_id: str | None = None) -> ToolUseRequest:
    return ToolUseRequest(id=call_id or f"toolu_{name}", name=name, arguments={} if arguments is None else arguments)


def tool_response(*calls: ToolUseRequest, text: str = "", tokens: tuple[int, int] = (10, 5)) -> AIResponse:
    return AIResponse(text=text, tool_calls=list(calls), input_tokens=tokens[0], output_tokens=tokens[1])


def text_response(text: str, tokens: tuple[int, int] = (10, 5)) -> AIResponse:
    return AIResponse(text=text, input_tokens=tokens[0], output_tokens=tokens[1], stop_reason="end_turn")


class FakeCommerce:
    """In-memory stand-in for CommerceClient.

    ``calls`` records (method, args) pairs; ``errors`` maps a method name to
    the exception it should raise.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.errors: dict[str, Exception] = {}
        self.vendors: dict[int, dict[str, Any]] = {
            42: {"id": 42, "store_name": "Wanjiku Bakes", "email": "wanjiku@example.com", "shop_url": "https://momboss.space/store/wanjiku"},
            43: {"id": 43, "store_name": "Amani Crafts", "email": "amani@example.com", "shop_url": "https://momboss.space/store/amani"},
        }
        self.products: dict[int, dict[str, Any]] = {
            7: {"id": 7, "name": "Chocolate Cake", "description": "Rich and moist", "price": "1500", "author": 42},
            8: {"id": 8, "name": "Beaded Necklace", "description": "Handmade", "price": "800", "author": 43},
        }
        self.stats = {"total_orders": 12, "total_revenue": "18000.00"}
        self.orders = [
            {"id": 100, "number": "100", "status": "processing", "total": "1500", "vendor_ids": [42]},
            {"id": 101, "number": "101", "status": "processing", "total": "800", "vendor_ids": [43]},
        ]

    async def _call(self, method: str, **kwargs: Any) -> None:
        self.calls.append((method, kwargs))
        if method in self.errors:
            raise self.errors[method]

    def called(self, method: str) -> list[dict[str, Any]]:
        return [kwargs for name, kwargs in self.calls if name == method]

    async def create_product(self, payload):
        await self._call("create_product", payload=payload)
        return {"id": 99, "name": payload["name"], "price": payload["regular_price"], "status": payload.get("status") or "draft"}

    async def list_products(self, vendor_id=None, status=None, per_page=None, page=None, search=None):
        await self._call("list_products", vendor_id=vendor_id, status=status, per_page=per_page, page=page, search=search)
        return [p for p in self.products.values() if vendor_id is None or p["author"] == vendor_id]

    async def get_product(self, product_id):
        await self._call("get_product", product_id=product_id)
        if product_id not in self.products:
            raise CommerceAPIError("Get product", "Invalid ID.", status=404)
        return dict(self.products[product_id])

    async def update_product(self, product_id, updates):
        await self._call("update_product", product_id=product_id, updates=updates)
        product = {**self.products[product_id], **updates, "id": product_id}
        product.pop("author", None)
        return product

    async def list_orders(self, vendor_id=None, status=None, per_page=None, page=None):
        await self._call("list_orders", vendor_id=vendor_id, status=status, per_page=per_page, page=page)
        return [o for o in self.orders if vendor_id is None or vendor_id in o["vendor_ids"]]

    async def get_order(self, order_id):
        await self._call("get_order", order_id=order_id)
        for order in self.orders:
            if order["id"] == order_id:
                return dict(order)
        raise CommerceAPIError("Get order", "Invalid ID.", status=404)

    async def update_order_status(self, order_id, status):
        await self._call("update_order_status", order_id=order_id, status=status)
        return {"id": order_id, "number": str(order_id), "status": status}

    async def list_categories(self, per_page=None):
        await self._call("list_categories", per_page=per_page)
        return [{"id": 15, "name": "Baked Goods"}, {"id": 16, "name": "Crafts"}]

    async def list_vendors(self, per_page=10, page=1):
        await self._call("list_vendors", per_page=per_page, page=page)
        vendors = list(self.vendors.values())
        return vendors[(page - 1) * per_page : page * per_page]

    async def get_vendor(self, vendor_id):
        await self._call("get_vendor", vendor_id=vendor_id)
        if vendor_id not in self.vendors:
            raise CommerceAPIError("Get vendor", "No store found", status=404)
        return dict(self.vendors[vendor_id])

    async def get_vendor_stats(self, vendor_id):
        await self._call("get_vendor_stats", vendor_id=vendor_id)
        return dict(self.stats)

    async def create_event(self, title, start_date, **kwargs):
        await self._call("create_event", title=title, start_date=start_date, **kwargs)
        return {"id": 501, "title": title, "status": kwargs.get("status") or "draft"}

    async def check_connection(self):
        return {"woocommerce": {"connected": True}, "wordpress": {"connected": True}}

    async def close(self):
        pass


def make_context(
    verified: bool = True,
    linked: bool | None = None,
    whatsapp_number: str = VENDOR_NUMBER,
    history: tuple = (),
) -> ConversationContext:
    """Verified vendors are linked to store 42; pass linked=True for a linked but unverified one."""
    store_id = 42 if (verified if linked is None else linked) else None
    return ConversationContext(
        conversation_id="conv-1",
        whatsapp_number=whatsapp_number,
        vendor_name="Wanjiku",
        wp_user_id=store_id,
        wp_store_id=store_id,
        is_verified=verified,
        history=history,
    )


@pytest.fixture
async def db(tmp_path):
    database = Database(str(tmp_path / "test.db"))
    await database.initialize()
    yield database
    await database.close()


@pytest.fixture
def conversation_repo(db) -> ConversationRepository:
    return ConversationRepository(db)


@pytest.fixture
def action_log_repo(db) -> ActionLogRepository:
    return ActionLogRepository(db)


@pytest.fixture
def commerce() -> FakeCommerce:
    return FakeCommerce()


@pytest.fixture
def platform() -> PlatformConfig:
    return PlatformConfig()


@pytest.fixture
def agent_config() -> AgentConfig:
    return AgentConfig(max_tool_rounds=3, tool_timeout=2.0)


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    return AppConfig(
        anthropic={"api_key": "sk-ant-test"},
        storage={"db_path": str(tmp_path / "app.db")},
        agent={"tool_timeout": 2.0},
    )
