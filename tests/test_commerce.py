"""CommerceClient against a mocked WooCommerce / Dokan / WordPress backend."""

from __future__ import annotations

import json

import httpx
import pytest

from momboss_agent.config import CommerceConfig
from momboss_agent.core.errors import CommerceAPIError
from momboss_agent.services.commerce import CommerceClient, order_vendor_ids

CONFIG = CommerceConfig(
    base_url="https://shop.example/",
    consumer_key="ck_test",
    consumer_secret="cs_test",
    wp_username="agent",
    wp_app_password="app pass",
)


class Backend:
    """Routes (method, path) to canned JSON and records every request."""

    def __init__(self, routes: dict[tuple[str, str], tuple[int, object]]):
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.routes.get((request.method, request.url.path), (404, {"message": "No route"}))
        if isinstance(body, Exception):
            raise body
        return httpx.Response(status, json=body)


@pytest.fixture
def backend() -> Backend:
    return Backend({})


@pytest.fixture
async def client(backend):
    commerce = CommerceClient(CONFIG, transport=httpx.MockTransport(backend))
    yield commerce
    await commerce.close()


async def test_create_product_defaults_to_draft(client, backend):
    backend.routes[("POST", "/wp-json/wc/v3/products")] = (
        201,
        {"id": 55, "name": "Mandazi", "regular_price": "250", "status": "draft", "permalink": "https://shop.example/p/55"},
    )

    product = await client.create_product({"name": "Mandazi", "regular_price": "250"})

    request = backend.requests[0]
    assert json.loads(request.content)["status"] == "draft"
    assert request.headers["authorization"].startswith("Basic ")
    assert product["id"] == 55
    assert product["link"] == "https://shop.example/wp-admin/post.php?post=55&action=edit"


async def test_list_products_filters_by_author(client, backend):
    backend.routes[("GET", "/wp-json/wc/v3/products")] = (
        200,
        [{"id": 7, "name": "Cake", "regular_price": "1500", "status": "publish", "stock_status": "instock"}],
    )

    products = await client.list_products(vendor_id=42, per_page=500)

    params = backend.requests[0].url.params
    assert params["author"] == "42"
    assert params["per_page"] == "100"
    assert params["status"] == "any"
    assert "search" not in params
    assert products == [
        {
            "id": 7,
            "name": "Cake",
            "price": "1500",
            "sale_price": None,
            "status": "publish",
            "stock_status": "instock",
            "stock_quantity": None,
            "total_sales": None,
            "permalink": None,
        }
    ]


async def test_list_orders_any_status_is_not_sent(client, backend):
    backend.routes[("GET", "/wp-json/wc/v3/orders")] = (
        200,
        [
            {
                "id": 100,
                "number": "100",
                "status": "processing",
                "total": "1500.00",
                "billing": {"first_name": "Achieng", "last_name": "O."},
                "line_items": [{"name": "Cake", "quantity": 1, "total": "1500.00"}],
            }
        ],
    )

    orders = await client.list_orders(vendor_id=42, status="any")

    params = backend.requests[0].url.params
    assert "status" not in params
    assert params["seller_id"] == "42"
    assert orders[0]["customer_name"] == "Achieng O."
    assert orders[0]["items_count"] == 1


async def test_get_order_reports_owning_stores(client, backend):
    backend.routes[("GET", "/wp-json/wc/v3/orders/100")] = (
        200,
        {
            "id": 100,
            "number": "100",
            "status": "processing",
            "billing": {"first_name": "Achieng"},
            "line_items": [{"name": "Cake", "quantity": 1, "total": "1500.00", "product_id": 7, "vendor_id": 42}],
            "store": {"id": 42, "name": "Wanjiku Bakes"},
        },
    )

    order = await client.get_order(100)

    assert order["vendor_ids"] == [42]
    assert order["customer"]["name"] == "Achieng"
    assert order["shipping"] == "N/A"


@pytest.mark.parametrize(
    "order,expected",
    [
        ({"line_items": [{"vendor_id": "42"}, {"vendor_id": 43}, {"vendor_id": 42}]}, [42, 43]),
        ({"stores": [{"id": 43}, {"id": 44}], "line_items": [{}]}, [43, 44]),
        ({"store": {"id": 44}, "line_items": [{"vendor_id": "n/a"}]}, [44]),
        ({}, []),
    ],
)
def test_order_vendor_ids(order, expected):
    assert order_vendor_ids(order) == expected


async def test_error_response_raises_with_backend_message(client, backend):
    backend.routes[("GET", "/wp-json/wc/v3/products/9")] = (404, {"code": "invalid_id", "message": "Invalid ID."})

    with pytest.raises(CommerceAPIError) as exc_info:
        await client.get_product(9)

    assert exc_info.value.status == 404
    assert exc_info.value.operation == "Get product"
    assert str(exc_info.value) == "Error (404): Invalid ID."


async def test_timeout_raises_commerce_error(client, backend):
    backend.routes[("GET", "/wp-json/dokan/v1/stores/42")] = (0, httpx.ReadTimeout("slow"))

    with pytest.raises(CommerceAPIError, match="did not respond in time"):
        await client.get_vendor(42)


async def test_vendor_stats_fall_back_to_order_totals(client, backend):
    backend.routes[("GET", "/wp-json/dokan/v1/stores/42/stats")] = (500, {"message": "boom"})
    backend.routes[("GET", "/wp-json/wc/v3/orders")] = (200, [{"id": 1, "total": "100.50"}, {"id": 2, "total": "49.50"}])

    stats = await client.get_vendor_stats(42)

    assert stats == {"total_orders": 2, "total_revenue": "150.00", "source": "computed"}


async def test_create_event_falls_back_to_post(client, backend):
    backend.routes[("POST", "/wp-json/wp/v2/posts")] = (
        201,
        {"id": 77, "title": {"rendered": "Baking Workshop"}, "status": "draft", "link": "https://shop.example/?p=77"},
    )

    event = await client.create_event("Baking Workshop", "2026-03-15T10:00:00", venue="Nairobi")

    assert [r.url.path for r in backend.requests] == ["/wp-json/wp/v2/tribe_events", "/wp-json/wp/v2/posts"]
    assert "Venue: Nairobi" in json.loads(backend.requests[1].content)["content"]
    assert event["id"] == 77
    assert "note" in event


async def test_check_connection_reports_each_api(client, backend):
    backend.routes[("GET", "/wp-json/wc/v3/system_status")] = (200, {"environment": {"version": "9.1.0"}})

    status = await client.check_connection()

    assert status["woocommerce"] == {"connected": True, "version": "9.1.0"}
    assert status["wordpress"]["connected"] is False
