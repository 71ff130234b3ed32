"""WooCommerce / Dokan / WordPress REST client.

Wraps WooCommerce REST v3 (products, orders, categories), Dokan REST v1
(stores) and the WordPress REST v2 API (events). Every call is bounded by
the configured timeout; failures raise CommerceAPIError.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

import httpx

from momboss_agent.config import CommerceConfig
from momboss_agent.core.errors import CommerceAPIError
from momboss_agent.log import get_logger

logger = get_logger(__name__)


def _params(**kwargs: Any) -> dict[str, Any]:
    """Drop unset query parameters."""
    return {k: v for k, v in kwargs.items() if v is not None}


def _full_name(billing: dict[str, Any] | None) -> str:
    billing = billing or {}
    return f"{billing.get('first_name') or ''} {billing.get('last_name') or ''}".strip()


def order_vendor_ids(order: dict[str, Any]) -> list[int]:
    """Store ids an order belongs to, from line items and Dokan store fields, in first-seen order."""
    candidates: list[Any] = [item.get("vendor_id") for item in order.get("line_items") or []]
    store = order.get("store")
    if isinstance(store, dict):
        candidates.append(store.get("id"))
    for entry in order.get("stores") or []:
        if isinstance(entry, dict):
            candidates.append(entry.get("id"))

    ids: list[int] = []
    for raw in candidates:
        try:
            vendor_id = int(raw or 0)
        except (TypeError, ValueError):
            continue
        if vendor_id and vendor_id not in ids:
            ids.append(vendor_id)
    return ids


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if isinstance(data, dict):
        return str(data.get("message") or data.get("error") or response.reason_phrase)
    return response.reason_phrase


class CommerceClient:
    """Async client for the marketplace backend."""

    def __init__(self, config: CommerceConfig, transport: httpx.AsyncBaseTransport | None = None):
        self._base_url = config.base_url.rstrip("/")
        common: dict[str, Any] = {
            "timeout": config.timeout,
            "headers": {"Content-Type": "application/json"},
            "transport": transport,
        }
        self._woo = httpx.AsyncClient(
            base_url=f"{self._base_url}/wp-json/wc/v3",
            auth=(config.consumer_key, config.consumer_secret),
            **common,
        )
        # Dokan and core WordPress use an application password
        wp_auth = (config.wp_username, config.wp_app_password)
        self._dokan = httpx.AsyncClient(base_url=f"{self._base_url}/wp-json/dokan/v1", auth=wp_auth, **common)
        self._wp = httpx.AsyncClient(base_url=f"{self._base_url}/wp-json/wp/v2", auth=wp_auth, **common)

    async def close(self) -> None:
        await asyncio.gather(self._woo.aclose(), self._dokan.aclose(), self._wp.aclose())

    async def _request(
        self,
        client: httpx.AsyncClient,
        method: str,
        path: str,
        operation: str,
        **kwargs: Any,
    ) -> Any:
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.TimeoutException:
            logger.error("commerce_api_timeout", operation=operation, path=path)
            raise CommerceAPIError(operation, "the store did not respond in time") from None
        except httpx.RequestError as e:
            logger.error("commerce_api_unreachable", operation=operation, path=path, error=str(e))
            raise CommerceAPIError(operation, f"could not reach the store: {e}") from e

        if response.is_error:
            message = _error_message(response)
            logger.error(
                "commerce_api_error",
                operation=operation,
                status=response.status_code,
                message=message,
            )
            raise CommerceAPIError(operation, message, status=response.status_code)
        return response.json()

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    async def create_product(self, payload: dict[str, Any]) -> dict[str, Any]:
        body = {**payload, "status": payload.get("status") or "draft"}
        data = await self._request(self._woo, "POST", "/products", "Create product", json=body)
        logger.info("product_created", product_id=data["id"], name=data.get("name"))
        return {
            "id": data["id"],
            "name": data.get("name"),
            "price": data.get("regular_price"),
            "status": data.get("status"),
            "permalink": data.get("permalink"),
            "link": f"{self._base_url}/wp-admin/post.php?post={data['id']}&action=edit",
        }

    async def list_products(
        self,
        vendor_id: Optional[int] = None,
        status: Optional[str] = None,
        per_page: Optional[int] = None,
        page: Optional[int] = None,
        search: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        data = await self._request(
            self._woo,
            "GET",
            "/products",
            "List products",
            params=_params(
                per_page=min(per_page or 10, 100),
                page=page or 1,
                status=status or "any",
                search=search,
                # Dokan filters the WooCommerce listing by post author
                author=vendor_id,
            ),
        )
        return [
            {
                "id": p["id"],
                "name": p.get("name"),
                "price": p.get("regular_price"),
                "sale_price": p.get("sale_price"),
                "status": p.get("status"),
                "stock_status": p.get("stock_status"),
                "stock_quantity": p.get("stock_quantity"),
                "total_sales": p.get("total_sales"),
                "permalink": p.get("permalink"),
            }
            for p in data
        ]

    async def get_product(self, product_id: int) -> dict[str, Any]:
        data = await self._request(self._woo, "GET", f"/products/{product_id}", "Get product")
        return {
            "id": data["id"],
            "name": data.get("name"),
            "description": data.get("short_description") or data.get("description"),
            "price": data.get("regular_price"),
            "sale_price": data.get("sale_price"),
            "status": data.get("status"),
            "stock_status": data.get("stock_status"),
            "stock_quantity": data.get("stock_quantity"),
            "categories": [c.get("name") for c in data.get("categories") or []],
            "images": [i.get("src") for i in data.get("images") or []],
            "permalink": data.get("permalink"),
            "total_sales": data.get("total_sales"),
            "author": data.get("author"),
        }

    async def update_product(self, product_id: int, updates: dict[str, Any]) -> dict[str, Any]:
        data = await self._request(self._woo, "PUT", f"/products/{product_id}", "Update product", json=updates)
        logger.info("product_updated", product_id=data["id"], fields=sorted(updates))
        return {
            "id": data["id"],
            "name": data.get("name"),
            "price": data.get("regular_price"),
            "sale_price": data.get("sale_price"),
            "status": data.get("status"),
            "permalink": data.get("permalink"),
        }

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    async def list_orders(
        self,
        vendor_id: Optional[int] = None,
        status: Optional[str] = None,
        per_page: Optional[int] = None,
        page: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        data = await self._request(
            self._woo,
            "GET",
            "/orders",
            "List orders",
            params=_params(
                per_page=min(per_page or 10, 100),
                page=page or 1,
                status=None if status in (None, "any") else status,
                seller_id=vendor_id,
            ),
        )
        return [
            {
                "id": o["id"],
                "number": o.get("number"),
                "status": o.get("status"),
                "total": o.get("total"),
                "currency": o.get("currency"),
                "customer_name": _full_name(o.get("billing")),
                "items_count": len(o.get("line_items") or []),
                "items": [
                    {"name": li.get("name"), "quantity": li.get("quantity"), "total": li.get("total")}
                    for li in o.get("line_items") or []
                ],
                "date_created": o.get("date_created"),
            }
            for o in data
        ]

    async def get_order(self, order_id: int) -> dict[str, Any]:
        data = await self._request(self._woo, "GET", f"/orders/{order_id}", "Get order")
        billing = data.get("billing") or {}
        shipping_lines = data.get("shipping_lines") or []
        return {
            "id": data["id"],
            "number": data.get("number"),
            "status": data.get("status"),
            "total": data.get("total"),
            "currency": data.get("currency"),
            "customer": {
                "name": _full_name(billing),
                "email": billing.get("email"),
                "phone": billing.get("phone"),
            },
            "items": [
                {
                    "name": li.get("name"),
                    "quantity": li.get("quantity"),
                    "total": li.get("total"),
                    "product_id": li.get("product_id"),
                }
                for li in data.get("line_items") or []
            ],
            "shipping": shipping_lines[0].get("method_title") if shipping_lines else "N/A",
            "payment_method": data.get("payment_method_title"),
            "date_created": data.get("date_created"),
            "date_paid": data.get("date_paid"),
            "notes": data.get("customer_note"),
            "vendor_ids": order_vendor_ids(data),
        }

    async def update_order_status(self, order_id: int, status: str) -> dict[str, Any]:
        data = await self._request(
            self._woo, "PUT", f"/orders/{order_id}", "Update order status", json={"status": status}
        )
        logger.info("order_status_updated", order_id=order_id, status=status)
        return {"id": data["id"], "number": data.get("number"), "status": data.get("status")}

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def list_categories(self, per_page: Optional[int] = None) -> list[dict[str, Any]]:
        data = await self._request(
            self._woo,
            "GET",
            "/products/categories",
            "List categories",
            params={"per_page": min(per_page or 50, 100), "orderby": "name"},
        )
        return [
            {
                "id": c["id"],
                "name": c.get("name"),
                "slug": c.get("slug"),
                "count": c.get("count"),
                "parent": c.get("parent"),
            }
            for c in data
        ]

    # ------------------------------------------------------------------
    # Dokan stores
    # ------------------------------------------------------------------

    @staticmethod
    def _vendor_summary(v: dict[str, Any]) -> dict[str, Any]:
        return {
            "id": v["id"],
            "store_name": v.get("store_name"),
            "phone": v.get("phone"),
            "email": v.get("email"),
            "address": v.get("address"),
            "banner": v.get("banner"),
            "rating": v.get("rating"),
            "products_count": v.get("products_count") or 0,
            "shop_url": v.get("shop_url"),
        }

    async def list_vendors(self, per_page: int = 10, page: int = 1) -> list[dict[str, Any]]:
        data = await self._request(
            self._dokan, "GET", "/stores", "List vendors", params={"per_page": per_page, "page": page}
        )
        return [self._vendor_summary(v) for v in data]

    async def get_vendor(self, vendor_id: int) -> dict[str, Any]:
        data = await self._request(self._dokan, "GET", f"/stores/{vendor_id}", "Get vendor")
        return {
            **self._vendor_summary(data),
            "social": data.get("social"),
            "registered": data.get("registered"),
        }

    async def get_vendor_stats(self, vendor_id: int) -> dict[str, Any]:
        """Dashboard stats, or totals computed from recent orders if the stats endpoint fails."""
        try:
            return await self._request(self._dokan, "GET", f"/stores/{vendor_id}/stats", "Get vendor stats")
        except CommerceAPIError as stats_error:
            try:
                orders = await self.list_orders(vendor_id=vendor_id, per_page=100)
            except CommerceAPIError:
                raise stats_error from None
            revenue = sum(float(o.get("total") or 0) for o in orders)
            logger.info("vendor_stats_computed", vendor_id=vendor_id, orders=len(orders))
            return {
                "total_orders": len(orders),
                "total_revenue": f"{revenue:.2f}",
                "source": "computed",
            }

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def create_event(
        self,
        title: str,
        start_date: str,
        description: Optional[str] = None,
        end_date: Optional[str] = None,
        venue: Optional[str] = None,
        event_type: Optional[str] = None,
        ticket_price: Optional[str] = None,
        status: Optional[str] = None,
    ) -> dict[str, Any]:
        """Create an events-calendar entry, falling back to a plain post if the plugin is absent."""
        status = status or "draft"
        event_type = event_type or "virtual"
        payload = {
            "title": title,
            "content": description or "",
            "status": status,
            "meta": {
                "_event_start_date": start_date,
                "_event_end_date": end_date or start_date,
                "_event_venue": venue or "",
                "_event_type": event_type,
                "_ticket_price": ticket_price or "0",
            },
        }
        try:
            data = await self._request(self._wp, "POST", "/tribe_events", "Create event", json=payload)
            note = None
        except CommerceAPIError:
            content = (
                f"{description or ''}\n\n"
                f"Date: {start_date}\n"
                f"Venue: {venue or 'Virtual'}\n"
                f"Type: {event_type}"
            )
            data = await self._request(
                self._wp,
                "POST",
                "/posts",
                "Create event (fallback)",
                json={"title": title, "content": content, "status": status},
            )
            note = "Created as a post; the events plugin endpoint was not found."

        rendered_title = (data.get("title") or {}).get("rendered") or title
        logger.info("event_created", event_id=data["id"], title=rendered_title)
        event = {
            "id": data["id"],
            "title": rendered_title,
            "status": data.get("status"),
            "link": data.get("link"),
        }
        if note:
            event["note"] = note
        return event

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    async def check_connection(self) -> dict[str, Any]:
        wc_result, wp_result = await asyncio.gather(
            self._request(self._woo, "GET", "/system_status", "WooCommerce status"),
            self._request(self._wp, "GET", "/users/me", "WordPress user"),
            return_exceptions=True,
        )
        return {
            "woocommerce": (
                {"connected": False, "error": str(wc_result)}
                if isinstance(wc_result, Exception)
                else {"connected": True, "version": (wc_result.get("environment") or {}).get("version")}
            ),
            "wordpress": (
                {"connected": False, "error": str(wp_result)}
                if isinstance(wp_result, Exception)
                else {"connected": True, "user": wp_result.get("name")}
            ),
        }
