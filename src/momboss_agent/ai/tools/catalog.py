"""The fixed set of tools offered to the model.

Descriptions are part of the prompt: they tell the model when a tool applies
and what it needs first (a linked store, a confirmation). Bump
CATALOG_VERSION whenever a tool is renamed, removed, or its parameters change
incompatibly.
"""

from __future__ import annotations

from momboss_agent.ai.tools.base import ToolSpec
from momboss_agent.core.types import InsightType, OrderStatus

CATALOG_VERSION = "2025.1"

_READ_NOTE = "Requires a linked store account; if the vendor has not linked their store, use verify_vendor first."
_WRITE_NOTE = "Requires a linked, verified store account; if the vendor is not verified, use verify_vendor first."

PRODUCT_STATUSES = ("publish", "draft", "pending", "private")
ORDER_STATUSES = tuple(s.value for s in OrderStatus if s != OrderStatus.FAILED)
EVENT_TYPES = ("virtual", "hybrid", "in_person")
AD_TONES = ("fun", "professional", "luxurious", "urgent", "heartfelt")
INSIGHT_TYPES = tuple(t.value for t in InsightType)
HELP_TOPICS = ("products", "orders", "store", "events", "advertising", "insights", "general")


TOOL_CATALOG: tuple[ToolSpec, ...] = (
    # ------------------------------------------
    # Products
    # ------------------------------------------
    ToolSpec(
        name="create_product",
        description=(
            "Create a new product in the vendor's store. Use when a vendor wants to add or list "
            "a new product. Always confirm the details with the vendor before creating. "
            "Products are created as drafts unless the vendor explicitly asks to publish. " + _WRITE_NOTE
        ),
        input_schema={
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": "The product name/title"},
                "description": {"type": "string", "description": "Full product description (can include HTML)"},
                "short_description": {"type": "string", "description": "Short summary shown on listing pages"},
                "regular_price": {
                    "type": "string",
                    "description": 'The product price as a string, e.g. "500" or "1200", in KES.',
                },
                "sale_price": {"type": "string", "description": "Optional sale/discounted price as a string"},
                "categories": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {"id": {"type": "number"}},
                        "required": ["id"],
                    },
                    "description": "Category objects with id. Use list_categories first to find the right IDs.",
                },
                "images": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "src": {"type": "string", "description": "Image URL"},
                            "name": {"type": "string", "description": "Image filename/alt text"},
                        },
                        "required": ["src"],
                    },
                    "description": "Product images (URLs). Images the vendor sent on WhatsApp can be used here.",
                },
                "status": {
                    "type": "string",
                    "enum": list(PRODUCT_STATUSES[:3]),
                    "description": 'Product status. Default is "draft" for vendor review.',
                },
                "sku": {"type": "string", "description": "Stock keeping unit, a unique product identifier"},
                "manage_stock": {"type": "boolean", "description": "Whether to track stock quantity"},
                "stock_quantity": {"type": "number", "description": "Items in stock (if manage_stock is true)"},
            },
            "required": ["name", "regular_price"],
        },
    ),
    ToolSpec(
        name="list_products",
        description=(
            "List products from the vendor's own store. Use when a vendor asks to see their products, "
            "check stock, or search for a product. " + _READ_NOTE
        ),
        input_schema={
            "type": "object",
            "properties": {
                "search": {"type": "string", "description": "Search by product name or keyword"},
                "status": {
                    "type": "string",
                    "enum": ["any", *PRODUCT_STATUSES],
                    "description": 'Filter by status. Default is "any".',
                },
                "per_page": {"type": "number", "description": "Number of products to return (max 100). Default 10."},
                "page": {"type": "number", "description": "Page number for pagination. Default 1."},
            },
            "required": [],
        },
    ),
    ToolSpec(
        name="get_product",
        description="Get full details of one product by its ID. " + _READ_NOTE,
        input_schema={
            "type": "object",
            "properties": {"product_id": {"type": "number", "description": "The product ID"}},
            "required": ["product_id"],
        },
    ),
    ToolSpec(
        name="update_product",
        description=(
            "Update an existing product: price, description, stock, status, etc. Only include the fields "
            "to change. Confirm the change with the vendor first. " + _WRITE_NOTE
        ),
        input_schema={
            "type": "object",
            "properties": {
                "product_id": {"type": "number", "description": "The product ID to update"},
                "name": {"type": "string", "description": "New product name"},
                "description": {"type": "string", "description": "New description"},
                "short_description": {"type": "string", "description": "New short description"},
                "regular_price": {"type": "string", "description": "New price"},
                "sale_price": {"type": "string", "description": "New sale price (or empty string to remove sale)"},
                "status": {"type": "string", "enum": list(PRODUCT_STATUSES), "description": "New status"},
                "manage_stock": {"type": "boolean"},
                "stock_quantity": {"type": "number", "description": "New stock quantity"},
            },
            "required": ["product_id"],
        },
    ),
    # ------------------------------------------
    # Orders
    # ------------------------------------------
    ToolSpec(
        name="list_orders",
        description=(
            "List orders for the vendor's store. Use when a vendor asks about orders, sales, or recent "
            "purchases. " + _READ_NOTE
        ),
        input_schema={
            "type": "object",
            "properties": {
                "status": {
                    "type": "string",
                    "enum": ["any", *(s.value for s in OrderStatus)],
                    "description": "Filter by order status",
                },
                "per_page": {"type": "number", "description": "Number of orders to return. Default 10."},
                "page": {"type": "number", "description": "Page number"},
            },
            "required": [],
        },
    ),
    ToolSpec(
        name="get_order",
        description="Get full details of one order by ID. " + _READ_NOTE,
        input_schema={
            "type": "object",
            "properties": {"order_id": {"type": "number", "description": "The order ID"}},
            "required": ["order_id"],
        },
    ),
    ToolSpec(
        name="update_order_status",
        description=(
            "Change the status of an order, e.g. mark it processing or completed. Double-confirm "
            "cancellations and refunds with the vendor. " + _WRITE_NOTE
        ),
        input_schema={
            "type": "object",
            "properties": {
                "order_id": {"type": "number", "description": "The order ID to update"},
                "status": {"type": "string", "enum": list(ORDER_STATUSES), "description": "The new order status"},
            },
            "required": ["order_id", "status"],
        },
    ),
    # ------------------------------------------
    # Categories
    # ------------------------------------------
    ToolSpec(
        name="list_categories",
        description=(
            "List all product categories on the marketplace. Use to find category IDs before creating or "
            "updating products, or when a vendor asks which categories exist. No linked account needed."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "per_page": {"type": "number", "description": "Number of categories to return. Default 50."},
            },
            "required": [],
        },
    ),
    # ------------------------------------------
    # Vendor / store
    # ------------------------------------------
    ToolSpec(
        name="get_vendor_info",
        description=(
            "Get a store's public profile. Without vendor_id this returns the vendor's own store, "
            "which requires a linked account."
        ),
        input_schema={
            "type": "object",
            "properties": {"vendor_id": {"type": "number", "description": "The store ID (defaults to own store)"}},
            "required": [],
        },
    ),
    ToolSpec(
        name="get_vendor_stats",
        description=(
            'Get dashboard stats (total orders, revenue) for the vendor\'s store. Use for "how is my store '
            'doing?" questions. ' + _READ_NOTE
        ),
        input_schema={
            "type": "object",
            "properties": {"vendor_id": {"type": "number", "description": "The store ID (defaults to own store)"}},
            "required": [],
        },
    ),
    # ------------------------------------------
    # Events
    # ------------------------------------------
    ToolSpec(
        name="create_event",
        description=(
            "Create an event (workshop, meetup, webinar) on the marketplace. Confirm title, date and venue "
            "first. Events are drafts unless the vendor asks to publish. " + _WRITE_NOTE
        ),
        input_schema={
            "type": "object",
            "properties": {
                "title": {"type": "string", "description": "Event title"},
                "description": {"type": "string", "description": "Event description"},
                "start_date": {
                    "type": "string",
                    "description": 'Start date/time in ISO format, e.g. "2026-03-15T10:00:00"',
                },
                "end_date": {"type": "string", "description": "End date/time in ISO format"},
                "venue": {"type": "string", "description": 'Location, or "Virtual" for online events'},
                "type": {"type": "string", "enum": list(EVENT_TYPES), "description": "Event type"},
                "ticket_price": {
                    "type": "string",
                    "description": 'Ticket price as a string, e.g. "500". Use "0" for free events.',
                },
                "status": {"type": "string", "enum": ["publish", "draft"], "description": 'Default is "draft".'},
            },
            "required": ["title", "start_date"],
        },
    ),
    # ------------------------------------------
    # Verification
    # ------------------------------------------
    ToolSpec(
        name="verify_vendor",
        description=(
            "Verify and link this WhatsApp number to the vendor's store account. Use when an unverified "
            "vendor provides their store email or store ID. Linking is required before any store action."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "store_email": {"type": "string", "description": "The email address of the store account"},
                "store_id": {"type": "number", "description": "The store ID (if known)"},
            },
            "required": [],
        },
    ),
    # ------------------------------------------
    # Marketing
    # ------------------------------------------
    ToolSpec(
        name="generate_ad_copy",
        description=(
            'Generate marketing copy for a product in Facebook, Instagram and WhatsApp formats. Use when a '
            'vendor says "advertise", "promote", "create an ad" or "market my product". Works without a '
            "linked account when the product details are given; product_id lookups need a linked account."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "product_name": {"type": "string", "description": "The product name to advertise"},
                "product_description": {"type": "string", "description": "Brief product description"},
                "price": {"type": "string", "description": "Product price in KES"},
                "target_audience": {
                    "type": "string",
                    "description": 'Who the ad targets, e.g. "moms in Nairobi", "young professionals"',
                },
                "tone": {"type": "string", "enum": list(AD_TONES), "description": "Tone of the ad copy"},
                "product_id": {"type": "number", "description": "Product ID to pull details automatically"},
            },
            "required": ["product_name"],
        },
    ),
    # ------------------------------------------
    # Business insights
    # ------------------------------------------
    ToolSpec(
        name="get_business_insights",
        description=(
            'Business insights and advice: "how is my store doing?", "what should I sell?", pricing help, '
            "marketing tips, or a weekly report. sales_summary, pricing_advice and weekly_report need a "
            "linked account; product_recommendations and marketing_tips do not."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "insight_type": {
                    "type": "string",
                    "enum": list(INSIGHT_TYPES),
                    "description": "Type of insight requested",
                },
                "vendor_id": {"type": "number", "description": "Store ID to pull data for (defaults to own store)"},
            },
            "required": ["insight_type"],
        },
    ),
    # ------------------------------------------
    # Help
    # ------------------------------------------
    ToolSpec(
        name="get_help",
        description=(
            "Show a help menu of what the assistant can do. Use when a vendor asks for help or seems "
            "unsure what is possible. No linked account needed."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "topic": {
                    "type": "string",
                    "enum": list(HELP_TOPICS),
                    "description": 'Specific help topic, or "general" for an overview',
                },
            },
            "required": [],
        },
    ),
)


def catalog_names(catalog: tuple[ToolSpec, ...] = TOOL_CATALOG) -> list[str]:
    return [spec.name for spec in catalog]


def to_api_tools(catalog: tuple[ToolSpec, ...] = TOOL_CATALOG) -> list[dict]:
    return [spec.to_api_dict() for spec in catalog]
