"""Shared types and enumerations."""

from __future__ import annotations

from enum import StrEnum


class Direction(StrEnum):
    INBOUND = "INBOUND"
    OUTBOUND = "OUTBOUND"


class SenderType(StrEnum):
    USER = "USER"
    AGENT = "AGENT"
    SYSTEM = "SYSTEM"


class ContentType(StrEnum):
    TEXT = "TEXT"
    IMAGE = "IMAGE"
    DOCUMENT = "DOCUMENT"


class ConversationStatus(StrEnum):
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"


class InsightType(StrEnum):
    SALES_SUMMARY = "sales_summary"
    PRODUCT_RECOMMENDATIONS = "product_recommendations"
    PRICING_ADVICE = "pricing_advice"
    MARKETING_TIPS = "marketing_tips"
    WEEKLY_REPORT = "weekly_report"


class OrderStatus(StrEnum):
    PENDING = "pending"
    PROCESSING = "processing"
    ON_HOLD = "on-hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    FAILED = "failed"
