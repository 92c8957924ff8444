"""Pydantic models for query filters and operation results.

Business rejections (cart/merchant mismatch, empty checkout, invalid status
moves, discount checks) come back as results with `success`/`valid` set to
False instead of raising.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

# --- Filters ---


class MerchantFilter(BaseModel):
    category: str | None = None
    is_open: bool | None = None
    min_rating: float | None = Field(None, ge=0.0, le=5.0)
    supports_delivery: bool | None = None
    supports_pickup: bool | None = None
    search_query: str | None = None


class ItemFilter(BaseModel):
    merchant_id: str | None = None
    category: str | None = None
    is_available: bool | None = None
    is_featured: bool | None = None
    search_query: str | None = None
    sort_by: Literal["name", "price", "units_sold", "sort_order"] | None = None
    sort_order: Literal["asc", "desc"] = "asc"


class OrderFilter(BaseModel):
    user_id: str | None = None
    merchant_id: str | None = None
    status: str | None = None
    payment_status: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None


# --- Results ---


class ActionResult(BaseModel):
    success: bool
    message: str = ""
    id: str | None = None

    @classmethod
    def rejected(cls, exc):
        """A failed result carrying the messages of a protean ValidationError."""
        messages = [message for field_messages in exc.messages.values() for message in field_messages]
        return cls(success=False, message="; ".join(messages))


class CheckoutResult(BaseModel):
    success: bool
    message: str = ""
    order_id: str | None = None
    order_number: str | None = None


class DiscountResult(BaseModel):
    valid: bool
    discount: float = 0.0
    message: str = ""


class CartTotal(BaseModel):
    subtotal: float = 0.0
    item_count: int = 0


# --- Analytics ---


class MerchantStat(BaseModel):
    merchant_id: str
    name: str
    revenue: float = 0.0
    orders: int = 0


class ItemStat(BaseModel):
    item_id: str
    merchant_id: str
    name: str
    merchant_name: str = "Unknown"
    units_sold: int = 0
    revenue: float = 0.0


class DailyStat(BaseModel):
    date: str  # ISO calendar date
    orders: int = 0
    revenue: float = 0.0


class DashboardStats(BaseModel):
    gmv: float = 0.0
    fees: float = 0.0
    net_sales: float = 0.0
    order_count: int = 0
    active_merchants: int = 0
    top_merchants: list[MerchantStat] = Field(default_factory=list)
    top_items: list[ItemStat] = Field(default_factory=list)
    daily: list[DailyStat] = Field(default_factory=list)


class MerchantAnalytics(BaseModel):
    merchant_id: str
    revenue: float = 0.0
    order_count: int = 0
    average_order_value: float = 0.0
    orders_by_status: dict[str, int] = Field(default_factory=dict)
    top_items: list[ItemStat] = Field(default_factory=list)
    daily: list[DailyStat] = Field(default_factory=list)
