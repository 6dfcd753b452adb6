"""Pydantic request/response schemas for the checkout, order and shipping API.

These are external contracts, kept separate from the domain dataclasses.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class CartItemSchema(BaseModel):
    product_id: str
    quantity: int
    size: str | None = None
    color: str | None = None


class AddressSchema(BaseModel):
    street: str | None = None
    city: str | None = None
    postal_code: str | None = None
    state: str | None = None
    country: str | None = None


class CheckoutRequestSchema(BaseModel):
    user_id: str
    email: str
    items: list[CartItemSchema]
    shipping_address: AddressSchema
    payment_type: str
    payment_data: dict[str, Any] | None = None
    shipping_method: str | None = None
    coupon_code: str | None = None
    weight: float | None = Field(default=None, ge=0)
    distance: float | None = Field(default=None, ge=0)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "user_id": "user-001",
                    "email": "ana@example.com",
                    "items": [{"product_id": "prod-001", "quantity": 2, "size": "M", "color": "black"}],
                    "shipping_address": {"street": "Calle 10 #43-12", "city": "Medellín", "postal_code": "050021"},
                    "shipping_method": "express",
                    "payment_type": "stripe",
                    "payment_data": {"card_number": "4242424242424242", "expiry_date": "12/30", "cvv": "123"},
                }
            ]
        }
    }


class CheckoutResponse(BaseModel):
    success: bool
    state: str
    order_id: str | None = None
    transaction_id: str | None = None
    shipping_method: str | None = None
    shipping_cost: float | None = None
    estimated_delivery: str | None = None
    subtotal: float | None = None
    tax: float | None = None
    discount: float | None = None
    total: float | None = None


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class OrderItemResponse(BaseModel):
    product_id: str
    product_name: str | None = None
    quantity: int
    unit_price: float
    size: str | None = None
    color: str | None = None


class OrderResponse(BaseModel):
    order_id: str
    user_id: str
    email: str
    status: str
    items: list[OrderItemResponse]
    shipping_address: AddressSchema
    shipping_method: str | None = None
    shipping_cost: float
    payment_method: str | None = None
    transaction_id: str | None = None
    coupon_code: str | None = None
    subtotal: float
    tax: float
    discount: float
    total: float
    currency: str
    created_at: datetime | None = None


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class UpdateOrderStatusRequest(BaseModel):
    status: str


# ---------------------------------------------------------------------------
# Shipping
# ---------------------------------------------------------------------------
class ShippingOptionResponse(BaseModel):
    key: str
    name: str
    description: str
    cost: float
    is_free: bool
    estimated_days: str
    icon: str
    free_shipping_threshold: float | None = None


class ShippingOptionsResponse(BaseModel):
    options: list[ShippingOptionResponse]
    recommended: str | None = None
