"""Order entities and the order status machine.

State Machine:
    PENDING → CONFIRMED → PROCESSING → SHIPPED → DELIVERED
    PENDING/CONFIRMED/PROCESSING → CANCELLED

Checkout creates orders directly in CONFIRMED, after payment has settled.
Item prices are captured at purchase time and never recomputed.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from protean.exceptions import ValidationError


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}


def assert_can_transition(current: str, target: str) -> OrderStatus:
    try:
        current_status, target_status = OrderStatus(current), OrderStatus(target)
    except ValueError:
        raise ValidationError({"status": [f"Unknown order status: {target}"]}) from None

    if target_status not in _VALID_TRANSITIONS[current_status]:
        raise ValidationError(
            {"status": [f"Cannot transition from {current_status.value} to {target_status.value}"]}
        )
    return target_status


@dataclass
class ShippingAddress:
    street: str | None = None
    city: str | None = None
    postal_code: str | None = None
    state: str | None = None
    country: str | None = None

    def missing_fields(self) -> list[str]:
        return [name for name in ("street", "city", "postal_code") if not (getattr(self, name) or "").strip()]

    def to_dict(self) -> dict:
        return {
            "street": self.street,
            "city": self.city,
            "postal_code": self.postal_code,
            "state": self.state,
            "country": self.country,
        }


@dataclass
class OrderItem:
    product_id: str
    quantity: int
    unit_price: float
    product_name: str | None = None
    size: str | None = None
    color: str | None = None
    id: str | None = None

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity


@dataclass
class Order:
    user_id: str
    email: str
    items: list[OrderItem]
    shipping_address: ShippingAddress
    shipping_method: str
    shipping_cost: float
    payment_method: str
    subtotal: float
    total: float
    tax: float = 0.0
    discount: float = 0.0
    transaction_id: str | None = None
    coupon_code: str | None = None
    status: str = OrderStatus.PENDING.value
    currency: str = "COP"
    id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
